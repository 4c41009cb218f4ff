# ABOUTME: Runtime settings and the current user session.
# ABOUTME: Built by the CLI from options and LIBRIS_* environment variables.

from dataclasses import dataclass, field
from pathlib import Path

import httpx

from libris.db.remote import RestBackend
from libris.db.store import DEFAULT_DB_PATH


@dataclass(frozen=True)
class Session:
    """Who the library belongs to. A session without a user id is a guest."""

    user_id: str | None = None
    access_token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)


GUEST = Session()


@dataclass(frozen=True)
class Settings:
    db_path: Path | str = DEFAULT_DB_PATH
    remote_url: str | None = None
    remote_key: str | None = None
    session: Session = field(default=GUEST)

    @property
    def remote_configured(self) -> bool:
        return bool(self.remote_url and self.remote_key)

    def build_remote(
        self, transport: httpx.AsyncBaseTransport | None = None
    ) -> RestBackend | None:
        """Create the remote backend client, or None when no remote is configured."""
        if not self.remote_configured:
            return None
        return RestBackend(
            self.remote_url,
            self.remote_key,
            access_token=self.session.access_token,
            transport=transport,
        )
