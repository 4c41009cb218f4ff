# ABOUTME: Reconciler: routes metadata rows to the remote backend or the local store.
# ABOUTME: Remote refusals fall back to local; blobs and drawings always stay local.

import logging

from libris.config import GUEST, Session
from libris.db.mapping import STORAGE_LOCAL, STORAGE_REMOTE, BookRecord, cover_blob_key
from libris.db.remote import RemoteBackend, RemoteBackendError
from libris.db.store import BookNotFoundError, LocalStore

logger = logging.getLogger(__name__)


def drawing_prefix(book_id: str) -> str:
    return f"{book_id}-"


class Reconciler:
    """Single entry point for everything the library persists.

    Authenticated sessions write metadata rows to the remote backend first
    and land them in the local store when the remote refuses or fails.
    Guests only ever touch the local store. Listing merges both sides so a
    row that fell back locally is still visible.
    """

    def __init__(
        self,
        local: LocalStore,
        remote: RemoteBackend | None = None,
        session: Session = GUEST,
    ) -> None:
        self._local = local
        self._remote = remote
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    @property
    def uses_remote(self) -> bool:
        return self._remote is not None and self._session.is_authenticated

    async def write(self, record: BookRecord) -> BookRecord:
        """Persist a metadata row, recording where it ended up in ``record.storage``."""
        record.touch()
        if self.uses_remote:
            try:
                await self._remote.upsert(record)
            except RemoteBackendError as exc:
                logger.warning(
                    "Remote write for %s refused (%s), saving to the local store", record.id, exc
                )
            else:
                record.storage = STORAGE_REMOTE
                logger.debug("Wrote %s to the remote backend", record.id)
                return record
        record.storage = STORAGE_LOCAL
        self._local.put_book(record)
        logger.debug("Wrote %s to the local store", record.id)
        return record

    async def list(self) -> list[BookRecord]:
        """All of the session's books, newest first."""
        local = [r for r in self._local.list_books() if r.user_id == self._session.user_id]
        if not self.uses_remote:
            return local
        try:
            remote = await self._remote.fetch_all(self._session.user_id)
        except RemoteBackendError as exc:
            logger.warning("Remote listing failed (%s), showing local books only", exc)
            return local

        merged = {record.id: record for record in local}
        for record in remote:
            existing = merged.get(record.id)
            # A row written locally after the remote copy is the fresher fallback.
            if existing is None or record.updated_at >= existing.updated_at:
                merged[record.id] = record
        return sorted(merged.values(), key=lambda r: r.created_at, reverse=True)

    async def get(self, book_id: str) -> BookRecord:
        for record in await self.list():
            if record.id == book_id:
                return record
        raise BookNotFoundError(f"No book with id {book_id!r}")

    async def delete(self, book_id: str) -> None:
        """Remove a book's metadata row, file, extracted cover, and drawings.

        Raises:
            BookNotFoundError: If no metadata row existed in any backend.
        """
        removed = False
        remote_error: RemoteBackendError | None = None
        if self.uses_remote:
            try:
                removed = await self._remote.delete(book_id) > 0
            except RemoteBackendError as exc:
                logger.warning("Remote delete for %s failed (%s)", book_id, exc)
                remote_error = exc
        if self._local.delete_book(book_id):
            removed = True

        if not removed:
            if remote_error is not None:
                raise remote_error
            raise BookNotFoundError(f"No book with id {book_id!r}")

        for key in (book_id, cover_blob_key(book_id)):
            if not self._local.delete_blob(key):
                logger.debug("No blob %s to release", key)
        count = self._local.delete_drawings(drawing_prefix(book_id))
        logger.info("Deleted %s (%d drawing(s) released)", book_id, count)

    # --- Blobs and drawings, always local ---

    def store_blob(self, key: str, data: bytes, content_type: str | None = None) -> None:
        self._local.put_blob(key, data, content_type)

    def load_blob(self, key: str) -> bytes | None:
        return self._local.get_blob(key)

    def delete_blob(self, key: str) -> bool:
        return self._local.delete_blob(key)

    def save_drawing(self, book_id: str, page_key: str, data: str) -> None:
        self._local.put_drawing(f"{drawing_prefix(book_id)}{page_key}", data)

    def list_drawings(self, book_id: str) -> dict[str, str]:
        prefix = drawing_prefix(book_id)
        return {
            key[len(prefix):]: data for key, data in self._local.scan_drawings(prefix).items()
        }
