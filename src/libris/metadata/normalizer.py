# ABOUTME: Filename heuristics that turn raw upload names into a best-guess title/author.
# ABOUTME: Strips archive noise, splits "Title - Author" names and CamelCase/concatenated words.

import re
from dataclasses import dataclass

import wordninja

from libris.metadata.types import UNTITLED

# Minimum length for a spaceless string to be considered "concatenated" and worth splitting.
# Shorter strings (e.g. "Dune", "1984") are left alone.
_MIN_CONCAT_LENGTH = 8

# A segment with more words than this is never taken for an author.
_MAX_AUTHOR_WORDS = 4

_CAMEL_CASE_RE = re.compile(r"[a-z][A-Z]")
_CAMEL_LOWER_UPPER_RE = re.compile(r"([a-z\d])([A-Z])")
_CAMEL_UPPER_SEQUENCE_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_LETTER_DIGIT_RE = re.compile(r"([a-zA-Z])(\d)")
_DIGIT_LETTER_RE = re.compile(r"(\d)([a-zA-Z])")
_SEPARATOR_RE = re.compile(r"[-_]")

_EXTENSION_RE = re.compile(r"\.[A-Za-z][A-Za-z0-9]{1,4}$")
_BRACKETED_RE = re.compile(r"\[[^\]]*\]|\([^)]*\)|\{[^}]*\}")
_HEX_ID_RE = re.compile(r"\b[0-9a-fA-F]{16,}\b")
_ISBN13_RE = re.compile(r"(?<!\d)\d{13}(?!\d)")
_WHITESPACE_RE = re.compile(r"\s+")
# Hyphens used as spacing: runs of hyphens, or hyphens touching whitespace/ends.
_SPACING_HYPHEN_RE = re.compile(r"-{2,}|(?:(?<=\s)|^)-+|-+(?=\s|$)")
_EDGE_PUNCTUATION_RE = re.compile(r"^[\s.,;:|]+|[\s.,;:|]+$")

# "Title by Author", author must be 2-3 capitalized words
_TITLE_BY_AUTHOR_RE = re.compile(
    r"^(?P<title>.+?)\s+by\s+(?P<author>[A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)$"
)

# Promotional noise that archive sites glue onto names. Longest phrases first.
_PROMO_TOKENS = (
    "full edition",
    "free download",
    "download",
    "ebook",
    "epub",
    "pdf",
    "retail",
)
_PROMO_RE = re.compile(
    r"\b(?:" + "|".join(r"\s+".join(map(re.escape, t.split())) for t in _PROMO_TOKENS) + r")\b",
    re.IGNORECASE,
)

# Author values that mean "nobody in particular".
_PLACEHOLDER_AUTHORS = frozenset(
    {
        "admin",
        "anonim",
        "anonymous",
        "bilinmiyor",
        "biliniyor",
        "library",
        "unknown",
        "unknownauthor",
        "various",
    }
)
_AUTHOR_SPLIT_RE = re.compile(r"[;|,&]| ve | and ")
# Role markers only count in role position: a leading "Trans." / "Edited by"
# or a trailing "translator". Bare words like "Ed" or "Trans" are names.
_AUTHOR_ROLE_PREFIX_RE = re.compile(
    r"^(?:(?:translated|edited)\s+by\s+"
    r"|(?:trans|transl|ed|eds|çev|haz)\.\s*"
    r"|(?:translator|editor|yazar|çeviren|çevirmen|hazırlayan)\s*:\s*)",
    re.IGNORECASE,
)
_AUTHOR_ROLE_SUFFIX_RE = re.compile(
    r"\s+(?:translator|editor|eds?\.|trans\.|çev\.|yazar|çeviren|çevirmen|hazırlayan)$",
    re.IGNORECASE,
)

# Common English stop words that appear in titles but not person names.
_TITLE_STOP_WORDS = frozenset(
    {
        "the",
        "a",
        "an",
        "of",
        "and",
        "in",
        "on",
        "at",
        "to",
        "for",
        "by",
        "with",
        "from",
        "is",
        "was",
        "are",
        "were",
        "be",
        "been",
    }
)


@dataclass(frozen=True)
class ParsedFilename:
    """Best-guess metadata derived from a filename."""

    title: str
    author: str


def _needs_normalization(text: str) -> bool:
    """Check whether a string looks mangled and needs word splitting.

    Returns True for CamelCase-joined words, underscore-joined words,
    or long spaceless strings that are likely concatenated.
    """
    text = text.strip()
    if not text:
        return False

    if "_" in text:
        return True

    if _CAMEL_CASE_RE.search(text):
        return True

    segments = text.split("-") if "-" in text else [text]

    return any(" " not in seg and len(seg) >= _MIN_CONCAT_LENGTH for seg in segments)


def _split_camel_case(text: str) -> list[str]:
    """Split a CamelCase string into individual words.

    Handles boundaries between:
    - lowercase → uppercase (e.g. "templarL" → "templar", "L")
    - uppercase sequence → uppercase+lowercase (e.g. "HTMLParser" → "HTML", "Parser")
    - letter → digit and digit → letter (e.g. "Fahrenheit451" → "Fahrenheit", "451")
    """
    result = _CAMEL_LOWER_UPPER_RE.sub(r"\1_SPLIT_\2", text)
    result = _CAMEL_UPPER_SEQUENCE_RE.sub(r"\1_SPLIT_\2", result)
    result = _LETTER_DIGIT_RE.sub(r"\1_SPLIT_\2", result)
    result = _DIGIT_LETTER_RE.sub(r"\1_SPLIT_\2", result)

    parts = [p for p in result.split("_SPLIT_") if p]
    return parts if parts else [text]


def _split_with_wordninja(text: str) -> str:
    """Split an all-lowercase concatenated string using wordninja's unigram model."""
    words = wordninja.split(text)
    return " ".join(words) if words else text


def split_concatenated(text: str) -> str:
    """Split a concatenated/mangled string into space-separated words.

    Segments are split on hyphens and underscores, then on CamelCase
    boundaries; long all-lowercase leftovers go through wordninja.
    Strings that already look clean are returned unchanged.
    """
    if not _needs_normalization(text):
        return text

    words: list[str] = []
    for segment in _SEPARATOR_RE.split(text):
        segment = segment.strip()
        if not segment:
            continue
        for part in _split_camel_case(segment):
            if part.islower() and len(part) >= _MIN_CONCAT_LENGTH:
                words.append(_split_with_wordninja(part))
            else:
                words.append(part)

    return " ".join(words)


def _is_likely_person_name(text: str) -> bool:
    """Heuristic check whether a string looks like a person's name.

    Recognizes 2-3 capitalized words (including single-letter initials)
    without common stop words.
    """
    words = text.split()

    if len(words) < 2 or len(words) > 3:
        return False

    for word in words:
        if not word[0].isupper():
            return False

    return not any(w.lower().strip(".") in _TITLE_STOP_WORDS for w in words)


def _detect_author_in_title(title: str) -> tuple[str, str | None]:
    """Try to detect an author name embedded at the start of a title string.

    Returns:
        (cleaned_title, detected_author); author is None if not detected.
    """
    words = title.split()

    for name_len in (3, 2):
        if len(words) <= name_len:
            continue
        candidate = " ".join(words[:name_len])
        if _is_likely_person_name(candidate):
            remaining = " ".join(words[name_len:])
            return remaining, candidate

    return title, None


def _clean_once(text: str) -> str:
    text = text.replace("_", " ")
    text = _SPACING_HYPHEN_RE.sub(" ", text)
    text = _PROMO_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return _EDGE_PUNCTUATION_RE.sub("", text)


def clean_display_text(text: str) -> str:
    """Tidy a string for display: spacing, separators, and promotional noise.

    Applied until nothing changes, so feeding the output back in is a no-op.
    """
    if not text:
        return ""
    # Every pass either shortens the text or removes an underscore/hyphen.
    for _ in range(len(text) + 1):
        cleaned = _clean_once(text)
        if cleaned == text:
            break
        text = cleaned
    return text


def clean_author(text: str) -> str:
    """Reduce a raw author string to a single, displayable primary author.

    Placeholder names ("Unknown", "Anonymous", ...) become an empty string.
    """
    if not text or not text.strip():
        return ""
    if _is_placeholder_author(text):
        return ""

    primary = _AUTHOR_SPLIT_RE.split(text, maxsplit=1)[0]
    primary = _BRACKETED_RE.sub(" ", primary)
    primary = _WHITESPACE_RE.sub(" ", primary).strip()
    primary = _AUTHOR_ROLE_PREFIX_RE.sub("", primary)
    primary = _AUTHOR_ROLE_SUFFIX_RE.sub("", primary)
    primary = clean_display_text(primary)

    if len(primary) < 2 or _is_placeholder_author(primary):
        return ""
    return primary


def tidy_hint(text: str | None) -> str:
    """Collapse whitespace in a caller-supplied value and nothing else."""
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def hint_author(text: str | None) -> str:
    """A caller-supplied author as given, or "" when it is a placeholder name."""
    author = tidy_hint(text)
    return "" if _is_placeholder_author(author) else author


def _compact(text: str) -> str:
    return _WHITESPACE_RE.sub("", text).casefold()


def _is_placeholder_author(text: str) -> bool:
    return _compact(text) in _PLACEHOLDER_AUTHORS


def _strip_noise(text: str) -> str:
    """Remove bracketed segments, hex ids and ISBN-looking runs."""
    text = _BRACKETED_RE.sub(" ", text)
    text = _HEX_ID_RE.sub(" ", text)
    text = _ISBN13_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _could_be_author(text: str) -> bool:
    words = text.split()
    return 0 < len(words) <= _MAX_AUTHOR_WORDS and "library" not in text.lower()


def _split_title_author(left: str, right: str) -> tuple[str, str] | None:
    """Decide which side of a " - " split is the author.

    The right-hand side wins ties unless only the left looks like a person.
    A placeholder author on either side settles it outright.
    """
    if _is_placeholder_author(right):
        return left, right
    if _is_placeholder_author(left):
        return right, left
    right_ok = _could_be_author(right)
    left_ok = _could_be_author(left)
    if right_ok and left_ok:
        if _is_likely_person_name(left) and not _is_likely_person_name(right):
            return right, left
        return left, right
    if right_ok:
        return left, right
    if left_ok:
        return right, left
    return None


def _split_if_joined(segment: str) -> str:
    # Spaced segments like "Ed McBain" are already words.
    if " " in segment:
        return segment
    return split_concatenated(segment)


def _finish(title: str, author: str) -> ParsedFilename:
    return ParsedFilename(
        title=clean_display_text(title) or UNTITLED,
        author=clean_author(author),
    )


def parse_filename(name: str) -> ParsedFilename:
    """Derive a best-guess title and author from an uploaded file's name.

    Handles archive-style "Title -- Author -- Publisher -- Year" names,
    "Title - Author" / "Author - Title" names, "Title by Author", and
    CamelCase or concatenated names. Never raises; an empty name gives
    an "Untitled" title and an empty author.
    """
    base = _EXTENSION_RE.sub("", (name or "").strip())

    if " -- " in base:
        parts = [p.strip() for p in base.split(" -- ") if p.strip()]
        if len(parts) >= 2:
            return _finish(_strip_noise(parts[0]), _strip_noise(parts[1]))

    base = _strip_noise(base)

    if " - " in base:
        left, _, right = base.partition(" - ")
        left = _split_if_joined(left.strip())
        right = _split_if_joined(right.strip())
        decided = _split_title_author(left, right)
        if decided is not None:
            return _finish(*decided)
        return _finish(f"{left} - {right}", "")

    m = _TITLE_BY_AUTHOR_RE.match(base)
    if m and _is_likely_person_name(m.group("author")):
        return _finish(m.group("title"), m.group("author"))

    if _needs_normalization(base):
        title, author = _detect_author_in_title(split_concatenated(base))
        return _finish(title, author or "")

    return _finish(base, "")
