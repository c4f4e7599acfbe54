"""Classification of filenames into cross-platform compatibility issues.

Every check operates on a single basename.  The only contextual check,
``case_conflict``, takes the sibling listing as an explicit argument so the
detector never touches the filesystem itself.

Checks run in a fixed order, which is also the reporting order:

  1. forbidden characters (``: < > " | ? * \\ /``)
  2. control characters (0x00-0x1F, 0x7F)
  3. Windows reserved device names (CON, PRN, AUX, NUL, COM1-9, LPT1-9)
  4. trailing dot or space
  5. leading space
  6. encoded length over 255 bytes
  7. problematic Unicode (zero-width, bidi overrides, emoji and symbols)
  8. case-insensitive collision with a sibling
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

MAX_FILENAME_BYTES: int = 255

FORBIDDEN_CHARS: frozenset[str] = frozenset(':<>"|?*\\/')
CONTROL_CHARS: frozenset[str] = frozenset(chr(c) for c in range(0x20)) | {"\x7f"}

_FORBIDDEN_CHAR_RE: re.Pattern[str] = re.compile(
    "[" + re.escape("".join(sorted(FORBIDDEN_CHARS))) + "]"
)
_CONTROL_CHAR_RE: re.Pattern[str] = re.compile(r"[\x00-\x1f\x7f]")

# Matched against the upper-cased part before the first dot.
_RESERVED_NAMES_RE: re.Pattern[str] = re.compile(r"^(CON|PRN|AUX|NUL|COM[1-9]|LPT[1-9])$")

# Zero-width characters and bidirectional overrides: invisible, always stripped.
INVISIBLE_UNICODE_CLASS: str = "\u200b-\u200f\u202a-\u202e\u2060-\u206f\ufeff"
# Emoji and symbol blocks: reported only.
SYMBOL_UNICODE_CLASS: str = "\U0001f300-\U0001f9ff\u2600-\u26ff\u2700-\u27bf"


# Default scanner.  Callers pass ``unicode_scan=None`` to run without the check.
UNICODE_SCAN: re.Pattern[str] = re.compile(f"[{INVISIBLE_UNICODE_CLASS}{SYMBOL_UNICODE_CLASS}]")

_degraded_warning_emitted = False


class FilenameIssueKind(enum.Enum):
    """A single class of portability problem.  Declaration order is report order."""

    FORBIDDEN_CHARS = "forbidden_chars"
    CONTROL_CHARS = "control_chars"
    RESERVED_NAME = "reserved_name"
    TRAILING_DOT_SPACE = "trailing_dot_space"
    LEADING_SPACE = "leading_space"
    LENGTH_EXCEEDED = "length_exceeded"
    PROBLEMATIC_UNICODE = "problematic_unicode"
    CASE_CONFLICT = "case_conflict"


@dataclass(frozen=True)
class IssueReport:
    """Issues found for one file."""

    path: Path
    issues: tuple[FilenameIssueKind, ...]

    @property
    def is_clean(self) -> bool:
        return not self.issues

    @property
    def issue_names(self) -> list[str]:
        return [kind.value for kind in self.issues]


def encoded_length(name: str) -> int:
    """Return the on-disk byte length of *name*.

    ``surrogateescape`` keeps undecodable bytes returned by ``os.listdir``
    at their original width.
    """
    return len(name.encode("utf-8", "surrogateescape"))


def fit_to_bytes(text: str, max_bytes: int) -> str:
    """Return the longest prefix of *text* whose encoding fits in *max_bytes*."""
    while text and encoded_length(text) > max_bytes:
        text = text[:-1]
    return text


def has_forbidden_chars(name: str) -> bool:
    return _FORBIDDEN_CHAR_RE.search(name) is not None


def has_control_chars(name: str) -> bool:
    return _CONTROL_CHAR_RE.search(name) is not None


def is_reserved_name(name: str) -> bool:
    """Return ``True`` if the part of *name* before the first dot is a device name."""
    stem = name.split(".", 1)[0]
    return _RESERVED_NAMES_RE.match(stem.upper()) is not None


def has_trailing_dot_space(name: str) -> bool:
    return name.endswith((".", " "))


def has_leading_space(name: str) -> bool:
    # Leading dots are hidden files on UNIX, not a portability problem.
    return name.startswith(" ")


def exceeds_length(name: str, max_bytes: int = MAX_FILENAME_BYTES) -> bool:
    return encoded_length(name) > max_bytes


def has_problematic_unicode(
    name: str, unicode_scan: re.Pattern[str] | None = UNICODE_SCAN
) -> bool:
    """Advisory check; reports ``False`` when no Unicode scanner is available."""
    if unicode_scan is None:
        _warn_degraded()
        return False
    return unicode_scan.search(name) is not None


def has_case_conflict(name: str, siblings: Iterable[str] | None) -> bool:
    """Return ``True`` if *name* is one of two or more case-identical siblings.

    *siblings* is the full listing of the parent directory, including *name*
    itself.  ``None`` means the listing could not be read.
    """
    if siblings is None:
        return False
    folded = name.casefold()
    count = 0
    for sibling in siblings:
        if sibling.casefold() == folded:
            count += 1
            if count > 1:
                return True
    return False


def detect_issues(
    name: str,
    siblings: Iterable[str] | None = None,
    *,
    max_bytes: int = MAX_FILENAME_BYTES,
    unicode_scan: re.Pattern[str] | None = UNICODE_SCAN,
) -> tuple[FilenameIssueKind, ...]:
    """Classify *name* and return its issues in reporting order.

    Args:
        name: A basename (path separators are treated as characters).
        siblings: Names present in the parent directory, used only for the
            case-conflict check.
        max_bytes: Maximum encoded length.
        unicode_scan: Compiled pattern used for the problematic-Unicode check,
            or ``None`` to disable it.
    """
    checks: list[tuple[FilenameIssueKind, bool]] = [
        (FilenameIssueKind.FORBIDDEN_CHARS, has_forbidden_chars(name)),
        (FilenameIssueKind.CONTROL_CHARS, has_control_chars(name)),
        (FilenameIssueKind.RESERVED_NAME, is_reserved_name(name)),
        (FilenameIssueKind.TRAILING_DOT_SPACE, has_trailing_dot_space(name)),
        (FilenameIssueKind.LEADING_SPACE, has_leading_space(name)),
        (FilenameIssueKind.LENGTH_EXCEEDED, exceeds_length(name, max_bytes)),
        (FilenameIssueKind.PROBLEMATIC_UNICODE, has_problematic_unicode(name, unicode_scan)),
        (FilenameIssueKind.CASE_CONFLICT, has_case_conflict(name, siblings)),
    ]
    return tuple(kind for kind, found in checks if found)


def inspect_file(
    path: Path,
    siblings: Iterable[str] | None = None,
    *,
    max_bytes: int = MAX_FILENAME_BYTES,
    unicode_scan: re.Pattern[str] | None = UNICODE_SCAN,
) -> IssueReport:
    """Build an :class:`IssueReport` for *path* from its basename."""
    issues = detect_issues(
        path.name, siblings, max_bytes=max_bytes, unicode_scan=unicode_scan
    )
    return IssueReport(path=path, issues=issues)


def _warn_degraded() -> None:
    global _degraded_warning_emitted
    if not _degraded_warning_emitted:
        logger.warning("problematic_unicode check skipped: no Unicode scanner available")
        _degraded_warning_emitted = True
