"""Pure functions for rewriting filenames into a portable form.

This module contains no filesystem access: only string transformations.

Restricted characters are replaced with the token of the chosen
:class:`SanitizationStrategy` (``_``, ``-`` or nothing).  Reserved device
names are always escaped with a leading ``_`` whatever the strategy.

The sanitization pipeline:
  1. Replace control characters
  2. Replace forbidden characters
  3. Strip zero-width and bidirectional-override characters
  4. Strip trailing dots/spaces and leading spaces
  5. Escape Windows reserved device names (CON, PRN, AUX, NUL, COM1-9, LPT1-9)
  6. Truncate to the byte budget, preserving the extension
  7. Collapse runs of the replacement token

Stages 4-7 are repeated until the name stops changing, so truncation can
never leave a trailing dot or a bare device name behind.
"""

from __future__ import annotations

import enum
import re

from .detector import (
    INVISIBLE_UNICODE_CLASS,
    MAX_FILENAME_BYTES,
    encoded_length,
    fit_to_bytes,
    is_reserved_name,
)

_CONTROL_CHAR_RE: re.Pattern[str] = re.compile(r"[\x00-\x1f\x7f]")
_FORBIDDEN_CHAR_RE: re.Pattern[str] = re.compile(r'[:<>"|?*\\/]')
_INVISIBLE_UNICODE_RE: re.Pattern[str] = re.compile(f"[{INVISIBLE_UNICODE_CLASS}]")
_TRAILING_DOTS_SPACES_RE: re.Pattern[str] = re.compile(r"[. ]+$")
_LEADING_SPACES_RE: re.Pattern[str] = re.compile(r"^ +")

RESERVED_PREFIX: str = "_"


class SanitizationStrategy(enum.Enum):
    """Character-replacement policy.  The value is the replacement token."""

    UNDERSCORE = "_"
    HYPHEN = "-"
    REMOVE = ""

    @property
    def token(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: str | SanitizationStrategy | None) -> SanitizationStrategy:
        """Map a strategy label to a member; unknown labels fall back to ``UNDERSCORE``."""
        if isinstance(value, SanitizationStrategy):
            return value
        if value is not None:
            for member in cls:
                if member.label == value.strip().lower():
                    return member
        return cls.UNDERSCORE


def replace_control_chars(name: str, token: str = "_") -> str:
    """Replace each control character (0x00-0x1F, 0x7F) with *token*."""
    return _CONTROL_CHAR_RE.sub(token, name)


def replace_forbidden_chars(name: str, token: str = "_") -> str:
    """Replace each Windows-forbidden character with *token*."""
    return _FORBIDDEN_CHAR_RE.sub(token, name)


def strip_invisible_unicode(name: str) -> str:
    """Remove zero-width and bidirectional-override code points."""
    return _INVISIBLE_UNICODE_RE.sub("", name)


def strip_edge_dots_spaces(name: str) -> str:
    """Strip trailing dots and spaces, then leading spaces.

    Leading dots are kept: they mark hidden files and are legal everywhere.
    """
    name = _TRAILING_DOTS_SPACES_RE.sub("", name)
    return _LEADING_SPACES_RE.sub("", name)


def escape_reserved_name(name: str) -> str:
    """Prefix Windows reserved device names with ``_``.

    Handles bare names (``CON`` -> ``_CON``) and names with extensions
    (``CON.txt`` -> ``_CON.txt``).  The match is case-insensitive on the
    part before the first dot.
    """
    if is_reserved_name(name):
        return RESERVED_PREFIX + name
    return name


def truncate_to_bytes(name: str, max_bytes: int = MAX_FILENAME_BYTES) -> str:
    """Drop characters until *name* fits in *max_bytes* encoded bytes.

    Characters are removed from the end of the part before the last dot, so
    the extension survives.  Once that part is empty (or there is no
    extension) the end of the whole name is trimmed instead.
    """
    if encoded_length(name) <= max_bytes:
        return name

    dot_idx = name.rfind(".")
    if dot_idx > 0:
        stem, ext = name[:dot_idx], name[dot_idx:]
        budget = max_bytes - encoded_length(ext)
        if budget > 0:
            stem = fit_to_bytes(stem, budget)
            if stem:
                return stem + ext
    return fit_to_bytes(name, max_bytes)


def collapse_replacements(name: str, token: str) -> str:
    """Collapse runs of two or more *token* into a single one."""
    if not token:
        return name
    return re.sub(f"(?:{re.escape(token)}){{2,}}", token, name)


def sanitize_name(
    name: str,
    strategy: SanitizationStrategy | str = SanitizationStrategy.UNDERSCORE,
    *,
    max_bytes: int = MAX_FILENAME_BYTES,
) -> str:
    """Run the full sanitization pipeline on a single basename.

    The result never triggers the forbidden, control, reserved, trailing,
    leading or length checks of :mod:`namefix.detector`, and sanitizing it
    again returns it unchanged.
    """
    strategy = SanitizationStrategy.parse(strategy)
    token = strategy.token

    name = replace_control_chars(name, token)
    name = replace_forbidden_chars(name, token)
    name = strip_invisible_unicode(name)

    previous = None
    while name != previous:
        previous = name
        name = strip_edge_dots_spaces(name)
        name = escape_reserved_name(name)
        name = truncate_to_bytes(name, max_bytes)
        name = collapse_replacements(name, token)

    if not name:
        name = token or RESERVED_PREFIX
    return name


def is_name_safe(name: str, *, max_bytes: int = MAX_FILENAME_BYTES) -> bool:
    """Return ``True`` if *name* requires no sanitization."""
    return sanitize_name(name, max_bytes=max_bytes) == name

