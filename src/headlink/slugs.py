"""Anchor slug policies for heading text."""

from __future__ import annotations

import string
from typing import Callable, Dict

import regex

PERMISSIVE = "permissive"
STRICT = "strict"
DEFAULT_POLICY = PERMISSIVE

_DROPPED = {":", "."}
_STRICT_ALLOWED = set(string.ascii_lowercase + string.digits + "-")
# Unicode Alphabetic (letters plus combining vowel signs) or Numeric.
_ALNUM = regex.compile(r"[\p{Alphabetic}\p{N}]")


def permissive_slug(text: str) -> str:
    """Lowercase, hyphenate everything that is not alphanumeric, collapse hyphen runs.

    `:` and `.` are removed outright rather than hyphenated, so
    "Rust: Ownership Model." becomes "rust-ownership-model".
    """
    chars = []
    for ch in text.lower():
        if _ALNUM.match(ch):
            chars.append(ch)
        elif ch in _DROPPED:
            continue
        else:
            # whitespace and any other punctuation
            chars.append("-")
    return "-".join(part for part in "".join(chars).split("-") if part)


def strict_slug(text: str) -> str:
    """Keep only ``[a-z0-9-]``, map spaces to hyphens and drop the rest.

    Only leading and trailing hyphens are trimmed; internal runs stay.
    """
    chars = []
    for ch in text.lower():
        if ch == " ":
            chars.append("-")
        elif ch in _STRICT_ALLOWED:
            chars.append(ch)
    return "".join(chars).strip("-")


SLUG_POLICIES: Dict[str, Callable[[str], str]] = {
    PERMISSIVE: permissive_slug,
    STRICT: strict_slug,
}


def generate_anchor(text: str, policy: str = DEFAULT_POLICY) -> str:
    """Return the anchor slug for ``text`` under the named policy.

    Raises:
        ValueError: If ``policy`` is not a known policy name.
    """
    try:
        slugify = SLUG_POLICIES[policy]
    except KeyError:
        raise ValueError(
            f"Unknown slug policy {policy!r} (expected one of: {', '.join(sorted(SLUG_POLICIES))})"
        ) from None
    return slugify(text)
