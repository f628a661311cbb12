"""Heading detection and line rewriting for Markdown documents."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from headlink.slugs import DEFAULT_POLICY, generate_anchor

LOGGER = logging.getLogger(__name__)

# 1-6 hashes, whitespace, then text starting with a non-space character.
HEADING_RE = re.compile(r"^(#{1,6})\s+(\S.*)$")

MARKDOWN = "markdown"
HTML = "html"
DEFAULT_STYLE = MARKDOWN


@dataclass(frozen=True)
class SuffixStyle:
    """How a heading decoration is rendered and recognised."""
    name: str
    template: str
    marker: "re.Pattern[str]"

    def render(self, anchor: str) -> str:
        return self.template.format(anchor=anchor)


SUFFIX_STYLES: Dict[str, SuffixStyle] = {
    MARKDOWN: SuffixStyle(
        name=MARKDOWN,
        template=" [chain](#{anchor}-)",
        marker=re.compile(r"\[chain\]\(#[^)\s]*\)\s*$"),
    ),
    HTML: SuffixStyle(
        name=HTML,
        template=' <a href="#{anchor}-" class="header-link">\U0001F517</a>',
        marker=re.compile(r'<a href="#[^"]*" class="header-link">[^<]*</a>\s*$'),
    ),
}


@dataclass(frozen=True)
class Heading:
    """An ATX heading split into its hash run and text."""
    hashes: str
    text: str

    @property
    def level(self) -> int:
        return len(self.hashes)


@dataclass
class LinkifyResult:
    """Rewritten lines plus counters describing the pass."""
    lines: List[str] = field(default_factory=list)
    headings: int = 0
    skipped: int = 0

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def get_style(style: str) -> SuffixStyle:
    """Look up a suffix style by name.

    Raises:
        ValueError: If ``style`` is not a known style.
    """
    try:
        return SUFFIX_STYLES[style]
    except KeyError:
        raise ValueError(
            f"Unknown suffix style {style!r} (expected one of: {', '.join(sorted(SUFFIX_STYLES))})"
        ) from None


def detect_heading(line: str) -> Optional[Heading]:
    """Return the heading on ``line``, or None when the line is not an ATX heading."""
    match = HEADING_RE.match(line)
    if not match:
        return None
    return Heading(hashes=match.group(1), text=match.group(2))


def render_suffix(anchor: str, style: str = DEFAULT_STYLE) -> str:
    return get_style(style).render(anchor)


def is_linked(heading: Heading, style: str = DEFAULT_STYLE) -> bool:
    """True when the heading text already ends with a decoration of ``style``."""
    return bool(get_style(style).marker.search(heading.text))


def linkify_line(
    line: str,
    style: str = DEFAULT_STYLE,
    policy: str = DEFAULT_POLICY,
    skip_linked: bool = False,
) -> str:
    """Append an anchor link to ``line`` if it is a heading; otherwise return it unchanged."""
    return linkify_lines([line], style, policy, skip_linked).lines[0]


def linkify_lines(
    lines: Iterable[str],
    style: str = DEFAULT_STYLE,
    policy: str = DEFAULT_POLICY,
    skip_linked: bool = False,
) -> LinkifyResult:
    """Rewrite every heading in ``lines``.

    Args:
        lines: Document lines without line terminators.
        style: Suffix style name (``markdown`` or ``html``).
        policy: Slug policy name (``permissive`` or ``strict``).
        skip_linked: Leave headings that already end with a decoration alone.

    Returns:
        LinkifyResult holding the new lines and heading counters.

    Raises:
        ValueError: If ``style`` or ``policy`` is unknown.
    """
    suffix_style = get_style(style)
    generate_anchor("", policy)  # fail fast on an unknown policy
    result = LinkifyResult()
    for line in lines:
        heading = detect_heading(line)
        if heading is None:
            result.lines.append(line)
            continue
        if skip_linked and suffix_style.marker.search(heading.text):
            LOGGER.debug("Skipping already linked heading: %s", line)
            result.lines.append(line)
            result.skipped += 1
            continue
        anchor = generate_anchor(heading.text, policy)
        result.lines.append(f"{heading.hashes} {heading.text}{suffix_style.render(anchor)}")
        result.headings += 1
    LOGGER.debug(
        "Linkified %d heading(s), skipped %d, across %d line(s)",
        result.headings, result.skipped, len(result.lines),
    )
    return result


def split_lines(text: str) -> List[str]:
    """Split on ``\\n``, dropping a trailing ``\\r`` per line and the empty tail after a final newline."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def linkify_text(
    text: str,
    style: str = DEFAULT_STYLE,
    policy: str = DEFAULT_POLICY,
    skip_linked: bool = False,
) -> str:
    """Rewrite a whole document; the result is joined with single newlines."""
    return linkify_lines(split_lines(text), style, policy, skip_linked).text
