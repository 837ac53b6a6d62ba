"""
Document Splitter
=================

Splits a file holding several concatenated skill documents into segments.
A boundary is a line consisting solely of the separator token; separator
lines inside fenced code blocks are ignored.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple
import re

from skilldocs.config.settings import DEFAULT_SEPARATOR

_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")


@dataclass(frozen=True)
class Segment:
    """One logical document cut out of a (possibly concatenated) file."""

    index: int
    text: str
    start_line: int

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


def fence_marker(line: str) -> Optional[str]:
    """Return the fence string opening/closing a code block on this line, if any."""
    match = _FENCE_RE.match(line)
    return match.group(1) if match else None


def iter_fenced_lines(lines: List[str]) -> Iterator[Tuple[int, str, bool, Optional[str]]]:
    """
    Walk lines tracking fenced code blocks.

    Yields:
        (index, line, inside_fence, fence) where inside_fence is the state
        *before* the line and fence is the marker found on the line.
    """
    open_fence: Optional[str] = None
    for i, line in enumerate(lines):
        marker = fence_marker(line)
        yield i, line, open_fence is not None, marker
        if marker is None:
            continue
        if open_fence is None:
            open_fence = marker
        elif marker[0] == open_fence[0] and len(marker) >= len(open_fence):
            # A closing fence carries no info string
            if not line.strip()[len(marker):].strip():
                open_fence = None


def split_documents(text: str, separator: str = DEFAULT_SEPARATOR) -> List[Segment]:
    """
    Split concatenated content into segments.

    Args:
        text: Raw file content
        separator: Literal separator token

    Returns:
        Segments in file order; a file without separators yields one segment.
        A blank trailing segment after a final separator is dropped.
    """
    token = separator.strip()
    lines = text.splitlines(keepends=True)

    segments: List[Segment] = []
    current: List[str] = []
    start_line = 1

    for i, line, inside_fence, _ in iter_fenced_lines(lines):
        if not inside_fence and line.strip() == token:
            segments.append(
                Segment(index=len(segments), text="".join(current), start_line=start_line)
            )
            current = []
            start_line = i + 2
            continue
        current.append(line)

    last = Segment(index=len(segments), text="".join(current), start_line=start_line)
    if not (segments and last.is_blank):
        segments.append(last)

    return segments
