"""Shared typed models for the digest."""

from __future__ import annotations

from dataclasses import dataclass, field

# Width of the collapsed abstract summary line.
FIRST_LINE_WIDTH = 80


@dataclass(frozen=True, slots=True)
class Abstract:
    """Paper snippet split into a one-line summary and the remainder."""

    full: str
    first_line: str
    rest_lines: str

    @classmethod
    def from_text(cls, full: str) -> Abstract:
        """Build an Abstract, splitting at FIRST_LINE_WIDTH after dropping newlines."""
        first, rest = separate_first_line(full)
        return cls(full=full, first_line=first, rest_lines=rest)


@dataclass(frozen=True, slots=True)
class Paper:
    """One paper reference. Identity is (title, url); the abstract rides along."""

    title: str
    url: str
    abstract: Abstract = field(default=Abstract("", "", ""), compare=False)


@dataclass(frozen=True, slots=True)
class Message:
    """A fetched alert email. body is raw HTML bytes, empty when missing."""

    id: str
    subject: str
    body: bytes


@dataclass(frozen=True, slots=True)
class RunSummary:
    unread_emails: int
    total_papers: int
    uniq_papers: int
    error_count: int = 0


def separate_first_line(text: str, width: int = FIRST_LINE_WIDTH) -> tuple[str, str]:
    text = text.replace("\n", "")
    if len(text) < width:
        return text, ""
    return text[:width], text[width:]
