"""Exception types for the digest pipeline."""

from __future__ import annotations


class DigestError(Exception):
    """Base class for all digest failures."""


class ClientInitError(DigestError):
    """The Gmail service could not be constructed. Fatal."""


class ExtractionError(DigestError):
    """One message could not be turned into papers; the message is skipped."""


class ParseError(ExtractionError):
    """The message body is empty or could not be parsed as HTML."""


class StructureMismatchError(ParseError):
    """Title and URL node counts differ in a message body."""

    def __init__(self, titles: int, urls: int, subject: str) -> None:
        super().__init__(f"titles {titles} != {urls} urls in {subject!r}")
        self.titles = titles
        self.urls = urls
        self.subject = subject


class URLDecodeError(DigestError):
    """A single paper URL could not be unescaped; the entry is skipped."""


class MarkReadError(DigestError):
    """Removing the UNREAD label failed. Logged, never fatal."""


class TemplateRenderError(DigestError):
    """The report template failed to render. Fatal."""
