"""Digest rendering: Markdown via a Jinja2 template, optionally converted to HTML.

The Markdown report has a header with the run date and counters, followed
by one list entry per unique paper:

   - [Title](url) (count)
     <details><summary>first 80 chars</summary>rest of the abstract</details>

Papers are ordered by descending mention count; equal counts by title,
then URL.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime

import markdown
from jinja2 import Environment, StrictUndefined, TemplateError

from errors import TemplateRenderError
from models import Paper, RunSummary

FORMATS = ("markdown", "html")

MD_TEMPLATE_TEXT = """\
# Google Scholar Alert Digest

**Date**: {{ date }}
**Unread emails**: {{ unread_emails }}
**Paper titles**: {{ total_papers }}
**Uniq paper titles**: {{ uniq_papers }}

{% for paper, count in papers %}
 - [{{ paper.title }}]({{ paper.url }}) ({{ count }})
{% if paper.abstract.full %}
   <details>
    <summary>{{ paper.abstract.first_line }}</summary>{{ paper.abstract.rest_lines }}
   </details>
{% endif %}
{% endfor %}
"""

HTML_TEMPLATE_TEXT = """\
<!DOCTYPE html>
<html lang="en">
  <head><meta charset="UTF-8"></head>
  <body>{content}</body>
</html>
"""

_ENV = Environment(
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


def sorted_papers(counts: Mapping[Paper, int]) -> list[tuple[Paper, int]]:
    """Return (paper, count) pairs, most mentioned first."""
    return sorted(counts.items(), key=lambda item: (-item[1], item[0].title, item[0].url))


def render_markdown(
    summary: RunSummary,
    counts: Mapping[Paper, int],
    now: datetime | None = None,
    template_text: str = MD_TEMPLATE_TEXT,
) -> str:
    """Render the Markdown digest.

    Raises:
        TemplateRenderError: the template failed to compile or render.
    """
    now = now or datetime.now(UTC)
    try:
        template = _ENV.from_string(template_text)
        return template.render(
            date=now.isoformat(timespec="seconds"),
            unread_emails=summary.unread_emails,
            total_papers=summary.total_papers,
            uniq_papers=summary.uniq_papers,
            papers=sorted_papers(counts),
        )
    except TemplateError as exc:
        raise TemplateRenderError(f"template execution failed: {exc}") from exc


def render_html(
    summary: RunSummary,
    counts: Mapping[Paper, int],
    now: datetime | None = None,
) -> str:
    """Render the Markdown digest, convert it to HTML and wrap it in a document."""
    md = render_markdown(summary, counts, now=now)
    content = markdown.markdown(md, extensions=["extra", "sane_lists"])
    return HTML_TEMPLATE_TEXT.format(content=content)


def render(
    summary: RunSummary,
    counts: Mapping[Paper, int],
    fmt: str = "markdown",
    now: datetime | None = None,
) -> str:
    if fmt == "html":
        return render_html(summary, counts, now=now)
    if fmt == "markdown":
        return render_markdown(summary, counts, now=now)
    raise ValueError(f"unknown report format {fmt!r}, expected one of {FORMATS}")
