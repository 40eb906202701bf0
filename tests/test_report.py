from collections import Counter
from datetime import UTC, datetime

import pytest

from errors import TemplateRenderError
from models import Abstract, Paper, RunSummary
from report import render, render_html, render_markdown, sorted_papers

NOW = datetime(2026, 10, 18, 9, 30, 0, tzinfo=UTC)

A = Paper("A", "http://u1", Abstract.from_text("short abstract"))
B = Paper("B", "http://u2")
LONG = Paper("Long", "http://u3", Abstract.from_text("w" * 100))


def _summary(counts: Counter) -> RunSummary:
    return RunSummary(unread_emails=2, total_papers=sum(counts.values()), uniq_papers=len(counts))


def test_sorted_papers_by_count_desc() -> None:
    counts = Counter({B: 1, A: 2, LONG: 5})
    assert [p.title for p, _ in sorted_papers(counts)] == ["Long", "A", "B"]


def test_sorted_papers_ties_are_deterministic() -> None:
    first = Counter({B: 1, A: 1})
    second = Counter({A: 1, B: 1})
    assert sorted_papers(first) == sorted_papers(second)


def test_render_markdown_header_and_entries() -> None:
    counts = Counter({A: 2, B: 1})

    md = render_markdown(_summary(counts), counts, now=NOW)

    assert md.startswith("# Google Scholar Alert Digest\n")
    assert "**Date**: 2026-10-18T09:30:00+00:00" in md
    assert "**Unread emails**: 2" in md
    assert "**Paper titles**: 3" in md
    assert "**Uniq paper titles**: 2" in md
    assert " - [A](http://u1) (2)" in md
    assert " - [B](http://u2) (1)" in md
    assert md.index("[A]") < md.index("[B]")


def test_render_markdown_details_only_with_abstract() -> None:
    counts = Counter({A: 1, B: 1})

    md = render_markdown(_summary(counts), counts, now=NOW)

    assert md.count("<details>") == 1
    assert "<summary>short abstract</summary>" in md


def test_render_markdown_splits_long_abstract() -> None:
    counts = Counter({LONG: 1})

    md = render_markdown(_summary(counts), counts, now=NOW)

    assert f"<summary>{'w' * 80}</summary>{'w' * 20}" in md


def test_render_html_wraps_document() -> None:
    counts = Counter({A: 2, B: 1})

    html = render_html(_summary(counts), counts, now=NOW)

    assert html.startswith("<!DOCTYPE html>")
    assert "<body>" in html and html.rstrip().endswith("</html>")
    assert '<a href="http://u1">A</a>' in html
    assert "<h1>Google Scholar Alert Digest</h1>" in html


def test_render_dispatches_on_format() -> None:
    counts = Counter({A: 1})
    assert render(_summary(counts), counts, fmt="markdown", now=NOW).startswith("# ")
    assert render(_summary(counts), counts, fmt="html", now=NOW).startswith("<!DOCTYPE html>")
    with pytest.raises(ValueError):
        render(_summary(counts), counts, fmt="pdf", now=NOW)


def test_empty_digest_renders() -> None:
    md = render_markdown(RunSummary(0, 0, 0), Counter(), now=NOW)
    assert "**Uniq paper titles**: 0" in md
    assert " - [" not in md


def test_template_failure_raises_render_error() -> None:
    with pytest.raises(TemplateRenderError):
        render_markdown(RunSummary(0, 0, 0), Counter(), now=NOW, template_text="{{ missing }}")

    with pytest.raises(TemplateRenderError):
        render_markdown(RunSummary(0, 0, 0), Counter(), now=NOW, template_text="{% for %}")
