from __future__ import annotations

from html import escape
from urllib.parse import quote_plus

import pytest

from extractor import SCHOLAR_URL


def scholar_href(target: str, tail: str = "&hl=en&sa=X&scisig=AAGBfm0") -> str:
    return SCHOLAR_URL + quote_plus(target) + tail


def alert_html(entries: list[tuple[str, str, str]]) -> bytes:
    """Build an alert body from (title, href, abstract) tuples, Scholar layout."""
    blocks = []
    for title, href, abstract in entries:
        blocks.append(
            f'<h3 style="font-weight:normal"><a href="{escape(href)}" class="gse_alrt_title">\n'
            f"  {title}\n"
            "</a></h3>\n"
            '<div style="color:#006621">A Author, B Author - Journal, 2019</div>\n'
            f'<div class="gse_alrt_sni">\n  {abstract}\n</div>\n'
            '<div style="width:auto"><table><tr><td>share</td></tr></table></div><br>\n'
        )
    return (
        "<!doctype html><html><head></head><body><div>"
        + "".join(blocks)
        + "</div></body></html>"
    ).encode("utf-8")


@pytest.fixture
def make_alert():
    return alert_html


@pytest.fixture
def href():
    return scholar_href
