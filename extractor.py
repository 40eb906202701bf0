"""Paper extraction from Google Scholar alert HTML bodies."""

from __future__ import annotations

import logging
import re
from urllib.parse import unquote_plus

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from errors import ParseError, StructureMismatchError, URLDecodeError
from models import Abstract, Paper

LOGGER = logging.getLogger(__name__)

SCHOLAR_URL = "http://scholar.google.com/scholar_url?url="
# Newer alerts link through https; both point at the same redirector.
_SCHOLAR_PREFIXES = (SCHOLAR_URL, "https://scholar.google.com/scholar_url?url=")

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def extract_papers(body: bytes | str, subject: str) -> list[Paper]:
    """Return the papers listed in one alert message.

    Titles are the anchors directly under <h3>, URLs are their href values
    and abstracts are the second <div> sibling following each <h3>.

    Raises:
        ParseError: body is empty or rejected by the HTML parser.
        StructureMismatchError: title and URL counts differ.
    """
    if not body:
        raise ParseError(f"empty HTML body in {subject!r}")

    try:
        soup = BeautifulSoup(body, "html.parser")
    except ParserRejectedMarkup as exc:
        raise ParseError(f"failed to parse HTML body of {subject!r}: {exc}") from exc

    titles = soup.select("h3 > a")
    urls = [a["href"] for a in titles if a.has_attr("href")]
    if len(titles) != len(urls):
        raise StructureMismatchError(len(titles), len(urls), subject)

    abstracts = _abstract_nodes(soup)

    papers: list[Paper] = []
    for i, anchor in enumerate(titles):
        title = anchor.get_text().strip()
        abstract = abstracts[i].get_text().strip() if i < len(abstracts) else ""

        try:
            url = normalize_url(urls[i])
        except URLDecodeError as exc:
            LOGGER.warning("Skipping paper %r in %r: %s", title, subject, exc)
            continue

        papers.append(Paper(title=title, url=url, abstract=Abstract.from_text(abstract)))

    return papers


def normalize_url(href: str) -> str:
    """Strip the Scholar redirect prefix and unescape the target URL.

    Everything from the first '&' on belongs to the redirector and is dropped.
    """
    for prefix in _SCHOLAR_PREFIXES:
        if href.startswith(prefix):
            href = href[len(prefix):]
            break

    target, _, _ = href.partition("&")
    if _BAD_ESCAPE.search(target):
        raise URLDecodeError(f"invalid URL escape in {target!r}")
    return unquote_plus(target)


def _abstract_nodes(soup: BeautifulSoup) -> list[Tag]:
    """Second following-sibling <div> of every <h3>, unique, in document order."""
    selected: set[int] = set()
    for heading in soup.find_all("h3"):
        divs = heading.find_next_siblings("div", limit=2)
        if len(divs) == 2:
            selected.add(id(divs[1]))

    return [div for div in soup.find_all("div") if id(div) in selected]
