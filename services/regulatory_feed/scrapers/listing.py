"""
Text-Rendered Listing Parsing
=============================

Pure parsing functions for listing pages fetched through the text-rendering
reader, which turns HTML into markdown-like text:

    **Feb 26, 2026**
    [Master Direction on KYC (Amendment)](https://www.rbi.org.in/Scripts/...)

    | [Circular on CSR filing](https://...) | Circulars | 26/02/2026 |

Three extraction techniques live here, each a plain function over the raw
text so it can be exercised against literal fixtures:

- carry-forward scan: date headings apply to every link until the next one
- pipe-table rows with an explicit ``dd/mm/yyyy`` column
- link proximity: date a link with the nearest date in a character window

Version: 0.1.0
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from functools import reduce

from services.regulatory_feed.dates import parse_named_date, parse_numeric_date
from services.regulatory_feed.scrapers.base import CircularCandidate


NAMED_DATE = r"[A-Za-z]+\s+\d{1,2},?\s+\d{4}"

DATE_HEADINGS = (
    re.compile(rf"\*\*({NAMED_DATE})\*\*"),
    re.compile(rf"^##\s+({NAMED_DATE})"),
)

TABLE_ROW = re.compile(
    r"\|\s*\[([^\]]+)\]\(([^)]+)\)[^|]*\|[^|]*\|\s*(\d{1,2}/\d{1,2}/\d{4})\s*\|",
    re.IGNORECASE,
)

SkipRule = Callable[[str, str], bool]


def link_pattern(min_title_length: int, url_prefix: str = r"https?://") -> re.Pattern[str]:
    """``[title](url)`` with a minimum title length and a URL prefix."""
    return re.compile(rf"\[([^\]]{{{min_title_length},}})\]\(({url_prefix}[^)]+)\)", re.IGNORECASE)


def _never_skip(title: str, url: str) -> bool:
    return False


# =============================================================================
# Carry-forward scan
# =============================================================================


@dataclass(frozen=True)
class ListingScan:
    """
    Accumulator threaded through a line scan.

    ``current_date`` is the date of the most recent heading; it survives
    across pages when the final state of one scan seeds the next.
    """

    current_date: date | None = None
    candidates: tuple[CircularCandidate, ...] = ()


def match_date_heading(line: str) -> str | None:
    """Text of a bold or ``##`` date heading on ``line``, if it is one."""
    for pattern in DATE_HEADINGS:
        match = pattern.search(line)
        if match:
            return match.group(1)
    return None


def scan_line(
    state: ListingScan,
    line: str,
    links: re.Pattern[str],
    skip: SkipRule = _never_skip,
) -> ListingScan:
    """Advance the scan by one line."""
    heading = match_date_heading(line)
    if heading is not None:
        # An unparseable heading clears the date rather than keeping a stale one
        return ListingScan(current_date=parse_named_date(heading), candidates=state.candidates)

    if state.current_date is None:
        return state

    match = links.search(line)
    if not match:
        return state

    title, url = match.group(1).strip(), match.group(2)
    if skip(title, url):
        return state

    candidate = CircularCandidate(title=title, url=url, published_date=state.current_date)
    return ListingScan(current_date=state.current_date, candidates=(*state.candidates, candidate))


def scan_dated_listing(
    text: str,
    links: re.Pattern[str],
    skip: SkipRule = _never_skip,
    initial: ListingScan | None = None,
) -> ListingScan:
    """Fold ``scan_line`` over every line of ``text``."""
    return reduce(
        lambda state, line: scan_line(state, line, links, skip),
        text.split("\n"),
        initial or ListingScan(),
    )


# =============================================================================
# Tables
# =============================================================================


@dataclass(frozen=True)
class TableRow:
    title: str
    href: str
    published_date: date | None


def parse_table_rows(text: str) -> list[TableRow]:
    """Rows shaped ``| [title](href) ... | <category> | dd/mm/yyyy |``."""
    return [
        TableRow(
            title=match.group(1).strip(),
            href=match.group(2),
            published_date=parse_numeric_date(match.group(3)),
        )
        for match in TABLE_ROW.finditer(text)
    ]


# =============================================================================
# Link proximity
# =============================================================================


@dataclass(frozen=True)
class LinkMatch:
    title: str
    url: str
    position: int


def find_links(text: str, links: re.Pattern[str]) -> list[LinkMatch]:
    """Every ``[title](url)`` occurrence with its offset in ``text``."""
    return [
        LinkMatch(title=m.group(1).strip(), url=m.group(2), position=m.start())
        for m in links.finditer(text)
    ]


def nearby_text(text: str, position: int, radius: int) -> str:
    return text[max(0, position - radius) : position + radius]


def nearest_date(
    text: str,
    position: int,
    radius: int,
    allow_named: bool = False,
) -> date | None:
    """
    First date found within ``radius`` characters either side of ``position``.

    Numeric ``dd/mm/yyyy`` dates win; named dates are tried only when
    ``allow_named`` is set. The first date in the window is not necessarily
    the one belonging to the link when several entries sit close together.
    """
    window = nearby_text(text, position, radius)
    found = parse_numeric_date(window)
    if found is None and allow_named:
        found = parse_named_date(window)
    return found
