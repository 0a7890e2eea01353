"""
Turns catalogue markup into CourseRecord objects.

A course listing page holds one `div.course` block per course:

    <div class="course">
      <h2>COMP 1021 - Introduction to Computer Science (3 units)</h2>
      <table class="sections">
        <tr><th>Section</th><th>Date &amp; Time</th><th>Room</th><th>Instructor</th>...</tr>
        <tr class="newsect"><td>L1 (1234)</td><td>TuTh 09:00AM</td><td>LTA</td><td><a>CHAN, Tai Man</a></td>...</tr>
        <tr><td>Fr 02:00PM</td><td>Rm 2404</td><td><a>LEE, Siu Ming</a></td></tr>
      </table>
    </div>

and the department navigation links are `a.ug` / `a.pg` anchors whose text is the
department token.
"""
import logging
import math
import re

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from catalogue.errors import ParseError
from catalogue.models import CourseRecord

logger = logging.getLogger(__name__)

COURSE_SELECTOR = "div.course"
# Undergraduate links come first, both kinds are followed the same way
DEPARTMENT_LINK_SELECTORS = ("a.ug", "a.pg")
SECTION_ROW_CLASS = "newsect"

# Column holding the instructor names on a row that starts a section,
# continuation rows have no section cell so everything moves one column left
INSTRUCTOR_COLUMN = 3

# The trailing "(3 units)" group of a header line
_CREDIT_GROUP = re.compile(r"\(([^()]*)\)\s*$")
_PLACEHOLDER_NAMES = {"TBA", "TBC"}


def make_soup(html_content: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html_content, "lxml")
    except ParserRejectedMarkup:
        return BeautifulSoup(html_content, "html.parser")


def normalize_department(token: str) -> str:
    return token.strip().upper()


def find_course_fragments(soup: BeautifulSoup | Tag) -> list[Tag]:
    return soup.select(COURSE_SELECTOR)


def find_department_links(soup: BeautifulSoup | Tag) -> list[str]:
    """Department tokens in link-discovery order, undergraduate links before postgraduate ones."""
    tokens: list[str] = []
    for selector in DEPARTMENT_LINK_SELECTORS:
        for anchor in soup.select(selector):
            token = normalize_department(anchor.get_text())
            if token:
                tokens.append(token)
    return tokens


def parse_header(header: str) -> tuple[str, str, float]:
    """
    Splits "COMP 1021 - Introduction to Computer Science (3 units)" into
    ('COMP1021', 'Introduction to Computer Science', 3.0).
    """
    header = " ".join(header.split())
    code_part, separator, rest = header.partition(" - ")
    if not separator:
        raise ParseError(f"Course header has no ' - ' separator: {header!r}")

    code = "".join(code_part.split()).upper()
    if not code:
        raise ParseError(f"Course header has an empty course code: {header!r}")

    match = _CREDIT_GROUP.search(rest)
    if match is None:
        raise ParseError(f"Course header has no credit annotation: {header!r}")

    tokens = match.group(1).split()
    if not tokens:
        raise ParseError(f"Course header has an empty credit annotation: {header!r}")
    try:
        credits = float(tokens[0])
    except ValueError as error:
        raise ParseError(f"Credit value {tokens[0]!r} is not a number: {header!r}") from error
    if not math.isfinite(credits):
        raise ParseError(f"Credit value {tokens[0]!r} is not a number: {header!r}")

    title = rest[:match.start()].strip()
    return code, title, credits


def _section_code(cell: Tag) -> str | None:
    # "L1 (1234)" -> "L1", the parenthetical is the class number
    text = cell.get_text(" ", strip=True).split("(", 1)[0]
    tokens = text.split()
    return tokens[0] if tokens else None


def _instructor_names(cell: Tag) -> list[str]:
    anchors = cell.find_all("a")
    if anchors:
        raw_names = [anchor.get_text(" ", strip=True) for anchor in anchors]
    else:
        raw_names = list(cell.stripped_strings)
    names = []
    for raw in raw_names:
        name = " ".join(raw.split())
        if name and name.upper() not in _PLACEHOLDER_NAMES:
            names.append(name)
    return names


def parse_course(fragment: Tag | str) -> CourseRecord:
    """
    Parses one course block into a CourseRecord, raising ParseError when the header
    is malformed. Nothing outside the returned record is touched.
    """
    if isinstance(fragment, str):
        soup = make_soup(fragment)
        fragment = soup.select_one(COURSE_SELECTOR) or soup

    heading = fragment.find("h2")
    if heading is None:
        raise ParseError("Course block has no heading")
    code, title, credits = parse_header(heading.get_text(" ", strip=True))
    logger.debug("Parsing course %s", code)

    sections: list[str] = []
    instructors: dict[str, list[str]] = {}
    current_section: str | None = None
    current_table: Tag | None = None

    for row in fragment.find_all("tr"):
        starts_section = SECTION_ROW_CLASS in (row.get("class") or [])
        if starts_section:
            current_table = row.find_parent("table")
        elif current_table is None or row.find_parent("table") is not current_table:
            # Header rows, or rows of some nested table (popups, notes)
            continue

        cells = row.find_all("td", recursive=False)
        if not cells:
            continue

        if starts_section:
            current_section = _section_code(cells[0])
            if current_section is None:
                continue
            if current_section not in sections:
                sections.append(current_section)
            column = INSTRUCTOR_COLUMN
        else:
            column = INSTRUCTOR_COLUMN - 1

        if current_section is None or column >= len(cells):
            continue

        for name in _instructor_names(cells[column]):
            taught = instructors.setdefault(name, [])
            if current_section not in taught:
                taught.append(current_section)

    return CourseRecord(
        code=code,
        title=title,
        credits=credits,
        instructors=instructors,
        sections=sections,
    )


def header_snippet(fragment: Tag, limit: int = 120) -> str:
    """Short piece of a fragment for log messages."""
    heading = fragment.find("h2")
    text = heading.get_text(" ", strip=True) if heading is not None else fragment.get_text(" ", strip=True)
    return text[:limit]
