import pytest

from catalogue.engine import CrawlEngine
from catalogue.errors import HTTPStatusError
from catalogue.store import CourseStore

BASE_URL = "https://catalogue.test/wcq/cgi-bin"
SEMESTER = "2510"


def department_url(token: str, semester: str = SEMESTER) -> str:
    return f"{BASE_URL}/{semester}/subject/{token}"


class FakeFetcher:
    """Serves canned pages, anything unknown is a 404 like the real site."""

    def __init__(self, pages: dict | None = None, redirects: dict | None = None):
        self.pages = pages or {}
        self.redirects = redirects or {}
        self.requests: list[str] = []
        self.closed = False

    def get_text(self, url: str) -> str:
        self.requests.append(url)
        page = self.pages.get(url)
        if page is None:
            raise HTTPStatusError(status_code=404, url=url)
        if isinstance(page, Exception):
            raise page
        return page

    def final_url(self, url: str) -> str:
        self.requests.append(url)
        target = self.redirects.get(url, url)
        if isinstance(target, Exception):
            raise target
        return target

    def close(self) -> None:
        self.closed = True


def section_row(code: str, *instructors: str) -> str:
    names = "".join(f'<a href="/instructor">{name}</a>' for name in instructors)
    return (
        f'<tr class="newsect secteven"><td align="center">{code} (1234)</td>'
        f"<td>TuTh 09:00AM - 10:20AM</td><td>Lecture Theater A</td><td>{names}</td><td></td><td>100</td></tr>"
    )


def continuation_row(*instructors: str) -> str:
    names = "".join(f'<a href="/instructor">{name}</a>' for name in instructors)
    return f"<tr class=\"secteven\"><td>Fr 02:00PM - 03:20PM</td><td>Rm 2404</td><td>{names}</td><td></td></tr>"


def course_block(header: str, *rows: str) -> str:
    return (
        '<div class="course">'
        f'<div class="courseanchor"><a name="x"></a></div><h2>{header}</h2>'
        '<table class="sections">'
        "<tr><th>Section</th><th>Date &amp; Time</th><th>Room</th><th>Instructor</th><th>TA/IA/GTA</th><th>Quota</th></tr>"
        f"{''.join(rows)}"
        "</table></div>"
    )


def department_page(*courses: str, ug: tuple = (), pg: tuple = ()) -> str:
    links = "".join(f'<a href="/subject/{t}" class="ug">{t}</a>' for t in ug)
    links += "".join(f'<a href="/subject/{t}" class="pg">{t}</a>' for t in pg)
    return f"<html><body><div class=\"depts\">{links}</div>{''.join(courses)}</body></html>"


@pytest.fixture
def catalogue_pages() -> dict:
    """COMP has two courses and links to MATH, MATH has one course and links back."""
    return {
        department_url("COMP"): department_page(
            course_block("COMP 1021 - Introduction to Computer Science (3 units)", section_row("L1", "CHAN, Tai Man"), section_row("LA1", "LEE, Siu Ming")),
            course_block("COMP 2011 - Programming with C++ (4 units)", section_row("L1", "WONG, Ka Ho")),
            ug=("COMP", "MATH"),
            pg=("COMP",),
        ),
        department_url("MATH"): department_page(
            course_block("MATH 1013 - Calculus IB (3 units)", section_row("L1", "HO, Wing Sze")),
            ug=("COMP", "MATH"),
        ),
    }


@pytest.fixture
def fetcher(catalogue_pages) -> FakeFetcher:
    return FakeFetcher(catalogue_pages)


@pytest.fixture
def store() -> CourseStore:
    return CourseStore()


@pytest.fixture
def engine(fetcher, store) -> CrawlEngine:
    return CrawlEngine(fetcher, store, BASE_URL, SEMESTER, seed_department="COMP")
