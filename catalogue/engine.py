# The CrawlEngine class is the main orchestrator of the crawling process.
# It walks department pages, hands course blocks to the parser and commits the results to the store.
import logging
import threading

from catalogue.errors import FetchError, ParseError
from catalogue.fetcher import Fetcher
from catalogue.metrics import COURSES_PARSED, PAGES_FETCHED
from catalogue.models import CrawlReport
from catalogue.parser import (
    find_course_fragments,
    find_department_links,
    header_snippet,
    make_soup,
    normalize_department,
    parse_course,
)
from catalogue.store import CourseStore

logger = logging.getLogger(__name__)


class VisitedSet:
    """Departments already claimed by one crawl session."""

    def __init__(self) -> None:
        self._tokens: set[str] = set()
        self._lock = threading.Lock()

    def claim(self, token: str) -> bool:
        """Marks the token visited, returns False if someone got there first."""
        token = normalize_department(token)
        with self._lock:
            if token in self._tokens:
                return False
            self._tokens.add(token)
            return True

    def __contains__(self, token: str) -> bool:
        with self._lock:
            return normalize_department(token) in self._tokens

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)


class CrawlEngine:
    """
    The CrawlEngine is responsible for orchestrating the crawl of one semester.
    It holds the semester root URL, a fetcher for the pages and the store the
    parsed courses end up in.
    """

    def __init__(self, fetcher: Fetcher, store: CourseStore, base_url: str, semester: str, seed_department: str = "COMP", max_departments: int = 500):
        self.fetcher = fetcher
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.seed_department = normalize_department(seed_department)
        self.max_departments = max_departments
        self.semester = semester
        # Full crawls share nothing but the store, running two at once only doubles the traffic
        self._full_crawl_lock = threading.Lock()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.semester}"

    def set_semester(self, semester: str) -> None:
        if semester != self.semester:
            logger.info("Switching crawl root from semester %s to %s", self.semester, semester)
        self.semester = semester

    def department_url(self, department: str, endpoint: str | None = None) -> str:
        return f"{endpoint or self.endpoint}/subject/{normalize_department(department)}"

    def _crawl_page(self, endpoint: str, department: str, report: CrawlReport) -> list[str] | None:
        """
        Fetches one department page below `endpoint`, commits every course on it and
        returns the department links found there, or None when the page could not be fetched.
        """
        url = self.department_url(department, endpoint)
        try:
            html_content = self.fetcher.get_text(url)
        except FetchError as error:
            report.fetch_failures += 1
            PAGES_FETCHED.labels(outcome="error").inc()
            logger.error("Error while visiting %s: %s", url, error)
            return None

        PAGES_FETCHED.labels(outcome="ok").inc()
        report.departments.append(department)
        soup = make_soup(html_content)
        for fragment in find_course_fragments(soup):
            try:
                record = parse_course(fragment)
            except ParseError as error:
                report.parse_failures += 1
                COURSES_PARSED.labels(outcome="error").inc()
                logger.error("Error while parsing course %r on %s: %s", header_snippet(fragment), department, error)
                continue
            self.store.put(record.code, record)
            report.courses += 1
            COURSES_PARSED.labels(outcome="ok").inc()

        return find_department_links(soup)

    def crawl_department(self, department: str) -> CrawlReport:
        """Crawls exactly one department page, links on it are not followed."""
        department = normalize_department(department)
        report = CrawlReport(mode="department")
        logger.info("Traversing courses for department %s", department)
        self._crawl_page(self.endpoint, department, report)
        logger.info("Department %s done: %s courses, %s parse failures", department, report.courses, report.parse_failures)
        return report

    def crawl_all(self, seed: str | None = None) -> CrawlReport:
        """
        Crawls every department reachable from the seed department.
        1. The seed is claimed and fetched first.
        2. Links are followed depth first in the order they appear on each page.
        3. A department is claimed right before its page is fetched so it is never fetched twice.
        """
        with self._full_crawl_lock:
            return self._crawl_all(normalize_department(seed or self.seed_department))

    def _crawl_all(self, seed: str) -> CrawlReport:
        report = CrawlReport(mode="full")
        visited = VisitedSet()
        # A semester switch mid-crawl applies to the next session, not to the pages still pending
        endpoint = self.endpoint
        logger.info("Starting full crawl of %s from %s", endpoint, seed)

        pending: list[str] = [seed]
        pages = 0
        while pending:
            department = pending.pop()
            if not visited.claim(department):
                continue
            if pages >= self.max_departments:
                report.truncated = True
                logger.warning("Stopping crawl after %s departments, %s still pending", pages, len(pending) + 1)
                break
            pages += 1
            logger.info("Traversing courses for department %s", department)
            links = self._crawl_page(endpoint, department, report)
            if not links:
                continue
            # Reversed so the first link found is the next one popped
            for link in reversed(links):
                if link not in visited:
                    pending.append(link)

        logger.info(
            "Full crawl done: %s departments, %s courses, %s parse failures, %s fetch failures",
            len(report.departments), report.courses, report.parse_failures, report.fetch_failures,
        )
        return report
