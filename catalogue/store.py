import logging
import threading

from catalogue.models import CourseRecord

logger = logging.getLogger(__name__)


class CourseStore:
    """
    In-memory mapping from course code to CourseRecord, the single source of truth
    for the API. Shared between the startup crawl, refreshes and lookup misses, so
    every access goes through one lock and readers only ever get copies.
    """

    def __init__(self) -> None:
        self._courses: dict[str, CourseRecord] = {}
        self._lock = threading.Lock()

    def put(self, code: str, record: CourseRecord) -> None:
        # Last write wins, records for the same code are never merged
        with self._lock:
            self._courses[code] = record
        logger.debug("In-memory cache updated for %s", code)

    def get(self, code: str) -> CourseRecord | None:
        with self._lock:
            return self._courses.get(code)

    def list(self) -> list[CourseRecord]:
        with self._lock:
            return list(self._courses.values())

    def snapshot(self) -> dict[str, CourseRecord]:
        with self._lock:
            return dict(self._courses)

    def __len__(self) -> int:
        with self._lock:
            return len(self._courses)

    def __contains__(self, code: object) -> bool:
        with self._lock:
            return code in self._courses
