"""
This module defines the data structures (pydantic models) shared by the crawler,
the store and the API so every layer speaks the same format.
"""
import time
from datetime import datetime

from pydantic import BaseModel, Field


class CourseRecord(BaseModel):
    """
    One course as parsed from a course listing page.
    `instructors` maps an instructor name to the sections they teach, both lists
    keep first-seen order and never hold duplicates.
    """
    code: str
    title: str
    credits: float
    instructors: dict[str, list[str]] = Field(default_factory=dict)
    sections: list[str] = Field(default_factory=list)


class Semester(BaseModel):
    """
    A semester code together with its human readable fields, e.g.
    2510 -> name '2025 - 2026 Fall', year '2025', cohort '2025 - 2026'
    """
    code: str
    name: str
    year: str
    cohort: str


class CrawlReport(BaseModel):
    """Summary of a single crawl session."""
    mode: str
    departments: list[str] = Field(default_factory=list)
    courses: int = 0
    parse_failures: int = 0
    fetch_failures: int = 0
    truncated: bool = False


class ApiError(BaseModel):
    """The only error shape the API ever returns."""
    kind: str
    message: str


class Manifest(BaseModel):
    """Build and runtime information about the running service."""
    name: str
    version: str
    runtime: str
    platform: str
    hostname: str
    build_commit: str
    build_date: str
    start_time: datetime
    # Monotonic clock so uptime does not jump with wall clock changes
    started_at: float = Field(default_factory=time.monotonic, exclude=True)

    def uptime(self) -> str:
        return f"{time.monotonic() - self.started_at:.2f}"

    def banner(self) -> str:
        rows = [
            ("Application", self.name),
            ("Runtime", self.runtime),
            ("Platform", self.platform),
            ("Version", self.version),
            ("Commit", self.build_commit),
            ("Build Date", self.build_date),
        ]
        return "\n".join(f"{label:>20}: {value}" for label, value in rows)

    def public(self) -> dict:
        return {
            "runtime": self.runtime,
            "hostname": self.hostname,
            "platform": self.platform,
            "buildCommit": self.build_commit,
            "buildDate": self.build_date,
            "uptime": self.uptime(),
        }
