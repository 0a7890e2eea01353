"""
Configuration for the course catalogue service.
Every value can be overridden through an environment variable of the same name.
"""
import os
from pathlib import Path

from pydantic import BaseModel

# Paths
PROJECT_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = PROJECT_ROOT / "data"

# Catalogue site
CATALOGUE_BASE_URL = os.getenv("CATALOGUE_BASE_URL", "https://w5.ab.ust.hk/wcq/cgi-bin")
# The crawl has to start somewhere, every department page links to the others
SEED_DEPARTMENT = os.getenv("SEED_DEPARTMENT", "COMP")
# "calendar" or "redirect", see catalogue.resolvers
SEMESTER_STRATEGY = os.getenv("SEMESTER_STRATEGY", "redirect")

# Fetching
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "15"))
FETCH_RETRIES = int(os.getenv("FETCH_RETRIES", "3"))
USER_AGENT = os.getenv("USER_AGENT", "course-catalogue/0.1 (+https://w5.ab.ust.hk/wcq/cgi-bin)")

# Upper bound on department pages per crawl session
MAX_DEPARTMENTS = int(os.getenv("MAX_DEPARTMENTS", "500"))

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))
SHUTDOWN_TIMEOUT = int(os.getenv("SHUTDOWN_TIMEOUT", "5"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Build info, usually injected by CI
APP_NAME = "Course Catalogue"
APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
BUILD_COMMIT = os.getenv("BUILD_COMMIT", "n/a")
BUILD_DATE = os.getenv("BUILD_DATE", "n/a")


class Settings(BaseModel):
    """Runtime settings handed to the app factory, tests build their own."""
    base_url: str = CATALOGUE_BASE_URL
    seed_department: str = SEED_DEPARTMENT
    semester_strategy: str = SEMESTER_STRATEGY
    fetch_timeout: float = FETCH_TIMEOUT
    fetch_retries: int = FETCH_RETRIES
    user_agent: str = USER_AGENT
    max_departments: int = MAX_DEPARTMENTS
    host: str = HOST
    port: int = PORT
    shutdown_timeout: int = SHUTDOWN_TIMEOUT
    log_level: str = LOG_LEVEL
    precache: bool = False

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        return cls(**overrides)
