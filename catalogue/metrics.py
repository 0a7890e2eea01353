"""
Prometheus collectors shared by the crawler and the API, exposed on GET /metrics.
"""
from prometheus_client import Counter, Histogram

PAGES_FETCHED = Counter(
    "catalogue_pages_fetched_total",
    "Department pages requested by the crawler.",
    ["outcome"],
)
COURSES_PARSED = Counter(
    "catalogue_courses_parsed_total",
    "Course blocks handled by the crawler.",
    ["outcome"],
)
HTTP_REQUESTS = Counter(
    "catalogue_http_requests_total",
    "API requests served.",
    ["method", "status"],
)
HTTP_REQUEST_SECONDS = Histogram(
    "catalogue_http_request_duration_seconds",
    "Time spent serving API requests.",
    ["method"],
)
