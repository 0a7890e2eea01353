class CatalogueError(Exception):
    """Base exception for all catalogue-related errors."""
    pass


class ValidationError(CatalogueError):
    """Raised when validation fails (e.g., a semester code with an unknown season)."""
    pass


class ConfigError(CatalogueError):
    """Raised when the service cannot be configured, i.e. the current semester cannot be resolved."""
    pass


class FetchError(CatalogueError):
    """Raised when a catalogue page cannot be retrieved."""
    pass


class NetworkError(FetchError):
    """Raised for connectivity and timeout issues when making HTTP requests."""
    pass


class HTTPStatusError(FetchError):
    """Raised when an HTTP request returns an unexpected status code."""

    def __init__(self, status_code: int | None, url: str, message: str | None = None):
        self.status_code = status_code
        self.url = url
        super().__init__(message or f"HTTP error {status_code} for URL: {url}")


class ParseError(CatalogueError):
    """Raised when a course fragment is malformed and cannot be turned into a record."""
    pass


class CourseNotFoundError(CatalogueError):
    """Raised when a course is still not cached after crawling its department."""
    pass
