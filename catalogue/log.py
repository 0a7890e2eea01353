import logging

from rich.console import Console
from rich.logging import RichHandler

# Use console for later extensability if needed
console = Console()


def setup_logging(level: str = "INFO") -> None:
    """Routes all standard library logging, uvicorn's included, through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
