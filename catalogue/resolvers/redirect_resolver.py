import logging
from urllib.parse import urlsplit

from catalogue.errors import ConfigError
from catalogue.fetcher import Fetcher
from catalogue.resolvers.base_resolver import BaseResolver

logger = logging.getLogger(__name__)


class RedirectResolver(BaseResolver):
    """
    Asks the catalogue itself: the site root redirects to the page of the active
    semester, e.g. .../wcq/cgi-bin/ -> .../wcq/cgi-bin/2510/
    """
    strategy_name = "redirect"

    def __init__(self, base_url: str, fetcher: Fetcher | None = None) -> None:
        super().__init__(base_url, fetcher)
        if self.fetcher is None:
            raise ConfigError("The 'redirect' semester strategy needs a fetcher.")

    def resolve(self) -> str:
        final_url = self.fetcher.final_url(self.base_url)
        # The semester is the last path segment, usually followed by a trailing slash
        segments = [segment for segment in urlsplit(final_url).path.split("/") if segment]
        if not segments:
            raise ConfigError(f"Unexpected redirect target {final_url!r}")
        code = segments[-1]
        logger.info("Catalogue root redirected to %s, semester %s", final_url, code)
        return code
