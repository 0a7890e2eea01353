import logging

import requests
from requests.adapters import HTTPAdapter, Retry

from catalogue.errors import NetworkError, HTTPStatusError

logger = logging.getLogger(__name__)


class Fetcher:
    """
    Thin wrapper around a requests session, every page the crawler or the resolvers
    need goes through here so timeouts, retries and error translation live in one place.
    """

    def __init__(self, timeout: float | tuple[float, float] = 15, retries: int = 3, user_agent: str | None = None) -> None:
        # Exponential backoff so a struggling catalogue site is not hammered
        retry_strategy = Retry(
            total=retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "HEAD"],
            backoff_jitter=0.5,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.timeout = timeout
        self.session = requests.Session()
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)
        if user_agent:
            self.session.headers["User-Agent"] = user_agent

    def _request(self, method: str, url: str, *, allow_redirects: bool = True, **kwargs) -> requests.Response:
        """
        Internal helper to make HTTP requests with consistent error handling.
        Callers should prefer `get` / `get_text`.
        """
        try:
            response = self.session.request(method=method, url=url, timeout=self.timeout, allow_redirects=allow_redirects, **kwargs)
            response.raise_for_status()
            return response
        except requests.exceptions.Timeout as error:
            raise NetworkError(f"Timeout during {method.upper()} {url}") from error
        except requests.exceptions.ConnectionError as error:
            raise NetworkError(f"Connection error during {method.upper()} {url}") from error
        except requests.exceptions.RetryError as error:
            raise NetworkError(f"Retries exhausted during {method.upper()} {url}") from error
        except requests.exceptions.HTTPError as error:
            status = getattr(error.response, "status_code", None)
            raise HTTPStatusError(status_code=status, url=url) from error
        except requests.exceptions.RequestException as error:
            # Redirect loops, broken chunked bodies, malformed URLs and the like
            raise NetworkError(f"Request failed during {method.upper()} {url}: {error}") from error

    def get(self, url: str, *, allow_redirects: bool = True) -> requests.Response:
        logger.debug("GET %s", url)
        return self._request("GET", url, allow_redirects=allow_redirects)

    def get_text(self, url: str) -> str:
        return self.get(url).text

    def final_url(self, url: str) -> str:
        """Follows redirects and returns the URL the server finally answered from."""
        return self.get(url).url

    def close(self) -> None:
        self.session.close()
