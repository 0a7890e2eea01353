from abc import ABC, abstractmethod

from catalogue.errors import CatalogueError, ConfigError
from catalogue.fetcher import Fetcher
from catalogue.semester import parse_semester


class BaseResolver(ABC):
    """
        Every way of finding the active semester follows this 'standard' so they can be
        swapped through configuration without the rest of the service noticing
    """

    """
        Name used in the SEMESTER_STRATEGY setting to pick this resolver,
        lowercase with underscores in place of spaces
    """
    strategy_name: str | None = None

    def __init__(self, base_url: str, fetcher: Fetcher | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.fetcher = fetcher

    def __init_subclass__(cls, **kwargs) -> None:
        """
        Called whenever a child class is defined, refuses resolvers without a strategy_name
        since they could never be selected
        """
        super().__init_subclass__(**kwargs)

        if not cls.strategy_name:
            raise TypeError(
                f"Class '{cls.__name__}' cannot be defined without a 'strategy_name'. "
                f"Please set a unique string name for use in configuration (e.g., strategy_name = 'calendar')."
            )

    @abstractmethod
    def resolve(self) -> str:
        """
            Returns the raw semester code this strategy believes is active,
            may raise any CatalogueError
        """
        raise NotImplementedError

    def current_semester_code(self) -> str:
        """
            Resolves and validates the active semester code. Any failure is reported as a
            ConfigError since nothing can be crawled without a semester
        """
        try:
            code = self.resolve()
            parse_semester(code)
        except CatalogueError as error:
            raise ConfigError(f"Could not resolve the current semester using '{self.strategy_name}': {error}") from error
        return code
