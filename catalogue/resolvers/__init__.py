import importlib
import inspect
import logging
import pkgutil

from catalogue.errors import ConfigError
from catalogue.fetcher import Fetcher
from .base_resolver import BaseResolver

logger = logging.getLogger(__name__)

# This dictionary will hold the map: 'calendar' -> CalendarResolver class
RESOLVER_REGISTRY: dict[str, type[BaseResolver]] = {}


def _register_resolvers():
    """
    Scans the current directory for modules, imports them,
    and looks for classes that inherit from BaseResolver.
    """
    package_path = __path__
    prefix = __name__ + "."

    for _, name, _ in pkgutil.walk_packages(package_path, prefix):
        try:
            module = importlib.import_module(name)
        except ImportError as error:
            logger.error("Could not load resolver from %s: %s", name, error)
            continue

        for _, attribute_value in inspect.getmembers(module, inspect.isclass):
            if issubclass(attribute_value, BaseResolver) and attribute_value is not BaseResolver:
                RESOLVER_REGISTRY[attribute_value.strategy_name] = attribute_value

# As soon as we import the resolvers package, begin registering the resolvers
_register_resolvers()


def get_resolver_class(strategy: str) -> type[BaseResolver] | None:
    return RESOLVER_REGISTRY.get(strategy)


def build_resolver(strategy: str, base_url: str, fetcher: Fetcher | None = None) -> BaseResolver:
    resolver_class = get_resolver_class(strategy)
    if resolver_class is None:
        known = ", ".join(sorted(RESOLVER_REGISTRY))
        raise ConfigError(f"Unknown semester strategy '{strategy}', expected one of: {known}.")
    return resolver_class(base_url, fetcher)
