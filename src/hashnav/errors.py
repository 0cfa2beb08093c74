"""Exception hierarchy for hashnav."""


class HashNavError(Exception):
    """Base exception for all hashnav errors."""


class ConfigError(HashNavError):
    """Raised when a site file or router configuration is invalid."""


class InvalidRouteKey(HashNavError, ValueError):
    """Raised when a hash value cannot be normalized into a route key."""


class RouteNotFound(HashNavError):
    """Raised when neither the requested key nor the 404 fallback is routed."""


class FetchError(HashNavError):
    """Raised when a fetch fails in transport or returns a non-OK status."""

    def __init__(self, uri: str, reason: str) -> None:
        super().__init__(f"{uri}: {reason}")
        self.uri = uri
        self.reason = reason


class TemplateLoadFailed(HashNavError):
    """Raised when a route's own template cannot be fetched."""


class FragmentLoadFailed(HashNavError):
    """Raised when a named fragment cannot be fetched."""


class FragmentCycleDetected(HashNavError):
    """Raised when fragment expansion revisits a name or exceeds the depth guard."""

    def __init__(self, name: str, chain: tuple[str, ...]) -> None:
        super().__init__(f"fragment {name!r} reached through {' -> '.join(chain) or '<root>'}")
        self.name = name
        self.chain = chain


class ScriptLoadFailed(HashNavError):
    """Raised when an external page script fails to load."""


class TransitionSuperseded(HashNavError):
    """Raised inside a transition that a newer navigation has replaced."""
