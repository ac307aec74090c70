"""Connection registry and the "active connection".

Resource operations that are not given an explicit ``api=`` connection use
the active one. The active connection is, in order:

1. the connection set for the current thread/task with ``using_connection()``
   (stored in the ``current_connection`` ContextVar)
2. the registry's active connection
3. the registry's default connection, created unconnected on first access

Callers that juggle several servers should pass connections explicitly;
the module-level functions wrap ``default_registry`` for the common
single-server case.
"""

import logging
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from .api_connection import APIConnection
from .config import ConnectionOptions
from .exceptions import NoSuchItemError

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_NAME = "default"

current_connection: ContextVar[Optional[APIConnection]] = ContextVar(
    "current_connection", default=None
)


class ConnectionRegistry:
    """Named connections plus the one currently active."""

    def __init__(self, connection_factory: Callable[..., APIConnection] = APIConnection):
        """Initialize an empty registry.

        Args:
            connection_factory: Builds new connections (APIConnection by default)
        """
        self._connection_factory = connection_factory
        self._connections: Dict[str, APIConnection] = {}
        self._default: Optional[APIConnection] = None
        self._active: Optional[APIConnection] = None
        self._lock = threading.RLock()

    def default(self) -> APIConnection:
        """The default connection, created unconnected on first access."""
        with self._lock:
            if self._default is None:
                self._default = self._connection_factory(name=DEFAULT_CONNECTION_NAME)
                self._connections[DEFAULT_CONNECTION_NAME] = self._default
            return self._default

    def active(self) -> APIConnection:
        """The connection used when none is given explicitly."""
        override = current_connection.get()
        if override is not None:
            return override
        with self._lock:
            if self._active is None:
                self._active = self.default()
            return self._active

    def register(self, connection: APIConnection) -> None:
        if not isinstance(connection, APIConnection):
            raise TypeError("API connections must be instances of APIConnection")
        with self._lock:
            self._connections[str(connection.name)] = connection

    def get(self, name: str) -> APIConnection:
        with self._lock:
            try:
                return self._connections[name]
            except KeyError:
                raise NoSuchItemError(f"No API connection named '{name}'") from None

    def names(self) -> List[str]:
        with self._lock:
            return list(self._connections)

    def create_and_activate(
        self,
        options: Optional[Union[ConnectionOptions, Dict[str, Any]]] = None,
        **kwargs: Any,
    ) -> APIConnection:
        """Create a connection, make it active, then connect it.

        The new connection stays active even if connecting fails, so the
        caller can inspect it and retry. Connection errors propagate.
        """
        connection = self._connection_factory()
        with self._lock:
            self._active = connection
        try:
            connection.connect(options, **kwargs)
        finally:
            if connection.name is not None:
                self.register(connection)
        logger.info(f"Activated API connection '{connection.name}'")
        return connection

    def activate(self, connection: Union[APIConnection, str]) -> APIConnection:
        """Make an existing connection (or the one registered by name) active.

        Raises:
            TypeError: If given something that is not an APIConnection
            NoSuchItemError: If no connection is registered under the name
        """
        if isinstance(connection, str):
            connection = self.get(connection)
        if not isinstance(connection, APIConnection):
            raise TypeError("API connections must be instances of APIConnection")
        with self._lock:
            self._active = connection
            if connection.name is not None:
                self._connections.setdefault(str(connection.name), connection)
        logger.debug(f"Active API connection is now '{connection.name}'")
        return connection

    def restore_default(self) -> APIConnection:
        """Re-activate the default connection."""
        return self.activate(self.default())


default_registry = ConnectionRegistry()


def active_connection() -> APIConnection:
    return default_registry.active()


def new_api_connection(
    options: Optional[Union[ConnectionOptions, Dict[str, Any]]] = None, **kwargs: Any
) -> APIConnection:
    return default_registry.create_and_activate(options, **kwargs)


def use_api_connection(connection: Union[APIConnection, str]) -> APIConnection:
    return default_registry.activate(connection)


def use_default_connection() -> APIConnection:
    return default_registry.restore_default()


@contextmanager
def using_connection(connection: APIConnection) -> Iterator[APIConnection]:
    """Make ``connection`` active for the current thread/task only."""
    if not isinstance(connection, APIConnection):
        raise TypeError("API connections must be instances of APIConnection")
    token = current_connection.set(connection)
    try:
        yield connection
    finally:
        current_connection.reset(token)
