"""
Socket Event Router

Declarative event-to-handler mapping with middleware support and request
logging for the Socket.IO events clients send.
"""

import logging
from typing import Any, Callable, Dict, List

from flask import request

logger = logging.getLogger(__name__)


class EventRouteNotFoundError(Exception):
    """Raised when an event route is not found."""
    pass


class SocketEventRouter:
    """
    Router for Socket.IO events with middleware support and logging.
    """

    def __init__(self, socketio_instance=None):
        self.socketio = socketio_instance
        self._routes: Dict[str, Callable] = {}
        self._middleware: List[Callable] = []

    def register_route(self, event_name: str, handler: Callable) -> None:
        """Register an event handler for a specific event."""
        self._routes[event_name] = handler
        logger.debug(f"Registered route: {event_name} -> {getattr(handler, '__name__', handler)}")

    def add_middleware(self, middleware: Callable) -> None:
        """Add ``middleware(event_name, data) -> data`` run before every handler."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.__name__}")

    def handle_event(self, event_name: str, data: Any = None) -> Any:
        """
        Handle an incoming Socket.IO event.

        Runs middleware, then the registered handler.

        Raises:
            EventRouteNotFoundError: If no handler is registered for the event
        """
        if event_name not in self._routes:
            raise EventRouteNotFoundError(f"No handler registered for event: {event_name}")

        logger.info(f"Handling event: {event_name} from client: {request.sid}")  # type: ignore[attr-defined]
        if data is not None:
            logger.debug(f"Event data: {data}")

        try:
            for middleware in self._middleware:
                data = middleware(event_name, data)

            result = self._routes[event_name](data)
            logger.debug(f"Successfully handled event: {event_name}")
            return result

        except Exception as e:
            logger.error(f"Error handling event {event_name}: {str(e)}")
            raise

    def register_with_socketio(self) -> None:
        """Bind every registered route to the SocketIO instance."""
        if self.socketio is None:
            raise RuntimeError("Router has no SocketIO instance to register with")
        for event_name in self.get_registered_events():
            self.socketio.on_event(event_name, self._make_socketio_handler(event_name))
            logger.debug(f"Registered SocketIO handler for: {event_name}")

    def _make_socketio_handler(self, event_name: str) -> Callable:
        def socketio_handler(data=None):
            return self.handle_event(event_name, data)
        socketio_handler.__name__ = f"on_{event_name}"
        return socketio_handler

    def get_registered_events(self) -> List[str]:
        """Get a list of all registered event names."""
        return list(self._routes.keys())


def strip_string_middleware(event_name: str, data: Any) -> Any:
    """Trim surrounding whitespace from bare-string payloads such as room ids."""
    if isinstance(data, str):
        return data.strip()
    return data


def setup_router(socketio_instance) -> SocketEventRouter:
    """Build the router used for client events, with the default middleware."""
    router = SocketEventRouter(socketio_instance)
    router.add_middleware(strip_string_middleware)

    logger.info("Socket event router initialized")
    return router
