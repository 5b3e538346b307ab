from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class EventKind(str, Enum):
    """Filter intents raised by views (and by the host when restoring state)."""

    DATE_START = "date_start"
    DATE_END = "date_end"
    DATE_CLEAR = "date_clear"
    LENGTH_START = "length_start"
    LENGTH_END = "length_end"
    LENGTH_CLEAR = "length_clear"
    MAP_START = "map_start"
    MAP_END = "map_end"
    MAP_CLEAR = "map_clear"
    LANGUAGE_SELECTION = "language_selection"
    LANGUAGE_CLEAR = "language_clear"
    CLUSTER_SELECTION = "cluster_selection"
    CLUSTER_CLEAR = "cluster_clear"


_NO_PAYLOAD = object()


class EventDispatcher:
    """
    Minimal synchronous pub/sub with one handler slot per EventKind.

    - `on()` replaces whatever handler the slot held (last registration wins);
      there is no fan-out to several handlers
    - `emit()` calls the handler immediately, in the caller's thread
    - handler exceptions propagate to whoever called `emit()`
    - emitting a kind with no handler is a no-op
    """

    def __init__(self):
        self._handlers: Dict[EventKind, Optional[Handler]] = {kind: None for kind in EventKind}

    @staticmethod
    def _kind(kind: Union[EventKind, str]) -> EventKind:
        """
        Raises:
            ValueError: if `kind` isn't a known event name
        """
        return kind if isinstance(kind, EventKind) else EventKind(kind)

    def on(self, kind: Union[EventKind, str], handler: Optional[Handler]) -> Optional[Handler]:
        """
        Register `handler` for `kind` (None unregisters).

        :return: the handler previously held by the slot, if any
        """
        kind = self._kind(kind)
        previous = self._handlers[kind]
        self._handlers[kind] = handler
        return previous

    def handler(self, kind: Union[EventKind, str]) -> Optional[Handler]:
        return self._handlers[self._kind(kind)]

    def emit(self, kind: Union[EventKind, str], payload: Any = _NO_PAYLOAD) -> Any:
        kind = self._kind(kind)
        handler = self._handlers[kind]
        if handler is None:
            logger.debug("No handler for event", extra={"event": kind.value})
            return None

        logger.debug("Dispatching event", extra={"event": kind.value})
        if payload is _NO_PAYLOAD:
            return handler()
        return handler(payload)
