"""In-process notifications emitted by the url engine.

Listeners are plain callables (sync or async) registered per event class.
Dispatch is sequential, in registration order; a listener error propagates
to the dispatcher's caller.
"""

import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable

from models.url import Url

logger = logging.getLogger(__name__)

_listeners: dict[type, list[Callable[[Any], Any]]] = defaultdict(list)


@dataclass
class UrlChanged:
    """An entity's active full URL was created (old is None) or changed."""

    entity: Any
    entity_type: str
    old: str | None
    new: str
    version: int


@dataclass
class UrlMatched:
    """An inbound request matched an active url row.

    Listeners inspect the request/entity and call respond() with the response
    to return; an unset response means nobody handled it (404).
    """

    request: Any
    url: Url
    urlable: Any
    collection: str | None = None
    response: Any = field(default=None)

    def respond(self, response: Any) -> None:
        self.response = response


@dataclass
class UrlableResource:
    """A url response is being built for an entity.

    Listeners fill resource with a JSON-serializable description of the
    entity; it is returned as the "urlable" field of owner responses.
    """

    urlable: Any
    entity_type: str
    resource: Any = field(default=None)


def listen(event_cls: type, listener: Callable[[Any], Any]) -> None:
    _listeners[event_cls].append(listener)


def forget(event_cls: type | None = None) -> None:
    """Remove the listeners of one event class, or of all events."""
    if event_cls is None:
        _listeners.clear()
    else:
        _listeners.pop(event_cls, None)


async def dispatch(event: Any) -> Any:
    """Call every listener of type(event); returns the event for inspection."""
    for listener in list(_listeners.get(type(event), [])):
        result = listener(event)
        if inspect.isawaitable(result):
            await result

    logger.debug("Dispatched %s to %d listener(s)", type(event).__name__, len(_listeners.get(type(event), [])))
    return event
