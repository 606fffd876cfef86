"""Event bus used by the workspace coordinator to notify views.

Views (navigation tree, tab strips, breadcrumb bar) subscribe to the events
below instead of polling the coordinator.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar
from weakref import WeakMethod

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all workspace events."""


# =============================================================================
# Document events
# =============================================================================


@dataclass(slots=True)
class DocumentsChanged(Event):
    """Emitted after the document collection was replaced and the forest rebuilt.

    Attributes:
        document_count: Number of documents in the new collection.
        root_count: Number of roots in the rebuilt forest.
    """

    document_count: int
    root_count: int


@dataclass(slots=True)
class TabsEvicted(Event):
    """Emitted when deleted documents were closed in every pane.

    Attributes:
        document_ids: Ids whose tabs were evicted.
    """

    document_ids: tuple[str, ...]


# =============================================================================
# Layout events
# =============================================================================


@dataclass(slots=True)
class LayoutChanged(Event):
    """Emitted whenever a command produced a new layout value.

    Attributes:
        command: Name of the command that produced the layout.
        active_pane_id: The active pane after the command.
        pane_count: Number of leaf panes after the command.
    """

    command: str
    active_pane_id: str
    pane_count: int


@dataclass(slots=True)
class ActivePaneChanged(Event):
    """Emitted when keyboard focus routing moves to another pane."""

    pane_id: str
    previous_pane_id: str


@dataclass(slots=True)
class ActiveDocumentChanged(Event):
    """Emitted when the active pane's active tab changes.

    Subscribers load the document content; the layout only tracks ids.
    """

    document_id: str | None


@dataclass(slots=True)
class WorkspaceRestored(Event):
    """Emitted after a persisted layout was loaded for a workspace."""

    workspace_id: str
    pane_count: int
    active_pane_id: str


class EventBus(Generic[E]):
    """Routes workspace events to subscribers by exact event type.

    Bound methods are referenced weakly, so a view that goes away drops out
    of the bus without unsubscribing. Handlers may subscribe or unsubscribe
    while an event is being delivered; a handler removed mid-delivery is not
    called for that event.
    """

    __slots__ = ("_subscriptions",)

    def __init__(self) -> None:
        self._subscriptions: dict[type[Event], list[_Subscription]] = {}

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        self._subscriptions.setdefault(event_type, []).append(_Subscription(handler))
        logger.debug("subscribe: %s -> %r", event_type.__name__, handler)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the earliest registration of ``handler``; unknown handlers are ignored."""
        for subscription in self._subscriptions.get(event_type, ()):
            if subscription.active and subscription.target() == handler:
                self._drop(event_type, subscription)
                return

    def publish(self, event: E) -> None:
        """Deliver ``event`` to its subscribers in subscription order.

        A handler that raises is logged and delivery continues.
        """
        event_type = type(event)
        for subscription in tuple(self._subscriptions.get(event_type, ())):
            if not subscription.active:
                continue
            handler = subscription.target()
            if handler is None:
                self._drop(event_type, subscription)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("Handler %r failed on %s", handler, event_type.__name__)

    def handler_count(self, event_type: type[E] | None = None) -> int:
        if event_type is None:
            return sum(len(subscriptions) for subscriptions in self._subscriptions.values())
        return len(self._subscriptions.get(event_type, ()))

    def _drop(self, event_type: type[Event], subscription: _Subscription) -> None:
        subscription.active = False
        subscriptions = self._subscriptions.get(event_type, [])
        for index, candidate in enumerate(subscriptions):
            if candidate is subscription:
                del subscriptions[index]
                return


class _Subscription:
    __slots__ = ("_ref", "_weak", "active")

    def __init__(self, handler: Handler) -> None:
        self.active = True
        self._weak = False
        self._ref: Any = handler
        if inspect.ismethod(handler):
            try:
                self._ref = WeakMethod(handler)
                self._weak = True
            except TypeError:
                pass

    def target(self) -> Handler | None:
        return self._ref() if self._weak else self._ref


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "DocumentsChanged",
    "TabsEvicted",
    "LayoutChanged",
    "ActivePaneChanged",
    "ActiveDocumentChanged",
    "WorkspaceRestored",
]
