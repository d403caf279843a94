"""Contracts of the in-process event bus.

Handlers are structural (any object with ``handle``); the bus is an ABC
so concrete buses must implement the whole subscription surface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Protocol, Type

from shared.domain.events import DomainEvent


class IEventHandler(Protocol):
    def handle(self, event: DomainEvent) -> None: ...


class IEventBus(ABC):
    @abstractmethod
    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        """Deliver every future *event_class* event to *handler* (once)."""

    @abstractmethod
    def unsubscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        """Stop delivering *event_class* events to *handler*; unknown pairs are ignored."""

    @abstractmethod
    def handlers_for(self, event_class: Type[DomainEvent]) -> List[IEventHandler]:
        """Handlers currently subscribed to *event_class*, in subscription order."""

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """Run the handlers of ``type(event)`` synchronously."""

    def publish_all(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            self.publish(event)
