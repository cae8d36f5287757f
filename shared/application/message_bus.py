"""
Message Bus

Routes committed domain events to the handlers registered for them.
"""

from typing import Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """
    In-process event bus

    Events: Multiple handlers per event (1:N)
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        """
        Register an event handler

        Registering the same handler twice for one event type is a no-op.
        """
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler in handlers:
            return
        handlers.append(handler)
        logger.debug(f"Registered event handler for {event_type.__name__}")

    def unregister_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        handlers = self._event_handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish_events(self, events: List[DomainEvent]):
        """
        Publish domain events

        All registered handlers for each event type will be called.
        Errors in handlers are logged but don't stop other handlers:
        the events describe changes that are already committed.
        """
        for event in events:
            event_type = type(event)
            handlers = self._event_handlers.get(event_type, [])

            if not handlers:
                logger.warning(f"No handlers registered for event {event_type.__name__}")
                continue

            logger.info(f"Publishing event: {event_type.__name__} (ID: {event.event_id})")

            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    logger.error(
                        f"Error in event handler {getattr(handler, '__name__', handler)} "
                        f"for event {event_type.__name__}: {e}",
                        exc_info=True
                    )


# Global message bus instance
message_bus = MessageBus()
