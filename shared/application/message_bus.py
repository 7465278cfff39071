"""
Message Bus

Routes reservation commands to their single handler and fans committed
domain events (reservation and finance) out to every subscriber.
"""

from typing import Any, Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent
from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]
CommandHandler = Callable[[Any], Any]


class HandlerRegistrationError(ValueError):
    """A command type has no handler, or already has one"""


class MessageBus:
    """
    In-process dispatcher

    Each command type maps to exactly one handler whose return value goes
    back to the caller. Event subscriptions follow the class hierarchy:
    subscribing to DomainEvent receives every event.
    """

    def __init__(self):
        self._subscribers: Dict[Type[DomainEvent], List[EventHandler]] = {}
        self._command_handlers: Dict[Type, CommandHandler] = {}

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        subscribers = self._subscribers.setdefault(event_type, [])
        if handler in subscribers:
            return
        subscribers.append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type.__name__}")

    def register_command_handler(self, command_type: Type, handler: CommandHandler):
        if self.has_command_handler(command_type):
            raise HandlerRegistrationError(f"{command_type.__name__} already has a handler")
        self._command_handlers[command_type] = handler

    def has_command_handler(self, command_type: Type) -> bool:
        return command_type in self._command_handlers

    def handle_command(self, command: Any) -> Any:
        """
        Run the handler registered for ``type(command)`` and return its result

        Domain errors are expected outcomes (conflicts, bad input) and are
        logged at WARNING before being re-raised to the caller.
        """
        name = type(command).__name__
        handler = self._command_handlers.get(type(command))
        if handler is None:
            raise HandlerRegistrationError(f"No handler registered for {name}")

        logger.info(f"Handling {name}")
        try:
            return handler(command)
        except DomainError as e:
            logger.warning(f"{name} rejected ({e.code}): {e.message}")
            raise
        except Exception as e:
            logger.error(f"{name} failed: {e}")
            raise

    def subscribers_for(self, event_type: Type[DomainEvent]) -> List[EventHandler]:
        return [
            handler
            for klass in event_type.__mro__
            for handler in self._subscribers.get(klass, [])
        ]

    def publish_events(self, events: List[DomainEvent]):
        """
        Deliver committed events in order

        A failing subscriber is logged and skipped; the remaining
        subscribers and events are still delivered.
        """
        for event in events:
            subscribers = self.subscribers_for(type(event))
            if not subscribers:
                logger.debug(f"No subscribers for {type(event).__name__}")
                continue

            for handler in subscribers:
                try:
                    handler(event)
                except Exception as e:
                    logger.error(
                        f"Subscriber {getattr(handler, '__name__', handler)} failed on "
                        f"{type(event).__name__} {event.event_id}: {e}",
                        exc_info=True,
                    )


# Global message bus instance
message_bus = MessageBus()
