"""
Unit of Work

One DjangoUnitOfWork is one database transaction. Capacity counters, line
items, totals, invoices and payments written inside it commit or roll back
together; domain events gathered along the way reach the message bus only
after the commit succeeded.
"""

from typing import List
import logging

from django.db import DatabaseError, transaction
from django.db.utils import NotSupportedError

from shared.domain.base import DomainEvent
from shared.domain.exceptions import InternalError

logger = logging.getLogger(__name__)


def lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


class DjangoUnitOfWork:
    """
    Transaction boundary for a single command

    Usage:
        with DjangoUnitOfWork() as uow:
            reservation = lock_reservation(reservation_id)
            item = subsystem.build(reservation, resource, spec)
            reservation.add_event(LineItemAttached(...))
            uow.collect_events(reservation)

    Leaving the block normally commits and schedules the events; any
    exception rolls back and drops them. A DatabaseError, raised by a query
    or by the commit itself, is re-raised as InternalError.
    """

    def __init__(self):
        self._events: List[DomainEvent] = []
        self._atomic = None

    def __enter__(self):
        self._atomic = transaction.atomic()
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

        try:
            self._atomic.__exit__(exc_type, exc_val, exc_tb)
        except DatabaseError as e:
            logger.error(f"Commit failed: {e}", exc_info=True)
            raise InternalError("Transaction could not be committed") from e
        finally:
            self._atomic = None

        if exc_type is not None and issubclass(exc_type, DatabaseError):
            logger.error(
                f"Rolled back after persistence failure: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
            raise InternalError("Persistence failure, nothing was committed") from exc_val
        return False

    def commit(self):
        """Hand the gathered events to transaction.on_commit()"""
        events, self._events = self._events, []
        if events:
            logger.debug(f"Scheduling {len(events)} events for after commit")
            transaction.on_commit(lambda: self._publish_events(events))

    def rollback(self):
        if self._events:
            logger.debug(f"Dropping {len(self._events)} events on rollback")
        self._events = []

    def add_event(self, event: DomainEvent):
        """Queue an event with no aggregate left to carry it (e.g. after a delete)"""
        self._events.append(event)

    def collect_events(self, aggregate):
        """Move pending events off an EventRecorder aggregate"""
        pending = aggregate.events
        if not pending:
            return
        self._events.extend(pending)
        aggregate.clear_events()
        logger.debug(f"Collected {len(pending)} events from {aggregate.__class__.__name__} {aggregate.pk}")

    def _publish_events(self, events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        try:
            message_bus.publish_events(events)
        except Exception as e:
            # already committed; delivery problems are reported, not raised
            logger.error(f"Publishing {len(events)} events failed: {e}", exc_info=True)
