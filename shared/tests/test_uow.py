from decimal import Decimal

import pytest
from django.db import DatabaseError

from apps.catalog.models import Hotel
from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import DomainEvent, EventRecorder
from shared.domain.exceptions import InternalError, StateError


class _Aggregate(EventRecorder):
    pk = 1


@pytest.mark.django_db
def test_domain_error_rolls_back_and_propagates():
    with pytest.raises(StateError):
        with DjangoUnitOfWork():
            Hotel.objects.create(name="Rollback", city="Cali", price_per_night=Decimal("10"))
            raise StateError("nope")

    assert not Hotel.objects.filter(name="Rollback").exists()


@pytest.mark.django_db
def test_database_error_becomes_internal_error():
    with pytest.raises(InternalError) as excinfo:
        with DjangoUnitOfWork():
            Hotel.objects.create(name="Broken", city="Cali", price_per_night=Decimal("10"))
            raise DatabaseError("disk full")

    assert isinstance(excinfo.value.__cause__, DatabaseError)
    assert not Hotel.objects.filter(name="Broken").exists()


@pytest.mark.django_db
def test_events_are_published_after_commit(django_capture_on_commit_callbacks, monkeypatch):
    bus = MessageBus()
    received = []
    bus.register_event_handler(DomainEvent, received.append)
    monkeypatch.setattr("shared.application.message_bus.message_bus", bus)

    aggregate = _Aggregate()
    event = DomainEvent(aggregate_id=1)
    aggregate.add_event(event)

    with django_capture_on_commit_callbacks(execute=True):
        with DjangoUnitOfWork() as uow:
            uow.collect_events(aggregate)
            assert received == []

    assert received == [event]
    assert aggregate.events == []


@pytest.mark.django_db
def test_events_are_discarded_on_rollback(django_capture_on_commit_callbacks):
    aggregate = _Aggregate()
    aggregate.add_event(DomainEvent(aggregate_id=1))

    with django_capture_on_commit_callbacks() as callbacks:
        with pytest.raises(StateError):
            with DjangoUnitOfWork() as uow:
                uow.collect_events(aggregate)
                raise StateError("nope")

    assert callbacks == []
