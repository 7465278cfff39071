"""Catalog resource provider.

Lookup of catalog resources by id plus the only two writes line items are
allowed to make against the catalog: reserving and releasing capacity.
Both run as a single conditional UPDATE so concurrent reservations can
never drive a counter below zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Type

from django.db import models  # type: ignore
from django.db.models import F  # type: ignore

from shared.domain.exceptions import InternalError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapacityCounter:
    """Identifies one finite counter: a model row and the field holding availability."""

    model: Type[models.Model]
    pk: int
    field: str

    def __str__(self) -> str:
        return f"{self.model.__name__}#{self.pk}.{self.field}"


def get_resource(model: Type[models.Model], pk):
    """Return the catalog row or raise NotFoundError."""

    try:
        return model.objects.get(pk=pk)
    except model.DoesNotExist:
        raise NotFoundError(
            f"{model._meta.verbose_name} {pk} not found",
            {"resource": model.__name__, "id": pk},
        )


def reserve_capacity(counter: CapacityCounter, quantity: int) -> bool:
    """Atomically take ``quantity`` units; False when fewer are available."""

    if quantity <= 0:
        raise ValidationError("Quantity must be positive", {"quantity": quantity})

    updated = counter.model.objects.filter(
        pk=counter.pk,
        **{f"{counter.field}__gte": quantity},
    ).update(**{counter.field: F(counter.field) - quantity})

    if updated:
        logger.info(f"Reserved {quantity} from {counter}")
    else:
        logger.warning(f"Insufficient capacity on {counter} for {quantity}")
    return bool(updated)


def release_capacity(counter: CapacityCounter, quantity: int) -> None:
    """Return ``quantity`` units previously taken with reserve_capacity."""

    if quantity <= 0:
        raise ValidationError("Quantity must be positive", {"quantity": quantity})

    updated = counter.model.objects.filter(
        pk=counter.pk, **{f"{counter.field}__isnull": False}
    ).update(**{counter.field: F(counter.field) + quantity})
    if not updated:
        # a held item implies a tracked counter on a PROTECTed row
        raise InternalError(f"Cannot release capacity on {counter}: resource missing or not tracked")
    logger.info(f"Released {quantity} to {counter}")


def available_capacity(counter: CapacityCounter) -> int | None:
    return counter.model.objects.filter(pk=counter.pk).values_list(counter.field, flat=True).first()
