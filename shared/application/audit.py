"""Audit trail for published domain events."""

import structlog

logger = structlog.get_logger(__name__)


def log_domain_event(event) -> None:
    """Write every published event to the structured log."""
    payload = event.to_dict()
    event_type = payload.pop('event_type')
    logger.info("domain_event.published", event_type=event_type, **payload)
