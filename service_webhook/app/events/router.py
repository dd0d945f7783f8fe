"""
Event Grid payload validation and dispatch.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from shared.errors import ValidationError
from shared.logging import get_logger, set_event_id
from shared.metrics import MetricsCollector
from .models import (
    BlobCreatedEventData,
    EventData,
    EventGridEvent,
    EventGridPayload,
    SubscriptionValidationEventData,
)


INVALID_EVENT_DATA = "Invalid event data"

# Matched in order; the first variant that validates wins.
EVENT_DATA_VARIANTS = (SubscriptionValidationEventData, BlobCreatedEventData)


@dataclass(frozen=True)
class EventAck:
    """The single response produced for a webhook delivery."""

    status_code: int
    body: Dict[str, Any]
    event_type: str = field(default="unrecognized")


def parse_events(body: Any, max_batch_size: int = 1) -> List[EventGridEvent]:
    """Validate a request body as a non-empty array of Event Grid envelopes."""
    try:
        events = EventGridPayload.validate_python(body)
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid event payload",
            details={"errors": exc.errors(include_url=False, include_input=False)},
        ) from exc

    if len(events) > max_batch_size:
        raise ValidationError(
            "Event batches are limited to a single event" if max_batch_size == 1
            else f"Event batches are limited to {max_batch_size} events",
            details={"batch_size": len(events)},
        )
    return events


def classify_event_data(data: Dict[str, Any]) -> Optional[EventData]:
    """Match event data against the known variants, or None if none fit."""
    for variant in EVENT_DATA_VARIANTS:
        try:
            return variant.model_validate(data)
        except PydanticValidationError:
            continue
    return None


class EventRouter:
    """Validates Event Grid deliveries and acknowledges the first event."""

    def __init__(self, max_batch_size: int = 1, metrics: Optional[MetricsCollector] = None):
        self.max_batch_size = max_batch_size
        self.metrics = metrics
        self.logger = get_logger("webhook.events")

    def route(self, body: Any) -> EventAck:
        """Classify the delivery once and build exactly one acknowledgement."""
        events = parse_events(body, self.max_batch_size)
        event = events[0]
        set_event_id(event.id)

        ack = self._acknowledge(classify_event_data(event.data))
        if self.metrics:
            self.metrics.increment_counter("webhook_events_total", event_type=ack.event_type)
        return ack

    def _acknowledge(self, data: Optional[EventData]) -> EventAck:
        if isinstance(data, SubscriptionValidationEventData):
            self.logger.info("Subscription validation received", validation_code=data.validation_code)
            return EventAck(
                status_code=200,
                body={"validationResponse": data.validation_code},
                event_type="subscription_validation",
            )

        if isinstance(data, BlobCreatedEventData):
            self.logger.info("Blob created received", url=data.url)
            return EventAck(
                status_code=200,
                body={"url": data.url},
                event_type="blob_created",
            )

        self.logger.warning("Unrecognized event data")
        return EventAck(status_code=400, body={"error": INVALID_EVENT_DATA})
