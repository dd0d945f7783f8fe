"""
Event Grid envelope and event data models.
"""

import re
from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import (
    AfterValidator,
    AnyUrl,
    AwareDatetime,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    TypeAdapter,
)
from pydantic import ValidationError as PydanticValidationError


_url_adapter = TypeAdapter(AnyUrl)

# Hyphenated 8-4-4-4-12 form only.
_UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\Z"
)
_ISO_DATETIME_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}T")


def _check_uuid(value: str) -> str:
    if not _UUID_PATTERN.match(value):
        raise ValueError("invalid UUID")
    return value


def _check_url(value: str) -> str:
    try:
        _url_adapter.validate_python(value)
    except PydanticValidationError:
        raise ValueError("invalid URL")
    return value


def _require_iso_string(value: Any) -> Any:
    # Numbers and numeric strings would otherwise parse as Unix time.
    if not isinstance(value, str) or not _ISO_DATETIME_PREFIX.match(value):
        raise ValueError("timestamp must be an ISO-8601 string")
    return value


# Validated but kept verbatim, since both values are echoed back to the caller.
UUIDString = Annotated[str, AfterValidator(_check_uuid)]
URLString = Annotated[str, AfterValidator(_check_url)]

ISOTimestamp = Annotated[AwareDatetime, BeforeValidator(_require_iso_string)]


class EventGridModel(BaseModel):
    """Base model for Event Grid camelCase payloads."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SubscriptionValidationEventData(EventGridModel):
    """Handshake sent by Event Grid when a subscription is created."""

    validation_code: UUIDString = Field(alias="validationCode")
    validation_url: URLString = Field(alias="validationUrl")


class StorageDiagnostics(EventGridModel):
    batch_id: UUIDString = Field(alias="batchId")


class BlobCreatedEventData(EventGridModel):
    """Storage blob creation notification."""

    api: Literal["PutBlob"]
    request_id: UUIDString = Field(alias="requestId")
    e_tag: str = Field(alias="eTag")
    content_type: str = Field(alias="contentType")
    content_length: Union[StrictInt, StrictFloat] = Field(alias="contentLength")
    blob_type: Literal["BlockBlob"] = Field(alias="blobType")
    url: URLString
    sequencer: str
    storage_diagnostics: StorageDiagnostics = Field(alias="storageDiagnostics")


EventData = Union[SubscriptionValidationEventData, BlobCreatedEventData]


class EventGridEvent(EventGridModel):
    """One Event Grid envelope.

    ``data`` is kept untyped here so an unknown payload shape is reported
    as unrecognized event data rather than as a malformed envelope.
    """

    id: UUIDString
    topic: str
    subject: str
    data: Dict[str, Any]
    event_type: str = Field(alias="eventType")
    event_time: ISOTimestamp = Field(alias="eventTime")
    metadata_version: str = Field(alias="metadataVersion")
    data_version: str = Field(alias="dataVersion")


EventGridPayload = TypeAdapter(Annotated[List[EventGridEvent], Field(min_length=1)])
