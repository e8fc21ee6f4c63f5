"""Data models for air-quality measurements.

`Measurement` is the domain type passed between the cache, the bus and the
stream. `MeasurementPayload` is the pydantic model for one upstream JSON
object; it only exists at the decoding boundary.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .errors import DecodeError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
NS_PER_SECOND = 1_000_000_000

# Date and time, optional fraction (any precision), optional offset
_ISO_TIMESTAMP = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2})"
    r"(?:[.,](?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:?\d{2})?$"
)


def datetime_to_ns(value: datetime) -> int:
    """Nanoseconds since the Unix epoch for an aware or naive-UTC datetime."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - EPOCH
    return (delta.days * 86_400 + delta.seconds) * NS_PER_SECOND + delta.microseconds * 1_000


def ns_to_datetime(ns: int) -> datetime:
    """UTC datetime for a nanosecond epoch timestamp, truncated to microseconds."""
    return EPOCH + timedelta(microseconds=ns // 1_000)


def format_recorded(ns: int) -> str:
    """Render a nanosecond timestamp as RFC 3339 with a 'Z' suffix and no trailing zeros."""
    seconds, fraction = divmod(ns, NS_PER_SECOND)
    text = (EPOCH + timedelta(seconds=seconds)).strftime("%Y-%m-%dT%H:%M:%S")
    if fraction:
        text += "." + f"{fraction:09d}".rstrip("0")
    return text + "Z"


def parse_recorded_ns(value: Any) -> int:
    """Parse an ISO-8601 timestamp to nanoseconds since the epoch.

    Fractional seconds are kept to nanosecond precision (digits beyond the
    ninth are dropped). A timestamp without an offset is taken as UTC.
    Raises ValueError on anything else.
    """
    if not isinstance(value, str):
        raise ValueError("recorded must be an ISO-8601 string")
    match = _ISO_TIMESTAMP.match(value.strip())
    if match is None:
        raise ValueError(f"invalid ISO-8601 timestamp: {value!r}")

    offset = match["offset"] or ""
    if offset in ("Z", "z"):
        offset = "+00:00"
    whole = datetime.fromisoformat(match["base"] + offset)

    fraction = (match["fraction"] or "")[:9].ljust(9, "0")
    return datetime_to_ns(whole) + int(fraction)


@dataclass(frozen=True, slots=True)
class Measurement:
    """Immutable reading from one deployed sensor at one instant.

    `source` identifies the physical sensor instance and is the cache key.
    `recorded` is when the reading was taken at the sensor (not when we
    ingested it), stored as an aware UTC datetime. `recorded_ns` carries the
    same instant at full nanosecond precision and is what freshness is
    compared on; it is derived from `recorded` when not given.
    """

    sensor: str
    source: str
    pm1_0: float
    pm2_5: float
    pm10: float
    latitude: float
    longitude: float
    recorded: datetime
    recorded_ns: int | None = field(default=None)

    def __post_init__(self) -> None:
        if self.recorded_ns is not None:
            object.__setattr__(self, "recorded", ns_to_datetime(self.recorded_ns))
            return
        recorded = self.recorded
        if recorded.tzinfo is None:
            recorded = recorded.replace(tzinfo=timezone.utc)
        else:
            recorded = recorded.astimezone(timezone.utc)
        object.__setattr__(self, "recorded", recorded)
        object.__setattr__(self, "recorded_ns", datetime_to_ns(recorded))

    def is_newer_than(self, other: Measurement) -> bool:
        """True if this reading was taken strictly after `other`."""
        return self.recorded_ns > other.recorded_ns

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON / SSE transmission using the upstream field names."""
        return {
            "sensor": self.sensor,
            "source": self.source,
            "pm1dot0": self.pm1_0,
            "pm2dot5": self.pm2_5,
            "pm10": self.pm10,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "recorded": format_recorded(self.recorded_ns),
        }

    @classmethod
    def from_dict(cls, raw: Any) -> Measurement:
        """Build a Measurement from one upstream JSON object.

        Raises DecodeError if a field is missing or has the wrong type.
        """
        try:
            payload = MeasurementPayload.model_validate(raw)
        except ValidationError as e:
            raise DecodeError(_describe(e)) from e
        return payload.to_measurement()


class MeasurementPayload(BaseModel):
    """Wire shape of one upstream measurement object.

    Numbers must be real JSON numbers (no strings, booleans, NaN or
    Infinity). Unknown keys are ignored.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        strict=True,
        allow_inf_nan=False,
    )

    sensor: str
    source: str = Field(min_length=1)
    pm1_0: float = Field(alias="pm1dot0")
    pm2_5: float = Field(alias="pm2dot5")
    pm10: float
    latitude: float
    longitude: float
    recorded_ns: int = Field(alias="recorded")

    @field_validator("recorded_ns", mode="before")
    @classmethod
    def _parse_recorded(cls, value: Any) -> int:
        return parse_recorded_ns(value)

    def to_measurement(self) -> Measurement:
        return Measurement(
            sensor=self.sensor,
            source=self.source,
            pm1_0=float(self.pm1_0),
            pm2_5=float(self.pm2_5),
            pm10=float(self.pm10),
            latitude=float(self.latitude),
            longitude=float(self.longitude),
            recorded=ns_to_datetime(self.recorded_ns),
            recorded_ns=self.recorded_ns,
        )


_BATCH_ADAPTER = TypeAdapter(list[MeasurementPayload])


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "payload"
    return f"{error.error_count()} invalid value(s), first at {location}: {first['msg']}"


def decode_batch_json(content: bytes | str) -> list[Measurement]:
    """Decode a raw upstream JSON body.

    Non-standard literals such as NaN and Infinity are rejected along with
    any other malformed record, discarding the whole batch.
    """
    try:
        items = _BATCH_ADAPTER.validate_json(content)
    except ValidationError as e:
        raise DecodeError(_describe(e)) from e
    return [item.to_measurement() for item in items]
