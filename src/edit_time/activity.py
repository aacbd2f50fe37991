"""Decode raw Drive Activity records into edit events."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import EditEvent, to_utc

logger = logging.getLogger(__name__)


class TimeRange(BaseModel):
    start_time: Optional[datetime] = Field(default=None, alias="startTime")
    end_time: Optional[datetime] = Field(default=None, alias="endTime")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ActivityRecord(BaseModel):
    """The subset of a Drive Activity ``Activity`` that carries its time."""

    timestamp: Optional[datetime] = None
    time_range: Optional[TimeRange] = Field(default=None, alias="timeRange")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def observed_at(self) -> Optional[datetime]:
        if self.timestamp is not None:
            return to_utc(self.timestamp)
        if self.time_range is not None and self.time_range.end_time is not None:
            return to_utc(self.time_range.end_time)
        return None


def extract_timestamp(record: Union[ActivityRecord, Any]) -> Optional[datetime]:
    """Return the instant of a record: its timestamp, else the end of its time range."""
    if not isinstance(record, ActivityRecord):
        try:
            record = ActivityRecord.model_validate(record)
        except ValidationError:
            logger.debug("Discarding malformed activity record: %r", record)
            return None
    return record.observed_at()


def events_from_records(records: Iterable[Any]) -> list[EditEvent]:
    events: list[EditEvent] = []
    for record in records:
        timestamp = extract_timestamp(record)
        if timestamp is None:
            continue
        events.append(EditEvent(timestamp=timestamp))
    return events
