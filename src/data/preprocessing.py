import logging
import pandas as pd
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .exceptions import AnalyticsError, MalformedRecordError
from .models import (
    GeoPoint, IncidentEvent, IncidentType, PollutionReading, POLLUTANT_FIELDS, Severity
)

logger = logging.getLogger(__name__)

# Maps report priority to incident severity
PRIORITY_TO_SEVERITY = {
    "high": Severity.HIGH,
    "medium": Severity.MEDIUM,
    "low": Severity.LOW
}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO string, epoch seconds or datetime into a datetime"""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        parsed = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def to_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive datetimes are treated as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def align_timezone(value: datetime, reference: datetime) -> datetime:
    """Express value in reference's timezone; naive datetimes are treated as UTC"""
    if reference.tzinfo is None:
        if value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return to_utc(value).astimezone(reference.tzinfo)


class CivicDataPreprocessor:
    def __init__(self):
        self.rejected: List[Tuple[Any, str]] = []

    def parse_location(self, raw: Any) -> GeoPoint:
        """Build a GeoPoint from a {lat, lng} mapping or a (lat, lng) pair"""
        if isinstance(raw, GeoPoint):
            return raw
        if isinstance(raw, Mapping):
            lat = raw.get("lat", raw.get("latitude"))
            lng = raw.get("lng", raw.get("lon", raw.get("longitude")))
        elif isinstance(raw, (list, tuple)) and len(raw) == 2:
            lat, lng = raw
        else:
            raise MalformedRecordError(f"Unusable location: {raw!r}")
        if lat is None or lng is None:
            raise MalformedRecordError(f"Location is missing a coordinate: {raw!r}")
        return GeoPoint(float(lat), float(lng))

    def incident_from_record(self, record: Mapping[str, Any]) -> IncidentEvent:
        """Normalise one stored report into an IncidentEvent"""
        if not record.get("type"):
            raise MalformedRecordError(f"Record {record.get('id')} has no type")

        occurred_at = parse_timestamp(
            record.get("occurred_at") or record.get("created_at") or record.get("submitted_at")
        )
        if occurred_at is None:
            raise MalformedRecordError(f"Record {record.get('id')} has no timestamp")

        # Reports carry a priority; historical incidents carry a severity
        raw_severity = str(record.get("severity") or record.get("priority") or "low").lower()
        severity = PRIORITY_TO_SEVERITY.get(raw_severity, Severity.LOW)

        location_raw = record.get("location")
        address = location_raw.get("address") if isinstance(location_raw, Mapping) else None

        return IncidentEvent(
            id=str(record.get("id")),
            type=IncidentType.parse(record["type"]),
            location=self.parse_location(location_raw),
            severity=severity,
            occurred_at=occurred_at,
            address=address
        )

    def reading_from_record(self, record: Mapping[str, Any]) -> PollutionReading:
        """Normalise one stored pollution row into a PollutionReading"""
        measured_at = parse_timestamp(record.get("measured_at") or record.get("timestamp"))
        if measured_at is None:
            raise MalformedRecordError(f"Reading {record.get('id')} has no timestamp")

        location_raw = record.get("location")
        area = None
        if isinstance(location_raw, Mapping):
            area = location_raw.get("area_name") or location_raw.get("address")

        aqi = record.get("aqi", record.get("aqi_value"))
        pollutants = {
            name: float(record[name]) if record.get(name) is not None else None
            for name in POLLUTANT_FIELDS
        }

        return PollutionReading(
            id=str(record.get("id")),
            location=self.parse_location(location_raw),
            measured_at=measured_at,
            aqi=float(aqi) if aqi is not None else None,
            source=record.get("source") or "api",
            area=record.get("area") or area,
            **pollutants
        )

    def load_incidents(self, records: Iterable[Any]) -> List[IncidentEvent]:
        """Normalise a batch of records, skipping the malformed ones"""
        return self._load(records, IncidentEvent, self.incident_from_record)

    def load_readings(self, records: Iterable[Any]) -> List[PollutionReading]:
        """Normalise a batch of pollution rows, skipping the unusable ones"""
        return self._load(records, PollutionReading, self.reading_from_record)

    def _load(self, records, model, converter) -> list:
        loaded = []
        for record in records:
            if isinstance(record, model):
                loaded.append(record)
                continue
            try:
                loaded.append(converter(record))
            except (AnalyticsError, ValueError, TypeError, AttributeError) as e:
                # One bad record never aborts the batch
                logger.warning(f"Skipping malformed record: {e}")
                self.rejected.append((record, str(e)))
        return loaded

    def events_frame(self, events: Iterable[IncidentEvent]) -> pd.DataFrame:
        """Tabulate incidents for aggregation"""
        rows = [
            {
                "id": event.id,
                "type": event.type.value,
                "severity": event.severity.value,
                "lat": event.location.lat,
                "lng": event.location.lng,
                "occurred_at": event.occurred_at
            }
            for event in events
        ]
        return pd.DataFrame(rows, columns=["id", "type", "severity", "lat", "lng", "occurred_at"])

    def get_data_summary(self, events: List[IncidentEvent],
                         readings: List[PollutionReading]) -> Dict[str, Any]:
        """Generate summary statistics for a batch"""
        df = self.events_frame(events)

        return {
            "total_events": len(events),
            "total_readings": len(readings),
            "rejected_records": len(self.rejected),
            "type_distribution": df["type"].value_counts().to_dict(),
            "severity_distribution": df["severity"].value_counts().to_dict()
        }
