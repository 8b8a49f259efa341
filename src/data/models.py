import math
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Tuple

from .exceptions import InvalidCoordinateError, MalformedRecordError, MissingDataError

logger = logging.getLogger(__name__)


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 1, "medium": 2, "high": 3}[self.value]


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TrendDirection(Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class AlertCategory(Enum):
    SEASONAL = "seasonal"
    LOCATION = "location"
    PATTERN = "pattern"
    TIME_BASED = "time-based"


class ReadingSource(Enum):
    API = "api"
    MANUAL = "manual"
    USER_REPORT = "user_report"


class IncidentType(Enum):
    POTHOLE = "pothole"
    STREETLIGHT = "streetlight"
    GARBAGE = "garbage"
    ANIMAL_CARCASS = "animal_carcass"
    CYBERSECURITY = "cybersecurity"
    ROAD_SAFETY_HAZARDS = "road_safety_hazards"
    PUBLIC_INFRASTRUCTURE = "public_infrastructure"
    ENVIRONMENTAL = "environmental"
    HEALTH_SAFETY = "health_safety"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "IncidentType":
        """Map a raw type tag to the closed set, falling back to OTHER"""
        if isinstance(value, cls):
            return value
        tag = str(value).strip().lower()
        if tag == "cyber":
            return cls.CYBERSECURITY
        try:
            return cls(tag)
        except ValueError:
            logger.debug(f"Unknown incident type '{value}', using 'other'")
            return cls.OTHER


ROAD_TYPES = frozenset({IncidentType.POTHOLE, IncidentType.ROAD_SAFETY_HAZARDS})
SECURITY_TYPES = frozenset({IncidentType.CYBERSECURITY})

POLLUTANT_FIELDS = ("pm25", "pm10", "o3", "no2", "so2", "co")


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def __post_init__(self):
        for name, value, limit in (("lat", self.lat, 90.0), ("lng", self.lng, 180.0)):
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise InvalidCoordinateError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value) or not -limit <= value <= limit:
                raise InvalidCoordinateError(f"{name}={value} outside [-{limit}, {limit}]")

    def as_tuple(self) -> Tuple[float, float]:
        return self.lat, self.lng


@dataclass(frozen=True)
class IncidentEvent:
    id: str
    type: IncidentType
    location: GeoPoint
    severity: Severity
    occurred_at: datetime
    address: Optional[str] = None

    def __post_init__(self):
        if self.type is None or self.type == "":
            raise MalformedRecordError(f"Incident {self.id} has no type")
        if not isinstance(self.occurred_at, datetime):
            raise MalformedRecordError(f"Incident {self.id} has no valid occurred_at")
        object.__setattr__(self, "type", IncidentType.parse(self.type))
        try:
            object.__setattr__(self, "severity", Severity(self.severity))
        except ValueError:
            raise MalformedRecordError(f"Incident {self.id} has invalid severity {self.severity!r}")


@dataclass(frozen=True)
class PollutionReading:
    id: str
    location: GeoPoint
    measured_at: datetime
    aqi: Optional[float] = None
    pm25: Optional[float] = None
    pm10: Optional[float] = None
    o3: Optional[float] = None
    no2: Optional[float] = None
    so2: Optional[float] = None
    co: Optional[float] = None
    source: ReadingSource = ReadingSource.API
    area: Optional[str] = None

    def __post_init__(self):
        if self.aqi is None and all(getattr(self, name) is None for name in POLLUTANT_FIELDS):
            raise MissingDataError(f"Reading {self.id} has neither an AQI nor a pollutant value")
        object.__setattr__(self, "source", ReadingSource(self.source))

    def concentrations(self) -> dict:
        """Pollutant concentrations that are present on this reading"""
        return {
            name: getattr(self, name)
            for name in POLLUTANT_FIELDS
            if getattr(self, name) is not None
        }


@dataclass(frozen=True)
class Cluster:
    centroid: GeoPoint
    members: Tuple[str, ...]
    size: int


@dataclass(frozen=True)
class RiskZone(Cluster):
    risk_level: RiskLevel
    dominant_type: str
    radius_meters: float
    high_severity_count: int = 0
    predicted_issues: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AQILevel:
    name: str
    color: str
    hex_color: str
    description: str
    range: Tuple[int, Optional[int]]


@dataclass(frozen=True)
class HealthGuidance:
    general: str
    sensitive: str
    actions: Tuple[str, ...]
    vulnerable: bool


@dataclass(frozen=True)
class PollutionZone(Cluster):
    max_aqi: int
    avg_aqi: int
    level: Optional[AQILevel] = None


@dataclass(frozen=True)
class ScoredReading:
    reading: PollutionReading
    aqi: int
    level: AQILevel
    dominant_pollutant: Optional[str] = None


@dataclass(frozen=True)
class SeriesPoint:
    bucket: datetime
    hour: int
    aqi: float
    count: int = 1


@dataclass(frozen=True)
class TrendResult:
    current: float
    previous: float
    change_pct: float
    direction: TrendDirection


@dataclass(frozen=True)
class IncidentStats:
    total_incidents: int
    high_risk_areas: int
    most_common_type: Optional[str]
    recent_count: int
    previous_count: int
    recent_trend: TrendDirection


@dataclass(frozen=True)
class PredictedAlert:
    id: str
    category: AlertCategory
    title: str
    description: str
    severity: Severity
    location: Optional[GeoPoint] = None
    action: Optional[str] = None
    predicted_date: Optional[datetime] = None


@dataclass(frozen=True)
class AirQualitySummary:
    latest: Optional[ScoredReading]
    peak: Optional[SeriesPoint]
    day_trend: TrendResult
    zones: List[PollutionZone] = field(default_factory=list)
    area_rankings: List[dict] = field(default_factory=list)
    guidance: Optional[HealthGuidance] = None
