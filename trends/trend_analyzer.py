import logging
import pandas as pd
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from config import TREND_CONFIG
from pollution.aqi_scorer import AQIScorer
from risk.risk_classifier import dominant_type
from src.data.exceptions import EmptySeriesError
from src.data.models import (
    IncidentEvent, IncidentStats, PollutionReading, RiskLevel, RiskZone, SeriesPoint,
    TrendDirection, TrendResult
)
from src.data.preprocessing import align_timezone, to_utc

logger = logging.getLogger(__name__)

SeriesEntry = Union[SeriesPoint, Mapping[str, Any]]


def _field(entry: SeriesEntry, name: str, default: Any = None) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(name, default)
    return getattr(entry, name, default)


class TrendAnalyzer:
    def __init__(self, dead_band_pct: float = None, scorer: AQIScorer = None):
        if dead_band_pct is None:
            dead_band_pct = TREND_CONFIG["dead_band_pct"]
        self.dead_band_pct = dead_band_pct
        self.scorer = scorer or AQIScorer()

    def _mean(self, values: Iterable[float]) -> float:
        values = [float(v) for v in values if v is not None]
        if not values:
            return 0.0
        return sum(values) / len(values)

    def compare_periods(self, current_set: Iterable[Any], previous_set: Iterable[Any],
                        metric: Callable[[Any], float] = None) -> TrendResult:
        """Compare the mean of a metric across two windows"""
        if metric is not None:
            current_set = [metric(item) for item in current_set]
            previous_set = [metric(item) for item in previous_set]

        current = self._mean(current_set)
        previous = self._mean(previous_set)
        return self.trend_from_values(current, previous)

    def trend_from_values(self, current: float, previous: float) -> TrendResult:
        """Change and direction between two aggregate values"""
        if previous == 0:
            # No baseline: report no change instead of dividing by zero
            return TrendResult(current=current, previous=previous,
                               change_pct=0.0, direction=TrendDirection.STABLE)

        change_pct = (current - previous) / previous * 100
        if change_pct > self.dead_band_pct:
            direction = TrendDirection.UP
        elif change_pct < -self.dead_band_pct:
            direction = TrendDirection.DOWN
        else:
            direction = TrendDirection.STABLE

        return TrendResult(current=current, previous=previous,
                           change_pct=change_pct, direction=direction)

    def peak_hour(self, hourly_series: Sequence[SeriesEntry]) -> SeriesEntry:
        """Entry with the highest AQI; ties go to the earliest hour.

        Entries are SeriesPoint objects or ``{"hour", "aqi"}`` mappings.
        Raises EmptySeriesError when the series is empty.
        """
        if not hourly_series:
            raise EmptySeriesError("Cannot find a peak hour in an empty series")

        def earliness(position_entry):
            position, entry = position_entry
            bucket = _field(entry, "bucket")
            if bucket is not None:
                return (0, bucket, position)
            return (1, _field(entry, "hour", 0), position)

        ordered = [entry for _, entry in sorted(enumerate(hourly_series), key=earliness)]

        peak = ordered[0]
        for entry in ordered[1:]:
            if _field(entry, "aqi") > _field(peak, "aqi"):
                peak = entry
        return peak

    def _readings_frame(self, readings: Iterable[PollutionReading], freq: str) -> pd.DataFrame:
        rows = []
        for scored in self.scorer.score_readings(readings):
            # Buckets are UTC so naive and aware readings share one axis
            measured_at = to_utc(scored.reading.measured_at)
            if freq == "hour":
                bucket = measured_at.replace(minute=0, second=0, microsecond=0)
            else:
                bucket = measured_at.replace(hour=0, minute=0, second=0, microsecond=0)
            rows.append({"bucket": bucket, "aqi": float(scored.aqi)})
        return pd.DataFrame(rows, columns=["bucket", "aqi"])

    def _bucket(self, readings: Iterable[PollutionReading], freq: str) -> List[SeriesPoint]:
        df = self._readings_frame(readings, freq)
        if df.empty:
            return []

        grouped = df.groupby("bucket", sort=True)["aqi"].agg(["mean", "count"])

        series = []
        for bucket, row in grouped.iterrows():
            bucket = pd.Timestamp(bucket).to_pydatetime()
            series.append(SeriesPoint(
                bucket=bucket,
                hour=bucket.hour,
                aqi=float(row["mean"]),
                count=int(row["count"])
            ))
        return series

    def bucket_by_hour(self, readings: Iterable[PollutionReading]) -> List[SeriesPoint]:
        """Average AQI per clock hour, chronological"""
        return self._bucket(readings, "hour")

    def bucket_by_day(self, readings: Iterable[PollutionReading]) -> List[SeriesPoint]:
        """Average AQI per calendar day, chronological"""
        return self._bucket(readings, "day")

    def compare_days(self, readings: Iterable[PollutionReading], now: datetime) -> TrendResult:
        """Today's average AQI against yesterday's"""
        today = now.date()
        yesterday = today - timedelta(days=1)

        current, previous = [], []
        for scored in self.scorer.score_readings(readings):
            day = align_timezone(scored.reading.measured_at, now).date()
            if day == today:
                current.append(scored.aqi)
            elif day == yesterday:
                previous.append(scored.aqi)

        return self.compare_periods(current, previous)

    def type_histogram(self, events: Iterable[IncidentEvent], now: datetime,
                       window_days: Optional[int] = None) -> Dict[str, int]:
        """Incident counts per type over the trailing window ending at now"""
        if window_days is None:
            window_days = TREND_CONFIG["histogram_window_days"]
        cutoff = now - timedelta(days=window_days)

        types = [
            event.type.value
            for event in events
            if align_timezone(event.occurred_at, now) >= cutoff
        ]
        if not types:
            return {}
        counts = pd.Series(types).value_counts()
        return {incident_type: int(count) for incident_type, count in counts.items()}

    def incident_stats(self, events: Sequence[IncidentEvent], risk_zones: Sequence[RiskZone],
                       now: datetime, window_days: Optional[int] = None) -> IncidentStats:
        """Headline incident numbers: totals, high-risk areas, top type and recent trend.

        The trend compares the trailing window with the window before it and
        only moves off STABLE when the count changes by more than
        ``incident_trend_band_pct``.
        """
        if window_days is None:
            window_days = TREND_CONFIG["incident_window_days"]
        band = TREND_CONFIG["incident_trend_band_pct"] / 100

        recent_start = now - timedelta(days=window_days)
        previous_start = now - timedelta(days=2 * window_days)

        recent_count = 0
        previous_count = 0
        for event in events:
            occurred_at = align_timezone(event.occurred_at, now)
            if occurred_at >= recent_start:
                recent_count += 1
            elif occurred_at >= previous_start:
                previous_count += 1

        if recent_count > previous_count * (1 + band):
            trend = TrendDirection.UP
        elif recent_count < previous_count * (1 - band):
            trend = TrendDirection.DOWN
        else:
            trend = TrendDirection.STABLE

        return IncidentStats(
            total_incidents=len(events),
            high_risk_areas=sum(1 for zone in risk_zones if zone.risk_level is RiskLevel.HIGH),
            most_common_type=dominant_type(events) if events else None,
            recent_count=recent_count,
            previous_count=previous_count,
            recent_trend=trend
        )
