"""
Function-call surface of the civic hotspot analytics core.

Callers hand in in-memory collections of incidents and readings and get back
risk zones, pollution zones, scored readings, trends and ranked alerts. No
I/O happens here and nothing is retained between calls.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, List, Sequence

from config import CLUSTERING_CONFIG
from clustering.proximity import ProximityClusterer
from pollution.aqi_scorer import AQIScorer
from pollution.summary import PollutionSummarizer
from prediction.rule_engine import PredictionRuleEngine
from risk.risk_classifier import RiskClassifier
from src.data.models import (
    AirQualitySummary, IncidentStats, PollutionReading, PollutionZone, PredictedAlert,
    RiskZone, ScoredReading, TrendResult
)
from src.data.preprocessing import CivicDataPreprocessor
from trends.trend_analyzer import SeriesEntry, TrendAnalyzer

logger = logging.getLogger(__name__)


def cluster_events(events: Iterable[Any], threshold_meters: float = None) -> List[RiskZone]:
    """Cluster incidents and classify each cluster into a risk zone"""
    if threshold_meters is None:
        threshold_meters = CLUSTERING_CONFIG["incident_threshold_meters"]

    incidents = CivicDataPreprocessor().load_incidents(events)
    groups = ProximityClusterer(threshold_meters).fit_groups(incidents)
    return RiskClassifier().classify_all(groups)


def cluster_readings(readings: Iterable[Any], threshold_meters: float = None) -> List[PollutionZone]:
    """Cluster pollution readings into zones with max and average AQI"""
    loaded = CivicDataPreprocessor().load_readings(readings)
    return PollutionSummarizer(threshold_meters).build_zones(loaded)


def score_reading(reading: PollutionReading) -> ScoredReading:
    """AQI and band for one reading"""
    return AQIScorer().score_reading(reading)


def analyze_trend(current_window: Iterable[Any], previous_window: Iterable[Any],
                  metric_extractor: Callable[[Any], float] = None) -> TrendResult:
    """Compare the mean metric of two windows"""
    return TrendAnalyzer().compare_periods(current_window, previous_window, metric_extractor)


def peak_hour(hourly_series: Sequence[SeriesEntry]) -> SeriesEntry:
    """Hour with the highest AQI; raises EmptySeriesError on an empty series"""
    return TrendAnalyzer().peak_hour(hourly_series)


def generate_predictions(recent_events: Iterable[Any], risk_zones: Sequence[RiskZone],
                         now: datetime) -> List[PredictedAlert]:
    """Ranked predictive alerts for the given moment"""
    alerts = PredictionRuleEngine().generate(recent_events, risk_zones, now)
    logger.info(f"Generated {len(alerts)} predicted alerts")
    return alerts


def summarize_air_quality(readings: Iterable[Any], now: datetime,
                          threshold_meters: float = None) -> AirQualitySummary:
    """Latest AQI, peak hour, day-over-day trend, zones and area rankings"""
    loaded = CivicDataPreprocessor().load_readings(readings)
    return PollutionSummarizer(threshold_meters).summarize(loaded, now)


def incident_stats(events: Iterable[Any], risk_zones: Sequence[RiskZone],
                   now: datetime) -> IncidentStats:
    """Total incidents, high-risk areas, most common type and 30-day trend"""
    incidents = CivicDataPreprocessor().load_incidents(events)
    return TrendAnalyzer().incident_stats(incidents, risk_zones, now)


def top_risk_zones(zones: Sequence[RiskZone], limit: int = None) -> List[RiskZone]:
    """Densest risk zones first"""
    return RiskClassifier().top_zones(zones, limit)
