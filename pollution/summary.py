import math
import logging
import pandas as pd
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from config import CLUSTERING_CONFIG, TREND_CONFIG
from clustering.proximity import ProximityClusterer
from src.data.exceptions import EmptySeriesError
from src.data.models import (
    AirQualitySummary, Cluster, PollutionReading, PollutionZone, ScoredReading
)
from src.data.preprocessing import align_timezone
from trends.trend_analyzer import TrendAnalyzer

from .aqi_scorer import AQIScorer

logger = logging.getLogger(__name__)


class PollutionSummarizer:
    def __init__(self, threshold_meters: float = None, scorer: AQIScorer = None):
        if threshold_meters is None:
            threshold_meters = CLUSTERING_CONFIG["pollution_threshold_meters"]
        self.scorer = scorer or AQIScorer()
        self.clusterer = ProximityClusterer(
            threshold_meters,
            location_of=lambda scored: scored.reading.location,
            id_of=lambda scored: scored.reading.id
        )
        self.trend_analyzer = TrendAnalyzer(scorer=self.scorer)

    def build_zone(self, cluster: Cluster, members: List[ScoredReading]) -> PollutionZone:
        """Attach max/average AQI to a frozen cluster of scored readings"""
        values = [scored.aqi for scored in members]
        max_aqi = max(values)
        avg_aqi = int(math.floor(sum(values) / len(values) + 0.5))

        return PollutionZone(
            centroid=cluster.centroid,
            members=cluster.members,
            size=cluster.size,
            max_aqi=max_aqi,
            avg_aqi=avg_aqi,
            level=self.scorer.classify(max_aqi)
        )

    def build_zones(self, readings: Iterable[PollutionReading]) -> List[PollutionZone]:
        """Score, cluster and summarise readings; unscorable readings are skipped"""
        scored = self.scorer.score_readings(readings)
        groups = self.clusterer.fit_groups(scored)
        zones = [self.build_zone(cluster, members) for cluster, members in groups]

        logger.info(f"Built {len(zones)} pollution zones from {len(scored)} readings")
        return zones

    def rank_areas(self, readings: Iterable[PollutionReading],
                   limit: int = None) -> List[Dict[str, Any]]:
        """Areas ordered by average AQI, worst first"""
        if limit is None:
            limit = TREND_CONFIG["area_rankings_limit"]

        df = pd.DataFrame(
            [
                {"area": scored.reading.area or "Unknown", "aqi": scored.aqi}
                for scored in self.scorer.score_readings(readings)
            ],
            columns=["area", "aqi"]
        )
        if df.empty:
            return []

        stats = df.groupby("area", sort=False)["aqi"].agg(["count", "mean"]).reset_index()
        stats = stats.sort_values("mean", ascending=False, kind="mergesort").head(limit)

        return [
            {"area": row["area"], "count": int(row["count"]), "avg_aqi": float(row["mean"])}
            for _, row in stats.iterrows()
        ]

    def summarize(self, readings: List[PollutionReading], now: datetime) -> AirQualitySummary:
        """AQI summary for a dashboard: latest value, peak hour, day trend, zones"""
        scored = self.scorer.score_readings(readings)
        latest: Optional[ScoredReading] = None
        if scored:
            latest = max(scored, key=lambda s: align_timezone(s.reading.measured_at, now))

        hourly = self.trend_analyzer.bucket_by_hour(readings)
        try:
            peak = self.trend_analyzer.peak_hour(hourly)
        except EmptySeriesError:
            # No peak to show
            peak = None

        return AirQualitySummary(
            latest=latest,
            peak=peak,
            day_trend=self.trend_analyzer.compare_days(readings, now),
            zones=self.build_zones(readings),
            area_rankings=self.rank_areas(readings),
            guidance=self.scorer.health_guidance(latest.aqi) if latest else None
        )
