import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Sequence

from config import PREDICTION_CONFIG
from clustering.geo_math import distance_meters
from risk.risk_classifier import dominant_type
from src.data.models import (
    AlertCategory, IncidentEvent, IncidentType, PredictedAlert, ROAD_TYPES, RiskLevel, RiskZone,
    SECURITY_TYPES, Severity
)
from src.data.preprocessing import CivicDataPreprocessor, align_timezone

logger = logging.getLogger(__name__)


class PredictionRuleEngine:
    """Deterministic alert rules over recent incidents, risk zones and the clock.

    Rules run in a fixed order and each contributes zero or more alerts.
    The result is ordered high, then medium, then low, keeping rule order within a
    severity. ``now`` is always passed in; the engine never reads a clock.
    """

    def __init__(self, config: Dict = None):
        self.config = dict(PREDICTION_CONFIG)
        if config:
            self.config.update(config)
        self.rules: List[Callable] = [
            self.seasonal_fraud_rule,
            self.seasonal_pothole_rule,
            self.high_risk_zone_rule,
            self.road_accessibility_rule,
            self.security_surge_rule,
            self.weekend_traffic_rule
        ]

    def generate(self, recent_events: Iterable[Any], risk_zones: Sequence[RiskZone],
                 now: datetime) -> List[PredictedAlert]:
        """Evaluate every rule and return the triggered alerts by severity"""
        events = CivicDataPreprocessor().load_incidents(recent_events)

        alerts = []
        for rule in self.rules:
            triggered = rule(events, risk_zones, now)
            if triggered:
                logger.debug(f"{rule.__name__} triggered {len(triggered)} alert(s)")
            alerts.extend(triggered)

        # sorted() stays stable with reverse=True
        return sorted(alerts, key=lambda alert: alert.severity.rank, reverse=True)

    def _days_ago(self, event: IncidentEvent, now: datetime) -> float:
        occurred_at = align_timezone(event.occurred_at, now)
        return (now - occurred_at).total_seconds() / 86400

    def seasonal_fraud_rule(self, events, zones, now: datetime) -> List[PredictedAlert]:
        if now.month not in self.config["fraud_months"]:
            return []

        christmas = date(now.year, 12, 25)
        days_left = (christmas - now.date()).days
        if not 0 < days_left <= self.config["fraud_window_days"]:
            return []

        return [PredictedAlert(
            id="holiday-fraud",
            category=AlertCategory.SEASONAL,
            title="Holiday Fraud Alert",
            description=(
                f"With Christmas approaching ({days_left} days away), fraud and scam incidents "
                "typically increase by 40-60%. Be extra cautious of suspicious online shopping "
                "deals, fake charity calls, and phishing emails claiming to be from delivery services."
            ),
            severity=Severity.HIGH,
            action="Verify all online purchases, never share OTPs, and report suspicious activity immediately.",
            predicted_date=datetime(now.year, 12, 25, tzinfo=now.tzinfo)
        )]

    def seasonal_pothole_rule(self, events, zones, now: datetime) -> List[PredictedAlert]:
        if now.month not in self.config["monsoon_months"]:
            return []
        if not any(event.type is IncidentType.POTHOLE for event in events):
            return []

        return [PredictedAlert(
            id="monsoon-potholes",
            category=AlertCategory.SEASONAL,
            title="Monsoon Pothole Risk",
            description=(
                "Heavy monsoon rains are expected to cause new potholes and worsen existing ones. "
                "Areas with recent pothole reports are at higher risk. Road accessibility may be affected."
            ),
            severity=Severity.MEDIUM,
            action="Plan alternative routes, drive carefully, and report new potholes immediately."
        )]

    def high_risk_zone_rule(self, events, zones: Sequence[RiskZone], now: datetime) -> List[PredictedAlert]:
        high_zones = [zone for zone in zones if zone.risk_level is RiskLevel.HIGH]

        alerts = []
        for index, zone in enumerate(high_zones[:self.config["max_zone_alerts"]]):
            matching = [
                event for event in events
                if distance_meters(event.location, zone.centroid) <= self.config["zone_match_meters"]
            ]
            if not matching:
                continue

            top_type = dominant_type(matching)
            alerts.append(PredictedAlert(
                id=f"high-risk-zone-{index}",
                category=AlertCategory.LOCATION,
                title="High-Risk Area Alert",
                description=(
                    f"This area ({zone.centroid.lat:.4f}, {zone.centroid.lng:.4f}) has {zone.size} "
                    f"recent incidents, primarily {top_type}. Based on historical patterns, similar "
                    "issues are likely to occur here again soon."
                ),
                severity=Severity.HIGH,
                location=zone.centroid,
                action="Avoid this area if possible, or be extra vigilant when passing through."
            ))
        return alerts

    def road_accessibility_rule(self, events, zones, now: datetime) -> List[PredictedAlert]:
        road_events = [event for event in events if event.type in ROAD_TYPES]
        if len(road_events) < self.config["road_min_total"]:
            return []

        recent = [e for e in road_events if self._days_ago(e, now) <= self.config["road_recent_days"]]
        if len(recent) < self.config["road_min_recent"]:
            return []

        return [PredictedAlert(
            id="road-accessibility",
            category=AlertCategory.PATTERN,
            title="Road Accessibility Warning",
            description=(
                "Multiple road issues reported in the past week. Some roads may become inaccessible "
                "or dangerous. Check alternative routes before traveling."
            ),
            severity=Severity.MEDIUM,
            action="Check road conditions before traveling and report any new road hazards."
        )]

    def security_surge_rule(self, events, zones, now: datetime) -> List[PredictedAlert]:
        security_events = [event for event in events if event.type in SECURITY_TYPES]
        if len(security_events) < self.config["security_min_total"]:
            return []

        recent = [
            e for e in security_events
            if self._days_ago(e, now) <= self.config["security_recent_days"]
        ]
        if len(recent) < self.config["security_min_recent"]:
            return []

        return [PredictedAlert(
            id="security-surge",
            category=AlertCategory.PATTERN,
            title="Cybersecurity Threat Surge",
            description=(
                "Increased cybersecurity incidents detected in the area. Be extra cautious with "
                "online transactions, emails, and phone calls."
            ),
            severity=Severity.HIGH,
            action="Enable two-factor authentication, verify all communications, and report suspicious activity."
        )]

    def weekend_traffic_rule(self, events, zones, now: datetime) -> List[PredictedAlert]:
        if now.weekday() not in self.config["weekend_days"] or now.hour < self.config["weekend_min_hour"]:
            return []
        if not any(event.type in ROAD_TYPES for event in events):
            return []

        return [PredictedAlert(
            id="weekend-traffic",
            category=AlertCategory.TIME_BASED,
            title="Weekend Traffic Alert",
            description=(
                "Weekend evenings typically see increased traffic and road issues. Plan for longer "
                "travel times and potential road closures."
            ),
            severity=Severity.LOW,
            action="Plan routes in advance and allow extra travel time."
        )]

    def select_notifiable(self, alerts: Iterable[PredictedAlert]) -> List[PredictedAlert]:
        """Alerts important enough to become user notifications"""
        severities = {Severity(value) for value in self.config["notify_severities"]}
        return [alert for alert in alerts if alert.severity in severities]


def notification_message(alert: PredictedAlert) -> str:
    """Notification body for an alert"""
    if alert.action:
        return f"{alert.description}\n\nAction: {alert.action}"
    return alert.description
