#!/usr/bin/env python3
"""
Batch Analysis Script for Civic Hotspot Analytics
Clusters incidents into risk zones, summarises air quality and generates alerts
"""

import sys
import os
import json
import argparse
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from enum import Enum

# Add project root to path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from clustering.proximity import ProximityClusterer
from config import CLUSTERING_CONFIG, FILE_PATTERNS, LOGGING_CONFIG, OUTPUT_DIR
from pollution.summary import PollutionSummarizer
from prediction.rule_engine import PredictionRuleEngine, notification_message
from risk.risk_classifier import RiskClassifier
from src.data.preprocessing import CivicDataPreprocessor, parse_timestamp
from trends.trend_analyzer import TrendAnalyzer

def setup_logging(log_level=logging.INFO):
    """Setup logging configuration"""
    logging.basicConfig(
        level=log_level,
        format=LOGGING_CONFIG["format"],
        handlers=[
            logging.FileHandler(LOGGING_CONFIG["log_file"]),
            logging.StreamHandler(sys.stdout)
        ]
    )
    return logging.getLogger(__name__)

def load_records(path):
    """Load a JSON array of records, or an object wrapping one under 'data'"""
    logger = logging.getLogger(__name__)

    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)

    if isinstance(payload, dict):
        payload = payload.get("data", [])
    if not isinstance(payload, list):
        raise ValueError(f"{path} does not contain a list of records")

    logger.info(f"Loaded {len(payload)} records from {path}")
    return payload

def _jsonable(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)

def run_incident_analysis(records, now, threshold_meters):
    """Cluster incidents, classify risk zones and generate alerts"""
    logger = logging.getLogger(__name__)

    preprocessor = CivicDataPreprocessor()
    events = preprocessor.load_incidents(records)
    if preprocessor.rejected:
        logger.warning(f"Rejected {len(preprocessor.rejected)} malformed incident records")

    clusterer = ProximityClusterer(threshold_meters)
    groups = clusterer.fit_groups(events)
    zones = RiskClassifier().classify_all(groups)

    if groups:
        logger.info(f"Silhouette score: {clusterer.cluster_quality(groups):.3f}")

    engine = PredictionRuleEngine()
    alerts = engine.generate(events, zones, now)
    notifications = [
        {"id": alert.id, "title": alert.title, "message": notification_message(alert)}
        for alert in engine.select_notifiable(alerts)
    ]

    logger.info(f"Risk zones: {len(zones)}, alerts: {len(alerts)}, notifications: {len(notifications)}")

    trend_analyzer = TrendAnalyzer()
    stats = trend_analyzer.incident_stats(events, zones, now)
    logger.info(f"Most common type: {stats.most_common_type}, recent trend: {stats.recent_trend.value}")

    return {
        "events": len(events),
        "stats": asdict(stats),
        "type_histogram": trend_analyzer.type_histogram(events, now),
        "risk_zones": [asdict(zone) for zone in zones],
        "alerts": [asdict(alert) for alert in alerts],
        "notifications": notifications
    }

def run_air_quality_analysis(records, now, threshold_meters):
    """Score readings and build the air-quality summary"""
    logger = logging.getLogger(__name__)

    preprocessor = CivicDataPreprocessor()
    readings = preprocessor.load_readings(records)
    if preprocessor.rejected:
        logger.warning(f"Rejected {len(preprocessor.rejected)} malformed pollution records")

    summary = PollutionSummarizer(threshold_meters).summarize(readings, now)

    if summary.latest is not None:
        logger.info(f"Latest AQI: {summary.latest.aqi} ({summary.latest.level.name})")
    logger.info(f"Day trend: {summary.day_trend.direction.value} ({summary.day_trend.change_pct:.1f}%)")

    return asdict(summary)

def export_results(results, output_path=None):
    """Write results to JSON and return the file path"""
    if output_path is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        output_path = OUTPUT_DIR / FILE_PATTERNS["analysis_results"].format(timestamp=timestamp)

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(results, f, indent=2, default=_jsonable)

    return output_path

def main():
    """Main function"""
    parser = argparse.ArgumentParser(
        description="Run civic incident and air-quality analytics over exported records"
    )

    parser.add_argument(
        "--events",
        type=str,
        help="JSON file of incident reports"
    )

    parser.add_argument(
        "--readings",
        type=str,
        help="JSON file of pollution readings"
    )

    parser.add_argument(
        "--now",
        type=str,
        help="Analysis moment as an ISO timestamp (default: current UTC time)"
    )

    parser.add_argument(
        "--output",
        type=str,
        help="Output JSON file (default: timestamped file under data/output)"
    )

    parser.add_argument(
        "--incident-threshold",
        type=float,
        default=CLUSTERING_CONFIG["incident_threshold_meters"],
        help="Incident clustering distance in meters"
    )

    parser.add_argument(
        "--pollution-threshold",
        type=float,
        default=CLUSTERING_CONFIG["pollution_threshold_meters"],
        help="Pollution clustering distance in meters"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    # Setup logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logger = setup_logging(log_level)

    if not args.events and not args.readings:
        logger.error("Nothing to analyse: pass --events and/or --readings")
        sys.exit(1)

    now = parse_timestamp(args.now) if args.now else datetime.now(timezone.utc)
    if now is None:
        logger.error(f"Could not parse --now value: {args.now}")
        sys.exit(1)

    try:
        results = {"generated_at": now.isoformat()}

        if args.events:
            logger.info("Running incident analysis...")
            results["incidents"] = run_incident_analysis(
                load_records(args.events), now, args.incident_threshold
            )

        if args.readings:
            logger.info("Running air-quality analysis...")
            results["air_quality"] = run_air_quality_analysis(
                load_records(args.readings), now, args.pollution_threshold
            )

        output_file = export_results(results, args.output)
        logger.info(f"Results exported to: {output_file}")
        sys.exit(0)

    except KeyboardInterrupt:
        logger.info("Operation interrupted by user")
        sys.exit(1)
    except (OSError, ValueError) as e:
        logger.error(f"Analysis failed: {str(e)}")
        sys.exit(1)

if __name__ == "__main__":
    main()
