from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent
DATA_DIR = PROJECT_ROOT / "data"
OUTPUT_DIR = DATA_DIR / "output"

# Geodesy
EARTH_RADIUS_METERS = 6_371_000.0

# Clustering parameters
CLUSTERING_CONFIG = {
    "incident_threshold_meters": 1000.0,
    "pollution_threshold_meters": 2000.0,
    "top_zones_limit": 10
}

# Risk tier rules (thresholds are inclusive)
RISK_CONFIG = {
    "high_min_size": 5,
    "high_min_high_severity": 2,
    "medium_min_size": 3,
    "medium_min_high_severity": 1,
    "zone_radius_meters": 2000.0
}

# US EPA breakpoints: (C_low, C_high, AQI_low, AQI_high)
AQI_CONFIG = {
    "breakpoints": {
        "pm25": [
            (0.0, 12.0, 0, 50),
            (12.1, 35.4, 51, 100),
            (35.5, 55.4, 101, 150),
            (55.5, 150.4, 151, 200),
            (150.5, 250.4, 201, 300),
            (250.5, 350.4, 301, 400)
        ],
        "pm10": [
            (0.0, 54.0, 0, 50),
            (55.0, 154.0, 51, 100),
            (155.0, 254.0, 101, 150),
            (255.0, 354.0, 151, 200),
            (355.0, 424.0, 201, 300),
            (425.0, 504.0, 301, 400)
        ]
    },
    "levels": [
        {
            "name": "Good",
            "color": "green",
            "hex_color": "#10b981",
            "description": "Air quality is satisfactory",
            "range": (0, 50)
        },
        {
            "name": "Moderate",
            "color": "yellow",
            "hex_color": "#f59e0b",
            "description": "Acceptable air quality",
            "range": (51, 100)
        },
        {
            "name": "Unhealthy for Sensitive Groups",
            "color": "orange",
            "hex_color": "#f97316",
            "description": "Sensitive groups may experience effects",
            "range": (101, 150)
        },
        {
            "name": "Unhealthy",
            "color": "red",
            "hex_color": "#ef4444",
            "description": "Everyone may experience health effects",
            "range": (151, 200)
        },
        {
            "name": "Very Unhealthy",
            "color": "purple",
            "hex_color": "#991b1b",
            "description": "Health warnings of emergency conditions",
            "range": (201, 300)
        },
        {
            "name": "Hazardous",
            "color": "maroon",
            "hex_color": "#7f1d1d",
            "description": "Health alert: everyone may experience serious effects",
            "range": (301, None)
        }
    ]
}

# Per-band health guidance, same order as AQI_CONFIG["levels"]
HEALTH_GUIDANCE = [
    {
        "general": "Air quality is satisfactory. Enjoy outdoor activities.",
        "sensitive": "No special precautions needed.",
        "actions": [
            "Enjoy outdoor activities",
            "Open windows for fresh air",
            "Engage in outdoor exercise"
        ],
        "vulnerable": False
    },
    {
        "general": "Air quality is acceptable. Most people can enjoy outdoor activities.",
        "sensitive": "Sensitive individuals should limit prolonged outdoor exertion.",
        "actions": [
            "Most people can continue outdoor activities",
            "Sensitive groups should take breaks",
            "Consider reducing intense outdoor exercise"
        ],
        "vulnerable": True
    },
    {
        "general": "Unhealthy for sensitive groups. Everyone should be cautious.",
        "sensitive": "Sensitive groups should avoid prolonged outdoor activities.",
        "actions": [
            "Sensitive groups should stay indoors",
            "Everyone should limit outdoor exercise",
            "Keep windows closed",
            "Use air purifiers if available"
        ],
        "vulnerable": True
    },
    {
        "general": "Unhealthy air quality. Everyone may experience health effects.",
        "sensitive": "Sensitive groups should avoid all outdoor activities.",
        "actions": [
            "Avoid outdoor activities",
            "Stay indoors with windows closed",
            "Use air purifiers",
            "Wear N95 masks if going outside is necessary",
            "Postpone outdoor exercise"
        ],
        "vulnerable": True
    },
    {
        "general": "Very unhealthy. Health warnings for everyone.",
        "sensitive": "Everyone should avoid outdoor exposure.",
        "actions": [
            "Stay indoors",
            "Keep all windows and doors closed",
            "Use air purifiers",
            "Avoid physical exertion",
            "Wear N95 masks if going outside is unavoidable"
        ],
        "vulnerable": True
    },
    {
        "general": "Hazardous air quality. Health alert for everyone.",
        "sensitive": "Everyone should remain indoors and avoid all exertion.",
        "actions": [
            "Stay indoors",
            "Seal windows and doors",
            "Run air purifiers continuously",
            "Seek medical attention if symptoms appear"
        ],
        "vulnerable": True
    }
]

# Trend analysis parameters
TREND_CONFIG = {
    "dead_band_pct": 2.0,
    "histogram_window_days": 30,
    "area_rankings_limit": 10,
    "incident_window_days": 30,
    "incident_trend_band_pct": 20.0
}

# Prediction rule parameters
PREDICTION_CONFIG = {
    "fraud_months": (11, 12),
    "fraud_window_days": 30,
    "monsoon_months": (6, 7, 8, 9),
    "max_zone_alerts": 3,
    "zone_match_meters": 1000.0,
    "road_min_total": 3,
    "road_min_recent": 2,
    "road_recent_days": 7,
    "security_min_total": 5,
    "security_min_recent": 3,
    "security_recent_days": 14,
    "weekend_days": (4, 5),  # Friday, Saturday (Monday == 0)
    "weekend_min_hour": 17,
    "notify_severities": ("high", "medium")
}

# Logging configuration (batch runner only)
LOGGING_CONFIG = {
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "log_file": "analysis.log"
}

# File naming conventions
FILE_PATTERNS = {
    "analysis_results": "analysis_results_{timestamp}.json"
}
