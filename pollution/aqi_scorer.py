import math
import logging
from typing import Dict, List, Mapping, Optional, Tuple

from config import AQI_CONFIG, HEALTH_GUIDANCE
from src.data.exceptions import MissingDataError
from src.data.models import AQILevel, HealthGuidance, PollutionReading, ScoredReading

logger = logging.getLogger(__name__)


class AQIScorer:
    def __init__(self, breakpoints: Dict[str, List[Tuple]] = None):
        self.breakpoints = breakpoints or AQI_CONFIG["breakpoints"]
        self.levels = [
            AQILevel(
                name=level["name"],
                color=level["color"],
                hex_color=level["hex_color"],
                description=level["description"],
                range=level["range"]
            )
            for level in AQI_CONFIG["levels"]
        ]

    def concentration_to_aqi(self, pollutant: str, value: float) -> int:
        """Piecewise-linear EPA interpolation of a concentration into an AQI"""
        if pollutant not in self.breakpoints:
            raise ValueError(f"No breakpoint table for pollutant '{pollutant}'")
        if value is None or not math.isfinite(value):
            raise MissingDataError(f"No usable {pollutant} concentration")
        if value < 0:
            raise ValueError(f"{pollutant} concentration must be non-negative, got {value}")

        table = self.breakpoints[pollutant]
        # Gaps between published brackets fall into the next bracket;
        # values past the last bracket extrapolate on its slope
        c_low, c_high, aqi_low, aqi_high = next(
            (bracket for bracket in table if value <= bracket[1]), table[-1]
        )

        aqi = (aqi_high - aqi_low) / (c_high - c_low) * (value - c_low) + aqi_low
        # Half-up rounding
        return int(math.floor(aqi + 0.5))

    def sub_indices(self, concentrations: Mapping[str, Optional[float]]) -> Dict[str, int]:
        """Per-pollutant AQI for every pollutant with a breakpoint table"""
        return {
            pollutant: self.concentration_to_aqi(pollutant, value)
            for pollutant, value in concentrations.items()
            if pollutant in self.breakpoints and value is not None
        }

    def overall_aqi(self, concentrations: Mapping[str, Optional[float]]) -> int:
        """Worst pollutant dominates"""
        indices = self.sub_indices(concentrations)
        if not indices:
            raise MissingDataError("No PM2.5 or PM10 concentration to score")
        return max(indices.values())

    def classify(self, aqi: float) -> AQILevel:
        """Band for an AQI value; bands are contiguous from 0 upward"""
        if aqi < 0:
            raise ValueError(f"AQI must be non-negative, got {aqi}")
        for level in self.levels:
            upper = level.range[1]
            if upper is None or aqi <= upper:
                return level
        return self.levels[-1]

    def health_guidance(self, aqi: float) -> HealthGuidance:
        """Health advice matching the AQI band"""
        guidance = HEALTH_GUIDANCE[self.levels.index(self.classify(aqi))]
        return HealthGuidance(
            general=guidance["general"],
            sensitive=guidance["sensitive"],
            actions=tuple(guidance["actions"]),
            vulnerable=guidance["vulnerable"]
        )

    def score_reading(self, reading: PollutionReading) -> ScoredReading:
        """AQI for a reading from its pollutants, falling back to its raw AQI"""
        indices = {}
        for pollutant, value in reading.concentrations().items():
            if pollutant not in self.breakpoints:
                continue
            try:
                indices[pollutant] = self.concentration_to_aqi(pollutant, value)
            except (MissingDataError, ValueError) as e:
                logger.debug(f"Ignoring {pollutant} on reading {reading.id}: {e}")

        if indices:
            dominant = max(indices, key=indices.get)
            aqi = indices[dominant]
        elif reading.aqi is not None and math.isfinite(reading.aqi) and reading.aqi >= 0:
            dominant = None
            aqi = int(math.floor(reading.aqi + 0.5))
        else:
            raise MissingDataError(f"Reading {reading.id} has no usable AQI or PM value")

        return ScoredReading(
            reading=reading,
            aqi=aqi,
            level=self.classify(aqi),
            dominant_pollutant=dominant
        )

    def score_readings(self, readings) -> List[ScoredReading]:
        """Score a batch, skipping readings that cannot be scored"""
        scored = []
        for reading in readings:
            try:
                scored.append(self.score_reading(reading))
            except (MissingDataError, ValueError) as e:
                logger.warning(f"Skipping reading {getattr(reading, 'id', '?')}: {e}")
        return scored
