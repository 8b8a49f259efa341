"""Rule-based predictive alerts."""
