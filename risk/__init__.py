"""Rule-based risk tiers for incident clusters."""
