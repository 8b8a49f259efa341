"""Period-over-period trends and time bucketing."""
