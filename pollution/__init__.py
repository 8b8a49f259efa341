"""Air-quality scoring and pollution zone summaries."""
