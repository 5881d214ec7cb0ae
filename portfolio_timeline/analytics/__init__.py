"""Timeline replay and read-only summaries."""
