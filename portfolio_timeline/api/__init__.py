"""HTTP API over the in-memory portfolio timeline."""
