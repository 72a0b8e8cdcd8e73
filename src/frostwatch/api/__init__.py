"""HTTP API for Frostwatch."""
