"""Aggregation store, refresh orchestration and scheduling."""
