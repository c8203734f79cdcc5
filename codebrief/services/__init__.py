"""Digest services: aggregation, ranking, delivery, and retries."""
