"""ABOUTME: Creature catalog aggregation and search orchestration.
ABOUTME: Wraps a graph-query list provider, a REST detail provider, and a semantic fallback."""

__version__ = "0.1.0"
