"""Semantic Ranker - rank a persisted document list against a query with a
pretrained text-embedding model."""

__version__ = "0.1.0"
