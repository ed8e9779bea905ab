"""
TubeRank - hybrid and graph-based retrieval over embedded video chunks.

This package filters, scores and re-ranks nearest-neighbour results from a
vector store, optionally through an in-memory semantic graph.
"""

__version__ = "0.1.0"
