"""
Search services package (hybrid scoring, presets).
"""

from .presets import PRESETS, SearchPresets
from .scoring import HybridScorer
from .service import HybridSearchService

__all__ = ["HybridScorer", "HybridSearchService", "PRESETS", "SearchPresets"]
