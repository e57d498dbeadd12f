from .text import normalize, slugify, similarity, word_overlap, match_title, match_author
from .confidence import ConfidenceTier, MatchConfidence, classify

__all__ = [
    'normalize',
    'slugify',
    'similarity',
    'word_overlap',
    'match_title',
    'match_author',
    'ConfidenceTier',
    'MatchConfidence',
    'classify',
]
