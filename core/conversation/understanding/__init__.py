"""Entity extraction and age normalization components"""

from .age_normalizer import AgeNormalizer, age_from_date, parse_ambiguous_date, looks_like_date
from .entity_extractor import (
    EntityExtractor,
    NamePattern,
    DatePattern,
    AgePattern,
    GenderKeywordSet,
    clean_name,
)

__all__ = [
    'AgeNormalizer',
    'age_from_date',
    'parse_ambiguous_date',
    'looks_like_date',
    'EntityExtractor',
    'NamePattern',
    'DatePattern',
    'AgePattern',
    'GenderKeywordSet',
    'clean_name',
]
