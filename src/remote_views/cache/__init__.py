"""
Freshness-aware template caching.
"""
from .freshness import (
    Freshness,
    FreshnessDirectives,
    FreshnessPolicy,
    cache_control_from_headers,
    parse_cache_control
)
from .store import CacheEntry, CacheStats, TemplateCache

__all__ = [
    'Freshness',
    'FreshnessDirectives',
    'FreshnessPolicy',
    'cache_control_from_headers',
    'parse_cache_control',
    'CacheEntry',
    'CacheStats',
    'TemplateCache',
]
