"""
Services
========

Services:
- regulatory_feed: regulatory circular ingestion and compliance impact mapping
"""

__all__ = [
    "regulatory_feed",
]
