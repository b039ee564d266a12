"""
Regulatory Feed Routes
======================

API route handlers for the Regulatory Feed Service.

Routes:
- pipeline: scrape, process, map-impact and full pipeline runs
"""

from services.regulatory_feed.routes import pipeline


__all__ = ["pipeline"]
