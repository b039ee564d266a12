"""
Regulatory Feed Service
=======================

Ingests circulars published by Indian regulators (RBI, SEBI, MCA, GST
Council), extracts their compliance impact with an LLM, and maps that
impact onto client compliance tasks.

Stages:
- scraping: per-source listing scrapers with recency filtering and URL dedup
- extraction: schema-constrained LLM extraction with bounded retry
- mapping: impact-to-client matching, task creation and high-risk alerts
- orchestrator: scrape -> process -> map for scheduled runs
"""

__version__ = "0.1.0"
