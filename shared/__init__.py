"""
Regulatory Feed Shared Library
==============================

Common utilities, configuration, and abstractions used by the regulatory
feed service and its scripts.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - database: Async SQLAlchemy engine and session management
    - llm: LLM provider abstraction (Claude, OpenAI-compatible)
    - models: Shared Pydantic response models

Version: 0.1.0
"""

__version__ = "0.1.0"

from shared.config import settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
