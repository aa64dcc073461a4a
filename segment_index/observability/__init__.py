"""
Observability package.

Exports:
  - configure_logging: Root logger setup
  - get_logger: Named logger accessor
"""

from segment_index.observability.logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
