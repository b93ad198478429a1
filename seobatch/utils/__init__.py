"""Utility modules for batch processing."""

from .json_encoder import SeoBatchJSONEncoder
from .keywords import dedupe_keywords, parse_keywords, read_keyword_file
from .logging import get_logger, set_log_level

__all__ = [
    "SeoBatchJSONEncoder",
    "dedupe_keywords",
    "parse_keywords",
    "read_keyword_file",
    "get_logger",
    "set_log_level",
]
