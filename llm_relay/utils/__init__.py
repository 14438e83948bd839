"""
Utilities package - logging and text helpers for llm-relay
"""

from .logging import setup_logging
from .json_cleaner import clean_json_response

__all__ = [
    'setup_logging',
    'clean_json_response'
]
