"""
API package - FastAPI surface for llm-relay
"""

from .app import create_app

__all__ = ['create_app']
