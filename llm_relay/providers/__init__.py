"""
Providers package - HTTP clients for each backend vendor
"""

from .base import BaseProvider
from .openai import OpenAIProvider
from .claude import ClaudeProvider
from .gemini import GeminiProvider
from .azure import AzureProvider
from .factory import ProviderFactory

__all__ = [
    'BaseProvider',
    'OpenAIProvider',
    'ClaudeProvider',
    'GeminiProvider',
    'AzureProvider',
    'ProviderFactory'
]
