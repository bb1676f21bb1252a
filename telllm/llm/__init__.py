"""LLM module - provides a chat-completion client for the session engine."""

from .base import LLMProvider, LLMMessage, LLMResponse
from .openai_provider import OpenAIProvider
from .factory import create_llm_provider
from .client import LLMClient

__all__ = [
    'LLMProvider',
    'LLMMessage',
    'LLMResponse',
    'OpenAIProvider',
    'create_llm_provider',
    'LLMClient',
]
