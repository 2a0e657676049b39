"""
LLM transport and response parsing
"""
from .client import LLMClient, LLMClientFactory, LLMResponse
from .config import LLMConfig
from .ollama_client import OllamaClient
from .parsing import extract_json_object, parse_json_response

__all__ = [
    'LLMClient',
    'LLMClientFactory',
    'LLMResponse',
    'LLMConfig',
    'OllamaClient',
    'extract_json_object',
    'parse_json_response',
]
