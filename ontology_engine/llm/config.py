"""
Configuration for the LLM transport
"""
import os
from dataclasses import dataclass


@dataclass
class LLMConfig:
    """Configuration for the Ollama client with environment variable support"""

    base_url: str = "http://ollama:11434"
    model: str = "llama3.2:3b"
    timeout: int = 120
    max_retries: int = 3
    think: bool = False

    @classmethod
    def from_env(cls) -> 'LLMConfig':
        """Create configuration from environment variables"""
        return cls(
            base_url=os.getenv("OLLAMA_BASE_URL", "http://ollama:11434"),
            model=os.getenv("OLLAMA_MODEL", "llama3.2:3b"),
            timeout=int(os.getenv("OLLAMA_TIMEOUT", "120")),
            max_retries=int(os.getenv("OLLAMA_MAX_RETRIES", "3")),
            think=os.getenv("OLLAMA_THINK", "false").lower() == "true",
        )
