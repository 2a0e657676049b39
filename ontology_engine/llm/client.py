"""
LLM client interface and factory
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional
from uuid import UUID
import logging

from .config import LLMConfig

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Completion text plus token accounting"""
    content: str
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class LLMClient(ABC):
    """Free-text completion endpoint"""

    @abstractmethod
    def generate_response(
        self,
        prompt: str,
        system_message: str = "",
        temperature: float = 0.3,
        thinking: bool = False
    ) -> LLMResponse:
        """
        Generate a completion for the prompt.

        Args:
            prompt: User prompt
            system_message: System instructions
            temperature: Sampling temperature (0-1)
            thinking: Whether the model may emit a reasoning trace

        Returns:
            LLMResponse with the raw completion text
        """
        pass


class LLMClientFactory:
    """Builds an LLM client for a project"""

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        config_resolver: Optional[Callable[[UUID], LLMConfig]] = None
    ):
        self.config = config or LLMConfig.from_env()
        self.config_resolver = config_resolver

    def create_for_project(self, project_id: UUID) -> LLMClient:
        """Create a client using the project's LLM settings, or the defaults"""
        from .ollama_client import OllamaClient

        config = self.config_resolver(project_id) if self.config_resolver else self.config
        logger.debug(f"Creating LLM client for project {project_id}: model={config.model}")
        return OllamaClient(config)
