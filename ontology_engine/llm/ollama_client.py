"""
Ollama client for LLM inference
"""
import logging
import requests

from ..observability import trace_llm_call
from .client import LLMClient, LLMResponse
from .config import LLMConfig

logger = logging.getLogger(__name__)


class OllamaClient(LLMClient):
    """Client for the Ollama generate API"""

    def __init__(self, config: LLMConfig):
        self.config = config
        self.session = requests.Session()

    @trace_llm_call("ollama_generate")
    def generate_response(
        self,
        prompt: str,
        system_message: str = "",
        temperature: float = 0.3,
        thinking: bool = False
    ) -> LLMResponse:
        url = f"{self.config.base_url}/api/generate"

        payload = {
            "model": self.config.model,
            "prompt": prompt,
            "stream": False,
            "think": thinking or self.config.think,
            "options": {
                "temperature": temperature,
            }
        }
        if system_message:
            payload["system"] = system_message

        last_error = None
        for attempt in range(max(self.config.max_retries, 1)):
            try:
                response = self.session.post(url, json=payload, timeout=self.config.timeout)
                response.raise_for_status()
                result = response.json()
                return LLMResponse(
                    content=result.get('response', ''),
                    prompt_tokens=result.get('prompt_eval_count', 0),
                    completion_tokens=result.get('eval_count', 0),
                )
            except requests.RequestException as e:
                last_error = e
                logger.error(f"Ollama call failed on attempt {attempt + 1}: {e}")

        raise last_error
