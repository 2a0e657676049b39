"""
JSON extraction from LLM completions
"""
import json
import logging
from typing import Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import LLMResponseError

logger = logging.getLogger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)


def extract_json_object(content: str) -> str:
    """Strip markdown code fences and return the outermost {...} span"""
    text = content.strip()

    # Handle markdown code blocks
    if text.startswith('```'):
        lines = text.split('\n')
        lines = lines[1:]
        if lines and lines[-1].strip().startswith('```'):
            lines = lines[:-1]
        text = '\n'.join(lines).strip()

    start = text.find('{')
    end = text.rfind('}')
    if start == -1 or end < start:
        raise LLMResponseError(f"no JSON object in LLM response: {content[:200]!r}")
    return text[start:end + 1]


def parse_json_response(content: str, model_cls: Type[ModelT]) -> ModelT:
    """
    Parse an LLM completion into a pydantic model.

    Args:
        content: Raw completion text
        model_cls: Expected response schema

    Returns:
        Validated model instance

    Raises:
        LLMResponseError: If the content is not JSON or does not match the schema
    """
    raw = extract_json_object(content)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"invalid JSON in LLM response: {e}") from e

    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise LLMResponseError(f"LLM response does not match {model_cls.__name__}: {e}") from e
