"""
Result types and LLM response schemas for the glossary service
"""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from pydantic import BaseModel, Field, field_validator

from ..models import OutputColumn


@dataclass
class SQLTestResult:
    """Outcome of test-executing a defining query; invalid SQL is a result, not an error"""
    valid: bool
    error: str = ""
    output_columns: List[OutputColumn] = field(default_factory=list)
    sample_row: Optional[Dict[str, Any]] = None


@dataclass
class EnrichmentSummary:
    enriched: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.enriched + self.failed


class _LLMResponse(BaseModel):

    @field_validator('aliases', mode='before', check_fields=False)
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value


class SuggestedTerm(_LLMResponse):
    """One discovered term; discovery never carries SQL"""
    term: str
    definition: str = ""
    aliases: List[str] = Field(default_factory=list)


class SuggestedTermsResponse(BaseModel):
    terms: List[SuggestedTerm] = Field(default_factory=list)


class TermEnrichment(_LLMResponse):
    """Enrichment payload for a single term"""
    defining_sql: str = ""
    base_table: str = ""
    aliases: List[str] = Field(default_factory=list)
