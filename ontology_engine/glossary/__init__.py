"""
Business glossary: term management, SQL testing, LLM discovery and enrichment
"""
from .config import GlossaryConfig
from .domain_hints import (
    contains_entity_by_name,
    filter_inapplicable_terms,
    get_domain_hints,
    has_role_distinguishing_columns,
    matches_any,
)
from .models import SQLTestResult, EnrichmentSummary, SuggestedTerm, SuggestedTermsResponse, TermEnrichment
from .prompts import column_confusion_warnings, type_guidance
from .schema_context import SchemaContext
from .service import GlossaryService, is_test_term

__all__ = [
    'GlossaryConfig',
    'GlossaryService',
    'is_test_term',
    'SQLTestResult',
    'EnrichmentSummary',
    'SuggestedTerm',
    'SuggestedTermsResponse',
    'TermEnrichment',
    'SchemaContext',
    'contains_entity_by_name',
    'filter_inapplicable_terms',
    'get_domain_hints',
    'has_role_distinguishing_columns',
    'matches_any',
    'column_confusion_warnings',
    'type_guidance',
]
