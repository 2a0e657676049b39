"""
Static checks for LLM-generated glossary SQL
"""
from .column_references import ColumnReferenceError, extract_table_aliases, validate_column_references
from .enum_values import EnumColumn, EnumMismatch, find_best_enum_match, validate_enum_values
from .semantics import validate_formula_semantics
from .tokens import sql_tokens, find_top_level_union

__all__ = [
    'ColumnReferenceError',
    'extract_table_aliases',
    'validate_column_references',
    'EnumColumn',
    'EnumMismatch',
    'find_best_enum_match',
    'validate_enum_values',
    'validate_formula_semantics',
    'sql_tokens',
    'find_top_level_union',
]
