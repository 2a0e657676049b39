"""
String and name heuristics
"""
from .inflection import normalize_table_name, singularize, pluralize
from .similarity import levenshtein_distance, closest_match
from .literals import extract_string_literals

__all__ = [
    'normalize_table_name',
    'singularize',
    'pluralize',
    'levenshtein_distance',
    'closest_match',
    'extract_string_literals',
]
