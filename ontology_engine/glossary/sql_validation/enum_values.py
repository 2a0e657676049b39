"""
Detection of simplified or misspelled enum literals in generated SQL
"""
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Set, Tuple
import logging

from ...heuristics import extract_string_literals, levenshtein_distance
from .column_references import extract_table_aliases
from .tokens import (
    sql_tokens,
    is_punct,
    is_keyword,
    identifier_name,
    is_string_literal,
    string_value,
    is_equality,
    is_in_operator,
)

logger = logging.getLogger(__name__)

MAX_ENUM_DISTANCE = 3
MAX_LENGTH_DIFFERENCE = 5
MIN_LITERAL_LENGTH = 3

# Keywords that can sit next to a comparison without being a column
NON_COLUMN_KEYWORDS = {"AND", "OR", "NOT", "WHERE", "ON", "WHEN", "THEN", "ELSE", "CASE", "HAVING", "SELECT"}


@dataclass
class EnumColumn:
    """Column whose values are restricted to known literals"""
    table: str
    column: str
    values: List[str] = field(default_factory=list)


@dataclass
class EnumMismatch:
    """A SQL literal compared with an enum column that is not one of its values"""
    sql_value: str
    column: str
    table: str
    actual_values: List[str]
    best_match: Optional[str]
    match_distance: int

    @property
    def message(self) -> str:
        hint = f"did you mean '{self.best_match}'? " if self.best_match else ""
        return (
            f"invalid enum value '{self.sql_value}' for {self.table}.{self.column}; "
            f"{hint}Allowed values: "
            + ", ".join(f"'{v}'" for v in self.actual_values)
        )


def find_best_enum_match(
    literal_lower: str,
    known_enums: Dict[str, Tuple[EnumColumn, str]]
) -> Tuple[Optional[str], Optional[EnumColumn], int]:
    """
    Score a lowercased literal against every known enum value.

    A suffix match ('ended' vs 'transaction_state_ended') scores 0, a match on
    one underscore-separated part scores 1, otherwise the edit distance counts
    when lengths are within 5 and the distance is at most 3. Lowest score wins.

    Returns:
        (original-case best match, its column, score); (None, None, 999) if nothing is close
    """
    best_match = None
    best_column = None
    best_distance = 999

    for enum_lower, (column, original) in known_enums.items():
        if enum_lower.endswith("_" + literal_lower) or enum_lower.endswith(literal_lower):
            if best_distance > 0:
                best_distance, best_match, best_column = 0, original, column
            continue

        if literal_lower in enum_lower.split("_") and best_distance > 1:
            best_distance, best_match, best_column = 1, original, column

        if abs(len(literal_lower) - len(enum_lower)) <= MAX_LENGTH_DIFFERENCE:
            distance = levenshtein_distance(literal_lower, enum_lower)
            if distance <= MAX_ENUM_DISTANCE and distance < best_distance:
                best_distance, best_match, best_column = distance, original, column

    return best_match, best_column, best_distance


def _index_values(columns: List[EnumColumn]) -> Dict[str, Tuple[EnumColumn, str]]:
    known: Dict[str, Tuple[EnumColumn, str]] = {}
    for column in columns:
        for value in column.values:
            known.setdefault(value.lower(), (column, value))
    return known


def _column_name(token) -> Optional[str]:
    """Column-like name; column names such as status may lex as keywords"""
    name = identifier_name(token)
    if name is not None:
        return name
    if token is not None and token.is_keyword and token.normalized not in NON_COLUMN_KEYWORDS:
        return token.value
    return None


def _column_ending_at(tokens, j: int) -> Optional[Tuple[Optional[str], str]]:
    """[qualifier.]column[::type] whose last token is tokens[j]"""
    if j >= 2 and is_punct(tokens[j - 1], "::"):
        j -= 2
    if j < 0:
        return None
    name = _column_name(tokens[j])
    if name is None:
        return None
    if j >= 2 and is_punct(tokens[j - 1], "."):
        return identifier_name(tokens[j - 2]), name
    return None, name


def _column_starting_at(tokens, j: int) -> Optional[Tuple[Optional[str], str]]:
    """[qualifier.]column whose first token is tokens[j]"""
    if j >= len(tokens):
        return None
    name = _column_name(tokens[j])
    if name is None:
        return None
    if j + 2 < len(tokens) and is_punct(tokens[j + 1], "."):
        column = _column_name(tokens[j + 2])
        return (identifier_name(tokens[j]), column) if column is not None else None
    return None, name


def compared_column(tokens, i: int) -> Optional[Tuple[Optional[str], str]]:
    """
    Find the column the literal at tokens[i] is compared with.

    Handles `col = 'x'`, `col <> 'x'`, `col != 'x'`, `'x' = col` and
    `col [NOT] IN ('x', 'y')`, with an optional `alias.` qualifier.

    Returns:
        (qualifier or None, column name), or None when the literal is not in
        an equality or IN comparison with a column
    """
    k = i - 1
    while k >= 0 and (is_string_literal(tokens[k]) or is_punct(tokens[k], ",")):
        k -= 1
    if k >= 1 and is_punct(tokens[k], "(") and is_in_operator(tokens[k - 1]):
        j = k - 2
        if j >= 0 and is_keyword(tokens[j], "NOT"):
            j -= 1
        return _column_ending_at(tokens, j)

    if i >= 1 and is_equality(tokens[i - 1]):
        return _column_ending_at(tokens, i - 2)
    if i + 1 < len(tokens) and is_equality(tokens[i + 1]):
        return _column_starting_at(tokens, i + 2)
    return None


def _resolve_enum_columns(
    reference: Tuple[Optional[str], str],
    aliases: Dict[str, Optional[str]],
    in_scope: Set[str],
    enum_columns: List[EnumColumn]
) -> List[EnumColumn]:
    qualifier, name = reference
    matching = [column for column in enum_columns if column.column.lower() == name.lower()]

    if qualifier is not None:
        table = aliases.get(qualifier.lower(), qualifier.lower())
        return [column for column in matching if table is not None and column.table.lower() == table]
    if in_scope:
        return [column for column in matching if column.table.lower() in in_scope]
    return matching


def _warn_possible_enum_literals(literals: List[str], enum_columns: List[EnumColumn]) -> None:
    """Log literals that resemble an enum value but are not compared with that column"""
    known_enums = _index_values(enum_columns)
    for literal in literals:
        literal_lower = literal.lower()
        if len(literal) < MIN_LITERAL_LENGTH or literal_lower in known_enums:
            continue
        best_match, column, distance = find_best_enum_match(literal_lower, known_enums)
        if best_match is not None and distance <= MAX_ENUM_DISTANCE:
            logger.warning(
                f"Literal '{literal}' resembles {column.table}.{column.column} value "
                f"'{best_match}' but is not compared with that column"
            )


def validate_enum_values(sql: str, enum_columns: List[EnumColumn]) -> List[EnumMismatch]:
    """
    Check literals compared with enum columns against that column's values.

    A literal counts only when it is compared with a known enum column by
    equality or IN. It must then equal one of the column's values, ignoring
    case. Literals compared with other columns are never reported, only
    logged when they look like an enum value.

    Args:
        sql: Generated SQL
        enum_columns: Enum columns of the schema with their exact values

    Returns:
        One mismatch per offending literal, in source order
    """
    if not any(column.values for column in enum_columns) or not extract_string_literals(sql):
        return []

    tokens = sql_tokens(sql)
    aliases = extract_table_aliases(sql)
    in_scope = {table for table in aliases.values() if table is not None}

    mismatches = []
    unattributed = []
    for i, token in enumerate(tokens):
        if not is_string_literal(token):
            continue
        literal = string_value(token)
        if not literal:
            continue

        reference = compared_column(tokens, i)
        columns = _resolve_enum_columns(reference, aliases, in_scope, enum_columns) if reference else []
        if not columns:
            unattributed.append(literal)
            continue

        literal_lower = literal.lower()
        if any(literal_lower == value.lower() for column in columns for value in column.values):
            continue

        column = columns[0]
        best_match, _, distance = find_best_enum_match(literal_lower, _index_values([column]))
        mismatches.append(EnumMismatch(
            sql_value=literal,
            column=column.column,
            table=column.table,
            actual_values=list(column.values),
            best_match=best_match,
            match_distance=distance,
        ))

    _warn_possible_enum_literals(unattributed, enum_columns)
    return mismatches
