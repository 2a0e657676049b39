"""
Column existence checks for generated SQL
"""
from dataclasses import dataclass
from typing import List, Dict, Optional, Set

from ...heuristics import closest_match
from .tokens import sql_tokens, is_punct, is_keyword, is_join, identifier_name

# Functions, date parts and type names that lex as plain names
NON_COLUMN_WORDS = {
    "EXTRACT", "DATE_PART", "DATE_TRUNC", "EPOCH", "NOW", "COALESCE", "NULLIF",
    "FILTER", "INTERVAL", "CURRENT_DATE", "CURRENT_TIME", "CURRENT_TIMESTAMP",
    "COUNT", "SUM", "AVG", "MIN", "MAX", "ROUND", "CAST", "GREATEST", "LEAST",
    "CENTURY", "DECADE", "YEAR", "QUARTER", "MONTH", "WEEK", "DAY", "DOW", "DOY",
    "HOUR", "MINUTE", "SECOND", "MILLISECONDS", "MICROSECONDS", "ISODOW", "ISOYEAR",
    "TRUE", "FALSE", "NULL", "DISTINCT",
    "INT", "INTEGER", "BIGINT", "SMALLINT", "NUMERIC", "DECIMAL", "FLOAT", "REAL",
    "DOUBLE", "PRECISION", "TEXT", "VARCHAR", "CHAR", "BOOLEAN", "BOOL", "DATE",
    "TIME", "TIMESTAMP", "TIMESTAMPTZ", "UUID", "JSON", "JSONB",
}


@dataclass
class ColumnReferenceError:
    """Reference to a column that does not exist in the resolved table(s)"""
    column: str
    table: str
    suggestion: Optional[str]
    message: str


CLAUSE_KEYWORDS = {
    "SELECT", "WHERE", "ON", "USING", "GROUP BY", "ORDER BY", "HAVING", "LIMIT",
    "OFFSET", "UNION", "UNION ALL", "LATERAL", "AS", "WITH", "FILTER", "WINDOW",
}


def _relation_name(token) -> Optional[str]:
    """Table name in FROM/JOIN position; table names may lex as non-reserved keywords"""
    name = identifier_name(token)
    if name is not None:
        return name
    if is_keyword(token) and token.normalized not in CLAUSE_KEYWORDS and not is_join(token):
        return token.value
    return None


def _register_relation(tokens, index: int, aliases: Dict[str, Optional[str]]) -> int:
    """
    Record `table [AS] alias` starting at tokens[index]; returns the next index.

    Schema-qualified names resolve to their last part. Aliases of subqueries
    map to None, meaning the relation has no known columns.
    """
    name = _relation_name(tokens[index]) if index < len(tokens) else None
    if name is None:
        return index

    while index + 2 < len(tokens) and is_punct(tokens[index + 1], "."):
        next_name = _relation_name(tokens[index + 2])
        if next_name is None:
            break
        name = next_name
        index += 2

    table = name.lower()
    aliases.setdefault(table, table)
    index += 1

    if is_keyword(tokens[index] if index < len(tokens) else None, "AS"):
        index += 1
    alias = identifier_name(tokens[index]) if index < len(tokens) else None
    if alias is not None:
        aliases[alias.lower()] = table
        index += 1
    return index


def _is_extract_from(tokens, index: int) -> bool:
    """EXTRACT(field FROM expr) uses FROM without naming a relation"""
    return index >= 3 and tokens[index - 3].value.upper() == "EXTRACT" and is_punct(tokens[index - 2], "(")


def extract_table_aliases(sql: str) -> Dict[str, Optional[str]]:
    """
    Map aliases to table names from FROM and JOIN clauses.

    Every table also maps to itself. CTE names and subquery aliases map to
    None since their columns are not part of the schema.
    """
    tokens = sql_tokens(sql)
    aliases: Dict[str, Optional[str]] = {}
    # one entry per open parenthesis: True when it opens a subquery in FROM/JOIN
    relation_parens: List[bool] = []

    i = 0
    while i < len(tokens):
        token = tokens[i]

        # CTE: name AS (
        name = identifier_name(token)
        if (name is not None and i + 2 < len(tokens)
                and is_keyword(tokens[i + 1], "AS") and is_punct(tokens[i + 2], "(")):
            aliases[name.lower()] = None
            i += 1
            continue

        if is_punct(token, "("):
            prev_token = tokens[i - 1] if i > 0 else None
            relation_parens.append(
                (is_keyword(prev_token, "FROM") and not _is_extract_from(tokens, i - 1))
                or is_join(prev_token)
                or is_keyword(prev_token, "LATERAL")
            )

        # Subquery alias: ) [AS] name
        if is_punct(token, ")") and relation_parens and relation_parens.pop() and i + 1 < len(tokens):
            j = i + 2 if is_keyword(tokens[i + 1], "AS") else i + 1
            alias = identifier_name(tokens[j]) if j < len(tokens) else None
            if alias is not None:
                aliases.setdefault(alias.lower(), None)

        if (is_keyword(token, "FROM") and not _is_extract_from(tokens, i)) or is_join(token):
            j = _register_relation(tokens, i + 1, aliases)
            # FROM a x, b y
            while j < len(tokens) and is_punct(tokens[j], ",") and is_keyword(token, "FROM"):
                k = _register_relation(tokens, j + 1, aliases)
                if k == j + 1:
                    break
                j = k
            i = max(j, i + 1)
            continue

        i += 1

    return aliases


def _output_aliases(tokens) -> Set[str]:
    """Names introduced with AS that are not CTE definitions"""
    names = set()
    for i, token in enumerate(tokens[:-1]):
        if not is_keyword(token, "AS"):
            continue
        name = identifier_name(tokens[i + 1])
        if name is not None and not (i + 2 < len(tokens) and is_punct(tokens[i + 2], "(")):
            names.add(name.lower())
    return names


def validate_column_references(sql: str, columns_by_table: Dict[str, List[str]]) -> List[ColumnReferenceError]:
    """
    Check every column reference in the SQL against the schema.

    Args:
        sql: Generated SQL
        columns_by_table: Column names keyed by table name

    Returns:
        One error per distinct unknown reference, in source order
    """
    schema = {
        table.lower(): {column.lower(): column for column in columns}
        for table, columns in columns_by_table.items()
    }
    tokens = sql_tokens(sql)
    aliases = extract_table_aliases(sql)
    output_aliases = _output_aliases(tokens)

    # CTEs, subqueries and tables outside the schema hide where an unqualified name comes from
    unqualified_checked = all(table is not None and table in schema for table in aliases.values())
    in_scope = sorted({table for table in aliases.values() if table is not None}) or sorted(schema)

    errors: List[ColumnReferenceError] = []
    seen = set()

    def report(column: str, tables: List[str]) -> None:
        key = (column.lower(), tuple(tables))
        if key in seen:
            return
        seen.add(key)

        candidates = [name for table in tables for name in schema[table].values()]
        suggestion = closest_match(column, candidates, max_distance=max(3, len(column) // 2))
        table_label = ", ".join(tables)
        message = f"column '{column}' does not exist in {table_label}"
        if suggestion:
            message += f"; did you mean '{suggestion}'?"
        errors.append(ColumnReferenceError(
            column=column,
            table=table_label,
            suggestion=suggestion,
            message=message,
        ))

    i = 0
    while i < len(tokens):
        token = tokens[i]
        name = identifier_name(token)
        prev_token = tokens[i - 1] if i > 0 else None
        next_token = tokens[i + 1] if i + 1 < len(tokens) else None

        if name is None:
            i += 1
            continue

        # qualifier.column
        if is_punct(next_token, ".") and i + 2 < len(tokens):
            column = identifier_name(tokens[i + 2])
            qualifier = name.lower()
            if column is not None and qualifier in aliases:
                table = aliases[qualifier]
                if (table is not None and table in schema
                        and column.lower() not in schema[table]
                        and not is_punct(tokens[i + 3] if i + 3 < len(tokens) else None, ".")):
                    report(column, [table])
            i += 3
            continue

        lowered = name.lower()
        skip = (
            name.upper() in NON_COLUMN_WORDS
            or is_punct(next_token, "(")
            or is_keyword(prev_token, "AS")
            or is_punct(prev_token, ")")
            or lowered in aliases
            or lowered in schema
            or lowered in output_aliases
        )
        if unqualified_checked and not skip and not any(lowered in schema[table] for table in in_scope):
            report(name, in_scope)

        i += 1

    return errors
