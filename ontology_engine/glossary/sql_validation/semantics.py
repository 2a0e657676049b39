"""
Formula sanity checks keyed on the term name
"""
import re
from typing import Optional

AVERAGE_PER_PATTERN = re.compile(r'\baverage\b.*\bper\b', re.IGNORECASE)
COUNT_CALL_PATTERN = re.compile(r'\bCOUNT\s*\(', re.IGNORECASE)


def validate_formula_semantics(term_name: str, sql: str) -> Optional[str]:
    """
    Return a semantic warning, or None when the SQL fits the term name.

    An "average ... per ..." metric divides a total by a number of units, so
    its SQL must count something.
    """
    if AVERAGE_PER_PATTERN.search(term_name) and not COUNT_CALL_PATTERN.search(sql):
        return (
            f"term '{term_name}' is an average per unit but the SQL has no COUNT(...); "
            f"divide the total by COUNT of the units, e.g. SUM(x) / NULLIF(COUNT(DISTINCT unit_id), 0)"
        )
    return None
