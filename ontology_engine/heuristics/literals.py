"""SQL string literal extraction"""
from typing import List


def extract_string_literals(sql: str) -> List[str]:
    """
    Extract single-quoted string literals from SQL.

    Doubled quotes inside a literal are unescaped and empty literals are
    dropped, so "WHERE name = 'O''Brien'" yields ["O'Brien"].
    """
    literals = []
    current = []
    in_string = False
    i = 0

    while i < len(sql):
        ch = sql[i]
        if ch == "'":
            if in_string and i + 1 < len(sql) and sql[i + 1] == "'":
                current.append("'")
                i += 1
            elif in_string:
                if current:
                    literals.append("".join(current))
                current = []
                in_string = False
            else:
                in_string = True
        elif in_string:
            current.append(ch)
        i += 1

    return literals
