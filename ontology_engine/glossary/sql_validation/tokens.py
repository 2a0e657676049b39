"""
SQL lexing helpers built on sqlparse
"""
from typing import List, Optional

import sqlparse
from sqlparse import tokens as T
from sqlparse.sql import Token


def sql_tokens(sql: str) -> List[Token]:
    """
    Lex SQL into leaf tokens, dropping whitespace and comments.

    Args:
        sql: SQL text, possibly several statements

    Returns:
        Flat token list in source order
    """
    result = []
    for statement in sqlparse.parse(sql):
        for token in statement.flatten():
            if token.is_whitespace or token.ttype in T.Comment:
                continue
            result.append(token)
    return result


def is_punct(token: Optional[Token], value: str) -> bool:
    return token is not None and token.ttype in T.Punctuation and token.value == value


def is_keyword(token: Optional[Token], *values: str) -> bool:
    if token is None or not token.is_keyword:
        return False
    return not values or token.normalized in values


def is_join(token: Optional[Token]) -> bool:
    return is_keyword(token) and token.normalized.endswith("JOIN")


def identifier_name(token: Optional[Token]) -> Optional[str]:
    """Bare or double-quoted identifier text, None for anything else"""
    if token is None:
        return None
    if token.ttype in T.Name and token.ttype not in T.Name.Placeholder and token.ttype not in T.Name.Builtin:
        return token.value.strip('`')
    if token.ttype in T.String.Symbol:
        return token.value[1:-1].replace('""', '"')
    return None


def find_top_level_union(sql: str) -> bool:
    """True when UNION [ALL] appears outside any parentheses"""
    depth = 0
    for token in sql_tokens(sql):
        if is_punct(token, "("):
            depth += 1
        elif is_punct(token, ")"):
            depth = max(depth - 1, 0)
        elif depth == 0 and is_keyword(token) and token.normalized.startswith("UNION"):
            return True
    return False


def is_string_literal(token: Optional[Token]) -> bool:
    return token is not None and token.ttype in T.String.Single


def string_value(token: Token) -> str:
    """Unquoted text of a single-quoted literal"""
    return token.value[1:-1].replace("''", "'")


def is_equality(token: Optional[Token]) -> bool:
    return token is not None and token.ttype in T.Operator.Comparison and token.value in ("=", "<>", "!=")


def is_in_operator(token: Optional[Token]) -> bool:
    """IN, or NOT IN when the lexer joins the two words"""
    return token is not None and " ".join(token.value.upper().split()) in ("IN", "NOT IN")
