"""
English singular/plural heuristics for matching column names to table names
"""
from typing import Callable, List, Tuple

IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "foot": "feet",
    "tooth": "teeth",
    "goose": "geese",
    "mouse": "mice",
    "ox": "oxen",
    "criterion": "criteria",
    "datum": "data",
}
IRREGULAR_SINGULARS = {plural: singular for singular, plural in IRREGULAR_PLURALS.items()}

VOWELS = frozenset("aeiou")


def normalize_table_name(name: str) -> str:
    """Lowercase and trim a table or column name for lookups"""
    return name.strip().lower()


def _drop(count: int) -> Callable[[str], str]:
    return lambda word: word[:-count]


def _singular_ves(word: str) -> str:
    # knives -> knife, wolves -> wolf
    base = word[:-3]
    return base + "fe" if base.endswith("i") else base + "f"


def _singular_zes(word: str) -> str:
    # quizzes -> quiz
    if len(word) > 4 and word[-4] == word[-3]:
        return word[:-3]
    return word[:-2]


def _singular_s(word: str) -> str:
    if word.endswith(("ss", "us")):
        return word
    return word[:-1]


# (suffix, minimum length, rewrite), evaluated in order; first match wins
SINGULAR_RULES: List[Tuple[str, int, Callable[[str], str]]] = [
    ("ies", 4, lambda word: word[:-3] + "y"),
    ("ves", 4, _singular_ves),
    ("ses", 4, _drop(2)),
    ("xes", 4, _drop(2)),
    ("zes", 4, _singular_zes),
    ("shes", 4, _drop(2)),
    ("ches", 4, _drop(2)),
    ("s", 2, _singular_s),
]


def singularize(name: str) -> str:
    """
    Convert a plural table name to singular.

    Args:
        name: Table name, any case

    Returns:
        Normalized singular form, or the normalized input when no rule applies
    """
    word = normalize_table_name(name)

    if word in IRREGULAR_SINGULARS:
        return IRREGULAR_SINGULARS[word]

    for suffix, min_length, rewrite in SINGULAR_RULES:
        if word.endswith(suffix) and len(word) >= min_length:
            return rewrite(word)

    return word


def pluralize(name: str) -> str:
    """
    Convert a singular table name to plural.

    Args:
        name: Table name, any case

    Returns:
        Normalized plural form
    """
    word = normalize_table_name(name)

    if word in IRREGULAR_PLURALS:
        return IRREGULAR_PLURALS[word]

    if word.endswith("y") and len(word) > 1 and word[-2] not in VOWELS:
        return word[:-1] + "ies"
    if word.endswith("f") and len(word) > 1:
        return word[:-1] + "ves"
    if word.endswith("fe") and len(word) > 2:
        return word[:-2] + "ves"
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    if word.endswith("o") and len(word) > 1 and word[-2] not in VOWELS:
        return word + "es"

    return word + "s"
