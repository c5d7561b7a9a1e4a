"""
Record identity: namespaces and id allocation.

Ids come from an atomic INCR on ``"<namespace>:next_id"``, so they are
strictly increasing and unique per model type across processes. This is
the only operation in redmodel with a cross-caller ordering guarantee.
"""

import logging
import re

from redmodel.core.protocols import HashStore

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")

# Words whose plural is not formed by a suffix rule
_IRREGULAR_PLURALS = {
    "person": "people",
    "man": "men",
    "woman": "women",
    "child": "children",
    "mouse": "mice",
    "datum": "data",
}
_UNCOUNTABLE = frozenset(["data", "equipment", "information", "news", "series", "species"])


def underscore(name: str) -> str:
    """CamelCase -> snake_case."""
    return _CAMEL_BOUNDARY.sub("_", name).replace("-", "_").lower()


def pluralize(word: str) -> str:
    """English plural of a lower-case word."""
    if not word or word in _UNCOUNTABLE:
        return word
    if word in _IRREGULAR_PLURALS:
        return _IRREGULAR_PLURALS[word]
    if re.search(r"[^aeiou]y$", word):
        return word[:-1] + "ies"
    if word.endswith("sis"):
        return word[:-2] + "es"
    if re.search(r"(ss|us|x|z|ch|sh)$", word):
        return word + "es"
    if word.endswith("s"):
        return word
    return word + "s"


def tableize(name: str) -> str:
    """
    Table-style name: snake_case with the last word pluralized.

    >>> tableize("TaskAttempt")
    'task_attempts'
    """
    words = underscore(name).split("_")
    words[-1] = pluralize(words[-1])
    return "_".join(words)


def table_namespace(qualified_name: str) -> str:
    """
    Counter namespace for a dotted class path.

    The outer segment (top-level package) is dropped; the remaining segments
    are tableized and joined with ``:``. Paths differing only in that outer
    segment map to the same namespace; ``RecordOptions.namespace`` separates
    them.

    >>> table_namespace("app.models.Task")
    'models:tasks'
    """
    segments = [s for s in qualified_name.split(".") if s and s != "<locals>"]
    remaining = segments[1:] or segments
    return ":".join(tableize(s) for s in remaining)


def next_id(store: HashStore, namespace: str) -> int:
    """
    Allocate the next id for a model namespace.

    Store connectivity errors propagate unmodified.
    """
    record_id = store.incr(f"{namespace}:next_id")
    logger.debug(f"Allocated id {record_id} in {namespace}")
    return record_id
