"""
Entity-reference candidate filtering for schema columns
"""
from dataclasses import dataclass
from typing import List, Dict, Optional, Tuple
from uuid import UUID
import logging

from ..models import SchemaColumn, SchemaTable, ColumnStats, ColumnMetadata, ColumnPurpose
from .config import ColumnFilterConfig

logger = logging.getLogger(__name__)

EXCLUDED_PURPOSES = {
    ColumnPurpose.TIMESTAMP,
    ColumnPurpose.FLAG,
    ColumnPurpose.ENUM,
    ColumnPurpose.MEASURE,
    ColumnPurpose.TEXT,
    ColumnPurpose.JSON,
}

EXCLUDED_TYPE_FRAGMENTS = ("bool", "timestamp", "date")

# Legacy naming heuristics, only used when no metadata pipeline exists
LEGACY_EXCLUDE_SUFFIXES = ("_at", "_date", "_status", "_type", "_flag")
LEGACY_EXCLUDE_PREFIXES = ("is_", "has_")
LEGACY_INCLUDE_SUFFIXES = ("_id", "_uuid", "_key")


@dataclass
class ColumnFilterResult:
    """Classification of one column with a user-facing reason"""
    column: SchemaColumn
    schema_name: str
    table_name: str
    distinct_count: int
    row_count: int
    ratio: float
    is_candidate: bool
    reason: str

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.table_name}.{self.column.column_name}"


def stats_key(schema_name: str, table_name: str, column_name: str) -> str:
    return f"{schema_name}.{table_name}.{column_name}"


def _legacy_name_rule(column_name: str) -> Optional[Tuple[bool, str]]:
    name = column_name.lower()
    for suffix in LEGACY_EXCLUDE_SUFFIXES:
        if name.endswith(suffix):
            return False, f"name pattern: *{suffix}"
    for prefix in LEGACY_EXCLUDE_PREFIXES:
        if name.startswith(prefix):
            return False, f"name pattern: {prefix}*"
    if name == "id":
        return True, "name pattern: id"
    for suffix in LEGACY_INCLUDE_SUFFIXES:
        if name.endswith(suffix):
            return True, f"name pattern: *{suffix}"
    return None


def _classify(
    column: SchemaColumn,
    stats: Optional[ColumnStats],
    ratio: float,
    metadata: Optional[ColumnMetadata],
    config: ColumnFilterConfig
) -> Tuple[bool, str]:
    """Apply the first-match-wins rules and return (is_candidate, reason)"""
    purpose = metadata.resolved_purpose() if metadata is not None else None
    if purpose is not None:
        if purpose in EXCLUDED_PURPOSES:
            return False, f"purpose: {purpose.value}"
        if purpose == ColumnPurpose.IDENTIFIER:
            return True, f"purpose: {purpose.value}"
    elif not (column.is_primary_key or column.is_unique):
        # Key constraints outrank type
        data_type = column.data_type.lower()
        if any(fragment in data_type for fragment in EXCLUDED_TYPE_FRAGMENTS):
            return False, f"type: {column.data_type}"

        if config.legacy_name_patterns:
            legacy = _legacy_name_rule(column.column_name)
            if legacy is not None:
                return legacy

    if column.is_primary_key:
        return True, "primary key"
    if column.is_unique:
        return True, "unique constraint"

    if stats is None:
        return False, "no statistics available"

    distinct = stats.distinct_count
    if distinct >= config.min_distinct_count and ratio > config.min_distinct_ratio:
        return True, f"{distinct} distinct ({ratio * 100:.1f}% ratio)"

    if distinct < config.min_distinct_count:
        return False, f"low distinct count ({distinct} < {config.min_distinct_count})"
    return False, f"low ratio ({ratio * 100:.1f}% < {config.min_distinct_ratio * 100:g}%)"


def filter_entity_candidates(
    columns: List[SchemaColumn],
    table_by_id: Dict[UUID, SchemaTable],
    stats_by_key: Dict[str, ColumnStats],
    metadata_by_column_id: Optional[Dict[UUID, ColumnMetadata]] = None,
    config: Optional[ColumnFilterConfig] = None
) -> Tuple[List[ColumnFilterResult], List[ColumnFilterResult]]:
    """
    Split columns into entity-reference candidates and excluded columns.

    Args:
        columns: Schema columns to classify
        table_by_id: Owning tables keyed by table id
        stats_by_key: Column statistics keyed "schema.table.column"
        metadata_by_column_id: Optional stored column metadata
        config: Threshold overrides

    Returns:
        (candidates, excluded), each result carrying a reason
    """
    config = config or ColumnFilterConfig()
    metadata_by_column_id = metadata_by_column_id or {}
    candidates: List[ColumnFilterResult] = []
    excluded: List[ColumnFilterResult] = []

    for column in columns:
        table = table_by_id.get(column.schema_table_id)
        if table is None:
            logger.warning(f"Skipping column {column.column_name}: table {column.schema_table_id} not found")
            continue

        stats = stats_by_key.get(stats_key(table.schema_name, table.table_name, column.column_name))
        distinct_count = stats.distinct_count if stats else 0
        row_count = stats.row_count if stats else 0
        ratio = distinct_count / row_count if row_count > 0 else 0.0

        is_candidate, reason = _classify(
            column, stats, ratio, metadata_by_column_id.get(column.id), config
        )
        result = ColumnFilterResult(
            column=column,
            schema_name=table.schema_name,
            table_name=table.table_name,
            distinct_count=distinct_count,
            row_count=row_count,
            ratio=ratio,
            is_candidate=is_candidate,
            reason=reason,
        )
        (candidates if is_candidate else excluded).append(result)
        logger.debug(f"{result.qualified_name}: {'candidate' if is_candidate else 'excluded'} ({reason})")

    logger.info(f"Column filter: {len(candidates)} candidates, {len(excluded)} excluded")
    return candidates, excluded
