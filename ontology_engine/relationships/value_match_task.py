"""
Foreign key candidate inference from sampled value overlap
"""
from dataclasses import dataclass, field
from typing import List, Dict, Set, Tuple, Optional, Sequence
from uuid import UUID
import logging

from ..errors import TaskExecutionError
from ..models import (
    SchemaColumn,
    WorkflowEntityState,
    WorkflowEntityType,
    WorkflowEntityStatus,
    RelationshipCandidate,
    DetectionMethod,
    CandidateStatus,
)
from ..observability import trace_task, observability
from ..repositories import SchemaRepository, WorkflowStateRepository, RelationshipCandidateRepository
from ..workqueue import Task, TenantScope, acquire_tenant
from .config import RelationshipConfig

logger = logging.getLogger(__name__)

EXCLUDED_DATA_TYPES = {
    # Temporal
    "timestamp", "timestamptz", "date", "time", "timetz", "interval", "datetime",
    "timestamp with time zone", "timestamp without time zone",
    "time with time zone", "time without time zone",
    # Boolean
    "boolean", "bool",
    # Binary
    "bytea", "blob", "binary",
    # Structured
    "json", "jsonb", "xml",
    # Geometry
    "point", "line", "polygon", "geometry",
}


@dataclass
class ScannedColumn:
    """Column joined with the profile gathered by its scan"""
    column_id: UUID
    table_name: str
    column_name: str
    data_type: str
    is_primary_key: bool
    row_count: int
    distinct_count: int
    null_percent: float
    sample_values: List[str] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.table_name}.{self.column_name}"


def normalize_data_type(data_type: str) -> str:
    """Lowercase and strip length/precision, e.g. 'VARCHAR(255)' -> 'varchar'"""
    normalized = data_type.lower()
    paren = normalized.find("(")
    if paren > 0:
        normalized = normalized[:paren]
    return normalized.strip()


def is_excluded_type(data_type: str) -> bool:
    return normalize_data_type(data_type) in EXCLUDED_DATA_TYPES


def compute_match_rate(source: Sequence[str], target: Sequence[str]) -> float:
    """
    Fraction of source sample values present in the target sample.

    Args:
        source: Sample values of the candidate FK column
        target: Sample values of the candidate referenced column

    Returns:
        Match rate in [0, 1]; 0.0 for an empty source
    """
    if not source:
        return 0.0
    target_set = set(target)
    matches = sum(1 for value in source if value in target_set)
    return matches / len(source)


def filter_joinable(columns: List[ScannedColumn], min_distinct_for_fk: int = 3) -> List[ScannedColumn]:
    """
    Keep columns that can participate in a foreign key.

    Excluded: temporal, boolean, binary, structured and geometry types, and
    low-cardinality non-PK columns. PKs pass regardless of cardinality.
    """
    joinable = []
    for col in columns:
        if is_excluded_type(col.data_type):
            continue
        if col.distinct_count < min_distinct_for_fk and not col.is_primary_key:
            continue
        joinable.append(col)
    return joinable


class ValueMatchTask(Task):
    """Pairwise sample-overlap matching across scanned, joinable columns"""

    def __init__(
        self,
        workflow_state_repo: WorkflowStateRepository,
        candidate_repo: RelationshipCandidateRepository,
        schema_repo: SchemaRepository,
        tenant_scope: TenantScope,
        project_id: UUID,
        workflow_id: UUID,
        datasource_id: UUID,
        config: Optional[RelationshipConfig] = None
    ):
        super().__init__("Match column values", requires_llm=False)
        self.workflow_state_repo = workflow_state_repo
        self.candidate_repo = candidate_repo
        self.schema_repo = schema_repo
        self.tenant_scope = tenant_scope
        self.project_id = project_id
        self.workflow_id = workflow_id
        self.datasource_id = datasource_id
        self.config = config or RelationshipConfig()

    @trace_task("value_match", {"component": "relationships"})
    def execute(self) -> None:
        with acquire_tenant(self.tenant_scope, self.project_id):
            self._match()

    def _match(self) -> None:
        try:
            states = self.workflow_state_repo.list_by_workflow(self.workflow_id)
        except Exception as e:
            raise TaskExecutionError("list workflow states", e) from e

        try:
            columns = self.schema_repo.list_columns_by_datasource(self.project_id, self.datasource_id)
        except Exception as e:
            raise TaskExecutionError("list columns", e) from e

        try:
            tables = self.schema_repo.list_tables_by_datasource(self.project_id, self.datasource_id)
        except Exception as e:
            raise TaskExecutionError("list tables", e) from e

        try:
            existing = self.candidate_repo.get_by_workflow(self.workflow_id)
        except Exception as e:
            raise TaskExecutionError("get existing candidates", e) from e

        table_names = {table.id: table.table_name for table in tables}
        column_by_key: Dict[str, SchemaColumn] = {}
        for col in columns:
            table_name = table_names.get(col.schema_table_id)
            if table_name is not None:
                column_by_key[f"{table_name}.{col.column_name}"] = col

        scanned = []
        for state in states:
            if state.entity_type != WorkflowEntityType.COLUMN or state.status != WorkflowEntityStatus.SCANNED:
                continue
            try:
                scanned.append(self._extract_column_info(state, column_by_key))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to extract column info from state {state.entity_key}: {e}")

        joinable = filter_joinable(scanned, self.config.min_distinct_for_fk)
        logger.info(
            f"Value matching over {len(joinable)} joinable columns "
            f"({len(scanned) - len(joinable)} of {len(scanned)} scanned excluded)"
        )

        existing_pairs: Set[Tuple[UUID, UUID]] = {
            (c.source_column_id, c.target_column_id)
            for c in existing
            if c.detection_method == DetectionMethod.VALUE_MATCH
        }

        created = 0
        # Source is the FK side (non-PK); this avoids bidirectional candidates
        for source in joinable:
            if source.is_primary_key:
                continue

            for target in joinable:
                if target is source or target.table_name == source.table_name:
                    continue

                pair = (source.column_id, target.column_id)
                if pair in existing_pairs:
                    continue

                match_rate = compute_match_rate(source.sample_values, target.sample_values)
                if match_rate < self.config.value_match_threshold:
                    continue

                try:
                    self._create_candidate(source, target, match_rate)
                except Exception as e:
                    logger.error(
                        f"Failed to create candidate {source.qualified_name} -> {target.qualified_name}: {e}"
                    )
                    continue

                existing_pairs.add(pair)
                created += 1
                logger.debug(
                    f"Value match {source.qualified_name} -> {target.qualified_name} ({match_rate:.0%})"
                )

        logger.info(f"Value matching completed: {created} candidates created")
        observability.log_task_metrics("value_match", {"candidates_created": created})

    def _extract_column_info(
        self,
        state: WorkflowEntityState,
        column_by_key: Dict[str, SchemaColumn]
    ) -> ScannedColumn:
        """Join a scanned state's gathered profile with its schema column"""
        parts = state.entity_key.split(".", 1)
        if len(parts) != 2:
            raise ValueError(f"invalid column entity key: {state.entity_key}")
        table_name, column_name = parts

        if state.state_data is None or not state.state_data.gathered:
            raise ValueError(f"no state data for column {state.entity_key}")
        profile = state.state_data.profile

        column = column_by_key.get(state.entity_key)
        if column is None:
            raise KeyError(f"column not found: {state.entity_key}")

        return ScannedColumn(
            column_id=column.id,
            table_name=table_name,
            column_name=column_name,
            data_type=column.data_type,
            is_primary_key=column.is_primary_key,
            row_count=profile.row_count,
            distinct_count=profile.distinct_count,
            null_percent=profile.null_percent,
            sample_values=profile.sample_values,
        )

    def _create_candidate(self, source: ScannedColumn, target: ScannedColumn, match_rate: float) -> None:
        candidate = RelationshipCandidate(
            workflow_id=self.workflow_id,
            datasource_id=self.datasource_id,
            source_column_id=source.column_id,
            target_column_id=target.column_id,
            detection_method=DetectionMethod.VALUE_MATCH,
            confidence=match_rate,
            value_match_rate=match_rate,
            status=CandidateStatus.PENDING,
            is_required=False,
        )
        self.candidate_repo.create(candidate)
