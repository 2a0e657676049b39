"""
Foreign key candidate inference from naming patterns
"""
from dataclasses import dataclass
from typing import List, Dict, Set, Tuple, Optional
from uuid import UUID
import logging

from ..errors import TaskExecutionError
from ..heuristics import normalize_table_name, singularize, pluralize
from ..models import (
    SchemaTable,
    SchemaColumn,
    RelationshipCandidate,
    DetectionMethod,
    CandidateStatus,
)
from ..observability import trace_task, observability
from ..repositories import SchemaRepository, RelationshipCandidateRepository
from ..workqueue import Task, TenantScope, acquire_tenant
from .config import RelationshipConfig

logger = logging.getLogger(__name__)


@dataclass
class TablePKInfo:
    """Primary key target for a table lookup entry"""
    table_id: UUID
    table_name: str
    pk_column_id: UUID
    pk_column_name: str


def build_table_lookup(tables: List[SchemaTable], columns: List[SchemaColumn]) -> Dict[str, TablePKInfo]:
    """
    Map normalized table names, plus singular and plural variants, to PK info.

    Tables without a primary key are skipped. Variants never overwrite an
    existing entry, so an exact table name always wins over a derived form.
    """
    pk_by_table: Dict[UUID, SchemaColumn] = {}
    for col in columns:
        if col.is_primary_key and col.schema_table_id not in pk_by_table:
            pk_by_table[col.schema_table_id] = col

    lookup: Dict[str, TablePKInfo] = {}
    variants: List[Tuple[str, TablePKInfo]] = []

    for table in tables:
        pk_column = pk_by_table.get(table.id)
        if pk_column is None:
            logger.debug(f"Skipping table without primary key: {table.table_name}")
            continue

        info = TablePKInfo(
            table_id=table.id,
            table_name=table.table_name,
            pk_column_id=pk_column.id,
            pk_column_name=pk_column.column_name,
        )
        normalized = normalize_table_name(table.table_name)
        lookup[normalized] = info
        variants.append((singularize(normalized), info))
        variants.append((pluralize(normalized), info))

    for variant, info in variants:
        if variant not in lookup:
            lookup[variant] = info

    return lookup


class NameInferenceTask(Task):
    """Proposes FK candidates from {table}_id and column-named-after-table patterns"""

    def __init__(
        self,
        schema_repo: SchemaRepository,
        candidate_repo: RelationshipCandidateRepository,
        tenant_scope: TenantScope,
        project_id: UUID,
        workflow_id: UUID,
        datasource_id: UUID,
        config: Optional[RelationshipConfig] = None
    ):
        super().__init__("Infer relationships from names", requires_llm=False)
        self.schema_repo = schema_repo
        self.candidate_repo = candidate_repo
        self.tenant_scope = tenant_scope
        self.project_id = project_id
        self.workflow_id = workflow_id
        self.datasource_id = datasource_id
        self.config = config or RelationshipConfig()

    @trace_task("name_inference", {"component": "relationships"})
    def execute(self) -> None:
        with acquire_tenant(self.tenant_scope, self.project_id):
            self._infer()

    def _infer(self) -> None:
        try:
            tables = self.schema_repo.list_tables_by_datasource(self.project_id, self.datasource_id)
        except Exception as e:
            raise TaskExecutionError("list tables", e) from e

        try:
            columns = self.schema_repo.list_columns_by_datasource(self.project_id, self.datasource_id)
        except Exception as e:
            raise TaskExecutionError("list columns", e) from e

        logger.info(f"Starting name inference: {len(tables)} tables, {len(columns)} columns")

        table_lookup = build_table_lookup(tables, columns)
        table_names = {table.id: table.table_name for table in tables}

        try:
            existing = self.candidate_repo.get_by_workflow(self.workflow_id)
        except Exception as e:
            raise TaskExecutionError("get existing candidates", e) from e

        existing_pairs: Set[Tuple[UUID, UUID]] = {
            (c.source_column_id, c.target_column_id) for c in existing
        }

        created = 0
        for col in columns:
            # PKs are targets, not sources
            if col.is_primary_key:
                continue

            table_name = table_names.get(col.schema_table_id)
            if table_name is None:
                continue

            matches = []
            if col.column_name.lower().endswith("_id"):
                target = table_lookup.get(normalize_table_name(col.column_name[:-3]))
                if target is not None:
                    matches.append((target, self.config.table_id_confidence, "{table}_id pattern"))

            target = table_lookup.get(normalize_table_name(col.column_name))
            if target is not None:
                matches.append((target, self.config.column_name_confidence, "column name match"))

            for target, confidence, pattern in matches:
                if target.table_name == table_name:
                    continue

                pair = (col.id, target.pk_column_id)
                if pair in existing_pairs:
                    continue

                source_label = f"{table_name}.{col.column_name}"
                target_label = f"{target.table_name}.{target.pk_column_name}"
                try:
                    self._create_candidate(col.id, target.pk_column_id, confidence)
                except Exception as e:
                    logger.error(f"Failed to create candidate for {pattern} {source_label} -> {target_label}: {e}")
                    continue

                existing_pairs.add(pair)
                created += 1
                logger.debug(f"Created candidate for {pattern}: {source_label} -> {target_label}")

        logger.info(f"Name inference completed: {created} candidates created")
        observability.log_task_metrics("name_inference", {"candidates_created": created})

    def _create_candidate(self, source_column_id: UUID, target_column_id: UUID, confidence: float) -> None:
        candidate = RelationshipCandidate(
            workflow_id=self.workflow_id,
            datasource_id=self.datasource_id,
            source_column_id=source_column_id,
            target_column_id=target_column_id,
            detection_method=DetectionMethod.NAME_INFERENCE,
            confidence=confidence,
            name_similarity=confidence,
            status=CandidateStatus.PENDING,
            is_required=False,
        )
        self.candidate_repo.create(candidate)
