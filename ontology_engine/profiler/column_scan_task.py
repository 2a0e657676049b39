"""
Workqueue task that profiles a single column
"""
from typing import List, Optional
from uuid import UUID
import logging

from ..datasource import DatasourceAdapterFactory, DatasourceService, SchemaDiscoverer
from ..errors import StateNotFoundError, TaskExecutionError
from ..models import (
    ColumnProfile,
    ColumnStats,
    WorkflowEntityStatus,
    WorkflowEntityType,
    WorkflowStateData,
)
from ..observability import trace_task
from ..repositories import WorkflowStateRepository
from ..workqueue import Task, TenantScope, acquire_tenant
from .config import ProfilerConfig, EnumDetectionConfig

logger = logging.getLogger(__name__)


def compute_null_percent(row_count: int, non_null_count: int) -> float:
    """Percentage of null rows, 0 for an empty table"""
    if row_count <= 0:
        return 0.0
    return (row_count - non_null_count) / row_count * 100


def is_enum_candidate(row_count: int, distinct_count: int, config: Optional[EnumDetectionConfig] = None) -> bool:
    """A column is enum-like when it has few distinct values relative to its rows"""
    config = config or EnumDetectionConfig()
    if distinct_count <= 0 or row_count <= 0:
        return False
    return distinct_count <= config.max_distinct and distinct_count / row_count <= config.max_ratio


class ColumnScanTask(Task):
    """Gathers row/null/distinct counts and sample values for one column"""

    def __init__(
        self,
        workflow_state_repo: WorkflowStateRepository,
        datasource_service: DatasourceService,
        adapter_factory: DatasourceAdapterFactory,
        tenant_scope: TenantScope,
        project_id: UUID,
        workflow_id: UUID,
        datasource_id: UUID,
        table_name: str,
        schema_name: str,
        column_name: str,
        config: Optional[ProfilerConfig] = None
    ):
        super().__init__(f"Scan column {table_name}.{column_name}", requires_llm=False)
        self.workflow_state_repo = workflow_state_repo
        self.datasource_service = datasource_service
        self.adapter_factory = adapter_factory
        self.tenant_scope = tenant_scope
        self.project_id = project_id
        self.workflow_id = workflow_id
        self.datasource_id = datasource_id
        self.table_name = table_name
        self.schema_name = schema_name
        self.column_name = column_name
        self.config = config or ProfilerConfig()

    @property
    def entity_key(self) -> str:
        return f"{self.table_name}.{self.column_name}"

    @trace_task("column_scan", {"component": "profiler"})
    def execute(self) -> None:
        with acquire_tenant(self.tenant_scope, self.project_id):
            self._scan()

    def _scan(self) -> None:
        try:
            state = self.workflow_state_repo.get_by_entity(
                self.workflow_id, WorkflowEntityType.COLUMN, self.entity_key
            )
        except Exception as e:
            raise TaskExecutionError("get workflow state", e) from e

        if state is None:
            raise StateNotFoundError(f"column workflow state not found: {self.entity_key}")

        try:
            datasource = self.datasource_service.get(self.project_id, self.datasource_id)
        except Exception as e:
            raise TaskExecutionError("get datasource", e) from e

        try:
            discoverer = self.adapter_factory.new_schema_discoverer(
                datasource.datasource_type, datasource.config, self.project_id, self.datasource_id
            )
        except Exception as e:
            raise TaskExecutionError("create schema discoverer", e) from e

        try:
            stats = self._analyze(discoverer)
            samples = self._sample(discoverer)
        finally:
            discoverer.close()

        profile = ColumnProfile(
            row_count=stats.row_count,
            non_null_count=stats.non_null_count,
            distinct_count=stats.distinct_count,
            null_percent=compute_null_percent(stats.row_count, stats.non_null_count),
            sample_values=samples,
            is_enum_candidate=is_enum_candidate(
                stats.row_count, stats.distinct_count, self.config.enum_detection
            ),
        )

        if state.state_data is None:
            state.state_data = WorkflowStateData()
        state.state_data.gathered.update(profile.to_gathered())
        state.status = WorkflowEntityStatus.SCANNED

        try:
            self.workflow_state_repo.update(state)
        except Exception as e:
            raise TaskExecutionError("update workflow state", e) from e

        logger.info(
            f"Scanned {self.entity_key}: rows={profile.row_count} distinct={profile.distinct_count} "
            f"null={profile.null_percent:.1f}% enum={profile.is_enum_candidate}"
        )

    def _analyze(self, discoverer: SchemaDiscoverer) -> ColumnStats:
        try:
            results = discoverer.analyze_column_stats(self.schema_name, self.table_name, [self.column_name])
        except Exception as e:
            raise TaskExecutionError("analyze column stats", e) from e

        if not results:
            raise TaskExecutionError(
                "analyze column stats", ValueError(f"no statistics returned for {self.entity_key}")
            )
        return results[0]

    def _sample(self, discoverer: SchemaDiscoverer) -> List[str]:
        try:
            return list(discoverer.get_distinct_values(
                self.schema_name, self.table_name, self.column_name, self.config.sample_limit
            ) or [])
        except Exception as e:
            # Binary and other non-text columns cannot always be sampled as strings
            logger.warning(f"Failed to sample values for {self.entity_key}, continuing without samples: {e}")
            return []
