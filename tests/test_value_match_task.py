"""
Unit tests for ValueMatchTask
"""

import pytest
from unittest.mock import Mock
from uuid import uuid4

from ontology_engine.errors import TaskExecutionError
from ontology_engine.models import (
    SchemaTable,
    SchemaColumn,
    WorkflowEntityStatus,
    WorkflowStateData,
    RelationshipCandidate,
    DetectionMethod,
)
from ontology_engine.relationships import (
    ValueMatchTask,
    ScannedColumn,
    compute_match_rate,
    filter_joinable,
    is_excluded_type,
)
from ontology_engine.relationships.config import RelationshipConfig

from fakes import (
    TenantScopeRecorder,
    InMemorySchemaRepository,
    InMemoryWorkflowStateRepository,
    InMemoryCandidateRepository,
    column_state,
)


def scanned(name, data_type="uuid", distinct=10, is_pk=False):
    return ScannedColumn(
        column_id=uuid4(),
        table_name="t",
        column_name=name,
        data_type=data_type,
        is_primary_key=is_pk,
        row_count=100,
        distinct_count=distinct,
        null_percent=0.0,
    )


class TestMatchHelpers:
    """Test cases for match rate and joinability"""

    def test_compute_match_rate(self):
        """Test fraction of source values found in target"""
        assert compute_match_rate(list("abcde"), list("abc")) == 0.6
        assert compute_match_rate(list("abc"), list("abcde")) == 1.0
        assert compute_match_rate(["x"], list("abc")) == 0.0

    def test_compute_match_rate_empty_source(self):
        """Test an empty source never matches"""
        assert compute_match_rate([], list("abc")) == 0.0

    @pytest.mark.parametrize("data_type", [
        "timestamp", "TIMESTAMP WITH TIME ZONE", "boolean", "bytea", "jsonb", "geometry", "time(6)",
    ])
    def test_excluded_types(self, data_type):
        """Test non-joinable types"""
        assert is_excluded_type(data_type)

    @pytest.mark.parametrize("data_type", ["uuid", "VARCHAR(255)", "bigint", "text"])
    def test_joinable_types(self, data_type):
        """Test key-like types are kept"""
        assert not is_excluded_type(data_type)

    def test_filter_joinable(self):
        """Test type and cardinality filtering"""
        keep = scanned("customer_id")
        pk = scanned("id", distinct=1, is_pk=True)
        low_cardinality = scanned("flag_code", distinct=2)
        temporal = scanned("created_at", data_type="timestamp")

        result = filter_joinable([keep, pk, low_cardinality, temporal])

        assert result == [keep, pk]


class TestValueMatchTask:
    """Test cases for ValueMatchTask"""

    def setup_method(self):
        """Set up test fixtures"""
        self.project_id = uuid4()
        self.workflow_id = uuid4()
        self.datasource_id = uuid4()

        self.users = SchemaTable(table_name="users")
        self.orders = SchemaTable(table_name="orders")
        self.users_id = SchemaColumn(
            column_name="id", data_type="uuid", schema_table_id=self.users.id, is_primary_key=True
        )
        self.orders_id = SchemaColumn(
            column_name="id", data_type="uuid", schema_table_id=self.orders.id, is_primary_key=True
        )
        self.buyer = SchemaColumn(column_name="buyer", data_type="uuid", schema_table_id=self.orders.id)
        self.placed_at = SchemaColumn(column_name="placed_at", data_type="timestamp", schema_table_id=self.orders.id)

        self.schema_repo = InMemorySchemaRepository(
            [self.users, self.orders],
            [self.users_id, self.orders_id, self.buyer, self.placed_at],
        )
        self.state_repo = InMemoryWorkflowStateRepository([
            self.scanned_state("users.id", ["u1", "u2", "u3", "u4", "u5"]),
            self.scanned_state("orders.id", ["o1", "o2", "o3", "o4", "o5"]),
            self.scanned_state("orders.buyer", ["u1", "u2", "u3", "x1", "x2"]),
            self.scanned_state("orders.placed_at", ["2024-01-01", "2024-01-02", "2024-01-03"]),
        ])
        self.candidate_repo = InMemoryCandidateRepository()
        self.tenant_scope = TenantScopeRecorder()

    def scanned_state(self, key, samples, status=WorkflowEntityStatus.SCANNED):
        return column_state(
            self.workflow_id,
            key,
            status=status,
            state_data=WorkflowStateData(gathered={
                "row_count": 100,
                "non_null_count": 100,
                "distinct_count": len(samples) * 10,
                "null_percent": 0.0,
                "sample_values": samples,
                "is_enum_candidate": False,
            }),
        )

    def create_task(self, config=None):
        return ValueMatchTask(
            workflow_state_repo=self.state_repo,
            candidate_repo=self.candidate_repo,
            schema_repo=self.schema_repo,
            tenant_scope=self.tenant_scope,
            project_id=self.project_id,
            workflow_id=self.workflow_id,
            datasource_id=self.datasource_id,
            config=config,
        )

    def test_creates_candidate_above_threshold(self):
        """Test buyer values overlapping users.id produce one candidate"""
        self.create_task().execute()

        assert len(self.candidate_repo.candidates) == 1
        candidate = self.candidate_repo.candidates[0]
        assert candidate.source_column_id == self.buyer.id
        assert candidate.target_column_id == self.users_id.id
        assert candidate.detection_method == DetectionMethod.VALUE_MATCH
        assert candidate.value_match_rate == pytest.approx(0.6)
        assert candidate.confidence == pytest.approx(0.6)
        assert self.tenant_scope.released == 1

    def test_threshold_is_configurable(self):
        """Test a stricter threshold rejects partial overlap"""
        self.create_task(RelationshipConfig(value_match_threshold=0.8)).execute()

        assert self.candidate_repo.candidates == []

    def test_unscanned_states_ignored(self):
        """Test only scanned columns participate"""
        self.state_repo = InMemoryWorkflowStateRepository([
            self.scanned_state("users.id", ["u1", "u2", "u3"]),
            self.scanned_state("orders.buyer", ["u1", "u2", "u3"], status=WorkflowEntityStatus.PENDING),
        ])

        self.create_task().execute()

        assert self.candidate_repo.candidates == []

    def test_existing_candidates_not_duplicated(self):
        """Test a second run is a no-op"""
        self.candidate_repo.candidates.append(RelationshipCandidate(
            workflow_id=self.workflow_id,
            source_column_id=self.buyer.id,
            target_column_id=self.users_id.id,
            detection_method=DetectionMethod.VALUE_MATCH,
        ))

        self.create_task().execute()

        assert len(self.candidate_repo.candidates) == 1

    def test_name_inference_candidate_does_not_block(self):
        """Test dedup only considers value-match candidates"""
        self.candidate_repo.candidates.append(RelationshipCandidate(
            workflow_id=self.workflow_id,
            source_column_id=self.buyer.id,
            target_column_id=self.users_id.id,
            detection_method=DetectionMethod.NAME_INFERENCE,
        ))

        self.create_task().execute()

        assert len(self.candidate_repo.candidates) == 2

    def test_bad_state_data_skipped(self):
        """Test states with missing or malformed profiles are skipped"""
        broken = column_state(
            self.workflow_id, "orders.buyer", status=WorkflowEntityStatus.SCANNED,
            state_data=WorkflowStateData(gathered={"sample_values": ["u1"]}),
        )
        self.state_repo = InMemoryWorkflowStateRepository([
            self.scanned_state("users.id", ["u1", "u2", "u3"]),
            broken,
            column_state(self.workflow_id, "malformed", status=WorkflowEntityStatus.SCANNED),
        ])

        self.create_task().execute()

        assert self.candidate_repo.candidates == []

    def test_state_listing_failure(self):
        """Test repository errors are wrapped"""
        self.state_repo.list_by_workflow = Mock(side_effect=RuntimeError("db down"))

        with pytest.raises(TaskExecutionError) as exc_info:
            self.create_task().execute()

        assert exc_info.value.operation == "list workflow states"
        assert self.tenant_scope.released == 1
