"""
Unit tests for NameInferenceTask
"""

import pytest
from unittest.mock import Mock
from uuid import uuid4

from ontology_engine.errors import TaskExecutionError
from ontology_engine.models import SchemaTable, SchemaColumn, DetectionMethod, CandidateStatus
from ontology_engine.relationships import NameInferenceTask, build_table_lookup

from fakes import TenantScopeRecorder, InMemorySchemaRepository, InMemoryCandidateRepository


class TestBuildTableLookup:
    """Test cases for build_table_lookup"""

    def test_variants_resolve_to_table(self):
        """Test singular and plural variants map to the table PK"""
        users = SchemaTable(table_name="users")
        pk = SchemaColumn(column_name="id", data_type="uuid", schema_table_id=users.id, is_primary_key=True)

        lookup = build_table_lookup([users], [pk])

        assert lookup["users"].pk_column_id == pk.id
        assert lookup["user"].table_name == "users"

    def test_tables_without_pk_skipped(self):
        """Test tables without a primary key are not targets"""
        logs = SchemaTable(table_name="logs")
        column = SchemaColumn(column_name="message", data_type="text", schema_table_id=logs.id)

        assert build_table_lookup([logs], [column]) == {}

    def test_exact_name_wins_over_variant(self):
        """Test a table named like another table's variant keeps its own entry"""
        person = SchemaTable(table_name="person")
        people = SchemaTable(table_name="people")
        person_pk = SchemaColumn(column_name="id", data_type="int", schema_table_id=person.id, is_primary_key=True)
        people_pk = SchemaColumn(column_name="id", data_type="int", schema_table_id=people.id, is_primary_key=True)

        lookup = build_table_lookup([person, people], [person_pk, people_pk])

        assert lookup["person"].table_name == "person"
        assert lookup["people"].table_name == "people"


class TestNameInferenceTask:
    """Test cases for NameInferenceTask"""

    def setup_method(self):
        """Set up test fixtures"""
        self.project_id = uuid4()
        self.workflow_id = uuid4()
        self.datasource_id = uuid4()

        self.users = SchemaTable(table_name="users")
        self.orders = SchemaTable(table_name="orders")
        self.categories = SchemaTable(table_name="categories")

        self.users_id = self.pk(self.users)
        self.orders_id = self.pk(self.orders)
        self.categories_id = self.pk(self.categories)
        self.order_user_id = SchemaColumn(column_name="user_id", data_type="uuid", schema_table_id=self.orders.id)
        self.parent_id = SchemaColumn(column_name="parent_id", data_type="uuid", schema_table_id=self.categories.id)
        self.category_id = SchemaColumn(column_name="category_id", data_type="uuid", schema_table_id=self.orders.id)

        self.schema_repo = InMemorySchemaRepository(
            [self.users, self.orders, self.categories],
            [
                self.users_id, self.orders_id, self.categories_id,
                self.order_user_id, self.parent_id, self.category_id,
            ],
        )
        self.candidate_repo = InMemoryCandidateRepository()
        self.tenant_scope = TenantScopeRecorder()

    @staticmethod
    def pk(table):
        return SchemaColumn(column_name="id", data_type="uuid", schema_table_id=table.id, is_primary_key=True)

    def create_task(self):
        return NameInferenceTask(
            schema_repo=self.schema_repo,
            candidate_repo=self.candidate_repo,
            tenant_scope=self.tenant_scope,
            project_id=self.project_id,
            workflow_id=self.workflow_id,
            datasource_id=self.datasource_id,
        )

    def pairs(self):
        return {(c.source_column_id, c.target_column_id) for c in self.candidate_repo.candidates}

    def test_table_id_pattern(self):
        """Test user_id in orders targets users.id with 0.8 confidence"""
        self.create_task().execute()

        candidate = next(c for c in self.candidate_repo.candidates if c.source_column_id == self.order_user_id.id)
        assert candidate.target_column_id == self.users_id.id
        assert candidate.confidence == 0.8
        assert candidate.name_similarity == 0.8
        assert candidate.detection_method == DetectionMethod.NAME_INFERENCE
        assert candidate.status == CandidateStatus.PENDING
        assert candidate.is_required is False
        assert candidate.workflow_id == self.workflow_id
        assert candidate.datasource_id == self.datasource_id

    def test_plural_table_resolution(self):
        """Test category_id resolves to the categories table"""
        self.create_task().execute()

        assert (self.category_id.id, self.categories_id.id) in self.pairs()

    def test_no_self_reference(self):
        """Test columns in categories never target categories itself"""
        self_ref = SchemaColumn(column_name="category_id", data_type="uuid", schema_table_id=self.categories.id)
        self.schema_repo.columns.append(self_ref)

        self.create_task().execute()

        sources = {self.parent_id.id, self_ref.id}
        assert all(c.source_column_id not in sources for c in self.candidate_repo.candidates)
        assert (self.category_id.id, self.categories_id.id) in self.pairs()

    def test_parent_id_without_parents_table(self):
        """Test parent_id produces nothing when no parent table exists"""
        self.create_task().execute()

        assert all(c.source_column_id != self.parent_id.id for c in self.candidate_repo.candidates)

    def test_primary_keys_are_not_sources(self):
        """Test PK columns never appear as candidate sources"""
        self.create_task().execute()

        pk_ids = {self.users_id.id, self.orders_id.id, self.categories_id.id}
        assert all(c.source_column_id not in pk_ids for c in self.candidate_repo.candidates)

    def test_column_named_after_table(self):
        """Test a column named like a table gets the lower confidence"""
        owner = SchemaColumn(column_name="user", data_type="uuid", schema_table_id=self.orders.id)
        self.schema_repo.columns.append(owner)

        self.create_task().execute()

        candidate = next(c for c in self.candidate_repo.candidates if c.source_column_id == owner.id)
        assert candidate.target_column_id == self.users_id.id
        assert candidate.confidence == 0.7

    def test_idempotent(self):
        """Test a second run creates no new candidates"""
        self.create_task().execute()
        first_run = len(self.candidate_repo.candidates)

        self.create_task().execute()

        assert first_run == 2
        assert len(self.candidate_repo.candidates) == first_run

    def test_create_failure_skips_candidate(self):
        """Test a failing insert is logged and the run continues"""
        self.candidate_repo.create = Mock(side_effect=[RuntimeError("duplicate key"), None])

        self.create_task().execute()

        assert self.candidate_repo.create.call_count == 2

    def test_list_tables_failure(self):
        """Test schema errors are wrapped and the tenant is released"""
        self.schema_repo.list_tables_by_datasource = Mock(side_effect=RuntimeError("connection reset"))

        with pytest.raises(TaskExecutionError) as exc_info:
            self.create_task().execute()

        assert exc_info.value.operation == "list tables"
        assert self.tenant_scope.released == 1
