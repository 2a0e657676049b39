"""
In-memory repository fakes for task and service tests
"""
from contextlib import contextmanager
from copy import deepcopy
from typing import Dict, List, Optional
from uuid import UUID

from ontology_engine.models import (
    SchemaTable,
    SchemaColumn,
    WorkflowEntityState,
    WorkflowEntityType,
    WorkflowEntityStatus,
    RelationshipCandidate,
    BusinessGlossaryTerm,
)
from ontology_engine.repositories import (
    SchemaRepository,
    WorkflowStateRepository,
    RelationshipCandidateRepository,
    GlossaryRepository,
)


class TenantScopeRecorder:
    """Tenant scope that records acquire/release pairs"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.acquired: List[UUID] = []
        self.released = 0

    @contextmanager
    def __call__(self, project_id: UUID):
        if self.fail:
            raise ConnectionError("tenant pool exhausted")
        self.acquired.append(project_id)
        try:
            yield project_id
        finally:
            self.released += 1


class InMemorySchemaRepository(SchemaRepository):

    def __init__(self, tables: List[SchemaTable], columns: List[SchemaColumn]):
        self.tables = tables
        self.columns = columns

    def list_tables_by_datasource(self, project_id, datasource_id):
        return list(self.tables)

    def list_columns_by_datasource(self, project_id, datasource_id):
        return list(self.columns)

    def get_columns_by_tables(self, project_id, table_names):
        table_ids = {t.id: t.table_name for t in self.tables if t.table_name in table_names}
        result: Dict[str, List[SchemaColumn]] = {}
        for column in self.columns:
            if column.schema_table_id in table_ids:
                result.setdefault(table_ids[column.schema_table_id], []).append(column)
        return result


class InMemoryWorkflowStateRepository(WorkflowStateRepository):

    def __init__(self, states: Optional[List[WorkflowEntityState]] = None):
        self.states: Dict[UUID, WorkflowEntityState] = {s.id: s for s in states or []}
        self.update_calls = 0

    def get_by_entity(self, workflow_id, entity_type, entity_key):
        for state in self.states.values():
            if (state.workflow_id == workflow_id and state.entity_type == entity_type
                    and state.entity_key == entity_key):
                return deepcopy(state)
        return None

    def list_by_workflow(self, workflow_id):
        return [deepcopy(s) for s in self.states.values() if s.workflow_id == workflow_id]

    def update(self, state):
        self.update_calls += 1
        self.states[state.id] = deepcopy(state)

    def update_status(self, state_id, status, last_error=None):
        state = self.states[state_id]
        state.status = status
        state.last_error = last_error


class InMemoryCandidateRepository(RelationshipCandidateRepository):

    def __init__(self, candidates: Optional[List[RelationshipCandidate]] = None):
        self.candidates: List[RelationshipCandidate] = list(candidates or [])

    def get_by_workflow(self, workflow_id):
        return [c for c in self.candidates if c.workflow_id == workflow_id]

    def create(self, candidate):
        self.candidates.append(candidate)


class InMemoryGlossaryRepository(GlossaryRepository):

    def __init__(self, terms: Optional[List[BusinessGlossaryTerm]] = None):
        self.terms: Dict[UUID, BusinessGlossaryTerm] = {t.id: t for t in terms or []}

    def create(self, term):
        self.terms[term.id] = deepcopy(term)

    def update(self, term):
        self.terms[term.id] = deepcopy(term)

    def delete(self, term_id):
        self.terms.pop(term_id, None)

    def get_by_project(self, project_id):
        return [deepcopy(t) for t in self.terms.values() if t.project_id == project_id]

    def get_by_id(self, term_id):
        term = self.terms.get(term_id)
        return deepcopy(term) if term else None

    def get_by_term(self, project_id, term):
        for t in self.terms.values():
            if t.project_id == project_id and t.term == term:
                return deepcopy(t)
        return None

    def get_by_alias(self, project_id, alias):
        for t in self.terms.values():
            if t.project_id == project_id and alias in t.aliases:
                return deepcopy(t)
        return None

    def create_alias(self, term_id, alias):
        self.terms[term_id].aliases.append(alias)

    def delete_alias(self, term_id, alias):
        self.terms[term_id].aliases.remove(alias)


def column_state(workflow_id: UUID, entity_key: str, status=WorkflowEntityStatus.PENDING, state_data=None):
    return WorkflowEntityState(
        workflow_id=workflow_id,
        entity_type=WorkflowEntityType.COLUMN,
        entity_key=entity_key,
        status=status,
        state_data=state_data,
    )
