"""
Abstract persistence interfaces consumed by tasks and services
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from uuid import UUID

from ..models import (
    SchemaTable,
    SchemaColumn,
    WorkflowEntityState,
    WorkflowEntityType,
    WorkflowEntityStatus,
    RelationshipCandidate,
    ColumnMetadata,
    BusinessGlossaryTerm,
    Ontology,
    OntologyEntity,
)


class SchemaRepository(ABC):
    """Read access to discovered schema tables and columns"""

    @abstractmethod
    def list_tables_by_datasource(self, project_id: UUID, datasource_id: UUID) -> List[SchemaTable]:
        pass

    @abstractmethod
    def list_columns_by_datasource(self, project_id: UUID, datasource_id: UUID) -> List[SchemaColumn]:
        pass

    @abstractmethod
    def get_columns_by_tables(self, project_id: UUID, table_names: List[str]) -> Dict[str, List[SchemaColumn]]:
        """Columns for the named tables, grouped by table name"""
        pass


class WorkflowStateRepository(ABC):
    """Workflow entity state, unique per (workflow, entity_type, entity_key)"""

    @abstractmethod
    def get_by_entity(
        self,
        workflow_id: UUID,
        entity_type: WorkflowEntityType,
        entity_key: str
    ) -> Optional[WorkflowEntityState]:
        """Return the state row or None when absent"""
        pass

    @abstractmethod
    def list_by_workflow(self, workflow_id: UUID) -> List[WorkflowEntityState]:
        pass

    @abstractmethod
    def update(self, state: WorkflowEntityState) -> None:
        pass

    @abstractmethod
    def update_status(
        self,
        state_id: UUID,
        status: WorkflowEntityStatus,
        last_error: Optional[str] = None
    ) -> None:
        pass


class RelationshipCandidateRepository(ABC):

    @abstractmethod
    def get_by_workflow(self, workflow_id: UUID) -> List[RelationshipCandidate]:
        pass

    @abstractmethod
    def create(self, candidate: RelationshipCandidate) -> None:
        pass


class ColumnMetadataRepository(ABC):

    @abstractmethod
    def get_by_project(self, project_id: UUID) -> List[ColumnMetadata]:
        pass


class GlossaryRepository(ABC):
    """Storage for business glossary terms and their aliases"""

    @abstractmethod
    def create(self, term: BusinessGlossaryTerm) -> None:
        pass

    @abstractmethod
    def update(self, term: BusinessGlossaryTerm) -> None:
        pass

    @abstractmethod
    def delete(self, term_id: UUID) -> None:
        pass

    @abstractmethod
    def get_by_project(self, project_id: UUID) -> List[BusinessGlossaryTerm]:
        pass

    @abstractmethod
    def get_by_id(self, term_id: UUID) -> Optional[BusinessGlossaryTerm]:
        pass

    @abstractmethod
    def get_by_term(self, project_id: UUID, term: str) -> Optional[BusinessGlossaryTerm]:
        pass

    @abstractmethod
    def get_by_alias(self, project_id: UUID, alias: str) -> Optional[BusinessGlossaryTerm]:
        pass

    @abstractmethod
    def create_alias(self, term_id: UUID, alias: str) -> None:
        pass

    @abstractmethod
    def delete_alias(self, term_id: UUID, alias: str) -> None:
        pass


class OntologyRepository(ABC):

    @abstractmethod
    def get_active(self, project_id: UUID) -> Optional[Ontology]:
        pass


class EntityRepository(ABC):

    @abstractmethod
    def get_by_project(self, project_id: UUID) -> List[OntologyEntity]:
        pass
