"""
Persistence interfaces
"""
from .base import (
    SchemaRepository,
    WorkflowStateRepository,
    RelationshipCandidateRepository,
    ColumnMetadataRepository,
    GlossaryRepository,
    OntologyRepository,
    EntityRepository,
)

__all__ = [
    'SchemaRepository',
    'WorkflowStateRepository',
    'RelationshipCandidateRepository',
    'ColumnMetadataRepository',
    'GlossaryRepository',
    'OntologyRepository',
    'EntityRepository',
]
