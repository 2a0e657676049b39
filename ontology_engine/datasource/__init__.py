"""
Datasource adapter interfaces
"""
from .base import SchemaDiscoverer, QueryExecutor, DatasourceAdapterFactory, DatasourceService

__all__ = [
    'SchemaDiscoverer',
    'QueryExecutor',
    'DatasourceAdapterFactory',
    'DatasourceService',
]
