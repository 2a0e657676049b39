"""
Abstract datasource adapter interfaces
"""
from abc import ABC, abstractmethod
from typing import List, Dict, Any
from uuid import UUID

from ..models import ColumnStats, Datasource, QueryResult


class SchemaDiscoverer(ABC):
    """Per-datasource adapter for reading column statistics"""

    @abstractmethod
    def analyze_column_stats(self, schema_name: str, table_name: str, column_names: List[str]) -> List[ColumnStats]:
        """
        Compute row, non-null and distinct counts.

        Args:
            schema_name: Schema containing the table
            table_name: Table to analyze
            column_names: Columns to analyze

        Returns:
            One ColumnStats per requested column
        """
        pass

    @abstractmethod
    def get_distinct_values(self, schema_name: str, table_name: str, column_name: str, limit: int) -> List[str]:
        """Return up to `limit` distinct non-null values rendered as strings"""
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class QueryExecutor(ABC):
    """Executes read-only SQL against a customer datasource"""

    @abstractmethod
    def query(self, sql: str, limit: int) -> QueryResult:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class DatasourceAdapterFactory(ABC):

    @abstractmethod
    def new_schema_discoverer(
        self,
        datasource_type: str,
        config: Dict[str, Any],
        project_id: UUID,
        datasource_id: UUID
    ) -> SchemaDiscoverer:
        pass

    @abstractmethod
    def new_query_executor(
        self,
        datasource_type: str,
        config: Dict[str, Any],
        project_id: UUID,
        datasource_id: UUID
    ) -> QueryExecutor:
        pass


class DatasourceService(ABC):

    @abstractmethod
    def get(self, project_id: UUID, datasource_id: UUID) -> Datasource:
        pass

    @abstractmethod
    def list(self, project_id: UUID) -> List[Datasource]:
        pass
