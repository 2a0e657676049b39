"""
Schema view shared by glossary prompts and SQL validation
"""
from dataclasses import dataclass, field
from typing import List, Dict, Optional
from uuid import UUID

from ..models import SchemaColumn, ColumnMetadata, ColumnPurpose
from .sql_validation import EnumColumn

NUMERIC_TYPE_FRAGMENTS = ("int", "numeric", "decimal", "float", "double", "real", "serial", "money")
TEXT_TYPE_FRAGMENTS = ("char", "text", "string", "uuid", "citext", "enum")

KEY_PURPOSES = {ColumnPurpose.MEASURE, ColumnPurpose.ENUM, ColumnPurpose.IDENTIFIER}


def is_numeric_type(data_type: str) -> bool:
    lowered = data_type.lower()
    return any(fragment in lowered for fragment in NUMERIC_TYPE_FRAGMENTS) and "interval" not in lowered


def is_text_type(data_type: str) -> bool:
    lowered = data_type.lower()
    return any(fragment in lowered for fragment in TEXT_TYPE_FRAGMENTS)


@dataclass
class SchemaContext:
    """Columns of the ontology's tables plus their stored semantic metadata"""
    columns_by_table: Dict[str, List[SchemaColumn]] = field(default_factory=dict)
    metadata_by_column_id: Dict[UUID, ColumnMetadata] = field(default_factory=dict)

    @property
    def table_names(self) -> List[str]:
        return sorted(self.columns_by_table)

    def metadata_for(self, column: SchemaColumn) -> Optional[ColumnMetadata]:
        return self.metadata_by_column_id.get(column.id)

    def column_names_by_table(self) -> Dict[str, List[str]]:
        return {
            table: [column.column_name for column in columns]
            for table, columns in self.columns_by_table.items()
        }

    def all_column_names(self) -> List[str]:
        return [column.column_name for columns in self.columns_by_table.values() for column in columns]

    def enum_columns(self) -> List[EnumColumn]:
        """Columns with known enum literals, in table order"""
        result = []
        for table in self.table_names:
            for column in self.columns_by_table[table]:
                metadata = self.metadata_for(column)
                if metadata and metadata.enum_values:
                    result.append(EnumColumn(
                        table=table,
                        column=column.column_name,
                        values=[ev.value for ev in metadata.enum_values],
                    ))
        return result

    def key_columns(self, table: str) -> List[SchemaColumn]:
        """Measures, enums and identifiers, i.e. the columns metrics are built from"""
        result = []
        for column in self.columns_by_table.get(table, []):
            metadata = self.metadata_for(column)
            if metadata is None:
                continue
            if metadata.enum_values or metadata.resolved_purpose() in KEY_PURPOSES:
                result.append(column)
        return result
