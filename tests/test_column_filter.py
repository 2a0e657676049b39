"""
Unit tests for entity-reference column filtering
"""

import pytest

from ontology_engine.models import SchemaTable, SchemaColumn, ColumnStats, ColumnMetadata, ColumnPurpose
from ontology_engine.profiler import ColumnFilterConfig, filter_entity_candidates, stats_key


class TestColumnFilter:
    """Test cases for filter_entity_candidates"""

    def setup_method(self):
        """Set up test fixtures"""
        self.table = SchemaTable(table_name="orders", schema_name="public")
        self.table_by_id = {self.table.id: self.table}

    def column(self, name, data_type="integer", **kwargs):
        return SchemaColumn(column_name=name, data_type=data_type, schema_table_id=self.table.id, **kwargs)

    def stats(self, name, distinct, rows):
        return {
            stats_key("public", "orders", name): ColumnStats(
                column_name=name, row_count=rows, non_null_count=rows, distinct_count=distinct
            )
        }

    def classify(self, column, stats=None, metadata=None, config=None):
        candidates, excluded = filter_entity_candidates(
            [column], self.table_by_id, stats or {}, metadata, config
        )
        assert len(candidates) + len(excluded) == 1
        return (candidates or excluded)[0]

    def test_ratio_boundary_is_strict(self):
        """Test 5% distinct ratio is excluded while 5.25% is included"""
        at_boundary = self.column("customer_ref")
        result = self.classify(at_boundary, self.stats("customer_ref", 20, 400))
        assert not result.is_candidate
        assert "low ratio" in result.reason

        above = self.column("customer_ref")
        result = self.classify(above, self.stats("customer_ref", 21, 400))
        assert result.is_candidate
        assert result.reason.startswith("21 distinct")

    def test_low_distinct_count_excluded(self):
        """Test columns under the distinct minimum"""
        column = self.column("region")
        result = self.classify(column, self.stats("region", 19, 20))
        assert not result.is_candidate
        assert result.reason == "low distinct count (19 < 20)"

    @pytest.mark.parametrize("data_type", ["boolean", "timestamp with time zone", "date"])
    def test_primary_key_always_candidate(self, data_type):
        """Test primary keys pass regardless of type and statistics"""
        column = self.column("id", data_type=data_type, is_primary_key=True)
        result = self.classify(column)
        assert result.is_candidate
        assert result.reason == "primary key"

    def test_unique_column_candidate(self):
        """Test unique constraint columns pass without statistics"""
        column = self.column("email", data_type="text", is_unique=True)
        result = self.classify(column)
        assert result.is_candidate
        assert result.reason == "unique constraint"

    @pytest.mark.parametrize("data_type", ["boolean", "timestamp", "date"])
    def test_excluded_types(self, data_type):
        """Test boolean and temporal columns are excluded by type"""
        column = self.column("some_column", data_type=data_type)
        result = self.classify(column, self.stats("some_column", 500, 1000))
        assert not result.is_candidate
        assert result.reason == f"type: {data_type}"

    def test_metadata_purpose_wins(self):
        """Test stored purpose decides before statistics"""
        measure = self.column("amount", data_type="numeric")
        identifier = self.column("external_ref", data_type="text")
        metadata = {
            measure.id: ColumnMetadata(column_id=measure.id, purpose=ColumnPurpose.MEASURE),
            identifier.id: ColumnMetadata(column_id=identifier.id, purpose=ColumnPurpose.IDENTIFIER),
        }

        result = self.classify(measure, self.stats("amount", 900, 1000), metadata)
        assert not result.is_candidate
        assert result.reason == "purpose: measure"

        result = self.classify(identifier, metadata=metadata)
        assert result.is_candidate
        assert result.reason == "purpose: identifier"

    def test_unknown_purpose_falls_through(self):
        """Test an unrecognised stored purpose is ignored in favour of type and statistics"""
        flag = self.column("archived", data_type="boolean")
        reference = self.column("customer_ref", data_type="text")
        metadata = {
            flag.id: ColumnMetadata(column_id=flag.id, purpose="lookup"),
            reference.id: ColumnMetadata(column_id=reference.id, purpose="lookup"),
        }

        result = self.classify(flag, self.stats("archived", 500, 1000), metadata)
        assert not result.is_candidate
        assert result.reason == "type: boolean"

        result = self.classify(reference, self.stats("customer_ref", 500, 1000), metadata)
        assert result.is_candidate
        assert result.reason.startswith("500 distinct")

    def test_no_statistics(self):
        """Test columns without stats are excluded"""
        result = self.classify(self.column("customer_ref"))
        assert not result.is_candidate
        assert result.reason == "no statistics available"

    def test_legacy_name_patterns(self):
        """Test name heuristics apply only when enabled"""
        config = ColumnFilterConfig(legacy_name_patterns=True)

        result = self.classify(self.column("order_status", data_type="text"), config=config)
        assert not result.is_candidate
        assert result.reason == "name pattern: *_status"

        result = self.classify(self.column("is_active", data_type="text"), config=config)
        assert result.reason == "name pattern: is_*"

        result = self.classify(self.column("customer_id"), config=config)
        assert result.is_candidate
        assert result.reason == "name pattern: *_id"

        result = self.classify(self.column("customer_id"))
        assert result.reason == "no statistics available"

    def test_columns_without_table_skipped(self):
        """Test orphan columns are dropped from both lists"""
        orphan = SchemaColumn(column_name="x", data_type="integer", schema_table_id=SchemaTable("other").id)
        candidates, excluded = filter_entity_candidates([orphan], self.table_by_id, {})
        assert candidates == []
        assert excluded == []

    def test_result_fields(self):
        """Test counts and qualified name are populated"""
        column = self.column("customer_ref")
        result = self.classify(column, self.stats("customer_ref", 50, 100))
        assert result.distinct_count == 50
        assert result.row_count == 100
        assert result.ratio == pytest.approx(0.5)
        assert result.qualified_name == "public.orders.customer_ref"
