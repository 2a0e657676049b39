"""
Column profiling: candidate filtering and per-column scans
"""
from .config import ProfilerConfig, ColumnFilterConfig, EnumDetectionConfig
from .column_filter import ColumnFilterResult, filter_entity_candidates, stats_key
from .column_scan_task import ColumnScanTask, compute_null_percent, is_enum_candidate

__all__ = [
    'ProfilerConfig',
    'ColumnFilterConfig',
    'EnumDetectionConfig',
    'ColumnFilterResult',
    'filter_entity_candidates',
    'stats_key',
    'ColumnScanTask',
    'compute_null_percent',
    'is_enum_candidate',
]
