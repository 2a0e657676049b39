"""
Relationship candidate inference tasks
"""
from .config import RelationshipConfig
from .name_inference_task import NameInferenceTask, TablePKInfo, build_table_lookup
from .value_match_task import (
    ValueMatchTask,
    ScannedColumn,
    compute_match_rate,
    filter_joinable,
    is_excluded_type,
)

__all__ = [
    'RelationshipConfig',
    'NameInferenceTask',
    'TablePKInfo',
    'build_table_lookup',
    'ValueMatchTask',
    'ScannedColumn',
    'compute_match_rate',
    'filter_joinable',
    'is_excluded_type',
]
