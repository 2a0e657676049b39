"""
Configuration for column profiling and filtering
"""
from dataclasses import dataclass, field
import os


@dataclass
class EnumDetectionConfig:
    """Low-cardinality thresholds for flagging enum-like columns"""
    max_distinct: int = 5
    max_ratio: float = 0.01


@dataclass
class ColumnFilterConfig:
    """Thresholds for classifying entity-reference candidates"""
    min_distinct_count: int = 20
    min_distinct_ratio: float = 0.05
    legacy_name_patterns: bool = False


@dataclass
class ProfilerConfig:
    """Configuration for column scanning"""

    sample_limit: int = 50
    enum_detection: EnumDetectionConfig = field(default_factory=EnumDetectionConfig)
    column_filter: ColumnFilterConfig = field(default_factory=ColumnFilterConfig)

    @classmethod
    def from_env(cls) -> 'ProfilerConfig':
        """Create configuration from environment variables"""
        return cls(
            sample_limit=int(os.getenv("PROFILER_SAMPLE_LIMIT", "50")),
            enum_detection=EnumDetectionConfig(
                max_distinct=int(os.getenv("PROFILER_ENUM_MAX_DISTINCT", "5")),
                max_ratio=float(os.getenv("PROFILER_ENUM_MAX_RATIO", "0.01")),
            ),
            column_filter=ColumnFilterConfig(
                min_distinct_count=int(os.getenv("PROFILER_MIN_DISTINCT_COUNT", "20")),
                min_distinct_ratio=float(os.getenv("PROFILER_MIN_DISTINCT_RATIO", "0.05")),
                legacy_name_patterns=os.getenv("PROFILER_LEGACY_NAME_PATTERNS", "false").lower() == "true",
            ),
        )
