"""
Configuration for relationship candidate inference
"""
from dataclasses import dataclass
import os


@dataclass
class RelationshipConfig:
    """Confidence levels and thresholds used by the inference tasks"""

    # Name inference
    table_id_confidence: float = 0.8
    column_name_confidence: float = 0.7

    # Value matching
    value_match_threshold: float = 0.30
    min_distinct_for_fk: int = 3

    @classmethod
    def from_env(cls) -> 'RelationshipConfig':
        """Create configuration from environment variables"""
        return cls(
            table_id_confidence=float(os.getenv("RELATIONSHIP_TABLE_ID_CONFIDENCE", "0.8")),
            column_name_confidence=float(os.getenv("RELATIONSHIP_COLUMN_NAME_CONFIDENCE", "0.7")),
            value_match_threshold=float(os.getenv("RELATIONSHIP_VALUE_MATCH_THRESHOLD", "0.30")),
            min_distinct_for_fk=int(os.getenv("RELATIONSHIP_MIN_DISTINCT_FOR_FK", "3")),
        )
