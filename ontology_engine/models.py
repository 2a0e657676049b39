"""
Data models shared across the ontology engine
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Optional
from uuid import UUID, uuid4
import logging

logger = logging.getLogger(__name__)


class WorkflowEntityType(str, Enum):
    COLUMN = "column"
    TABLE = "table"


class WorkflowEntityStatus(str, Enum):
    PENDING = "pending"
    SCANNING = "scanning"
    SCANNED = "scanned"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    NEEDS_INPUT = "needs_input"
    FAILED = "failed"


class DetectionMethod(str, Enum):
    NAME_INFERENCE = "name_inference"
    VALUE_MATCH = "value_match"
    LLM = "llm"
    MANUAL = "manual"


class CandidateStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class GlossarySource(str, Enum):
    MANUAL = "manual"
    INFERRED = "inferred"


class EnrichmentStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class ColumnPurpose(str, Enum):
    IDENTIFIER = "identifier"
    TIMESTAMP = "timestamp"
    FLAG = "flag"
    ENUM = "enum"
    MEASURE = "measure"
    TEXT = "text"
    JSON = "json"


@dataclass
class SchemaTable:
    """Table discovered in a customer datasource"""
    table_name: str
    schema_name: str = "public"
    id: UUID = field(default_factory=uuid4)
    datasource_id: Optional[UUID] = None
    row_count: Optional[int] = None


@dataclass
class SchemaColumn:
    """Column discovered in a customer datasource"""
    column_name: str
    data_type: str
    schema_table_id: UUID
    id: UUID = field(default_factory=uuid4)
    is_nullable: bool = True
    is_primary_key: bool = False
    is_unique: bool = False
    ordinal_position: int = 0


@dataclass
class ColumnStats:
    """Raw statistics returned by a schema discoverer for one column"""
    column_name: str
    row_count: int
    non_null_count: int
    distinct_count: int


@dataclass
class ColumnProfile:
    """Typed view over the gathered profiling values of one column"""
    row_count: int = 0
    non_null_count: int = 0
    distinct_count: int = 0
    null_percent: float = 0.0
    sample_values: List[str] = field(default_factory=list)
    is_enum_candidate: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    KNOWN_KEYS = (
        "row_count", "non_null_count", "distinct_count",
        "null_percent", "sample_values", "is_enum_candidate",
    )

    def to_gathered(self) -> Dict[str, Any]:
        gathered = dict(self.extra)
        gathered.update({
            "row_count": int(self.row_count),
            "non_null_count": int(self.non_null_count),
            "distinct_count": int(self.distinct_count),
            "null_percent": float(self.null_percent),
            "sample_values": list(self.sample_values),
            "is_enum_candidate": bool(self.is_enum_candidate),
        })
        return gathered

    @classmethod
    def from_gathered(cls, gathered: Dict[str, Any]) -> 'ColumnProfile':
        """
        Build a profile from a gathered dict.

        Counts may arrive as floats after a JSON round trip; they are coerced
        back to int. Missing required counts raise KeyError.
        """
        samples = gathered.get("sample_values") or []
        if not isinstance(samples, (list, tuple)):
            raise TypeError(f"sample_values has unexpected type: {type(samples).__name__}")
        return cls(
            row_count=int(gathered["row_count"]),
            non_null_count=int(gathered.get("non_null_count", gathered["row_count"])),
            distinct_count=int(gathered["distinct_count"]),
            null_percent=float(gathered["null_percent"]),
            sample_values=[v for v in samples if isinstance(v, str)],
            is_enum_candidate=bool(gathered.get("is_enum_candidate", False)),
            extra={k: v for k, v in gathered.items() if k not in cls.KNOWN_KEYS},
        )


@dataclass
class WorkflowStateData:
    gathered: Dict[str, Any] = field(default_factory=dict)
    llm_analysis: Dict[str, Any] = field(default_factory=dict)

    @property
    def profile(self) -> ColumnProfile:
        return ColumnProfile.from_gathered(self.gathered)

    @profile.setter
    def profile(self, value: ColumnProfile) -> None:
        self.gathered = value.to_gathered()


@dataclass
class WorkflowEntityState:
    """Per-(workflow, entity) profiling progress record"""
    workflow_id: UUID
    entity_type: WorkflowEntityType
    entity_key: str
    id: UUID = field(default_factory=uuid4)
    project_id: Optional[UUID] = None
    status: WorkflowEntityStatus = WorkflowEntityStatus.PENDING
    state_data: Optional[WorkflowStateData] = None
    last_error: Optional[str] = None
    retry_count: int = 0


@dataclass
class RelationshipCandidate:
    """Proposed foreign key between two columns"""
    workflow_id: UUID
    source_column_id: UUID
    target_column_id: UUID
    detection_method: DetectionMethod
    id: UUID = field(default_factory=uuid4)
    datasource_id: Optional[UUID] = None
    confidence: float = 0.0
    value_match_rate: Optional[float] = None
    name_similarity: Optional[float] = None
    status: CandidateStatus = CandidateStatus.PENDING
    is_required: bool = False


@dataclass
class EnumValue:
    value: str
    description: str = ""


@dataclass
class ColumnMetadata:
    """Semantic annotations for one schema column"""
    column_id: UUID
    purpose: Optional[ColumnPurpose] = None
    semantic_type: Optional[str] = None
    enum_values: List[EnumValue] = field(default_factory=list)
    description: str = ""

    def resolved_purpose(self) -> Optional[ColumnPurpose]:
        """Stored purpose as a ColumnPurpose, None when missing or unrecognised"""
        if self.purpose is None:
            return None
        try:
            return ColumnPurpose(self.purpose)
        except ValueError:
            logger.warning(f"Ignoring unknown purpose '{self.purpose}' for column {self.column_id}")
            return None


@dataclass
class OutputColumn:
    name: str
    type: str


@dataclass
class BusinessGlossaryTerm:
    """Named business metric with its defining query"""
    term: str
    definition: str
    id: UUID = field(default_factory=uuid4)
    project_id: Optional[UUID] = None
    ontology_id: Optional[UUID] = None
    defining_sql: str = ""
    base_table: str = ""
    output_columns: List[OutputColumn] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    source: Optional[GlossarySource] = None
    enrichment_status: Optional[EnrichmentStatus] = None
    enrichment_error: str = ""


@dataclass
class OntologyEntity:
    name: str
    primary_table: str
    description: str = ""
    domain: str = ""
    is_deleted: bool = False


@dataclass
class DomainSummary:
    description: str = ""
    soft_delete_filter: Optional[str] = None
    currency_format: Optional[str] = None  # "cents" or "dollars"


@dataclass
class Ontology:
    id: UUID
    project_id: UUID
    domain_summary: Optional[DomainSummary] = None


@dataclass
class Datasource:
    """Configured customer datasource"""
    id: UUID
    project_id: UUID
    datasource_type: str
    config: Dict[str, Any] = field(default_factory=dict)
    decryption_failed: bool = False


@dataclass
class ColumnInfo:
    name: str
    type: str


@dataclass
class QueryResult:
    columns: List[ColumnInfo] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
