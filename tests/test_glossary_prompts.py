"""
Unit tests for glossary prompt building and domain detection
"""

from uuid import uuid4

from ontology_engine.glossary import (
    SchemaContext,
    SuggestedTerm,
    column_confusion_warnings,
    filter_inapplicable_terms,
    get_domain_hints,
    has_role_distinguishing_columns,
    type_guidance,
)
from ontology_engine.glossary.prompts import build_discovery_prompt, build_enrichment_prompt
from ontology_engine.models import (
    BusinessGlossaryTerm,
    ColumnMetadata,
    ColumnPurpose,
    DomainSummary,
    EnumValue,
    Ontology,
    OntologyEntity,
    SchemaColumn,
)


def make_context():
    table_id = uuid4()
    columns = [
        SchemaColumn(column_name="id", data_type="uuid", schema_table_id=table_id, is_primary_key=True),
        SchemaColumn(column_name="host_id", data_type="uuid", schema_table_id=table_id),
        SchemaColumn(column_name="visitor_id", data_type="uuid", schema_table_id=table_id),
        SchemaColumn(column_name="created_at", data_type="timestamp", schema_table_id=table_id),
        SchemaColumn(column_name="fee_cents", data_type="bigint", schema_table_id=table_id),
        SchemaColumn(column_name="state", data_type="varchar(32)", schema_table_id=table_id),
    ]
    metadata = {
        columns[4].id: ColumnMetadata(column_id=columns[4].id, purpose=ColumnPurpose.MEASURE, description="Fee in cents"),
        columns[5].id: ColumnMetadata(
            column_id=columns[5].id,
            purpose=ColumnPurpose.ENUM,
            enum_values=[EnumValue("SESSION_STATE_ENDED"), EnumValue("SESSION_STATE_ACTIVE")],
        ),
    }
    return SchemaContext(columns_by_table={"sessions": columns}, metadata_by_column_id=metadata)


class TestDomainHints:
    """Test cases for business-model detection"""

    def setup_method(self):
        """Set up test fixtures"""
        self.entities = [
            OntologyEntity(name="Session", primary_table="sessions"),
            OntologyEntity(name="Billing Transaction", primary_table="billing_transactions"),
            OntologyEntity(name="Subscription", primary_table="subscriptions", is_deleted=True),
        ]

    def test_engagement_business_hints(self):
        """Test engagement, billing and role hints"""
        hints = get_domain_hints(self.entities, ["host_id", "visitor_id"])

        assert any("engagement/session-based" in hint for hint in hints)
        assert any("transaction-based metrics" in hint for hint in hints)
        assert any("distinct user roles" in hint for hint in hints)
        assert any("not an e-commerce" in hint for hint in hints)
        assert not any("subscription-based business." in hint for hint in hints)

    def test_role_columns_need_two(self):
        """Test a single role column is not enough"""
        assert not has_role_distinguishing_columns(["host_id", "created_at"])
        assert has_role_distinguishing_columns(["HOST_ID", "visitor_id"])

    def test_filter_inapplicable_terms(self):
        """Test subscription, inventory and e-commerce terms are dropped"""
        terms = [
            SuggestedTerm(term="Session Revenue"),
            SuggestedTerm(term="Churn Rate"),
            SuggestedTerm(term="Inventory Turnover"),
            SuggestedTerm(term="Average Order Value"),
        ]

        kept = filter_inapplicable_terms(terms, self.entities)

        assert [t.term for t in kept] == ["Session Revenue"]

    def test_subscription_terms_kept_for_subscription_business(self):
        """Test subscription terms survive when a live subscription entity exists"""
        entities = [OntologyEntity(name="Plan", primary_table="plans")]

        kept = filter_inapplicable_terms([SuggestedTerm(term="MRR")], entities)

        assert len(kept) == 1


class TestSchemaGuidance:
    """Test cases for warnings and type guidance"""

    def test_confusion_warning(self):
        """Test a missing started_at with a created_at sibling"""
        warnings = column_confusion_warnings(make_context())

        assert "Table `sessions` has NO `started_at` column; use `created_at` instead." in warnings
        assert "Table `sessions` has NO `status` column; use `state` instead." in warnings

    def test_type_guidance(self):
        """Test numeric and text columns are listed separately"""
        guidance = type_guidance(make_context())

        numeric, text = guidance.split("Text columns")
        assert "`sessions.fee_cents` (bigint)" in numeric
        assert "`sessions.state` (varchar(32))" in text
        assert "created_at" not in guidance

    def test_type_guidance_empty_schema(self):
        """Test no guidance without columns"""
        assert type_guidance(SchemaContext()) == ""

    def test_schema_context_enums_and_keys(self):
        """Test enum columns and key columns come from metadata"""
        context = make_context()

        enums = context.enum_columns()
        assert len(enums) == 1
        assert enums[0].table == "sessions"
        assert enums[0].values == ["SESSION_STATE_ENDED", "SESSION_STATE_ACTIVE"]
        assert [c.column_name for c in context.key_columns("sessions")] == ["fee_cents", "state"]


class TestPromptBuilders:
    """Test cases for discovery and enrichment prompts"""

    def setup_method(self):
        """Set up test fixtures"""
        self.ontology = Ontology(
            id=uuid4(),
            project_id=uuid4(),
            domain_summary=DomainSummary(description="Video tutoring marketplace", currency_format="cents"),
        )
        self.entities = [OntologyEntity(name="Session", primary_table="sessions", domain="engagement")]

    def test_discovery_prompt(self):
        """Test domain summary, key columns and hints are included"""
        prompt = build_discovery_prompt(self.ontology, self.entities, make_context(), ["Focus on sessions."])

        assert "Video tutoring marketplace" in prompt
        assert "Stored in cents" in prompt
        assert "### Session (engagement)" in prompt
        assert "`fee_cents` bigint [measure] - Fee in cents" in prompt
        assert "- Focus on sessions." in prompt
        assert "NO SQL" in prompt

    def test_enrichment_prompt(self):
        """Test enum values are listed exactly"""
        term = BusinessGlossaryTerm(term="Completed Session Fees", definition="Fees of ended sessions")

        prompt = build_enrichment_prompt(term, self.ontology, self.entities, make_context())

        assert "`id` uuid (PK)" in prompt
        assert "Allowed values: 'SESSION_STATE_ENDED', 'SESSION_STATE_ACTIVE'" in prompt
        assert "**Term:** Completed Session Fees" in prompt
        assert "Type Comparison Guidance" in prompt
