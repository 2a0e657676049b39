"""
Prompt construction for glossary discovery and enrichment
"""
from typing import List, Optional

from ..models import BusinessGlossaryTerm, Ontology, OntologyEntity, SchemaColumn
from .schema_context import SchemaContext, is_numeric_type, is_text_type

DISCOVERY_SYSTEM_MESSAGE = """You are a business analyst expert. Your task is to analyze a database schema and identify business metrics and terms SPECIFIC TO THIS DOMAIN.

CRITICAL: Analyze entity names and descriptions to understand the business model BEFORE suggesting terms.

IMPORTANT: Only suggest metrics that apply to the specific business model shown in the schema.
- DO NOT suggest subscription metrics (MRR, ARR, churn, subscriber count) if the model is pay-per-use or transaction-based
- DO NOT suggest inventory metrics (stock, turnover, warehouse) if there is no inventory
- DO NOT suggest e-commerce metrics (AOV, GMV, cart abandonment) if there are no orders/products
- DO NOT suggest generic SaaS metrics unless they are clearly supported by the schema and domain knowledge

Focus on discovering business terms that are:
1. Directly supported by the schema columns and tables
2. Aligned with the domain description provided
3. Specific to this platform's business model

For each term, provide ONLY:
- term: A clear business name using domain-specific terminology when applicable
- definition: A detailed explanation of what it measures, using the domain's concepts
- aliases: Alternative names that business users might use for this metric

DO NOT include SQL in this response. SQL definitions will be generated separately.
Suggest 5-15 terms that are specific and meaningful for this domain."""

ENRICHMENT_SYSTEM_MESSAGE = """You are a SQL expert and business analyst. Your task is to generate complete, executable SQL definitions for business metrics based on database schema context.

For each business term, provide:
- A complete, executable SQL SELECT statement (defining_sql) that computes the metric
- The primary table being queried (base_table)
- Alternative names that business users might use (aliases)

IMPORTANT: The defining_sql must be a complete SELECT statement that can be executed as-is. It should:
- Start with SELECT and include column aliases that represent the metric
- Include all necessary FROM, JOIN and WHERE clauses
- Aggregate to EXACTLY ONE ROW (no GROUP BY output, no top-level UNION)
- Be ready to execute without modification
- Return meaningful column names that business users will understand

IMPORTANT: When filtering on enumeration columns, use the EXACT values provided in the schema context.
Do NOT simplify or normalize enum values (e.g., use 'TRANSACTION_STATE_ENDED' not 'ended').

IMPORTANT: Only reference columns listed in the schema context. Do not guess column names.

EXAMPLES FOR COMPLEX METRICS:

For utilization/conversion rates (percentage of items in a specific state):
{
  "defining_sql": "SELECT COUNT(*) FILTER (WHERE status = 'used') * 100.0 / NULLIF(COUNT(*), 0) AS utilization_rate FROM offers WHERE created_at >= NOW() - INTERVAL '30 days'",
  "base_table": "offers",
  "aliases": ["usage rate", "redemption rate"]
}

For participation rates (distinct participants vs total eligible):
{
  "defining_sql": "SELECT COUNT(DISTINCT r.referrer_id) * 100.0 / NULLIF((SELECT COUNT(*) FROM users WHERE is_eligible = true), 0) AS participation_rate FROM referrals r WHERE r.bonus_paid = true",
  "base_table": "referrals",
  "aliases": ["adoption rate", "enrollment rate"]
}

For completion rates (successful vs total attempts):
{
  "defining_sql": "SELECT COUNT(*) FILTER (WHERE state = 'COMPLETED') * 100.0 / NULLIF(COUNT(*), 0) AS completion_rate FROM transactions",
  "base_table": "transactions",
  "aliases": ["success rate", "fulfillment rate"]
}

For averages with conditional filtering:
{
  "defining_sql": "SELECT AVG(duration_seconds) FILTER (WHERE state = 'COMPLETED') AS avg_duration FROM sessions",
  "base_table": "sessions",
  "aliases": ["mean duration", "average session length"]
}

For metrics requiring multi-table joins:
{
  "defining_sql": "SELECT COUNT(DISTINCT u.id) AS users_with_transactions, COALESCE(SUM(t.amount), 0) AS total_amount FROM users u LEFT JOIN transactions t ON u.id = t.user_id",
  "base_table": "users",
  "aliases": ["user transaction summary"]
}

Be specific and use exact table/column names from the provided schema."""

# Column names models tend to invent, mapped to the real columns they usually mean
CONFUSABLE_COLUMNS = {
    "started_at": ("created_at", "start_time", "begin_time"),
    "ended_at": ("completed_at", "finished_at", "end_time", "closed_at"),
    "start_time": ("started_at", "created_at"),
    "end_time": ("ended_at", "completed_at"),
    "completed_at": ("ended_at", "finished_at"),
    "user_id": ("account_id", "customer_id", "member_id"),
    "amount": ("total", "total_amount", "amount_cents", "price"),
    "status": ("state",),
    "state": ("status",),
    "duration": ("duration_seconds", "duration_minutes", "duration_ms"),
    "deleted_at": ("is_deleted",),
    "name": ("title", "display_name"),
}

DISCOVERY_RESPONSE_EXAMPLE = """{
  "terms": [
    {
      "term": "Revenue",
      "definition": "Total earned amount from completed transactions after deducting platform fees. Calculated by summing the earned_amount field for transactions in 'completed' state.",
      "aliases": ["Total Revenue", "Gross Revenue", "Earnings"]
    },
    {
      "term": "Active Users",
      "definition": "Number of unique users who have engaged with the platform within a defined time frame (typically 30 days). Measured by counting distinct user IDs with recent activity.",
      "aliases": ["MAU", "Monthly Active Users", "Active User Count"]
    }
  ]
}
"""

ENRICHMENT_RESPONSE_EXAMPLE = """{
  "defining_sql": "SELECT SUM(amount) AS total_revenue\\nFROM transactions\\nWHERE status = 'completed'",
  "base_table": "transactions",
  "aliases": ["Total Revenue", "Gross Revenue"]
}
"""

ENHANCED_RESPONSE_EXAMPLE = """{
  "defining_sql": "SELECT COUNT(*) FILTER (WHERE status = 'used') * 100.0 / NULLIF(COUNT(*), 0) AS utilization_rate\\nFROM offers\\nWHERE created_at >= NOW() - INTERVAL '30 days'",
  "base_table": "offers",
  "aliases": ["Usage Rate", "Redemption Rate"]
}
"""

SQL_PATTERN_EXAMPLES = """## SQL Pattern Examples

For complex metrics like rates, percentages, and multi-table calculations:

**Utilization/Conversion Rate (percentage of items in a state):**
```sql
SELECT
    COUNT(*) FILTER (WHERE status = 'used') * 100.0 / NULLIF(COUNT(*), 0) AS utilization_rate
FROM offers
WHERE created_at >= NOW() - INTERVAL '30 days'
```

**Participation Rate (distinct participants / total eligible):**
```sql
SELECT
    COUNT(DISTINCT participant_id) * 100.0 / NULLIF((SELECT COUNT(*) FROM users WHERE eligible = true), 0) AS participation_rate
FROM program_participants
```

**Multi-table Join for Related Metrics:**
```sql
SELECT
    COUNT(DISTINCT u.id) AS users_with_transactions,
    COALESCE(SUM(t.amount), 0) AS total_amount
FROM users u
LEFT JOIN transactions t ON u.id = t.user_id
```

"""


def _domain_sections(ontology: Optional[Ontology]) -> List[str]:
    """Domain overview and storage conventions"""
    summary = ontology.domain_summary if ontology else None
    if summary is None:
        return []

    parts = []
    if summary.description:
        parts.append(f"## Domain Overview\n\n{summary.description}\n\n")

    conventions = []
    if summary.soft_delete_filter:
        conventions.append(f"- Soft delete: Filter with `{summary.soft_delete_filter}`\n")
    if summary.currency_format:
        if summary.currency_format == "cents":
            conventions.append("- Currency: Stored in cents, divide by 100 for display\n")
        else:
            conventions.append("- Currency: Stored as dollars/decimal\n")
    if conventions:
        parts.append("## Conventions\n\n" + "".join(conventions) + "\n")
    return parts


def _entity_section(entities: List[OntologyEntity], with_domain: bool) -> str:
    lines = ["## Entities\n\n"]
    for entity in entities:
        if entity.is_deleted:
            continue
        if with_domain:
            lines.append(f"### {entity.name} ({entity.domain or 'general'})\n")
        else:
            lines.append(f"### {entity.name}\n")
        lines.append(f"- Table: `{entity.primary_table}`\n")
        if entity.description:
            lines.append(f"- Description: {entity.description}\n")
        lines.append("\n")
    return "".join(lines)


def _format_column(column: SchemaColumn, context: SchemaContext, detailed: bool) -> str:
    info = f"`{column.column_name}` {column.data_type}"
    if column.is_primary_key:
        info += " (PK)"

    metadata = context.metadata_for(column)
    if metadata is None:
        return info
    purpose = metadata.resolved_purpose()
    if purpose is not None:
        info += f" [{purpose.value}]"
    if detailed and metadata.description:
        info += f" - {metadata.description}"
    return info


def _allowed_values(column: SchemaColumn, context: SchemaContext, detailed: bool) -> Optional[str]:
    metadata = context.metadata_for(column)
    if metadata is None or not metadata.enum_values:
        return None
    values = []
    for enum_value in metadata.enum_values:
        if detailed and enum_value.description:
            values.append(f"'{enum_value.value}' ({enum_value.description})")
        else:
            values.append(f"'{enum_value.value}'")
    return "Allowed values: " + ", ".join(values)


def column_confusion_warnings(context: SchemaContext) -> List[str]:
    """
    Warn about commonly hallucinated column names.

    A warning is produced for each table that lacks a confusable name but has
    one of its usual real counterparts, e.g. no `started_at` but a `created_at`.
    """
    warnings = []
    for table in context.table_names:
        present = {column.column_name.lower() for column in context.columns_by_table[table]}
        for missing, siblings in CONFUSABLE_COLUMNS.items():
            if missing in present:
                continue
            sibling = next((name for name in siblings if name in present), None)
            if sibling:
                warnings.append(
                    f"Table `{table}` has NO `{missing}` column; use `{sibling}` instead."
                )
    return warnings


def type_guidance(context: SchemaContext) -> str:
    """Quoting rules for comparisons, derived from the actual column types"""
    numeric = []
    text = []
    for table in context.table_names:
        for column in context.columns_by_table[table]:
            label = f"`{table}.{column.column_name}` ({column.data_type})"
            if is_numeric_type(column.data_type):
                numeric.append(label)
            elif is_text_type(column.data_type):
                text.append(label)

    if not numeric and not text:
        return ""

    lines = ["## Type Comparison Guidance\n\n"]
    if numeric:
        lines.append("Numeric columns (compare WITHOUT quotes, e.g. `amount > 100`):\n")
        lines.append(", ".join(numeric) + "\n\n")
    if text:
        lines.append("Text columns (compare WITH single quotes, e.g. `status = 'active'`):\n")
        lines.append(", ".join(text) + "\n\n")
    return "".join(lines)


def _schema_guardrails(context: SchemaContext) -> List[str]:
    parts = []
    warnings = column_confusion_warnings(context)
    if warnings:
        parts.append("## Column Warnings\n\n" + "".join(f"- {w}\n" for w in warnings) + "\n")
    guidance = type_guidance(context)
    if guidance:
        parts.append(guidance)
    return parts


def _term_section(term: BusinessGlossaryTerm) -> str:
    return (
        "## Term to Enrich\n\n"
        f"**Term:** {term.term}\n"
        f"**Definition:** {term.definition}\n\n"
    )


def build_discovery_prompt(
    ontology: Optional[Ontology],
    entities: List[OntologyEntity],
    context: SchemaContext,
    domain_hints: List[str]
) -> str:
    """
    Build the user prompt asking for term names and definitions only.

    Args:
        ontology: Active ontology, source of the domain summary
        entities: Ontology entities; deleted ones are omitted
        context: Schema columns and metadata for the key-column listing
        domain_hints: Output of get_domain_hints

    Returns:
        Prompt text
    """
    parts = ["# Database Schema Analysis for Business Metrics\n\n"]
    parts.extend(_domain_sections(ontology))
    parts.append(_entity_section(entities, with_domain=True))

    key_lines = []
    for table in context.table_names:
        columns = context.key_columns(table)
        if not columns:
            continue
        key_lines.append(f"**{table}:**\n")
        for column in columns:
            key_lines.append(f"- {_format_column(column, context, detailed=True)}\n")
        key_lines.append("\n")
    if key_lines:
        parts.append("## Key Columns\n\n" + "".join(key_lines))

    parts.append(
        "## What NOT to Suggest\n\n"
        "Do NOT suggest these generic terms unless the schema clearly supports them:\n"
        "- \"Active Subscribers\" - only for subscription businesses with recurring billing\n"
        "- \"Churn Rate\" - only for subscription businesses with membership/plan concepts\n"
        "- \"Customer Lifetime Value\" - requires purchase history and repeat transactions\n"
        "- \"Average Order Value\" - requires order/cart system with line items\n"
        "- \"Inventory Turnover\" - requires inventory management tables\n"
        "- \"MRR/ARR\" - only for subscription businesses with recurring revenue\n\n"
        "Instead, look for domain-specific metrics based on:\n"
        "- What entities actually exist (Engagement, Transaction, Session, etc.)\n"
        "- What columns track value (amount, fee, revenue, earned_amount)\n"
        "- What time-based columns exist (duration, start_time, end_time)\n"
        "- What user roles are distinguished (host, visitor, creator, viewer)\n\n"
    )

    if domain_hints:
        parts.append(
            "## Domain Analysis\n\n"
            "Based on the schema structure, the following observations apply to this business:\n\n"
            + "".join(f"- {hint}\n" for hint in domain_hints)
            + "\n"
        )

    parts.append(
        "## Response Format\n\n"
        "Respond with a JSON object containing suggested business terms (NO SQL - just term, definition, aliases):\n"
        f"```json\n{DISCOVERY_RESPONSE_EXAMPLE}```\n\n"
        "Suggest 5-15 domain-specific business terms based on the schema. Focus on quality over quantity.\n"
    )
    return "".join(parts)


def build_enrichment_prompt(
    term: BusinessGlossaryTerm,
    ontology: Optional[Ontology],
    entities: List[OntologyEntity],
    context: SchemaContext
) -> str:
    """First-attempt prompt: compact schema listing and the term to enrich"""
    parts = ["# Schema Context\n\n"]
    parts.extend(_domain_sections(ontology))
    parts.append(_entity_section(entities, with_domain=False))

    parts.append("## Tables\n\n" + "".join(f"- `{table}`\n" for table in context.table_names) + "\n")

    column_lines = []
    for table in context.table_names:
        columns = context.columns_by_table[table]
        column_lines.append(f"**{table}:** " + ", ".join(
            _format_column(column, context, detailed=False) for column in columns
        ) + "\n")
        for column in columns:
            allowed = _allowed_values(column, context, detailed=False)
            if allowed:
                column_lines.append(f"  `{column.column_name}` {allowed}\n")
    if column_lines:
        parts.append("## Columns\n\n" + "".join(column_lines) + "\n")

    parts.extend(_schema_guardrails(context))
    parts.append(_term_section(term))
    parts.append(
        "## Response Format\n\n"
        "Respond with a JSON object containing the enrichment:\n"
        f"```json\n{ENRICHMENT_RESPONSE_EXAMPLE}```\n"
    )
    return "".join(parts)


def build_enhanced_enrichment_prompt(
    term: BusinessGlossaryTerm,
    ontology: Optional[Ontology],
    entities: List[OntologyEntity],
    context: SchemaContext,
    previous_error: str
) -> str:
    """
    Retry prompt carrying the previous failure, every column with its
    description, and worked SQL patterns.
    """
    parts = ["# Schema Context (Enhanced Detail)\n\n"]

    if previous_error:
        parts.append(
            "## Previous Attempt Failed\n\n"
            "The first attempt to generate SQL for this term failed with the following error:\n"
            f"```\n{previous_error}\n```\n\n"
            "Please analyze this error and generate valid SQL that avoids this issue.\n\n"
        )

    parts.extend(_domain_sections(ontology))
    parts.append(_entity_section(entities, with_domain=False))

    reference = []
    for table in context.table_names:
        reference.append(f"**{table}:**\n")
        for column in context.columns_by_table[table]:
            reference.append(f"- {_format_column(column, context, detailed=True)}\n")
            allowed = _allowed_values(column, context, detailed=True)
            if allowed:
                reference.append(f"  {allowed}\n")
        reference.append("\n")
    if reference:
        parts.append(
            "## Complete Column Reference\n\n"
            "All available columns by table (use these exact names in your SQL):\n\n"
            + "".join(reference)
        )

    parts.extend(_schema_guardrails(context))
    parts.append(_term_section(term))
    parts.append(SQL_PATTERN_EXAMPLES)
    parts.append(
        "## Response Format\n\n"
        "Respond with a JSON object containing the enrichment:\n"
        f"```json\n{ENHANCED_RESPONSE_EXAMPLE}```\n\n"
        "IMPORTANT: Use exact table and column names from the schema above. The SQL must execute successfully.\n"
    )
    return "".join(parts)
