"""
Business-model detection used to steer and filter term discovery
"""
from typing import List, Iterable

from ..models import OntologyEntity

SUBSCRIPTION_ENTITY_KEYWORDS = ("subscription", "plan", "membership", "tier")
INVENTORY_ENTITY_KEYWORDS = ("inventory", "product", "stock", "warehouse", "sku")
ECOMMERCE_ENTITY_KEYWORDS = ("order", "cart", "checkout", "purchase")
ENGAGEMENT_ENTITY_KEYWORDS = ("engagement", "session", "meeting", "call", "booking")
BILLING_ENTITY_KEYWORDS = ("billing", "transaction", "payment", "invoice", "charge")

# Terms that only make sense when the matching entities exist
SUBSCRIPTION_TERMS = (
    "subscriber", "subscription", "churn", "mrr", "arr",
    "monthly recurring", "annual recurring", "recurring revenue",
)
INVENTORY_TERMS = (
    "inventory", "stock", "warehouse", "turnover",
    "stock level", "reorder", "stockout",
)
ECOMMERCE_TERMS = (
    "order value", "cart", "checkout", "aov", "gmv",
    "average order", "gross merchandise",
)

ROLE_COLUMNS = {
    "host_id", "visitor_id", "creator_id", "viewer_id",
    "buyer_id", "seller_id", "sender_id", "receiver_id",
    "payer_id", "payee_id", "owner_id", "member_id",
    "author_id", "performer_id", "attendee_id", "participant_id",
}


def contains_entity_by_name(entities: List[OntologyEntity], *keywords: str) -> bool:
    """Case-insensitive substring match of any keyword on live entity names or tables"""
    for entity in entities:
        if entity.is_deleted:
            continue
        name = entity.name.lower()
        table = entity.primary_table.lower()
        for keyword in keywords:
            keyword = keyword.lower()
            if keyword in name or keyword in table:
                return True
    return False


def has_role_distinguishing_columns(column_names: Iterable[str]) -> bool:
    """At least two participant-role columns (host_id, buyer_id, ...) across the schema"""
    count = 0
    for name in column_names:
        if name.lower() in ROLE_COLUMNS:
            count += 1
            if count >= 2:
                return True
    return False


def get_domain_hints(entities: List[OntologyEntity], column_names: Iterable[str]) -> List[str]:
    """
    Describe the detected business model for the discovery prompt.

    Args:
        entities: Ontology entities
        column_names: Every column name in the ontology's tables

    Returns:
        Hint sentences, possibly empty
    """
    has_engagement = contains_entity_by_name(entities, *ENGAGEMENT_ENTITY_KEYWORDS)
    has_subscription = contains_entity_by_name(entities, *SUBSCRIPTION_ENTITY_KEYWORDS)
    has_billing = contains_entity_by_name(entities, *BILLING_ENTITY_KEYWORDS)
    has_inventory = contains_entity_by_name(entities, *INVENTORY_ENTITY_KEYWORDS)
    has_ecommerce = contains_entity_by_name(entities, *ECOMMERCE_ENTITY_KEYWORDS)

    hints = []
    if has_engagement and not has_subscription:
        hints.append(
            "This appears to be an engagement/session-based business, not subscription-based. "
            "Focus on per-engagement metrics rather than recurring revenue metrics."
        )
    if has_billing and not has_subscription:
        hints.append(
            "Focus on transaction-based metrics (revenue per engagement, fees, payouts, transaction volume) "
            "rather than subscription metrics (MRR, ARR, churn)."
        )
    if has_role_distinguishing_columns(column_names):
        hints.append(
            "There are distinct user roles (e.g., host/visitor, creator/viewer, buyer/seller). "
            "Consider role-specific metrics for each participant type."
        )
    if not has_inventory and not has_ecommerce:
        hints.append(
            "This is not an e-commerce or inventory-based business. Do not suggest inventory metrics "
            "(stock levels, turnover) or order-based metrics (AOV, cart abandonment)."
        )
    if has_subscription:
        hints.append(
            "This appears to be a subscription-based business. Consider recurring revenue metrics "
            "(MRR, ARR, churn, subscriber lifetime value)."
        )
    return hints


def matches_any(term: str, patterns: Iterable[str]) -> bool:
    return any(pattern in term for pattern in patterns)


def filter_inapplicable_terms(terms: List, entities: List[OntologyEntity]) -> List:
    """
    Drop suggested terms whose business model is absent from the schema.

    Works on anything with a `term` attribute, so both LLM suggestions and
    glossary terms can be filtered.
    """
    has_subscription = contains_entity_by_name(entities, *SUBSCRIPTION_ENTITY_KEYWORDS)
    has_inventory = contains_entity_by_name(entities, *INVENTORY_ENTITY_KEYWORDS)
    has_ecommerce = contains_entity_by_name(entities, *ECOMMERCE_ENTITY_KEYWORDS)

    filtered = []
    for term in terms:
        name = term.term.lower()
        if not has_subscription and matches_any(name, SUBSCRIPTION_TERMS):
            continue
        if not has_inventory and matches_any(name, INVENTORY_TERMS):
            continue
        if not has_ecommerce and matches_any(name, ECOMMERCE_TERMS):
            continue
        filtered.append(term)
    return filtered
