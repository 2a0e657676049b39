"""
Business glossary service: term CRUD, SQL testing, LLM discovery and enrichment
"""
import re
import logging
from dataclasses import replace
from typing import List, Optional
from uuid import UUID

from ..datasource import DatasourceAdapterFactory, DatasourceService
from ..errors import OntologyEngineError, TaskExecutionError, TermValidationError, TermNotFoundError
from ..llm import LLMClient, LLMClientFactory, parse_json_response
from ..models import (
    BusinessGlossaryTerm,
    GlossarySource,
    EnrichmentStatus,
    Ontology,
    OntologyEntity,
    OutputColumn,
)
from ..observability import observability
from ..repositories import (
    GlossaryRepository,
    OntologyRepository,
    EntityRepository,
    SchemaRepository,
    ColumnMetadataRepository,
)
from ..workqueue import TenantScope, acquire_tenant
from .config import GlossaryConfig
from .domain_hints import filter_inapplicable_terms, get_domain_hints
from .models import SQLTestResult, EnrichmentSummary, SuggestedTermsResponse, TermEnrichment
from .prompts import (
    DISCOVERY_SYSTEM_MESSAGE,
    ENRICHMENT_SYSTEM_MESSAGE,
    build_discovery_prompt,
    build_enrichment_prompt,
    build_enhanced_enrichment_prompt,
)
from .schema_context import SchemaContext
from .sql_validation import (
    find_top_level_union,
    validate_column_references,
    validate_enum_values,
    validate_formula_semantics,
)

logger = logging.getLogger(__name__)

TEST_TERM_PATTERNS = [
    re.compile(r'(?i)^test'),
    re.compile(r'(?i)test$'),
    re.compile(r'(?i)^uitest'),
    re.compile(r'(?i)^debug'),
    re.compile(r'(?i)^todo'),
    re.compile(r'(?i)^fixme'),
    re.compile(r'(?i)^dummy'),
    re.compile(r'(?i)^sample'),
    re.compile(r'(?i)^example'),
    re.compile(r'\d{4}$'),
]


def is_test_term(term_name: str) -> bool:
    """True for names that look like test data, e.g. 'TestMetric' or 'Revenue2024'"""
    return any(pattern.search(term_name) for pattern in TEST_TERM_PATTERNS)


class GlossaryService:
    """Manages business glossary terms and their LLM-generated defining SQL"""

    def __init__(
        self,
        glossary_repo: GlossaryRepository,
        ontology_repo: OntologyRepository,
        entity_repo: EntityRepository,
        schema_repo: SchemaRepository,
        datasource_service: DatasourceService,
        adapter_factory: DatasourceAdapterFactory,
        llm_factory: LLMClientFactory,
        tenant_scope: TenantScope,
        column_metadata_repo: Optional[ColumnMetadataRepository] = None,
        config: Optional[GlossaryConfig] = None
    ):
        self.glossary_repo = glossary_repo
        self.ontology_repo = ontology_repo
        self.entity_repo = entity_repo
        self.schema_repo = schema_repo
        self.datasource_service = datasource_service
        self.adapter_factory = adapter_factory
        self.llm_factory = llm_factory
        self.tenant_scope = tenant_scope
        self.column_metadata_repo = column_metadata_repo
        self.config = config or GlossaryConfig.from_env()

    # ========================================================================
    # CRUD
    # ========================================================================

    def _check_required(self, term: BusinessGlossaryTerm) -> None:
        if not term.term:
            raise TermValidationError("term name is required")
        if not term.definition:
            raise TermValidationError("term definition is required")
        if not term.defining_sql:
            raise TermValidationError("defining_sql is required")

    def _check_test_term(self, term: BusinessGlossaryTerm) -> None:
        if not is_test_term(term.term):
            return
        if self.config.is_production:
            raise TermValidationError(f"test data not allowed in production: {term.term}")
        logger.warning(f"Saving test-like glossary term '{term.term}' (env={self.config.env})")

    def _require_valid_sql(self, project_id: UUID, sql: str) -> List[OutputColumn]:
        result = self.test_sql(project_id, sql)
        if not result.valid:
            raise TermValidationError(f"SQL validation failed: {result.error}")
        return result.output_columns

    def create_term(self, project_id: UUID, term: BusinessGlossaryTerm) -> BusinessGlossaryTerm:
        """
        Create a manually defined term after test-executing its SQL.

        Args:
            project_id: Owning project
            term: Term with name, definition and defining_sql

        Returns:
            The stored term, with output columns captured from the test run

        Raises:
            TermValidationError: Missing fields, test-like name in production, or invalid SQL
        """
        self._check_required(term)
        self._check_test_term(term)

        term.project_id = project_id
        if term.source is None:
            term.source = GlossarySource.MANUAL

        if term.ontology_id is None:
            try:
                ontology = self.ontology_repo.get_active(project_id)
                if ontology is not None:
                    term.ontology_id = ontology.id
            except Exception as e:
                logger.warning(f"Failed to get active ontology for term creation in project {project_id}: {e}")

        term.output_columns = self._require_valid_sql(project_id, term.defining_sql)

        try:
            self.glossary_repo.create(term)
        except Exception as e:
            logger.error(f"Failed to create glossary term '{term.term}': {e}")
            raise TaskExecutionError("create glossary term", e) from e

        logger.info(f"Created glossary term '{term.term}' ({term.id}) for project {project_id}")
        return term

    def update_term(self, term: BusinessGlossaryTerm) -> BusinessGlossaryTerm:
        """Update a term, re-testing its SQL only when the SQL changed"""
        if term.id is None:
            raise TermValidationError("term ID is required")
        self._check_required(term)
        self._check_test_term(term)

        try:
            existing = self.glossary_repo.get_by_id(term.id)
        except Exception as e:
            raise TaskExecutionError("get existing term", e) from e
        if existing is None:
            raise TermNotFoundError(f"glossary term not found: {term.id}")

        if term.defining_sql != existing.defining_sql:
            term.output_columns = self._require_valid_sql(term.project_id, term.defining_sql)
        else:
            term.output_columns = existing.output_columns

        try:
            self.glossary_repo.update(term)
        except Exception as e:
            logger.error(f"Failed to update glossary term {term.id}: {e}")
            raise TaskExecutionError("update glossary term", e) from e

        logger.info(f"Updated glossary term '{term.term}' ({term.id})")
        return term

    def delete_term(self, term_id: UUID) -> None:
        try:
            self.glossary_repo.delete(term_id)
        except Exception as e:
            raise TaskExecutionError("delete glossary term", e) from e
        logger.info(f"Deleted glossary term {term_id}")

    def get_terms(self, project_id: UUID) -> List[BusinessGlossaryTerm]:
        try:
            return self.glossary_repo.get_by_project(project_id)
        except Exception as e:
            raise TaskExecutionError("get glossary terms", e) from e

    def get_term(self, term_id: UUID) -> Optional[BusinessGlossaryTerm]:
        try:
            return self.glossary_repo.get_by_id(term_id)
        except Exception as e:
            raise TaskExecutionError("get glossary term", e) from e

    def get_term_by_name(self, project_id: UUID, term_name: str) -> Optional[BusinessGlossaryTerm]:
        """Look up by exact term name, then by alias"""
        try:
            term = self.glossary_repo.get_by_term(project_id, term_name)
        except Exception as e:
            raise TaskExecutionError("get glossary term by name", e) from e
        if term is not None:
            return term

        try:
            return self.glossary_repo.get_by_alias(project_id, term_name)
        except Exception as e:
            raise TaskExecutionError("get glossary term by alias", e) from e

    def create_alias(self, term_id: UUID, alias: str) -> None:
        if not alias:
            raise TermValidationError("alias is required")
        try:
            self.glossary_repo.create_alias(term_id, alias)
        except Exception as e:
            raise TaskExecutionError("create glossary alias", e) from e
        logger.info(f"Created alias '{alias}' for glossary term {term_id}")

    def delete_alias(self, term_id: UUID, alias: str) -> None:
        if not alias:
            raise TermValidationError("alias is required")
        try:
            self.glossary_repo.delete_alias(term_id, alias)
        except Exception as e:
            raise TaskExecutionError("delete glossary alias", e) from e
        logger.info(f"Deleted alias '{alias}' from glossary term {term_id}")

    # ========================================================================
    # SQL testing
    # ========================================================================

    def test_sql(self, project_id: UUID, sql: str) -> SQLTestResult:
        """
        Execute a defining query against the project's datasource.

        A valid defining query returns exactly one row. Invalid SQL is reported
        in the result; only infrastructure failures raise.

        Args:
            project_id: Project whose first datasource is used
            sql: Candidate defining SQL

        Returns:
            SQLTestResult with output columns and the sample row when valid
        """
        try:
            datasources = self.datasource_service.list(project_id)
        except Exception as e:
            raise TaskExecutionError("list datasources", e) from e

        if not datasources:
            return SQLTestResult(valid=False, error="no datasource configured for project")

        datasource = datasources[0]
        if datasource.decryption_failed:
            return SQLTestResult(valid=False, error="datasource credentials were encrypted with a different key")

        if find_top_level_union(sql):
            return SQLTestResult(
                valid=False,
                error="query returns multiple rows: top-level UNION is not allowed, "
                      "wrap it in an outer query that aggregates to a single row",
            )

        try:
            executor = self.adapter_factory.new_query_executor(
                datasource.datasource_type, datasource.config, project_id, datasource.id
            )
        except Exception as e:
            raise TaskExecutionError("create query executor", e) from e

        try:
            result = executor.query(sql, self.config.sample_row_limit)
        except Exception as e:
            return SQLTestResult(valid=False, error=str(e))
        finally:
            executor.close()

        if len(result.rows) > 1:
            return SQLTestResult(
                valid=False,
                error="query returned multiple rows; a defining query must aggregate to exactly one row",
            )
        if not result.rows:
            return SQLTestResult(
                valid=False,
                error="query returned no rows; a defining query must return exactly one row",
            )

        return SQLTestResult(
            valid=True,
            output_columns=[OutputColumn(name=col.name, type=col.type) for col in result.columns],
            sample_row=result.rows[0],
        )

    # ========================================================================
    # Shared context
    # ========================================================================

    def _load_ontology(self, project_id: UUID) -> Ontology:
        try:
            ontology = self.ontology_repo.get_active(project_id)
        except Exception as e:
            raise TaskExecutionError("get active ontology", e) from e
        if ontology is None:
            raise OntologyEngineError(f"no active ontology found for project {project_id}")
        return ontology

    def _load_entities(self, project_id: UUID) -> List[OntologyEntity]:
        try:
            return self.entity_repo.get_by_project(project_id)
        except Exception as e:
            raise TaskExecutionError("get entities", e) from e

    def _load_schema_context(self, project_id: UUID, entities: List[OntologyEntity]) -> SchemaContext:
        """Columns of every live entity's primary table, with stored column metadata"""
        table_names = sorted({e.primary_table for e in entities if not e.is_deleted and e.primary_table})
        try:
            columns_by_table = self.schema_repo.get_columns_by_tables(project_id, table_names) if table_names else {}
        except Exception as e:
            raise TaskExecutionError("load schema", e) from e

        metadata_by_column_id = {}
        if self.column_metadata_repo is not None:
            try:
                metadata = self.column_metadata_repo.get_by_project(project_id)
            except Exception as e:
                raise TaskExecutionError("load column metadata", e) from e
            metadata_by_column_id = {m.column_id: m for m in metadata}

        return SchemaContext(columns_by_table=columns_by_table, metadata_by_column_id=metadata_by_column_id)

    def _create_llm_client(self, project_id: UUID) -> LLMClient:
        try:
            return self.llm_factory.create_for_project(project_id)
        except Exception as e:
            raise TaskExecutionError("create LLM client", e) from e

    # ========================================================================
    # Discovery
    # ========================================================================

    def discover_glossary_terms(self, project_id: UUID, ontology_id: UUID) -> int:
        """
        Ask the LLM for domain-specific terms and store the new ones unenriched.

        Args:
            project_id: Project to analyze
            ontology_id: Ontology the discovered terms belong to

        Returns:
            Number of terms created
        """
        logger.info(f"Starting glossary term discovery for project {project_id}")

        ontology = self._load_ontology(project_id)
        entities = self._load_entities(project_id)
        if not entities:
            logger.info(f"No entities found for project {project_id}, skipping term discovery")
            return 0

        context = self._load_schema_context(project_id, entities)
        hints = get_domain_hints(entities, context.all_column_names())
        prompt = build_discovery_prompt(ontology, entities, context, hints)

        llm_client = self._create_llm_client(project_id)
        try:
            response = llm_client.generate_response(
                prompt, DISCOVERY_SYSTEM_MESSAGE, self.config.temperature, False
            )
        except Exception as e:
            raise TaskExecutionError("LLM generate response", e) from e

        logger.debug(
            f"Discovery LLM response: prompt_tokens={response.prompt_tokens} "
            f"completion_tokens={response.completion_tokens}"
        )

        suggestions = parse_json_response(response.content, SuggestedTermsResponse).terms
        filtered = filter_inapplicable_terms(suggestions, entities)
        logger.debug(f"Filtered inapplicable terms: {len(suggestions)} suggested, {len(filtered)} kept")

        discovered = 0
        for suggestion in filtered:
            name = suggestion.term.strip()
            if not name:
                continue

            try:
                existing = self.glossary_repo.get_by_term(project_id, name)
            except Exception as e:
                logger.error(f"Failed to check for duplicate term '{name}': {e}")
                continue
            if existing is not None:
                logger.debug(f"Term already exists, skipping: {name}")
                continue

            term = BusinessGlossaryTerm(
                term=name,
                definition=suggestion.definition,
                project_id=project_id,
                ontology_id=ontology_id,
                aliases=list(suggestion.aliases),
                source=GlossarySource.INFERRED,
            )
            try:
                self.glossary_repo.create(term)
            except Exception as e:
                logger.error(f"Failed to create discovered term '{name}': {e}")
                continue

            discovered += 1
            logger.debug(f"Created discovered term '{name}' ({term.id})")

        logger.info(
            f"Completed glossary term discovery for project {project_id}: "
            f"{discovered} discovered, {len(suggestions)} suggested, {len(filtered)} after filter"
        )
        observability.log_task_metrics("glossary_discovery", {
            "terms_suggested": len(suggestions),
            "terms_after_filter": len(filtered),
            "terms_discovered": discovered,
        })
        return discovered

    # ========================================================================
    # Enrichment
    # ========================================================================

    def enrich_glossary_terms(self, project_id: UUID, ontology_id: UUID) -> EnrichmentSummary:
        """
        Generate and validate defining SQL for every unenriched inferred term.

        One term's failure never aborts the batch; it is recorded on the term
        as enrichment_status=failed.

        Returns:
            Counts of enriched and failed terms
        """
        logger.info(f"Starting glossary term enrichment for project {project_id} (ontology {ontology_id})")

        try:
            all_terms = self.glossary_repo.get_by_project(project_id)
        except Exception as e:
            raise TaskExecutionError("get glossary terms", e) from e

        backlog = [
            term for term in all_terms
            if term.source != GlossarySource.MANUAL and not term.defining_sql
        ]
        summary = EnrichmentSummary()
        if not backlog:
            logger.info(f"No unenriched terms found for project {project_id}")
            return summary

        logger.info(f"Found {len(backlog)} unenriched terms to process")

        ontology = self._load_ontology(project_id)
        entities = self._load_entities(project_id)
        context = self._load_schema_context(project_id, entities)
        llm_client = self._create_llm_client(project_id)

        for term in backlog:
            try:
                scope = acquire_tenant(self.tenant_scope, project_id)
            except TaskExecutionError as e:
                logger.error(f"Failed to enrich term '{term.term}': {e}")
                summary.failed += 1
                continue

            with scope:
                if self._enrich_single_term(term, ontology, entities, context, llm_client, project_id):
                    summary.enriched += 1
                else:
                    summary.failed += 1

        logger.info(
            f"Completed glossary term enrichment for project {project_id}: "
            f"{summary.enriched} enriched, {summary.failed} failed, {summary.processed} processed"
        )
        observability.log_task_metrics("glossary_enrichment", {
            "terms_enriched": summary.enriched,
            "terms_failed": summary.failed,
        })
        return summary

    def _enrich_single_term(
        self,
        term: BusinessGlossaryTerm,
        ontology: Ontology,
        entities: List[OntologyEntity],
        context: SchemaContext,
        llm_client: LLMClient,
        project_id: UUID
    ) -> bool:
        """Bounded retry-with-repair loop; the retry prompt carries the previous error"""
        previous_error = ""
        for attempt in range(self.config.max_enrichment_attempts):
            enhanced = attempt > 0
            try:
                self._try_enrich_term(term, ontology, entities, context, llm_client, project_id, enhanced, previous_error)
                if enhanced:
                    logger.info(f"Enrichment succeeded on retry with enhanced context: {term.term}")
                return True
            except Exception as e:
                previous_error = str(e)
                logger.warning(f"Enrichment attempt {attempt + 1} failed for '{term.term}': {e}")

        term.enrichment_status = EnrichmentStatus.FAILED
        term.enrichment_error = previous_error
        try:
            self.glossary_repo.update(term)
        except Exception as e:
            logger.error(f"Failed to save enrichment failure status for '{term.term}': {e}")

        logger.error(f"Failed to enrich term '{term.term}' after {self.config.max_enrichment_attempts} attempts")
        return False

    def _try_enrich_term(
        self,
        term: BusinessGlossaryTerm,
        ontology: Ontology,
        entities: List[OntologyEntity],
        context: SchemaContext,
        llm_client: LLMClient,
        project_id: UUID,
        enhanced: bool,
        previous_error: str
    ) -> None:
        if enhanced:
            prompt = build_enhanced_enrichment_prompt(term, ontology, entities, context, previous_error)
        else:
            prompt = build_enrichment_prompt(term, ontology, entities, context)

        response = llm_client.generate_response(
            prompt, ENRICHMENT_SYSTEM_MESSAGE, self.config.temperature, False
        )
        enrichment = parse_json_response(response.content, TermEnrichment)

        sql = enrichment.defining_sql.strip()
        if not sql:
            raise TermValidationError("LLM returned empty SQL")

        reference_errors = validate_column_references(sql, context.column_names_by_table())
        if reference_errors:
            raise TermValidationError(f"invalid column reference: {reference_errors[0].message}")

        mismatches = validate_enum_values(sql, context.enum_columns())
        if mismatches:
            for mismatch in mismatches:
                logger.warning(f"Enum value mismatch in SQL for '{term.term}': {mismatch.message}")
            raise TermValidationError(mismatches[0].message)

        result = self.test_sql(project_id, sql)
        if not result.valid:
            raise TermValidationError(f"SQL validation failed: {result.error}")

        semantic_warning = validate_formula_semantics(term.term, sql)
        if semantic_warning:
            raise TermValidationError(f"semantic check failed: {semantic_warning}")

        aliases = list(term.aliases)
        for alias in enrichment.aliases:
            if alias not in aliases:
                aliases.append(alias)

        enriched = replace(
            term,
            defining_sql=sql,
            base_table=enrichment.base_table,
            output_columns=result.output_columns,
            aliases=aliases,
            enrichment_status=EnrichmentStatus.SUCCESS,
            enrichment_error="",
        )
        try:
            self.glossary_repo.update(enriched)
        except Exception as e:
            raise TaskExecutionError("update term", e) from e

        logger.debug(f"Enriched term '{term.term}' with {len(result.output_columns)} output columns")
