"""
Unit tests for configuration, logging and observability setup
"""

import logging
from unittest.mock import patch

from ontology_engine.glossary import GlossaryConfig
from ontology_engine.logging_config import configure_logging
from ontology_engine.observability import ObservabilityManager
from ontology_engine.profiler import ProfilerConfig
from ontology_engine.relationships import RelationshipConfig


class TestEnvironmentConfig:
    """Test cases for from_env constructors"""

    @patch.dict("os.environ", {}, clear=True)
    def test_defaults(self):
        """Test defaults when nothing is set"""
        profiler = ProfilerConfig.from_env()
        relationships = RelationshipConfig.from_env()
        glossary = GlossaryConfig.from_env()

        assert profiler.sample_limit == 50
        assert profiler.enum_detection.max_distinct == 5
        assert profiler.enum_detection.max_ratio == 0.01
        assert profiler.column_filter.min_distinct_count == 20
        assert profiler.column_filter.min_distinct_ratio == 0.05
        assert profiler.column_filter.legacy_name_patterns is False
        assert relationships.value_match_threshold == 0.30
        assert relationships.table_id_confidence == 0.8
        assert glossary.max_enrichment_attempts == 2
        assert glossary.sample_row_limit == 2
        assert not glossary.is_production

    @patch.dict("os.environ", {
        "PROFILER_SAMPLE_LIMIT": "25",
        "PROFILER_ENUM_MAX_DISTINCT": "10",
        "PROFILER_LEGACY_NAME_PATTERNS": "true",
        "RELATIONSHIP_VALUE_MATCH_THRESHOLD": "0.5",
        "ENVIRONMENT": "production",
        "GLOSSARY_MAX_ENRICHMENT_ATTEMPTS": "3",
    })
    def test_overrides(self):
        """Test environment overrides"""
        profiler = ProfilerConfig.from_env()

        assert profiler.sample_limit == 25
        assert profiler.enum_detection.max_distinct == 10
        assert profiler.column_filter.legacy_name_patterns is True
        assert RelationshipConfig.from_env().value_match_threshold == 0.5
        glossary = GlossaryConfig.from_env()
        assert glossary.is_production
        assert glossary.max_enrichment_attempts == 3


class TestLogging:
    """Test cases for configure_logging"""

    def test_configure_logging_level(self):
        """Test the requested level is applied"""
        with patch("ontology_engine.logging_config.logging.basicConfig") as basic_config:
            configure_logging("debug")

        assert basic_config.call_args[1]["level"] == logging.DEBUG

    @patch.dict("os.environ", {"LOG_LEVEL": "warning"})
    def test_configure_logging_from_env(self):
        """Test LOG_LEVEL is used by default"""
        with patch("ontology_engine.logging_config.logging.basicConfig") as basic_config:
            configure_logging()

        assert basic_config.call_args[1]["level"] == logging.WARNING


class TestObservability:
    """Test cases for ObservabilityManager"""

    @patch.dict("os.environ", {}, clear=True)
    def test_disabled_without_api_key(self):
        """Test decorators are pass-through when tracing is off"""
        manager = ObservabilityManager()

        def task():
            return "done"

        assert manager.enabled is False
        assert manager.trace_task("scan")(task) is task
        assert manager.trace_llm_call("generate")(task) is task
        manager.log_task_metrics("scan", {"count": 1})
