"""
Configuration for the glossary service
"""
import os
from dataclasses import dataclass


@dataclass
class GlossaryConfig:
    """Configuration for glossary discovery and enrichment with environment variable support"""

    # Runtime environment; test-like term names are rejected in production
    env: str = "local"

    # LLM
    temperature: float = 0.3
    max_enrichment_attempts: int = 2

    # SQL testing; two rows are fetched so multi-row results can be detected
    sample_row_limit: int = 2

    @classmethod
    def from_env(cls) -> 'GlossaryConfig':
        """Create configuration from environment variables"""
        return cls(
            env=os.getenv("ENVIRONMENT", "local"),
            temperature=float(os.getenv("GLOSSARY_LLM_TEMPERATURE", "0.3")),
            max_enrichment_attempts=int(os.getenv("GLOSSARY_MAX_ENRICHMENT_ATTEMPTS", "2")),
            sample_row_limit=int(os.getenv("GLOSSARY_SAMPLE_ROW_LIMIT", "2")),
        )

    @property
    def is_production(self) -> bool:
        return self.env == "production"
