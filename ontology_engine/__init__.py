"""
Ontology engine: column profiling, relationship inference and glossary enrichment
"""
__version__ = "0.1.0"
