"""
Exception types raised by the ontology engine
"""


class OntologyEngineError(Exception):
    """Base class for ontology engine failures"""


class StateNotFoundError(OntologyEngineError):
    """A required workflow entity state row does not exist"""


class TaskExecutionError(OntologyEngineError):
    """Infrastructure failure inside a task, message is '<operation>: <cause>'"""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation}: {cause}")


class LLMResponseError(OntologyEngineError):
    """LLM content could not be parsed into the expected schema"""


class TermValidationError(OntologyEngineError, ValueError):
    """Glossary term input rejected"""


class TermNotFoundError(OntologyEngineError):
    """Glossary term does not exist"""
