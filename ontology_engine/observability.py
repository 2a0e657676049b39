import os
import logging
from datetime import datetime
from typing import Dict, Any
from functools import wraps

from langsmith import Client, trace, traceable

logger = logging.getLogger(__name__)


class ObservabilityManager:
    """
    LangSmith tracing for engine tasks and LLM calls.
    Tracing is enabled only when LANGCHAIN_API_KEY is configured.
    """

    def __init__(self):
        self.client = None
        self.enabled = self._setup_langsmith()
        self.session_name = f"ontology-engine-{datetime.now().strftime('%Y%m%d-%H%M%S')}"

    def _setup_langsmith(self) -> bool:
        """Configure the LangSmith client from LANGCHAIN_* variables"""
        api_key = os.getenv("LANGCHAIN_API_KEY")
        project = os.getenv("LANGCHAIN_PROJECT", "ontology-engine")
        endpoint = os.getenv("LANGCHAIN_ENDPOINT", "https://api.smith.langchain.com")

        if not api_key:
            logger.debug("LANGCHAIN_API_KEY not set - LangSmith tracing disabled")
            return False

        try:
            os.environ["LANGCHAIN_TRACING_V2"] = "true"
            os.environ["LANGCHAIN_PROJECT"] = project
            os.environ["LANGCHAIN_ENDPOINT"] = endpoint

            self.client = Client(api_url=endpoint, api_key=api_key)

            logger.info(f"LangSmith tracing enabled for engine tasks - Project: {project}")
            return True

        except Exception as e:
            logger.error(f"Failed to setup LangSmith, tracing disabled: {e}")
            return False

    def trace_task(self, task_name: str, metadata: Dict[str, Any] = None):
        """Decorator to trace a workqueue task execution"""
        def decorator(func):
            if not self.enabled:
                return func

            @wraps(func)
            @traceable(
                name=f"task_{task_name}",
                metadata={"step_type": "task", "task_name": task_name, **(metadata or {})}
            )
            def wrapper(*args, **kwargs):
                try:
                    logger.info(f"Executing task: {task_name}")
                    result = func(*args, **kwargs)
                    logger.info(f"Completed task: {task_name}")
                    return result
                except Exception as e:
                    logger.error(f"Error in task {task_name}: {str(e)}")
                    raise

            return wrapper
        return decorator

    def trace_llm_call(self, call_name: str):
        """Decorator to trace an LLM request as an llm run"""
        def decorator(func):
            if not self.enabled:
                return func
            return wraps(func)(traceable(name=call_name, run_type="llm")(func))
        return decorator

    def log_task_metrics(self, task_name: str, metrics: Dict[str, Any]):
        """Log task-level counters as a standalone run"""
        if not self.enabled:
            return

        try:
            with trace(
                name=f"{task_name}_metrics",
                metadata={"task": task_name, "session": self.session_name, **metrics},
                client=self.client
            ) as run:
                run.end(outputs={"metrics": metrics})

        except Exception as e:
            logger.error(f"Failed to log metrics for {task_name}: {e}")


# Shared by all tasks and LLM clients
observability = ObservabilityManager()


def trace_task(task_name: str, metadata: Dict[str, Any] = None):
    """Convenience decorator for task tracing"""
    return observability.trace_task(task_name, metadata)


def trace_llm_call(call_name: str):
    """Convenience decorator for LLM call tracing"""
    return observability.trace_llm_call(call_name)
