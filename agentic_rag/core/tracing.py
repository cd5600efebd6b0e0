"""Trace sinks for workflow step observability.

Every logical step of the workflow is reported as a run with a start and an
end. Sinks are best-effort: ``StepTracer`` swallows and logs any sink failure
so tracing can never fail or alter a request.
"""

import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Protocol

from opentelemetry import trace

from agentic_rag.core.config import Settings, get_settings
from agentic_rag.core.logging_config import get_logger
from agentic_rag.core.telemetry import get_tracer, setup_telemetry

logger = get_logger(__name__)


def preview(text: Optional[str], limit: int = 200) -> str:
    """Shorten text for trace payloads."""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class TraceSink(Protocol):
    """Destination for workflow run events."""

    def start_run(
        self,
        run_type: str,
        name: str,
        inputs: Dict[str, Any],
        parent_run_id: Optional[str] = None,
    ) -> Optional[str]:
        ...

    def end_run(
        self,
        run_id: Optional[str],
        outputs: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> None:
        ...


class NullTraceSink:
    """Sink that discards all events."""

    def start_run(self, run_type, name, inputs, parent_run_id=None):
        return None

    def end_run(self, run_id, outputs=None, error=None):
        return None


@dataclass
class TraceRun:
    """A single recorded run."""

    run_id: str
    run_type: str
    name: str
    inputs: Dict[str, Any]
    parent_run_id: Optional[str] = None
    outputs: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: Optional[datetime] = None


class RecordingTraceSink:
    """In-memory sink that keeps every run, in start order."""

    def __init__(self) -> None:
        self.runs: List[TraceRun] = []
        self._by_id: Dict[str, TraceRun] = {}
        self._lock = threading.Lock()

    def start_run(self, run_type, name, inputs, parent_run_id=None):
        run = TraceRun(
            run_id=str(uuid.uuid4()),
            run_type=run_type,
            name=name,
            inputs=dict(inputs or {}),
            parent_run_id=parent_run_id,
        )
        with self._lock:
            self.runs.append(run)
            self._by_id[run.run_id] = run
        return run.run_id

    def end_run(self, run_id, outputs=None, error=None):
        if run_id is None:
            return
        with self._lock:
            run = self._by_id.get(run_id)
        if run is None:
            logger.debug(f"end_run for unknown run {run_id}")
            return
        run.outputs = dict(outputs or {})
        run.error = error
        run.end_time = datetime.now(timezone.utc)

    def names(self) -> List[str]:
        """Names of all recorded runs, in start order."""
        return [run.name for run in self.runs]

    def count(self, name: str) -> int:
        """Number of recorded runs with the given name."""
        return sum(1 for run in self.runs if run.name == name)

    def clear(self) -> None:
        with self._lock:
            self.runs.clear()
            self._by_id.clear()


def _span_value(value: Any) -> Any:
    if isinstance(value, (bool, int, float, str)):
        return value
    return preview(str(value), 500)


class OpenTelemetryTraceSink:
    """Sink that maps runs onto OpenTelemetry spans."""

    def __init__(self, tracer: Optional[trace.Tracer] = None) -> None:
        self.tracer = tracer or get_tracer("agentic_rag.workflow")
        self._spans: Dict[str, trace.Span] = {}

    def start_run(self, run_type, name, inputs, parent_run_id=None):
        context = None
        parent = self._spans.get(parent_run_id) if parent_run_id else None
        if parent is not None:
            context = trace.set_span_in_context(parent)

        span = self.tracer.start_span(name, context=context)
        span.set_attribute("run.type", run_type)
        for key, value in (inputs or {}).items():
            span.set_attribute(f"input.{key}", _span_value(value))

        run_id = str(uuid.uuid4())
        self._spans[run_id] = span
        return run_id

    def end_run(self, run_id, outputs=None, error=None):
        span = self._spans.pop(run_id, None) if run_id else None
        if span is None:
            return
        for key, value in (outputs or {}).items():
            span.set_attribute(f"output.{key}", _span_value(value))
        if error:
            span.set_status(trace.StatusCode.ERROR, error)
        span.end()


class LangSmithTraceSink:
    """Sink that posts runs to LangSmith."""

    def __init__(
        self,
        api_key: str,
        project: str = "agentic-rag",
        endpoint: str = "https://api.smith.langchain.com",
        client: Any = None,
    ) -> None:
        if client is None:
            from langsmith import Client

            client = Client(api_url=endpoint, api_key=api_key)
        self.client = client
        self.project = project
        logger.info(f"LangSmith tracing enabled for project: {project}")

    def start_run(self, run_type, name, inputs, parent_run_id=None):
        run_id = str(uuid.uuid4())
        self.client.create_run(
            name=name,
            inputs=inputs or {},
            run_type=run_type,
            id=run_id,
            project_name=self.project,
            parent_run_id=parent_run_id,
            start_time=datetime.now(timezone.utc),
        )
        return run_id

    def end_run(self, run_id, outputs=None, error=None):
        if run_id is None:
            return
        self.client.update_run(
            run_id,
            outputs=outputs or {},
            error=error,
            end_time=datetime.now(timezone.utc),
        )


class StepTracer:
    """Reports workflow steps to a sink without ever raising."""

    def __init__(self, sink: Optional[TraceSink] = None) -> None:
        self.sink: TraceSink = sink if sink is not None else NullTraceSink()

    def start(
        self,
        run_type: str,
        name: str,
        inputs: Dict[str, Any],
        parent_run_id: Optional[str] = None,
    ) -> Optional[str]:
        try:
            return self.sink.start_run(run_type, name, inputs, parent_run_id)
        except Exception as e:
            logger.warning(f"Failed to start trace run '{name}': {e}")
            return None

    def end(
        self,
        run_id: Optional[str],
        outputs: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> None:
        try:
            self.sink.end_run(run_id, outputs, error)
        except Exception as e:
            logger.warning(f"Failed to end trace run {run_id}: {e}")

    @contextmanager
    def step(
        self,
        run_type: str,
        name: str,
        inputs: Dict[str, Any],
        parent_run_id: Optional[str] = None,
    ) -> Iterator[Dict[str, Any]]:
        """
        Trace one step around a ``with`` block.

        The yielded dict collects the step outputs. An exception raised in the
        block is recorded on the run and re-raised.
        """
        run_id = self.start(run_type, name, inputs, parent_run_id)
        outputs: Dict[str, Any] = {}
        try:
            yield outputs
        except Exception as e:
            self.end(run_id, outputs, error=f"{type(e).__name__}: {e}")
            raise
        self.end(run_id, outputs)


def create_trace_sink(settings: Optional[Settings] = None) -> TraceSink:
    """Build the sink selected by TRACE_BACKEND."""
    settings = settings or get_settings()

    if settings.trace_backend == "otel":
        setup_telemetry(force=True)
        return OpenTelemetryTraceSink()

    if settings.trace_backend == "langsmith":
        if not settings.langsmith_api_key:
            logger.warning("TRACE_BACKEND=langsmith but LANGSMITH_API_KEY is not set, tracing disabled")
            return NullTraceSink()
        try:
            return LangSmithTraceSink(
                api_key=settings.langsmith_api_key,
                project=settings.langsmith_project,
                endpoint=settings.langsmith_endpoint,
            )
        except Exception as e:
            logger.warning(f"LangSmith tracing unavailable: {e}")
            return NullTraceSink()

    return NullTraceSink()
