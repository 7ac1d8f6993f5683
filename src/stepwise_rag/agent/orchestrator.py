"""Linear query pipeline: classify, resolve context, reason, respond."""

from __future__ import annotations

import logging
from enum import Enum

from stepwise_rag.agent.classifier import IntentClassifier
from stepwise_rag.agent.registry import ToolRegistry
from stepwise_rag.agent.resolver import ContextResolver
from stepwise_rag.agent.stages import ReasoningStage, ResponseSynthesizer
from stepwise_rag.config import AgentConfig
from stepwise_rag.errors import InputError
from stepwise_rag.llm.backend import ChatBackend, session_headers
from stepwise_rag.obs.logging import log_context
from stepwise_rag.obs.session import SessionContext, Stopwatch
from stepwise_rag.obs.tracing import TraceStore
from stepwise_rag.types import PipelineResult, SessionTrace, StepKind

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    START = "start"
    CLASSIFYING = "classifying"
    CONTEXT_RESOLVING = "context_resolving"
    REASONING = "reasoning"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    FAILED = "failed"


class QueryOrchestrator:
    """Runs one query through the fixed pipeline and records its trace.

    Service handles are injected and only read during a run, so a single
    orchestrator can serve concurrent queries. Each run owns its own
    `SessionTrace`.
    """

    def __init__(
        self,
        *,
        backend: ChatBackend,
        tool_registry: ToolRegistry,
        session: SessionContext | None = None,
        trace_store: TraceStore | None = None,
        config: AgentConfig | None = None,
    ) -> None:
        self.config = config or AgentConfig()
        self.session = session or SessionContext(self.config.session_name)
        self.trace_store = trace_store
        self.classifier = IntentClassifier(backend, self.config.classify)
        self.resolver = ContextResolver(tool_registry, self.config.retrieval)
        self.reasoning = ReasoningStage(backend, self.config.reasoning)
        self.synthesizer = ResponseSynthesizer(backend, self.config.final)

    def invoke(self, text: str | None) -> PipelineResult:
        """Run one full pipeline pass.

        Raises:
            InputError: `text` is missing or blank. No trace is started.
            ToolError, ModelError: a stage failed. The partial trace is kept
                in the trace store with status ``failed``.
        """

        if text is None or not text.strip():
            raise InputError()

        trace = self.session.begin(text)
        state = PipelineState.START
        watch = Stopwatch()
        try:
            with log_context(session_id=trace.session_id):
                state = PipelineState.CLASSIFYING
                decision = self.classifier.fast_path(text)
                if decision is None:
                    with self.session.step(
                        trace, "/classify", {"text": text}, name="classify"
                    ) as step:
                        decision = self.classifier.classify(
                            text, headers=self._headers(trace, "/classify")
                        )
                        step.output = decision.classification.value

                state = PipelineState.CONTEXT_RESOLVING
                context = self.resolver.resolve(decision, text, trace=trace)

                state = PipelineState.REASONING
                with self.session.step(
                    trace,
                    "/reasoning",
                    {"query": text, "context": context.value},
                    name="reasoning",
                    kind=StepKind.LLM,
                ) as step:
                    reasoning = self.reasoning.reason(
                        text, context.value, headers=self._headers(trace, "/reasoning")
                    )
                    step.output = reasoning

                state = PipelineState.SYNTHESIZING
                with self.session.step(
                    trace,
                    "/final-response",
                    {"query": text, "context": context.value, "reasoning": reasoning},
                    name="final_response",
                    kind=StepKind.LLM,
                ) as step:
                    response = self.synthesizer.synthesize(
                        text,
                        context.value,
                        reasoning,
                        headers=self._headers(trace, "/final-response"),
                    )
                    step.output = response

                state = PipelineState.DONE
                trace.status = "completed"

            logger.info(
                "pipeline completed in %.1fms via %s",
                watch.elapsed_ms(),
                context.source_kind.value,
                extra={"extra_fields": {"session_id": trace.session_id, "paths": trace.paths}},
            )
        except Exception as exc:
            trace.status = PipelineState.FAILED.value
            trace.error = str(exc)
            logger.error(
                "pipeline failed while %s: %s",
                state.value,
                exc,
                extra={"extra_fields": {"session_id": trace.session_id, "paths": trace.paths}},
            )
            raise
        finally:
            self._store(trace)

        return PipelineResult(response=response, session_id=trace.session_id, trace=trace)

    def _store(self, trace: SessionTrace) -> None:
        if self.trace_store is None:
            return
        try:
            self.trace_store.save(trace)
        except Exception:
            logger.warning(
                "trace store rejected session %s", trace.session_id, exc_info=True
            )

    def _headers(self, trace: SessionTrace, path: str) -> dict[str, str]:
        return session_headers(trace.session_id, path, trace.name)
