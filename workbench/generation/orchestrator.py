"""Generation orchestration: from workspace state to a resolved record.

``generate()`` runs the synchronous part on the caller's thread (input
resolution, version commits, schema rendering, pre-flight checks) and
returns a loading record. The LLM call runs on a worker pool and resolves
the record when it finishes. Failures are captured on the record; the only
exception ``generate()`` raises is for an unknown generator id.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace

from workbench.cards import GeneratorConfig, InputKind
from workbench.config import EnvVar, get_environment
from workbench.fetch import FetchClient, FetchError
from workbench.llm.backend import LLMError
from workbench.llm.extractor import SchemaRejectionError, StructuredExtractor
from workbench.pricing import (
    PricingTable,
    TokenBreakdown,
    default_pricing_table,
    estimate_output_tokens,
    format_cost,
    should_warn_about_cost,
)
from workbench.validation import validate_schema_text
from workbench.workspace import CardNotFoundError, Workspace

from .models import (
    CostInfo,
    ErrorKind,
    FieldViolation,
    GenerationError,
    GenerationRecord,
    GenerationReference,
    TokenUsage,
)

logger = logging.getLogger(__name__)

MSG_NO_ACTIVE_INPUT = "No active input card found."
MSG_EMPTY_INPUT = "No data available for generation."


class GenerationOrchestrator:
    """Launches generations against a workspace.

    Pipeline:
        1. Resolve the active input (fetch cards become a new string card)
        2. Commit dirty input and generator drafts, or reuse their versions
        3. Render schema text and freeze a GenerationReference
        4. Estimate tokens and cost, insert the loading record
        5. Gate on schema text and model context
        6. Call the extractor on a worker thread and resolve the record

    Example:
        >>> orchestrator = GenerationOrchestrator(Workspace())
        >>> record = orchestrator.generate(generator_id)
        >>> record = orchestrator.wait(record.id, timeout=60)
        >>> record.result
    """

    def __init__(
        self,
        workspace: Workspace,
        extractor: StructuredExtractor | None = None,
        fetch_client: FetchClient | None = None,
        max_workers: int | None = None,
        pricing: PricingTable | None = None,
    ):
        """Initialize GenerationOrchestrator.

        Args:
            workspace: State the generations read and record into.
            extractor: LLM extractor. Creates a default one if None.
            fetch_client: Client used to resolve fetch cards.
            max_workers: Concurrent in-flight calls. Defaults to
                WORKBENCH_GENERATION_WORKERS.
            pricing: Pricing table for estimates. Defaults to the registry.
        """
        self._workspace = workspace
        self._extractor = extractor or StructuredExtractor()
        self._owns_fetch_client = fetch_client is None
        self._fetch_client = fetch_client or FetchClient()
        self._pricing = pricing or default_pricing_table()
        workers = get_environment(EnvVar.WORKBENCH_GENERATION_WORKERS, override=max_workers)
        self._executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="generation"
        )
        self._futures: dict[str, Future] = {}

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    def generate(self, generator_id: str) -> GenerationRecord:
        """Launch a generation for ``generator_id`` against the active input.

        Returns immediately with the inserted record. The record is already
        resolved when a pre-flight check failed; otherwise it is loading until
        the remote call finishes (see :meth:`wait`).

        Raises:
            CardNotFoundError: If no generator card has this id.
        """
        generator = self._workspace.get_generator_card(generator_id)

        card = self._workspace.active_input
        if card is None:
            return self._rejected(generator_id, ErrorKind.NO_ACTIVE_INPUT, MSG_NO_ACTIVE_INPUT)

        if card.kind == InputKind.FETCH:
            try:
                card = self._workspace.execute_fetch(card.id, self._fetch_client)
            except FetchError as e:
                logger.warning(f"Fetch for {card.label!r} failed: {e}")
                return self._rejected(
                    generator_id,
                    ErrorKind.FETCH_RESOLUTION_FAILED,
                    f"Fetch request failed: {e}",
                )

        input_text = self._workspace.active_input_text()
        if not input_text.strip():
            return self._rejected(generator_id, ErrorKind.EMPTY_INPUT, MSG_EMPTY_INPUT)

        input_version = card.ensure_committed()
        generator_version = generator.ensure_committed()
        config = generator.draft.model_copy(deep=True)
        schema_text = config.schema_text()

        reference = GenerationReference(
            input_card_id=card.id,
            input_card_version=input_version,
            generator_card_id=generator.id,
            generator_card_version=generator_version,
            input_text=input_text,
            generator_config=config,
        )

        breakdown = TokenBreakdown.from_texts(input_text, config.system_message, schema_text)
        estimate = self._pricing.estimate_cost(
            breakdown.total,
            estimate_output_tokens(breakdown.total, config.has_schema),
            config.model,
        )
        record = self._workspace.add_record(
            GenerationRecord(
                generator_id=generator.id,
                generation_reference=reference,
                token_breakdown=breakdown,
                token_usage=TokenUsage(expected_input_tokens=breakdown.total),
                cost_info=CostInfo.from_estimate(estimate),
            )
        )
        logger.info(
            f"Generation {record.id} launched: {generator.label!r} "
            f"v{generator_version} on {card.label!r} v{input_version}, "
            f"~{breakdown.total} tokens, est. {format_cost(estimate.total_estimated_cost)}"
        )

        check = validate_schema_text(schema_text)
        if not check.valid:
            return self._fail(record, GenerationError(ErrorKind.SCHEMA_TEXT_INVALID, check.error))

        if estimate.exceeds_max_tokens:
            alternatives = ", ".join(record.cost_info.suggested_alternatives) or "none"
            return self._fail(
                record,
                GenerationError(
                    ErrorKind.CONTEXT_LIMIT_EXCEEDED,
                    f"Input of ~{breakdown.total} tokens exceeds the context window "
                    f"of {config.model}. Alternatives: {alternatives}",
                ),
            )

        if should_warn_about_cost(estimate.total_estimated_cost):
            logger.warning(
                f"Generation {record.id} is estimated at "
                f"{format_cost(estimate.total_estimated_cost)}"
            )

        future = self._executor.submit(
            self._run, record.id, input_text, config, schema_text
        )
        self._futures[record.id] = future
        future.add_done_callback(
            lambda _, record_id=record.id: self._futures.pop(record_id, None)
        )
        return record

    def wait(self, record_id: str, timeout: float | None = None) -> GenerationRecord:
        """Block until the record's remote call finishes, then return it.

        Raises:
            TimeoutError: If the call is still running after ``timeout`` seconds.
            CardNotFoundError: If no record has this id.
        """
        future = self._futures.get(record_id)
        if future is not None:
            future.result(timeout=timeout)
            self._futures.pop(record_id, None)
        return self._workspace.get_record(record_id)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool and close the fetch client if it was created here."""
        self._executor.shutdown(wait=wait)
        if self._owns_fetch_client:
            self._fetch_client.close()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _rejected(self, generator_id: str, kind: ErrorKind, message: str) -> GenerationRecord:
        """Record a failed precondition; no collaborator has been contacted."""
        logger.warning(f"Generation for {generator_id} rejected: {message}")
        record = self._workspace.add_record(GenerationRecord(generator_id=generator_id))
        return self._workspace.resolve_record(record.id, error=GenerationError(kind, message))

    def _fail(self, record: GenerationRecord, error: GenerationError) -> GenerationRecord:
        logger.warning(f"Generation {record.id} failed ({error.kind.value}): {error.message}")
        return self._workspace.resolve_record(record.id, error=error)

    def _run(
        self,
        record_id: str,
        input_text: str,
        config: GeneratorConfig,
        schema_text: str,
    ) -> None:
        try:
            self._complete(record_id, input_text, config, schema_text)
        except CardNotFoundError:
            # Generator deleted while the call was in flight; its records went with it
            logger.debug(f"Generation {record_id} finished after its record was removed")

    def _complete(
        self,
        record_id: str,
        input_text: str,
        config: GeneratorConfig,
        schema_text: str,
    ) -> None:
        started = time.monotonic()
        try:
            result = self._extractor.invoke(
                input_text, config.model, config.system_message, schema_text
            )
        except SchemaRejectionError as e:
            self._fail_by_id(
                record_id,
                GenerationError(
                    ErrorKind.SCHEMA_SEMANTIC_REJECTION,
                    f"Schema validation failed: {len(e.violations)} violation(s)",
                    violations=tuple(FieldViolation(path, msg) for path, msg in e.violations),
                    generated_value=e.generated_value,
                ),
            )
            return
        except LLMError as e:
            self._fail_by_id(
                record_id,
                GenerationError(ErrorKind.REMOTE_CALL_FAILURE, f"AI generation failed: {e}"),
            )
            return
        except Exception as e:
            # Worker boundary: an unexpected error must still resolve the record
            logger.exception(f"Unexpected error in generation {record_id}")
            self._fail_by_id(
                record_id,
                GenerationError(ErrorKind.REMOTE_CALL_FAILURE, f"AI generation failed: {e}"),
            )
            return

        elapsed_ms = int((time.monotonic() - started) * 1000)
        record = self._workspace.get_record(record_id)
        usage = TokenUsage(
            expected_input_tokens=record.token_usage.expected_input_tokens,
            actual_input_tokens=result.usage.get("prompt_tokens"),
            output_tokens=result.usage.get("completion_tokens"),
            total_tokens=result.usage.get("total_tokens"),
        )
        actual = self._pricing.calculate_actual_cost(
            usage.actual_input_tokens, usage.output_tokens, config.model
        )
        cost_info = record.cost_info
        if actual is not None:
            cost_info = replace(
                cost_info, actual_cost=actual.total_cost, output_cost=actual.output_cost
            )

        self._workspace.resolve_record(
            record_id,
            result=result.object,
            token_usage=usage,
            cost_info=cost_info,
            generation_time_ms=elapsed_ms,
        )
        logger.info(
            f"Generation {record_id} finished in {elapsed_ms} ms "
            f"({usage.total_tokens or 0} tokens)"
        )

    def _fail_by_id(self, record_id: str, error: GenerationError) -> None:
        self._fail(self._workspace.get_record(record_id), error)


__all__ = ["GenerationOrchestrator", "MSG_NO_ACTIVE_INPUT", "MSG_EMPTY_INPUT"]
