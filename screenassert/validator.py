"""
Block dispatcher: the top-level entry point of screenassert.

    validator = ImplicationValidator()
    report = await validator.validate(document, test_data, screen)

A document is either block-form (``{"blocks": [...]}``), processed in
ascending ``order`` and aborted on the first failing block, or legacy-form
(flat ``visible``/``hidden``/``functions``/... fields) processed in a fixed
sequence.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from playwright.async_api import expect as playwright_expect

from .backends import ElementBackend, is_playwright_screen, select_backend
from .checks import compare_values
from .config import ValidatorConfig
from .custom_code import CustomCodeContext, CustomCodeRegistry
from .evaluator import AssertionEvaluator
from .exceptions import (
    BlockFailedError,
    CustomCodeError,
    FieldNotFoundError,
    NotCallableError,
    UnknownBlockTypeError,
    UnknownOperatorError,
)
from .locators import known_fields
from .models import (
    BLOCK_CUSTOM_CODE,
    BLOCK_DATA_ASSERTION,
    BLOCK_FUNCTION_CALL,
    BLOCK_UI_ASSERTION,
    Block,
    BlockDocument,
    BlockOutcome,
    DataAssertion,
    FunctionCallData,
    LegacyDocument,
    UIAssertionData,
    UIChecks,
    ValidationReport,
    is_block_form,
)
from .operators import apply_operator
from .store import VariableStore
from .templates import FULL_TOKEN_RE, MISSING, TemplateResolver
from .tracing import NoopTracer, Tracer, safe_emit
from .utils import get_member, maybe_await

logger = logging.getLogger(__name__)

_DEFINEDNESS_OPERATORS = frozenset({"isDefined", "isUndefined"})


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class ImplicationValidator:
    """
    Interprets expectation documents against a live screen object.

    Args:
        store: Variable store shared across validations (a new one by default).
            Values written with ``storeAs`` stay visible to later calls until
            the caller clears it.
        config: ValidatorConfig options.
        tracer: Optional tracer receiving ``block_start``/``block_end``/``verification``.
        registry: Callbacks for ``custom-code`` blocks.
        backend: Force a backend instead of picking one from the screen object.
    """

    def __init__(
        self,
        store: VariableStore | None = None,
        config: ValidatorConfig | None = None,
        tracer: Tracer | None = None,
        registry: CustomCodeRegistry | None = None,
        backend: ElementBackend | None = None,
    ) -> None:
        self.store = store if store is not None else VariableStore()
        self.config = config or ValidatorConfig()
        self.tracer = tracer or NoopTracer()
        self.registry = registry or CustomCodeRegistry()
        self.templates = TemplateResolver(self.store)
        self._forced_backend = backend
        self.evaluator: AssertionEvaluator | None = None

    # ========== entry points ==========

    async def validate(
        self,
        document: Any,
        test_data: Any = None,
        screen: Any = None,
        *,
        screen_name: str | None = None,
    ) -> ValidationReport:
        """
        Validate one screen.

        Raises:
            BlockFailedError: a block failed (block form); ``.original`` is the cause
            ScreenAssertError / AssertionError: a legacy-form step failed
        """
        if isinstance(document, list):
            document = document[0] if document else None

        report = ValidationReport(screen=screen_name)
        if not document:
            logger.warning("No screen definition provided, nothing to validate")
            report.status = "passed"
            report.variables = self.store.dump()
            return report

        backend = self._forced_backend or select_backend(
            screen, visible_timeout_ms=self.config.visible_timeout_ms
        )
        self.evaluator = AssertionEvaluator(
            backend, self.store, templates=self.templates, config=self.config, tracer=self.tracer
        )
        logger.debug("Using %s backend", getattr(backend, "name", type(backend).__name__))

        report.status = "running"
        try:
            if is_block_form(document):
                report.form = "blocks"
                await self._run_blocks(document, test_data, screen, report)
            else:
                report.form = "legacy"
                await self._run_legacy(document, test_data, screen)
        except Exception:
            report.status = "failed"
            report.variables = self.store.dump()
            raise

        report.status = "passed"
        report.variables = self.store.dump()
        return report

    async def validate_screens(
        self,
        screens: Mapping[str, Any],
        screen_objects: Mapping[str, Any],
        test_data: Any = None,
    ) -> dict[str, ValidationReport]:
        """Validate several screens in mapping order; stops at the first failure."""
        reports: dict[str, ValidationReport] = {}
        for key, document in screens.items():
            screen = screen_objects.get(key)
            if screen is None:
                logger.info("Skipping %s: no screen object", key)
                continue
            logger.info("Validating screen: %s", key)
            reports[key] = await self.validate(document, test_data, screen, screen_name=key)
        return reports

    # ========== block form ==========

    async def _run_blocks(self, document: Any, test_data: Any, screen: Any, report: ValidationReport) -> None:
        if not isinstance(document, BlockDocument):
            raw = document if isinstance(document, Mapping) else {"blocks": document.blocks}
            document = BlockDocument.model_validate(raw)

        # sorted() is stable: equal orders keep document order
        blocks = sorted(document.blocks, key=lambda b: b.order)
        total = len(blocks)
        logger.info("Processing %d blocks...", total)

        for index, block in enumerate(blocks):
            outcome = BlockOutcome(
                index=index,
                id=block.id,
                type=block.type,
                label=block.display_label,
                order=block.order,
                status="skipped",
            )
            report.blocks.append(outcome)

            if not block.enabled:
                logger.info("Skipping disabled block: %s", block.display_label)
                continue

            step_id = block.id or f"block-{index + 1}"
            self.evaluator.step_id = step_id
            event = {"index": index, "total": total, "id": block.id, "type": block.type, "label": block.display_label}
            safe_emit(self.tracer, "block_start", {**event, "status": "running"}, step_id=step_id)
            logger.info("[%d/%d] %s (%s)", index + 1, total, block.display_label, block.type)

            started = time.monotonic()
            try:
                await self._dispatch_block(block, test_data, screen)
            except Exception as exc:
                outcome.status = "failed"
                outcome.duration_ms = _elapsed_ms(started)
                outcome.error = str(exc)
                logger.error("Block %s failed: %s", block.display_label, exc)
                safe_emit(self.tracer, "block_end", {**event, "status": "failed"}, step_id=step_id)
                safe_emit(
                    self.tracer,
                    "verification",
                    {"kind": "block", "label": block.display_label, "passed": False, "reason": str(exc)},
                    step_id=step_id,
                )
                report.status = "failed"
                report.variables = self.store.dump()
                raise BlockFailedError(index, total, block, exc, report) from exc

            outcome.status = "passed"
            outcome.duration_ms = _elapsed_ms(started)
            safe_emit(self.tracer, "block_end", {**event, "status": "passed"}, step_id=step_id)

        logger.info("All blocks passed")

    async def _dispatch_block(self, block: Block, test_data: Any, screen: Any) -> None:
        if block.type == BLOCK_UI_ASSERTION:
            await self._run_ui_assertion(UIAssertionData.model_validate(block.data), test_data, screen)
        elif block.type == BLOCK_CUSTOM_CODE:
            await self._run_custom_code(block, test_data, screen)
        elif block.type == BLOCK_FUNCTION_CALL:
            await self._run_function_call(FunctionCallData.model_validate(block.data), test_data, screen)
        elif block.type == BLOCK_DATA_ASSERTION:
            await self._run_data_assertions(block.assertions, test_data)
        else:
            raise UnknownBlockTypeError(block.type)

    async def _run_ui_assertion(self, data: UIAssertionData, test_data: Any, screen: Any) -> None:
        evaluator = self.evaluator
        for selector in data.visible:
            await evaluator.check_visible(screen, selector, test_data)
        for selector in data.hidden:
            await evaluator.check_hidden(screen, selector, test_data)
        for selector, expected in data.checks.text.items():
            await evaluator.check_text(screen, selector, expected, test_data)
        for selector, expected in data.checks.contains.items():
            await evaluator.check_contains(screen, selector, expected, test_data)
        for name in data.truthy:
            await evaluator.check_truthy(screen, name)
        for name in data.falsy:
            await evaluator.check_falsy(screen, name)
        for assertion in data.assertions:
            await evaluator.check_assertion(screen, assertion, test_data)

    async def _run_custom_code(self, block: Block, test_data: Any, screen: Any) -> None:
        key = block.handler or block.code or block.id
        callback = self.registry.get(block.handler) or self.registry.get(block.code) or self.registry.get(block.id)
        label = block.display_label

        if callback is None:
            if not block.handler and not (block.code or "").strip():
                logger.warning("Custom code block %s has no code, skipping", label)
                return
            raise CustomCodeError(label, f"no custom code registered for {key!r}")

        if block.wrap_in_test_step:
            logger.info("Test step: %s", block.test_step_name or label)

        context = CustomCodeContext(
            page=get_member(screen, "page") if is_playwright_screen(screen) else screen,
            screen=screen,
            test_data=test_data,
            expect=playwright_expect,
            compare=compare_values,
            store=self.store,
            validator=self,
            block=block,
        )
        try:
            await maybe_await(callback(context))
        except Exception as exc:
            raise CustomCodeError(label, exc) from exc
        logger.info("Custom code block %s completed", label)

    async def _run_function_call(self, data: FunctionCallData, test_data: Any, screen: Any) -> None:
        if not data.method:
            logger.warning("function-call block has no method, skipping")
            return

        target = screen
        owner = "screen object"
        # "this" names the screen object itself
        if data.instance and data.instance != "this":
            target = get_member(screen, data.instance)
            owner = data.instance
            if target is MISSING or target is None:
                raise FieldNotFoundError(data.instance, known_fields(screen))

        method = get_member(target, data.method)
        if not callable(method):
            raise NotCallableError(data.method, owner)

        args = self.templates.resolve(data.args, test_data)
        logger.info("Calling %s(%s)", data.method, ", ".join(repr(a) for a in args))
        result = method(*args)
        if data.await_result:
            result = await maybe_await(result)

        if data.store_as:
            self.evaluator.store_result(data.store_as, result, data.persist_store_as, test_data)

    async def _run_data_assertions(self, assertions: list[DataAssertion], test_data: Any) -> None:
        for assertion in assertions:
            left = self._resolve_operand(assertion.left, assertion.operator, test_data)
            right = self._resolve_operand(assertion.right, assertion.operator, test_data)
            try:
                apply_operator(assertion.operator, left, right, label=assertion.label)
            except UnknownOperatorError:
                if self.config.unknown_operator == "warn":
                    logger.warning("Unknown operator: %s, skipping", assertion.operator)
                    continue
                raise
            except AssertionError:
                logger.error("Data assertion failed: %s", assertion.label)
                logger.error("   left: %r", left)
                logger.error("   right: %r", right)
                raise
            logger.info("%s", assertion.label)

    def _resolve_operand(self, value: Any, operator: str, test_data: Any) -> Any:
        if operator in _DEFINEDNESS_OPERATORS and isinstance(value, str):
            match = FULL_TOKEN_RE.match(value)
            if match and self.templates.get_nested_value(test_data, match.group(1).strip()) is MISSING:
                return None
        return self.templates.resolve(value, test_data)

    # ========== legacy form ==========

    async def _run_legacy(self, document: Any, test_data: Any, screen: Any) -> None:
        if not isinstance(document, LegacyDocument):
            document = LegacyDocument.model_validate(document)
        evaluator = self.evaluator
        page = get_member(screen, "page") if is_playwright_screen(screen) else screen

        for prerequisite in document.prerequisites:
            logger.info("Prerequisite: %s", prerequisite.description)
            await maybe_await(prerequisite.setup(test_data, page))

        await evaluator.execute_functions(document.functions, screen, test_data)

        for selector in document.visible:
            await evaluator.check_visible(screen, selector, test_data)
        for selector in document.hidden:
            await evaluator.check_hidden(screen, selector, test_data)
        for name in document.truthy:
            await evaluator.check_truthy(screen, name)
        for name in document.falsy:
            await evaluator.check_falsy(screen, name)
        for assertion in document.assertions:
            await evaluator.check_assertion(screen, assertion, test_data)

        if document.checks is not None:
            await self._run_legacy_checks(document.checks, test_data, screen)

        if document.expect is not None:
            logger.info("Running custom expect function")
            await maybe_await(document.expect(test_data, page))

    async def _run_legacy_checks(self, checks: UIChecks, test_data: Any, screen: Any) -> None:
        evaluator = self.evaluator
        for selector in checks.visible:
            await evaluator.check_visible(screen, selector, test_data)
        for selector in checks.hidden:
            await evaluator.check_hidden(screen, selector, test_data)
        for selector, expected in checks.text.items():
            await evaluator.check_text(screen, selector, expected, test_data)
        for selector, expected in checks.contains.items():
            await evaluator.check_contains(screen, selector, expected, test_data)
