"""
Assertion evaluator: runs named checks against resolved locators or screen
function results, iterating [all] / sampling [any] selectors, and applies the
store / soft-fail policy of each check category.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, MutableMapping
from typing import Any

from .backends.protocol import ElementBackend
from .checks import CheckSpec, get_check, run_element_check, run_value_check
from .config import ValidatorConfig
from .exceptions import AssertionFailure, DocumentError, NoElementsError, NotCallableError
from .locators import LocatorResolver, ResolvedLocator
from .models import Assertion, LegacyFunction
from .selectors import coerce_index, parse_field_selector
from .store import VariableStore
from .templates import TemplateResolver
from .tracing import NoopTracer, Tracer, safe_emit
from .utils import get_member, maybe_await

logger = logging.getLogger(__name__)

ElementAction = Callable[[str, Any], Awaitable[Any]]


class AssertionEvaluator:
    def __init__(
        self,
        backend: ElementBackend,
        store: VariableStore,
        *,
        templates: TemplateResolver | None = None,
        config: ValidatorConfig | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        self.backend = backend
        self.store = store
        self.config = config or ValidatorConfig()
        self.templates = templates or TemplateResolver(store)
        self.locators = LocatorResolver(backend, self.templates, self.config)
        self.tracer = tracer or NoopTracer()
        # Set by the dispatcher so trace events line up with blocks
        self.step_id: str | None = None

    # ========== element iteration ==========

    async def _for_each_target(
        self,
        screen: Any,
        resolved: ResolvedLocator,
        action: ElementAction,
        *,
        allow_empty: bool = False,
        detail: str | None = None,
    ) -> list[Any]:
        """Apply ``action`` to the element(s) a resolved selector denotes; fail-fast."""
        if resolved.mode == "single":
            return [await action(resolved.label, resolved.locator)]

        if resolved.mode == "all":
            results = []
            async for label, element in self.locators.iter_elements(
                screen, resolved, allow_empty=allow_empty, detail=detail
            ):
                results.append(await action(label, element))
            if not results and allow_empty:
                logger.info("%s[all] - no elements exist (counts as hidden)", resolved.field)
            return results

        picked = await self.locators.pick_random(screen, resolved, allow_empty=allow_empty, detail=detail)
        if picked is None:
            logger.info("%s[any] - no elements exist (counts as hidden)", resolved.field)
            return []
        label, element = picked
        return [await action(label, element)]

    # ========== UI checks ==========

    async def check_visible(self, screen: Any, selector: str, data: Any = None) -> None:
        resolved = await self.locators.resolve(screen, selector, data)

        async def _visible(label: str, element: Any) -> None:
            await self.backend.expect_visible(element, label)

        checked = await self._for_each_target(screen, resolved, _visible)
        logger.info("%s is visible (%d element(s))", resolved.label, len(checked))

    async def check_hidden(self, screen: Any, selector: str, data: Any = None) -> None:
        resolved = await self.locators.resolve(screen, selector, data)

        async def _hidden(label: str, element: Any) -> None:
            await self.backend.expect_hidden(element, label)

        await self._for_each_target(screen, resolved, _hidden, allow_empty=True)
        logger.info("%s is hidden", resolved.label)

    async def check_text(self, screen: Any, selector: str, expected: Any, data: Any = None) -> None:
        """Exact text match."""
        resolved = await self.locators.resolve(screen, selector, data)
        text = str(self.templates.resolve(expected, data))

        async def _text(label: str, element: Any) -> None:
            await self.backend.expect_text(element, text, label)

        await self._for_each_target(screen, resolved, _text, detail="text check")
        logger.info('%s = "%s"', resolved.label, text)

    async def check_contains(self, screen: Any, selector: str, expected: Any, data: Any = None) -> None:
        resolved = await self.locators.resolve(screen, selector, data)
        text = str(self.templates.resolve(expected, data))

        async def _contains(label: str, element: Any) -> None:
            await self.backend.expect_contains_text(element, text, label)

        await self._for_each_target(screen, resolved, _contains, detail="contains check")
        logger.info('%s contains "%s"', resolved.label, text)

    async def check_truthy(self, screen: Any, function_name: str) -> None:
        result = await self._call_screen_function(screen, function_name)
        if not result:
            raise AssertionFailure(
                f"Expected {function_name}() to be truthy, got: {result!r}",
                expected=True,
                actual=result,
                operator="toBeTruthy",
            )
        logger.info("%s() is truthy (returned: %r)", function_name, result)

    async def check_falsy(self, screen: Any, function_name: str) -> None:
        result = await self._call_screen_function(screen, function_name)
        if result:
            raise AssertionFailure(
                f"Expected {function_name}() to be falsy, got: {result!r}",
                expected=False,
                actual=result,
                operator="toBeFalsy",
            )
        logger.info("%s() is falsy (returned: %r)", function_name, result)

    async def _call_screen_function(self, screen: Any, name: str, *args: Any) -> Any:
        member = get_member(screen, name)
        if not callable(member):
            raise NotCallableError(name)
        return await maybe_await(member(*args))

    # ========== assertions ==========

    async def check_assertion(self, screen: Any, assertion: Assertion | Mapping[str, Any], data: Any = None) -> Any:
        """
        Run one ad-hoc assertion.

        ``type: "method"`` with an index runs against ``method(idx, *args)``;
        ``type: "locator"`` runs against a field selector; anything else
        runs against the return value of a screen function.
        """
        if not isinstance(assertion, Assertion):
            assertion = Assertion.model_validate(assertion)

        if assertion.type == "locator":
            return await self._check_locator_assertion(screen, assertion, data)
        if assertion.type == "method":
            parsed = parse_field_selector(assertion.fn, self.templates, data)
            if assertion.index_mode is not None or parsed.index is not None:
                return await self._check_indexed_method(screen, assertion, data)
        return await self._check_function_assertion(screen, assertion, data)

    def _soft_fail(self, spec: CheckSpec, store_as: str | None, label: str, exc: Exception) -> bool:
        """True when ``exc`` is recorded as a False result instead of raised."""
        if spec.soft_fails_when_stored and store_as:
            logger.warning("%s %s -> False (will store): %s", label, spec.name, exc)
            safe_emit(
                self.tracer,
                "verification",
                {
                    "kind": "soft_fail",
                    "label": f"{label} {spec.name}",
                    "passed": False,
                    "store_as": store_as,
                    "reason": str(exc),
                },
                step_id=self.step_id,
            )
            return True
        logger.error("%s %s failed: %s", label, spec.name, exc)
        return False

    async def _check_function_assertion(self, screen: Any, assertion: Assertion, data: Any) -> Any:
        spec = get_check(assertion.expect)
        fn_name = parse_field_selector(assertion.fn).field
        member = get_member(screen, fn_name)
        if not callable(member):
            raise NotCallableError(fn_name)

        resolved_params = self.templates.resolve(assertion.params, data) if assertion.params else {}
        param_values = list(resolved_params.values()) if resolved_params else self.templates.resolve(assertion.args, data)
        expected = self.templates.resolve(assertion.value, data)
        label = f"{fn_name}()"

        try:
            subject = await maybe_await(member(*param_values))
            result = await run_value_check(self.backend, subject, spec, expected, label)
        except Exception as exc:
            if not self._soft_fail(spec, assertion.store_as, label, exc):
                raise
            result = False

        if assertion.store_as:
            self.store_result(assertion.store_as, result, assertion.persist_store_as, data)
        return result

    async def _check_locator_assertion(self, screen: Any, assertion: Assertion, data: Any) -> Any:
        spec = get_check(assertion.expect, "expectation")
        expected = self.templates.resolve(assertion.value, data)
        selector = assertion.fn
        if assertion.count_of:
            parsed = parse_field_selector(selector, self.templates, data)
            if parsed.is_collection and parsed.count_of is None:
                selector = f"{parsed.field}[{parsed.index}:{assertion.count_of}]"

        try:
            resolved = await self.locators.resolve(screen, selector, data)

            async def _run(label: str, element: Any) -> Any:
                return await run_element_check(self.backend, element, spec, expected, label)

            results = await self._for_each_target(screen, resolved, _run)
            result: Any = results if resolved.mode == "all" else results[0]
            if resolved.mode == "all":
                logger.info("%s[all] - all %d elements passed %s", resolved.field, len(results), spec.name)
        except Exception as exc:
            if not self._soft_fail(spec, assertion.store_as, selector, exc):
                raise
            result = False

        if assertion.store_as:
            self.store_result(assertion.store_as, result, assertion.persist_store_as, data)
        return result

    async def _check_indexed_method(self, screen: Any, assertion: Assertion, data: Any) -> Any:
        spec = get_check(assertion.expect, "expectation")
        parsed = parse_field_selector(assertion.fn, self.templates, data)
        method_name = parsed.field
        mode = assertion.index_mode if assertion.index_mode is not None else parsed.index
        count_of = assertion.count_of or parsed.count_of

        method = get_member(screen, method_name)
        if not callable(method):
            raise NotCallableError(method_name)

        args = self.templates.resolve(assertion.args, data)
        expected = self.templates.resolve(assertion.value, data)
        logger.debug("Index mode: %s[%s]", method_name, mode)

        async def _run_for_index(idx: int) -> Any:
            element = await maybe_await(method(idx, *args))
            return await run_element_check(self.backend, element, spec, expected, f"{method_name}({idx})")

        try:
            if mode == "first":
                results = [await _run_for_index(0)]
            elif mode == "last":
                count = await self.locators.method_element_count(screen, method_name, count_of)
                results = [await _run_for_index(max(0, count - 1))]
            elif mode == "any":
                count = await self.locators.method_element_count(screen, method_name, count_of)
                if count == 0:
                    raise NoElementsError(method_name, "any")
                results = [await _run_for_index(self.config.random_index(count))]
            elif mode == "all":
                count = await self.locators.method_element_count(screen, method_name, count_of)
                if count == 0:
                    raise NoElementsError(method_name, "all")
                results = []
                for i in range(count):
                    results.append(await _run_for_index(i))
                logger.info("%s[all] - all %d elements passed %s", method_name, count, spec.name)
            else:
                idx = coerce_index(mode if assertion.custom_index is None else assertion.custom_index)
                if idx is None:
                    raise DocumentError(f"Invalid index mode for {method_name}: {mode!r}")
                results = [await _run_for_index(idx)]
            result: Any = results[0] if len(results) == 1 else results
        except Exception as exc:
            if not self._soft_fail(spec, assertion.store_as, f"{method_name}[{mode}]", exc):
                raise
            result = False

        if assertion.store_as:
            self.store_result(assertion.store_as, result, assertion.persist_store_as, data)
        return result

    # ========== named functions (legacy form) ==========

    async def execute_functions(
        self,
        functions: Mapping[str, LegacyFunction | Mapping[str, Any]],
        screen: Any,
        data: Any = None,
    ) -> None:
        if not functions:
            return
        logger.info("Executing %d function(s)...", len(functions))

        for name, raw in functions.items():
            config = raw if isinstance(raw, LegacyFunction) else LegacyFunction.model_validate(raw or {})
            member = get_member(screen, name)
            if not callable(member):
                logger.warning("Function %s not found, skipping...", name)
                continue

            params = self.templates.resolve(config.effective_params, data)
            values = list(params.values())
            logger.info("%s(%s)", config.signature or name, ", ".join(repr(v) for v in values))
            try:
                result = await maybe_await(member(*values))
            except Exception as exc:
                logger.error("%s failed: %s", name, exc)
                raise

            if config.store_as:
                self.store_result(config.store_as, result, config.persist_store_as, data)
            else:
                logger.info("%s completed", name)

    # ========== store ==========

    def store_result(self, key: str, value: Any, persist: bool | None, data: Any) -> None:
        effective = self.config.persist_store_as if persist is None else persist
        target = data if effective and isinstance(data, MutableMapping) else None
        self.store.store(key, value, persist_to=target, persist=effective)


__all__ = ["AssertionEvaluator"]
