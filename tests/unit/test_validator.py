from __future__ import annotations

import pytest

from screenassert.config import ValidatorConfig
from screenassert.custom_code import CustomCodeContext, CustomCodeRegistry
from screenassert.exceptions import (
    AssertionFailure,
    BlockFailedError,
    CustomCodeError,
    FieldNotFoundError,
    IndexOutOfBoundsError,
    NotCallableError,
    UnknownBlockTypeError,
    UnknownOperatorError,
)
from screenassert.store import VariableStore
from screenassert.validator import ImplicationValidator


class FakeElement:
    def __init__(self, name: str, log: list[str], displayed: bool = True) -> None:
        self.name = name
        self.text = name
        self._log = log
        self._displayed = displayed

    def is_displayed(self) -> bool:
        self._log.append(f"visible:{self.name}")
        return self._displayed


class BrokenElement:
    def is_displayed(self) -> bool:
        raise RuntimeError("element detached")


class Screen:
    """WebDriver-shaped screen object recording the order of interactions."""

    def __init__(self, count: int = 5) -> None:
        self.log: list[str] = []
        self.header = FakeElement("header", self.log)
        self.rows = [FakeElement("row0", self.log), FakeElement("row1", self.log)]
        self.broken = BrokenElement()
        self._count = count

    def getCount(self) -> int:
        self.log.append("getCount")
        return self._count

    def isReady(self) -> bool:
        self.log.append("truthy:isReady")
        return True

    def record(self, name: str) -> str:
        self.log.append(f"call:{name}")
        return name


class MockTracer:
    def __init__(self) -> None:
        self.events: list[dict] = []

    def emit(self, event_type: str, data: dict, step_id: str | None = None) -> None:
        self.events.append({"type": event_type, "data": data, "step_id": step_id})


def _call_block(name: str, order: int, **extra) -> dict:
    return {
        "id": name,
        "type": "function-call",
        "order": order,
        "data": {"method": "record", "args": [name]},
        **extra,
    }


@pytest.mark.asyncio
async def test_blocks_run_by_order_and_skip_disabled() -> None:
    screen = Screen()
    document = {
        "blocks": [
            _call_block("c", 3),
            _call_block("a", 1),
            _call_block("skipped", 2, enabled=False),
            _call_block("b", 1),
        ]
    }

    report = await ImplicationValidator().validate(document, {}, screen)

    assert screen.log == ["call:a", "call:b", "call:c"]
    assert report.passed
    assert report.form == "blocks"
    assert [(b.id, b.status) for b in report.blocks] == [
        ("a", "passed"),
        ("b", "passed"),
        ("skipped", "skipped"),
        ("c", "passed"),
    ]
    assert [b.id for b in report.executed] == ["a", "b", "c"]


def _count_document() -> dict:
    return {
        "blocks": [
            {
                "id": "capture",
                "type": "function-call",
                "order": 1,
                "data": {"method": "getCount", "storeAs": "count"},
            },
            {
                "id": "check",
                "type": "data-assertion",
                "order": 2,
                "assertions": [{"left": "{{count}}", "operator": "greaterThan", "right": 2}],
            },
        ]
    }


@pytest.mark.asyncio
async def test_data_assertion_on_captured_value_passes() -> None:
    test_data: dict = {}
    validator = ImplicationValidator()

    report = await validator.validate(_count_document(), test_data, Screen(count=5))

    assert report.passed
    assert report.variables == {"count": 5}
    assert test_data["count"] == 5


@pytest.mark.asyncio
async def test_data_assertion_failure_names_block_and_operands() -> None:
    document = _count_document()
    document["blocks"].append(_call_block("after", 3))
    screen = Screen(count=1)

    with pytest.raises(BlockFailedError) as exc_info:
        await ImplicationValidator().validate(document, {}, screen)

    err = exc_info.value
    message = str(err)
    assert message.startswith("block 2 of 3 failed:")
    assert "1" in message and "2" in message
    assert isinstance(err.original, AssertionFailure)
    assert err.__cause__ is err.original
    # fail-fast: the third block never ran, the captured value is kept
    assert "call:after" not in screen.log
    assert err.report.status == "failed"
    assert err.report.variables == {"count": 1}
    assert [b.status for b in err.report.blocks] == ["passed", "failed"]


@pytest.mark.asyncio
async def test_index_out_of_bounds_fails_block() -> None:
    document = {"blocks": [{"type": "ui-assertion", "data": {"visible": ["rows[2]"]}}]}

    with pytest.raises(BlockFailedError) as exc_info:
        await ImplicationValidator().validate(document, {}, Screen())

    assert isinstance(exc_info.value.original, IndexOutOfBoundsError)
    assert "rows[2] - index out of bounds (2 elements)" in str(exc_info.value)


@pytest.mark.asyncio
async def test_boolean_check_with_store_does_not_fail_block() -> None:
    screen = Screen()
    document = {
        "blocks": [
            {
                "type": "ui-assertion",
                "order": 1,
                "data": {
                    "assertions": [
                        {"type": "locator", "fn": "broken", "expect": "isVisible", "storeAs": "brokenVisible"}
                    ]
                },
            },
            _call_block("next", 2),
        ]
    }
    validator = ImplicationValidator()

    report = await validator.validate(document, {}, screen)

    assert report.passed
    assert validator.store.get("brokenVisible") is False
    assert "call:next" in screen.log


@pytest.mark.asyncio
async def test_ui_assertion_sub_order() -> None:
    screen = Screen()
    document = {
        "blocks": [
            {
                "type": "ui-assertion",
                "data": {
                    "truthy": ["isReady"],
                    "checks": {"text": {"header": "header"}},
                    "visible": ["rows[all]"],
                },
            }
        ]
    }

    await ImplicationValidator().validate(document, {}, screen)

    assert screen.log == ["visible:row0", "visible:row1", "truthy:isReady"]


@pytest.mark.asyncio
async def test_unknown_block_type() -> None:
    with pytest.raises(BlockFailedError) as exc_info:
        await ImplicationValidator().validate({"blocks": [{"type": "teleport"}]}, {}, Screen())
    assert isinstance(exc_info.value.original, UnknownBlockTypeError)


@pytest.mark.asyncio
async def test_function_call_on_missing_method() -> None:
    document = {"blocks": [{"type": "function-call", "data": {"method": "fly"}}]}
    with pytest.raises(BlockFailedError) as exc_info:
        await ImplicationValidator().validate(document, {}, Screen())
    assert isinstance(exc_info.value.original, NotCallableError)


@pytest.mark.asyncio
async def test_custom_code_block_receives_context() -> None:
    registry = CustomCodeRegistry()
    seen: list[CustomCodeContext] = []

    @registry.block("capture-header")
    async def capture_header(ctx: CustomCodeContext) -> None:
        seen.append(ctx)
        ctx.store.store("headerText", ctx.screen.header.text)
        ctx.compare("toBe", ctx.test_data["expected"], "header")

    screen = Screen()
    validator = ImplicationValidator(registry=registry)
    document = {"blocks": [{"id": "cc", "type": "custom-code", "handler": "capture-header"}]}

    await validator.validate(document, {"expected": "header"}, screen)

    assert validator.store.get("headerText") == "header"
    assert seen[0].page is screen
    assert seen[0].validator is validator
    assert seen[0].block.id == "cc"


@pytest.mark.asyncio
async def test_custom_code_errors_are_wrapped() -> None:
    registry = CustomCodeRegistry()

    @registry.block("explode")
    def explode(ctx: CustomCodeContext) -> None:
        raise ValueError("boom")

    validator = ImplicationValidator(registry=registry)
    document = {"blocks": [{"type": "custom-code", "label": "Explode", "code": "explode"}]}

    with pytest.raises(BlockFailedError) as exc_info:
        await validator.validate(document, {}, Screen())

    original = exc_info.value.original
    assert isinstance(original, CustomCodeError)
    assert 'Custom code block "Explode" failed: boom' in str(original)


@pytest.mark.asyncio
async def test_custom_code_unregistered_and_empty() -> None:
    validator = ImplicationValidator()

    report = await validator.validate({"blocks": [{"type": "custom-code", "code": "  "}]}, {}, Screen())
    assert report.passed

    with pytest.raises(BlockFailedError) as exc_info:
        await validator.validate({"blocks": [{"type": "custom-code", "handler": "missing"}]}, {}, Screen())
    assert isinstance(exc_info.value.original, CustomCodeError)


@pytest.mark.asyncio
async def test_definedness_operators_treat_unresolved_as_undefined() -> None:
    document = {
        "blocks": [
            {
                "type": "data-assertion",
                "assertions": [
                    {"left": "{{missing}}", "operator": "isUndefined"},
                    {"left": "{{present}}", "operator": "isDefined"},
                ],
            }
        ]
    }
    await ImplicationValidator().validate(document, {"present": "x"}, Screen())

    document["blocks"][0]["assertions"] = [{"left": "{{missing}}", "operator": "isDefined"}]
    with pytest.raises(BlockFailedError):
        await ImplicationValidator().validate(document, {}, Screen())


@pytest.mark.asyncio
async def test_unknown_operator_policy() -> None:
    document = {"blocks": [{"type": "data-assertion", "assertions": [{"left": 1, "operator": "about", "right": 1}]}]}

    with pytest.raises(BlockFailedError) as exc_info:
        await ImplicationValidator().validate(document, {}, Screen())
    assert isinstance(exc_info.value.original, UnknownOperatorError)

    lenient = ImplicationValidator(config=ValidatorConfig(unknown_operator="warn"))
    assert (await lenient.validate(document, {}, Screen())).passed


@pytest.mark.asyncio
async def test_tracer_receives_block_events() -> None:
    tracer = MockTracer()
    await ImplicationValidator(tracer=tracer).validate({"blocks": [_call_block("a", 1)]}, {}, Screen())

    assert [e["type"] for e in tracer.events] == ["block_start", "block_end"]
    assert tracer.events[1]["data"]["status"] == "passed"
    assert tracer.events[1]["step_id"] == "a"


@pytest.mark.asyncio
async def test_store_is_shared_across_validations() -> None:
    store = VariableStore()
    validator = ImplicationValidator(store=store)
    await validator.validate({"blocks": [_call_block("a", 1, data={"method": "record", "args": ["a"], "storeAs": "first"})]}, {}, Screen())

    assert store.get("first") == "a"
    await validator.validate(
        {"blocks": [{"type": "data-assertion", "assertions": [{"left": "{{first}}", "operator": "equals", "right": "a"}]}]},
        {},
        Screen(),
    )


@pytest.mark.asyncio
async def test_legacy_form_runs_in_fixed_order() -> None:
    screen = Screen()
    log = screen.log

    async def setup(test_data, page) -> None:
        log.append(f"prerequisite:{page is screen}")

    def final_expect(test_data, page) -> None:
        log.append("expect")

    document = {
        "expect": final_expect,
        "checks": {"visible": ["header"]},
        "truthy": ["isReady"],
        "visible": ["rows[first]"],
        "functions": {"record": {"params": {"name": "fn"}}},
        "prerequisites": [{"description": "login", "setup": setup}],
    }

    report = await ImplicationValidator().validate(document, {}, screen)

    assert report.form == "legacy"
    assert log == [
        "prerequisite:True",
        "call:fn",
        "visible:row0",
        "truthy:isReady",
        "visible:header",
        "expect",
    ]


@pytest.mark.asyncio
async def test_legacy_errors_are_not_wrapped() -> None:
    with pytest.raises(IndexOutOfBoundsError):
        await ImplicationValidator().validate({"visible": ["rows[9]"]}, {}, Screen())


@pytest.mark.asyncio
async def test_input_forms() -> None:
    validator = ImplicationValidator()
    screen = Screen()

    empty = await validator.validate({}, {}, screen)
    assert empty.form == "empty"
    assert empty.passed

    report = await validator.validate([{"blocks": [_call_block("a", 1)]}, {"blocks": [_call_block("b", 1)]}], {}, screen)
    assert report.passed
    assert screen.log == ["call:a"]


@pytest.mark.asyncio
async def test_validate_screens_skips_missing_screen_objects() -> None:
    home = Screen()
    validator = ImplicationValidator()

    reports = await validator.validate_screens(
        {"home": {"blocks": [_call_block("a", 1)]}, "settings": {"visible": ["header"]}},
        {"home": home},
        {},
    )

    assert list(reports) == ["home"]
    assert reports["home"].screen == "home"
    assert home.log == ["call:a"]


@pytest.mark.asyncio
async def test_function_call_instance_this_targets_screen() -> None:
    screen = Screen()
    validator = ImplicationValidator()
    document = {
        "blocks": [
            {
                "type": "function-call",
                "data": {"instance": "this", "method": "record", "args": ["hi"], "storeAs": "greeting"},
            }
        ]
    }

    report = await validator.validate(document, {}, screen)

    assert report.passed
    assert screen.log == ["call:hi"]
    assert validator.store.get("greeting") == "hi"


@pytest.mark.asyncio
async def test_function_call_on_missing_instance() -> None:
    document = {"blocks": [{"type": "function-call", "data": {"instance": "dialog", "method": "close"}}]}

    with pytest.raises(BlockFailedError) as exc_info:
        await ImplicationValidator().validate(document, {}, Screen())

    assert isinstance(exc_info.value.original, FieldNotFoundError)
    assert 'Field "dialog" not found' in str(exc_info.value)
