"""
Error taxonomy for screen validation.

Everything raised by the interpreter derives from ScreenAssertError, except
AssertionFailure which also subclasses the builtin AssertionError so test
runners render matcher mismatches natively.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import Block, ValidationReport


class ScreenAssertError(Exception):
    """Base class for screenassert errors."""


# ========== Locator resolution ==========


class LocatorResolutionError(ScreenAssertError):
    """A field selector could not be turned into element handles."""


class FieldNotFoundError(LocatorResolutionError):
    def __init__(self, field: str, available: list[str] | None = None) -> None:
        self.field = field
        self.available = available or []
        listed = ", ".join(self.available)
        message = f'Field "{field}" not found on screen object.'
        if listed:
            message += f"\n   Available fields: {listed}"
        super().__init__(message)


class IndexOutOfBoundsError(LocatorResolutionError):
    def __init__(self, field: str, index: int | str, size: int) -> None:
        self.field = field
        self.index = index
        self.size = size
        super().__init__(f"{field}[{index}] - index out of bounds ({size} elements)")


class NoElementsError(LocatorResolutionError):
    def __init__(self, field: str, mode: str, detail: str | None = None) -> None:
        self.field = field
        self.mode = mode
        message = f"{field}[{mode}] - no elements found"
        if detail:
            message += f" for {detail}"
        super().__init__(message)


class CountDiscoveryError(LocatorResolutionError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(
            f'Could not determine element count for indexed method "{field}". '
            f"Add an explicit count reference, e.g. {field}[all:<countField>]."
        )


# ========== Malformed documents ==========


class DocumentError(ScreenAssertError):
    """The expectation document references something the interpreter cannot run."""


class UnknownBlockTypeError(DocumentError):
    def __init__(self, block_type: str | None) -> None:
        self.block_type = block_type
        super().__init__(f"Unknown block type: {block_type}")


class UnknownOperatorError(DocumentError):
    def __init__(self, operator: str | None) -> None:
        self.operator = operator
        super().__init__(f"Unknown operator: {operator}")


class UnknownAssertionTypeError(DocumentError):
    def __init__(self, expect_type: str | None, context: str = "assertion") -> None:
        self.expect_type = expect_type
        super().__init__(f"Unknown {context} type: {expect_type}")


class NotCallableError(DocumentError):
    def __init__(self, name: str, owner: str = "screen object") -> None:
        self.name = name
        super().__init__(f'"{name}" is not a function on {owner}')


# ========== Check outcomes ==========


class AssertionFailure(ScreenAssertError, AssertionError):
    """A matcher mismatch. Keeps both sides of the comparison."""

    def __init__(
        self,
        message: str,
        *,
        expected: Any = None,
        actual: Any = None,
        operator: str | None = None,
    ) -> None:
        self.message = message
        self.expected = expected
        self.actual = actual
        self.operator = operator
        super().__init__(message)


class CustomCodeError(ScreenAssertError):
    def __init__(self, label: str | None, original: BaseException | str) -> None:
        self.label = label
        self.original = original
        detail = original if isinstance(original, str) else str(original)
        super().__init__(f'Custom code block "{label}" failed: {detail}')


class BlockFailedError(ScreenAssertError):
    """Raised by the block dispatcher when any block handler fails."""

    def __init__(
        self,
        index: int,
        total: int,
        block: Block,
        original: BaseException,
        report: ValidationReport | None = None,
    ) -> None:
        self.index = index
        self.total = total
        self.block = block
        self.original = original
        self.report = report
        super().__init__(f"block {index + 1} of {total} failed: {original}")
