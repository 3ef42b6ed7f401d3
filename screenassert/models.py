"""
Pydantic models for expectation documents and validation reports.

Documents arrive as JSON-like dicts using camelCase keys (``storeAs``,
``persistStoreAs``, ``countOf``); every aliased field also accepts its
snake_case name.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

BLOCK_UI_ASSERTION = "ui-assertion"
BLOCK_CUSTOM_CODE = "custom-code"
BLOCK_FUNCTION_CALL = "function-call"
BLOCK_DATA_ASSERTION = "data-assertion"

BLOCK_TYPES = (
    BLOCK_UI_ASSERTION,
    BLOCK_CUSTOM_CODE,
    BLOCK_FUNCTION_CALL,
    BLOCK_DATA_ASSERTION,
)


class _DocumentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", arbitrary_types_allowed=True)


# ========== Assertions ==========


class Assertion(_DocumentModel):
    """One named check against a screen function, method or locator."""

    fn: str
    type: Optional[str] = None  # "method" | "locator" | None (function result)
    expect: str
    value: Any = None
    params: dict[str, Any] = Field(default_factory=dict)
    args: list[Any] = Field(default_factory=list)
    store_as: Optional[str] = Field(None, alias="storeAs")
    persist_store_as: Optional[bool] = Field(None, alias="persistStoreAs")
    index_mode: Optional[Union[int, str]] = Field(None, alias="indexMode")
    custom_index: Optional[Union[int, str]] = Field(None, alias="customIndex")
    count_of: Optional[str] = Field(None, alias="countOf")


class DataAssertion(_DocumentModel):
    """Pure value comparison: ``left <operator> right``."""

    left: Any = None
    operator: str
    right: Any = None
    message: Optional[str] = None

    @property
    def label(self) -> str:
        if self.message:
            return self.message
        right = "" if self.right is None else self.right
        return f"{self.left} {self.operator} {right}".rstrip()


# ========== Block payloads ==========


class UIChecks(_DocumentModel):
    visible: list[str] = Field(default_factory=list)
    hidden: list[str] = Field(default_factory=list)
    text: dict[str, Any] = Field(default_factory=dict)
    contains: dict[str, Any] = Field(default_factory=dict)


class UIAssertionData(_DocumentModel):
    visible: list[str] = Field(default_factory=list)
    hidden: list[str] = Field(default_factory=list)
    checks: UIChecks = Field(default_factory=UIChecks)
    truthy: list[str] = Field(default_factory=list)
    falsy: list[str] = Field(default_factory=list)
    assertions: list[Assertion] = Field(default_factory=list)

    @field_validator("checks", mode="before")
    @classmethod
    def _none_checks(cls, v: Any) -> Any:
        return v if v is not None else {}


class FunctionCallData(_DocumentModel):
    instance: Optional[str] = None
    method: Optional[str] = None
    args: list[Any] = Field(default_factory=list)
    await_result: bool = Field(True, alias="await")
    store_as: Optional[str] = Field(None, alias="storeAs")
    persist_store_as: Optional[bool] = Field(None, alias="persistStoreAs")


class Block(_DocumentModel):
    """One ordered, typed step of a block-form document."""

    id: Optional[str] = None
    type: Optional[str] = None
    label: str = ""
    order: Union[int, float] = 0
    enabled: bool = True
    data: dict[str, Any] = Field(default_factory=dict)
    code: Optional[str] = None
    handler: Optional[str] = None
    assertions: list[DataAssertion] = Field(default_factory=list)
    wrap_in_test_step: bool = Field(False, alias="wrapInTestStep")
    test_step_name: Optional[str] = Field(None, alias="testStepName")

    @field_validator("order", mode="before")
    @classmethod
    def _none_order(cls, v: Any) -> Any:
        return v if v is not None else 0

    @field_validator("data", mode="before")
    @classmethod
    def _none_data(cls, v: Any) -> Any:
        return v if v is not None else {}

    @field_validator("enabled", mode="before")
    @classmethod
    def _none_enabled(cls, v: Any) -> Any:
        # Only an explicit False disables a block
        return v is not False

    @property
    def display_label(self) -> str:
        return self.label or self.id or self.type or "block"


class BlockDocument(_DocumentModel):
    name: Optional[str] = None
    blocks: list[Block]


# ========== Legacy form ==========


class Prerequisite(_DocumentModel):
    description: str = ""
    setup: Callable[..., Any]


class LegacyFunction(_DocumentModel):
    parameters: dict[str, Any] = Field(default_factory=dict)
    params: dict[str, Any] = Field(default_factory=dict)
    store_as: Optional[str] = Field(None, alias="storeAs")
    persist_store_as: Optional[bool] = Field(None, alias="persistStoreAs")
    signature: Optional[str] = None

    @property
    def effective_params(self) -> dict[str, Any]:
        return self.parameters or self.params


class LegacyDocument(_DocumentModel):
    name: Optional[str] = None
    visible: list[str] = Field(default_factory=list)
    hidden: list[str] = Field(default_factory=list)
    truthy: list[str] = Field(default_factory=list)
    falsy: list[str] = Field(default_factory=list)
    assertions: list[Assertion] = Field(default_factory=list)
    checks: Optional[UIChecks] = None
    functions: dict[str, LegacyFunction] = Field(default_factory=dict)
    prerequisites: list[Prerequisite] = Field(default_factory=list)
    expect: Optional[Callable[..., Any]] = None

    @field_validator("functions", mode="before")
    @classmethod
    def _none_functions(cls, v: Any) -> Any:
        return v if v is not None else {}


def is_block_form(document: Any) -> bool:
    """A document is block-form iff it carries a non-empty ``blocks`` list."""
    if isinstance(document, BlockDocument):
        return bool(document.blocks)
    if isinstance(document, Mapping):
        blocks = document.get("blocks")
        return isinstance(blocks, list) and len(blocks) > 0
    blocks = getattr(document, "blocks", None)
    return isinstance(blocks, list) and len(blocks) > 0


# ========== Reports ==========

BlockStatus = Literal["passed", "skipped", "failed"]


class BlockOutcome(BaseModel):
    index: int
    id: Optional[str] = None
    type: Optional[str] = None
    label: str = ""
    order: Union[int, float] = 0
    status: BlockStatus
    duration_ms: int = 0
    error: Optional[str] = None


class ValidationReport(BaseModel):
    """Summary of one validate() call."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: Literal["pending", "running", "passed", "failed"] = "pending"
    form: Literal["blocks", "legacy", "empty"] = "empty"
    screen: Optional[str] = None
    blocks: list[BlockOutcome] = Field(default_factory=list)
    variables: dict[str, Any] = Field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.status == "passed"

    @property
    def executed(self) -> list[BlockOutcome]:
        return [b for b in self.blocks if b.status != "skipped"]
