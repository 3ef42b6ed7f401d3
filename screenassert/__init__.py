"""
screenassert: declarative screen validation for Playwright and WebDriver page objects.

Quick start:
    from screenassert import ImplicationValidator

    validator = ImplicationValidator()
    report = await validator.validate(
        {
            "blocks": [
                {"type": "ui-assertion", "order": 1, "data": {"visible": ["header", "rows[all]"]}},
                {
                    "type": "data-assertion",
                    "order": 2,
                    "assertions": [{"left": "{{count}}", "operator": "greaterThan", "right": 2}],
                },
            ]
        },
        test_data,
        screen,
    )
"""

from .backends import ElementBackend, PlaywrightBackend, WebDriverBackend, select_backend
from .checks import CHECKS, CheckCategory, CheckSpec, compare_values, get_check
from .config import ValidatorConfig
from .custom_code import CustomCodeContext, CustomCodeRegistry
from .evaluator import AssertionEvaluator
from .exceptions import (
    AssertionFailure,
    BlockFailedError,
    CountDiscoveryError,
    CustomCodeError,
    DocumentError,
    FieldNotFoundError,
    IndexOutOfBoundsError,
    LocatorResolutionError,
    NoElementsError,
    NotCallableError,
    ScreenAssertError,
    UnknownAssertionTypeError,
    UnknownBlockTypeError,
    UnknownOperatorError,
)
from .locators import LocatorResolver, ResolvedLocator
from .models import (
    Assertion,
    Block,
    BlockDocument,
    BlockOutcome,
    DataAssertion,
    LegacyDocument,
    ValidationReport,
)
from .operators import OPERATORS, apply_operator
from .selectors import FieldSelector, parse_field_selector
from .store import VariableStore
from .templates import TemplateResolver
from .tracing import NoopTracer, Tracer
from .validator import ImplicationValidator

__version__ = "0.1.0"

__all__ = [
    # Entry point
    "ImplicationValidator",
    "ValidatorConfig",
    "ValidationReport",
    "BlockOutcome",
    # Documents
    "Assertion",
    "Block",
    "BlockDocument",
    "DataAssertion",
    "LegacyDocument",
    # Building blocks
    "VariableStore",
    "TemplateResolver",
    "FieldSelector",
    "parse_field_selector",
    "LocatorResolver",
    "ResolvedLocator",
    "AssertionEvaluator",
    "CHECKS",
    "CheckCategory",
    "CheckSpec",
    "get_check",
    "compare_values",
    "OPERATORS",
    "apply_operator",
    "CustomCodeContext",
    "CustomCodeRegistry",
    # Backends
    "ElementBackend",
    "PlaywrightBackend",
    "WebDriverBackend",
    "select_backend",
    # Tracing
    "Tracer",
    "NoopTracer",
    # Errors
    "ScreenAssertError",
    "LocatorResolutionError",
    "FieldNotFoundError",
    "IndexOutOfBoundsError",
    "NoElementsError",
    "CountDiscoveryError",
    "DocumentError",
    "UnknownBlockTypeError",
    "UnknownOperatorError",
    "UnknownAssertionTypeError",
    "NotCallableError",
    "AssertionFailure",
    "CustomCodeError",
    "BlockFailedError",
]
