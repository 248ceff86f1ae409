"""Typed form operations and the request that carries them.

Each action tag has its own dataclass holding only the fields valid for it.
Value-shape checks happen once, when a wire request is parsed; after that the
types guarantee them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from iniadmoocs.errors import ValidationError

ACTIONS = ("type", "click", "check", "uncheck", "select", "upload")


@dataclass(frozen=True)
class Operation:
    """Base for all operations: the element reference and an optional label."""

    ref: str
    label: str | None = None

    action = ""

    @property
    def element_name(self) -> str:
        return self.label or f"element with reference {self.ref}"


@dataclass(frozen=True)
class TypeOperation(Operation):
    text: str = ""

    action = "type"


@dataclass(frozen=True)
class ClickOperation(Operation):
    action = "click"


@dataclass(frozen=True)
class CheckOperation(Operation):
    action = "check"


@dataclass(frozen=True)
class UncheckOperation(Operation):
    action = "uncheck"


@dataclass(frozen=True)
class SelectOperation(Operation):
    values: tuple[str, ...] = ()

    action = "select"


@dataclass(frozen=True)
class UploadOperation(Operation):
    paths: tuple[str, ...] = ()

    action = "upload"


@dataclass(frozen=True)
class SubmitTarget:
    """The terminal submit control of a form."""

    ref: str
    label: str | None = None

    @property
    def element_name(self) -> str:
        return self.label or f"element with reference {self.ref}"


@dataclass(frozen=True)
class SubmissionRequest:
    operations: tuple[Operation, ...]
    submit: SubmitTarget


def _string_or_strings(action: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Sequence) and value and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ValidationError(
        f"Invalid value type for '{action}' action: expected string or non-empty array of strings, "
        f"got {type(value).__name__}"
    )


def _require_str(data: Mapping[str, Any], key: str, context: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{context}: '{key}' must be a non-empty string")
    return value


def parse_operation(data: Mapping[str, Any]) -> Operation:
    """Build a typed operation from its wire form `{action, ref, value?, element?}`.

    Raises:
        ValidationError: On an unknown action, a missing ref, or a value whose
            shape does not match the action.
    """
    if not isinstance(data, Mapping):
        raise ValidationError(f"Operation must be an object, got {type(data).__name__}")
    action = data.get("action")
    if action not in ACTIONS:
        raise ValidationError(f"Unsupported action: {action!r}. Must be one of {', '.join(ACTIONS)}")
    ref = _require_str(data, "ref", f"'{action}' operation")
    label = data.get("element")
    if label is not None and not isinstance(label, str):
        raise ValidationError(f"'{action}' operation: 'element' must be a string")
    value = data.get("value")

    if action == "type":
        if not isinstance(value, str):
            raise ValidationError(
                f"Invalid value type for 'type' action: expected string, got {type(value).__name__}"
            )
        return TypeOperation(ref=ref, label=label, text=value)
    if action in ("click", "check", "uncheck"):
        if value is not None:
            raise ValidationError(f"'{action}' action takes no value, got {type(value).__name__}")
        cls = {"click": ClickOperation, "check": CheckOperation, "uncheck": UncheckOperation}[action]
        return cls(ref=ref, label=label)
    if action == "select":
        return SelectOperation(ref=ref, label=label, values=_string_or_strings(action, value))
    return UploadOperation(ref=ref, label=label, paths=_string_or_strings(action, value))


def parse_request(data: Mapping[str, Any]) -> SubmissionRequest:
    """Parse `{operations, submitButtonRef, submitButtonElement?}`.

    `operations` may be empty; `submitButtonRef` is mandatory.
    """
    if not isinstance(data, Mapping):
        raise ValidationError("Submission request must be an object")
    raw_operations = data.get("operations", [])
    if not isinstance(raw_operations, list):
        raise ValidationError("'operations' must be an array")
    operations = tuple(parse_operation(item) for item in raw_operations)
    submit_ref = _require_str(data, "submitButtonRef", "Submission request")
    submit_label = data.get("submitButtonElement")
    if submit_label is not None and not isinstance(submit_label, str):
        raise ValidationError("'submitButtonElement' must be a string")
    return SubmissionRequest(operations=operations, submit=SubmitTarget(ref=submit_ref, label=submit_label))
