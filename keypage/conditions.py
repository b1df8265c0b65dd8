"""
Condition DSL for keypage.

Boundary predicates, and any extra filters a caller narrows a row source
with, are expressed with a DynCondition wrapper and an Attr builder. The
tree underneath is a boto3 condition, so the same predicate can be:

- compiled into a DynamoDB expression (compile_condition), or
- evaluated against a Python row (evaluate_condition) by in-memory sources.

Design:
- DynCondition wraps boto3 ConditionBase, stored in .raw attribute
- Attr builder wraps boto3 Attr internally, returns DynCondition
- Operators &, |, ~ on DynCondition produce new DynCondition instances

Usage:
    from keypage import Attr

    condition = (Attr("created_at") < cutoff) | (
        (Attr("created_at") == cutoff) & (Attr("id") < 42)
    )
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Union

from boto3.dynamodb.conditions import And as Boto3And
from boto3.dynamodb.conditions import Attr as Boto3Attr
from boto3.dynamodb.conditions import AttributeBase as Boto3AttributeBase
from boto3.dynamodb.conditions import ConditionBase as Boto3ConditionBase
from boto3.dynamodb.conditions import ConditionExpressionBuilder
from boto3.dynamodb.conditions import Not as Boto3Not
from boto3.dynamodb.conditions import Or as Boto3Or

if TYPE_CHECKING:
    from .serializer import DynamoSerializer

# Type alias for condition parameter (DynCondition or raw boto3 for passthrough)
Condition = Union["DynCondition", Boto3ConditionBase]

# Operators that compare one attribute with one value
COMPARISON_OPERATORS = frozenset({"=", "<>", "<", "<=", ">", ">="})

# Marker for "attribute absent from row"
_MISSING = object()


class DynCondition:
    """
    keypage-owned wrapper for condition expressions.

    Wraps a boto3 condition object (stored in .raw) and provides Python
    operators for composing conditions.

    Users typically don't instantiate this directly - use Attr() instead.

    Attributes:
        raw: The underlying boto3 ConditionBase object (internal use)
    """

    __slots__ = ("raw",)

    def __init__(self, raw: Boto3ConditionBase) -> None:
        self.raw = raw

    def __and__(self, other: Condition) -> DynCondition:
        """Combine conditions with AND."""
        return DynCondition(Boto3And(self.raw, _extract_raw(other)))

    def __or__(self, other: Condition) -> DynCondition:
        """Combine conditions with OR."""
        return DynCondition(Boto3Or(self.raw, _extract_raw(other)))

    def __invert__(self) -> DynCondition:
        """Negate a condition with NOT."""
        return DynCondition(Boto3Not(self.raw))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DynCondition):
            return bool(self.raw == other.raw)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"DynCondition({describe_condition(self)})"


class Attr:
    """
    Represents a row attribute for building conditions.

    Usage:
        Attr("age") >= 18
        Attr("status") == "active"
        Attr("deleted_at").not_exists()
        Attr("age").between(18, 65)
        Attr("status").is_in(["active", "pending"])
    """

    __slots__ = ("name", "_boto3_attr")

    def __init__(self, name: str) -> None:
        self.name = name
        self._boto3_attr = Boto3Attr(name)

    # Comparison Operators - all return DynCondition

    def __eq__(self, value: Any) -> DynCondition:  # type: ignore[override]
        return DynCondition(self._boto3_attr.eq(value))

    def __ne__(self, value: Any) -> DynCondition:  # type: ignore[override]
        return DynCondition(self._boto3_attr.ne(value))

    def __lt__(self, value: Any) -> DynCondition:
        return DynCondition(self._boto3_attr.lt(value))

    def __le__(self, value: Any) -> DynCondition:
        return DynCondition(self._boto3_attr.lte(value))

    def __gt__(self, value: Any) -> DynCondition:
        return DynCondition(self._boto3_attr.gt(value))

    def __ge__(self, value: Any) -> DynCondition:
        return DynCondition(self._boto3_attr.gte(value))

    __hash__ = None  # type: ignore[assignment]

    def exists(self) -> DynCondition:
        return DynCondition(self._boto3_attr.exists())

    def not_exists(self) -> DynCondition:
        return DynCondition(self._boto3_attr.not_exists())

    def begins_with(self, prefix: str) -> DynCondition:
        return DynCondition(self._boto3_attr.begins_with(prefix))

    def between(self, low: Any, high: Any) -> DynCondition:
        """Inclusive on both ends."""
        return DynCondition(self._boto3_attr.between(low, high))

    def is_in(self, values: list[Any]) -> DynCondition:
        return DynCondition(self._boto3_attr.is_in(values))

    def __repr__(self) -> str:
        return f"Attr({self.name!r})"


def _extract_raw(condition: Condition) -> Boto3ConditionBase:
    """
    Extracts the boto3 condition from either DynCondition or raw boto3 condition.

    Raises:
        TypeError: If condition is neither DynCondition nor boto3 ConditionBase
    """
    if isinstance(condition, DynCondition):
        return condition.raw
    elif isinstance(condition, Boto3ConditionBase):
        return condition
    else:
        raise TypeError(
            f"Expected DynCondition or boto3 ConditionBase, got {type(condition).__name__}"
        )


def wrap_condition(condition: Condition) -> DynCondition:
    """Ensures a condition is wrapped in DynCondition."""
    if isinstance(condition, DynCondition):
        return condition
    return DynCondition(_extract_raw(condition))


def comparison_parts(condition: Condition) -> tuple[str, str, Any] | None:
    """
    Splits a single attribute comparison into (operator, attribute, value).

    Returns None for anything else (AND/OR trees, functions, BETWEEN...).
    """
    expression = _extract_raw(condition).get_expression()
    if expression["operator"] not in COMPARISON_OPERATORS:
        return None
    attribute, value = expression["values"]
    if not isinstance(attribute, Boto3AttributeBase) or isinstance(value, Boto3AttributeBase):
        return None
    return expression["operator"], attribute.name, value


def describe_condition(condition: Condition) -> str:
    """Readable infix rendering, used for reprs and debug logging."""
    expression = _extract_raw(condition).get_expression()
    operator = expression["operator"]
    operands = expression["values"]

    def render(operand: Any) -> str:
        if isinstance(operand, Boto3ConditionBase):
            return describe_condition(operand)
        if isinstance(operand, Boto3AttributeBase):
            return operand.name
        return repr(operand)

    if operator in ("AND", "OR"):
        return f"({render(operands[0])} {operator} {render(operands[1])})"
    if operator == "NOT":
        return f"(NOT {render(operands[0])})"
    if operator in COMPARISON_OPERATORS:
        return f"{render(operands[0])} {operator} {render(operands[1])}"
    return f"{operator}({', '.join(render(o) for o in operands)})"


def _resolve(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name, _MISSING)
    return getattr(row, name, _MISSING)


def _compare(operator: str, left: Any, right: Any) -> bool:
    # Comparisons against a missing or null value are never true
    if left is _MISSING or left is None or right is None:
        return False
    try:
        if operator == "=":
            return bool(left == right)
        if operator == "<>":
            return bool(left != right)
        if operator == "<":
            return bool(left < right)
        if operator == "<=":
            return bool(left <= right)
        if operator == ">":
            return bool(left > right)
        return bool(left >= right)
    except TypeError:
        # Mismatched types (e.g. str vs int) do not match, as in DynamoDB
        return False


def evaluate_condition(condition: Condition, row: Any) -> bool:
    """
    Evaluates a condition tree against a single row.

    Rows may be mappings or objects exposing attributes.

    Raises:
        ValueError: If the tree uses an operator that cannot be evaluated in memory
    """
    expression = _extract_raw(condition).get_expression()
    operator = expression["operator"]
    operands = expression["values"]

    if operator == "AND":
        return evaluate_condition(operands[0], row) and evaluate_condition(operands[1], row)
    if operator == "OR":
        return evaluate_condition(operands[0], row) or evaluate_condition(operands[1], row)
    if operator == "NOT":
        return not evaluate_condition(operands[0], row)

    value = _resolve(row, operands[0].name)

    if operator in COMPARISON_OPERATORS:
        return _compare(operator, value, operands[1])
    if operator == "BETWEEN":
        return _compare(">=", value, operands[1]) and _compare("<=", value, operands[2])
    if operator == "IN":
        return value is not _MISSING and value in operands[1]
    if operator == "attribute_exists":
        return value is not _MISSING
    if operator == "attribute_not_exists":
        return value is _MISSING
    if operator == "begins_with":
        return isinstance(value, str) and value.startswith(operands[1])
    raise ValueError(f"Cannot evaluate condition operator '{operator}' in memory")


def compile_condition(
    condition: Condition,
    serializer: DynamoSerializer,
    builder: ConditionExpressionBuilder | None = None,
    is_key_condition: bool = False,
) -> dict[str, Any]:
    """
    Compiles a condition into DynamoDB request parameters.

    Uses boto3's ConditionExpressionBuilder to generate:
    - Expression (string)
    - ExpressionAttributeNames (dict)
    - ExpressionAttributeValues (dict)

    Pass the same builder for every expression of one request so that the
    generated placeholders (#n0, :v0, ...) do not collide.

    Args:
        condition: A DynCondition or raw boto3 condition object
        serializer: DynamoSerializer for converting values to DynamoDB format
        builder: Shared expression builder (a fresh one when omitted)
        is_key_condition: True when compiling a KeyConditionExpression

    Returns:
        Dict with Expression, and optionally ExpressionAttributeNames
        and ExpressionAttributeValues (only included if non-empty)
    """
    builder = builder or ConditionExpressionBuilder()
    expression = builder.build_expression(
        _extract_raw(condition), is_key_condition=is_key_condition
    )

    result: dict[str, Any] = {"Expression": expression.condition_expression}

    if expression.attribute_name_placeholders:
        result["ExpressionAttributeNames"] = dict(expression.attribute_name_placeholders)

    if expression.attribute_value_placeholders:
        # Values need DynamoDB format ({"S": "..."}, {"N": "..."}, etc.)
        result["ExpressionAttributeValues"] = {
            placeholder: serializer.to_dynamo_value(value)
            for placeholder, value in expression.attribute_value_placeholders.items()
        }

    return result
