"""
Unit tests for the conditions DSL module.

These tests verify:
1. Attr builder produces DynCondition instances (not raw boto3)
2. Condition composition with &, |, ~ returns DynCondition
3. evaluate_condition matches rows the way DynamoDB would
4. compile_condition delegates to boto3's expression builder
5. Raw boto3 conditions are accepted (passthrough support)
"""

from dataclasses import dataclass

import pytest
from boto3.dynamodb.conditions import Attr as Boto3Attr
from boto3.dynamodb.conditions import ConditionBase as Boto3ConditionBase
from boto3.dynamodb.conditions import ConditionExpressionBuilder

from keypage.conditions import (
    Attr,
    DynCondition,
    comparison_parts,
    compile_condition,
    describe_condition,
    evaluate_condition,
    wrap_condition,
)
from keypage.serializer import DynamoSerializer


@dataclass
class Row:
    id: int
    name: str | None = None


@pytest.mark.unit
class TestAttrBuilder:
    """Test the Attr class for building conditions."""

    def test_attr_creation(self):
        assert Attr("email").name == "email"

    @pytest.mark.parametrize(
        "condition",
        [
            Attr("age") == 25,
            Attr("age") != 25,
            Attr("age") < 18,
            Attr("age") <= 65,
            Attr("age") > 100,
            Attr("age") >= 18,
            Attr("x").exists(),
            Attr("x").not_exists(),
            Attr("name").begins_with("J"),
            Attr("age").between(1, 2),
            Attr("status").is_in(["a", "b"]),
        ],
    )
    def test_builders_return_dyncondition(self, condition):
        assert isinstance(condition, DynCondition)
        assert isinstance(condition.raw, Boto3ConditionBase)

    def test_composition_returns_dyncondition(self):
        combined = ~((Attr("a") > 1) & (Attr("b") < 2) | (Attr("c") == 3))
        assert isinstance(combined, DynCondition)

    def test_raw_boto3_condition_passthrough(self):
        combined = (Attr("a") > 1) & Boto3Attr("b").eq(2)
        assert isinstance(combined, DynCondition)
        assert combined == (Attr("a") > 1) & (Attr("b") == 2)

    def test_raw_boto3_condition_on_the_left_is_wrapped_first(self):
        combined = wrap_condition(Boto3Attr("b").eq(2)) | (Attr("a") > 1)
        assert combined == (Attr("b") == 2) | (Attr("a") > 1)

    def test_rejects_other_operands(self):
        with pytest.raises(TypeError, match="Expected DynCondition"):
            (Attr("a") > 1) & "a > 1"  # type: ignore[operator]

    def test_wrap_condition(self):
        condition = Attr("a") > 1
        assert wrap_condition(condition) is condition
        assert isinstance(wrap_condition(Boto3Attr("a").gt(1)), DynCondition)

    def test_structural_equality(self):
        assert (Attr("a") > 1) == (Attr("a") > 1)
        assert (Attr("a") > 1) != (Attr("a") > 2)
        assert (Attr("a") > 1) != (Attr("a") < 1)


@pytest.mark.unit
class TestDescribeAndParts:
    def test_describe_condition(self):
        condition = (Attr("t") < 10) | ((Attr("t") == 10) & (Attr("id") < 4))
        assert describe_condition(condition) == "(t < 10 OR (t = 10 AND id < 4))"

    def test_describe_functions(self):
        assert describe_condition(Attr("a").between(1, 2)) == "BETWEEN(a, 1, 2)"
        assert describe_condition(~(Attr("a") == "x")) == "(NOT a = 'x')"

    def test_comparison_parts(self):
        assert comparison_parts(Attr("ts") >= "2024") == (">=", "ts", "2024")
        assert comparison_parts((Attr("a") > 1) & (Attr("b") > 1)) is None
        assert comparison_parts(Attr("a").between(1, 2)) is None


@pytest.mark.unit
class TestEvaluateCondition:
    """Test in-memory evaluation of condition trees."""

    @pytest.mark.parametrize(
        "condition,expected",
        [
            (Attr("id") == 5, True),
            (Attr("id") != 5, False),
            (Attr("id") < 6, True),
            (Attr("id") <= 5, True),
            (Attr("id") > 5, False),
            (Attr("id") >= 5, True),
            (Attr("id").between(1, 5), True),
            (Attr("id").between(6, 9), False),
            (Attr("id").is_in([1, 5]), True),
            (Attr("name").begins_with("al"), True),
            (Attr("name").begins_with("bo"), False),
            (Attr("id").exists(), True),
            (Attr("other").exists(), False),
            (Attr("other").not_exists(), True),
        ],
    )
    def test_single_operators_on_mapping(self, condition, expected):
        assert evaluate_condition(condition, {"id": 5, "name": "alice"}) is expected

    def test_works_on_objects(self):
        assert evaluate_condition(Attr("id") > 1, Row(id=2)) is True
        assert evaluate_condition(Attr("missing").not_exists(), Row(id=2)) is True

    def test_boolean_composition(self):
        condition = (Attr("t") < 10) | ((Attr("t") == 10) & (Attr("id") < 4))

        assert evaluate_condition(condition, {"t": 9, "id": 99}) is True
        assert evaluate_condition(condition, {"t": 10, "id": 3}) is True
        assert evaluate_condition(condition, {"t": 10, "id": 4}) is False
        assert evaluate_condition(condition, {"t": 11, "id": 1}) is False
        assert evaluate_condition(~condition, {"t": 11, "id": 1}) is True

    def test_null_and_missing_never_compare(self):
        assert evaluate_condition(Attr("name") < "z", Row(id=1, name=None)) is False
        assert evaluate_condition(Attr("name") > "a", {"id": 1}) is False
        assert evaluate_condition(Attr("id") == None, {"id": None}) is False  # noqa: E711

    def test_mismatched_types_do_not_match(self):
        assert evaluate_condition(Attr("id") > "abc", {"id": 5}) is False


@pytest.mark.unit
class TestCompileCondition:
    """Test compilation into DynamoDB request parameters."""

    def test_compile_simple_condition(self):
        result = compile_condition(Attr("age") >= 18, DynamoSerializer())

        assert result["Expression"] == "#n0 >= :v0"
        assert result["ExpressionAttributeNames"] == {"#n0": "age"}
        assert result["ExpressionAttributeValues"] == {":v0": {"N": "18"}}

    def test_compile_boundary_tree(self):
        condition = (Attr("t") < 10) | ((Attr("t") == 10) & (Attr("id") < 4))
        result = compile_condition(condition, DynamoSerializer())

        assert " OR " in result["Expression"]
        assert " AND " in result["Expression"]
        assert set(result["ExpressionAttributeNames"].values()) == {"t", "id"}

    def test_shared_builder_avoids_placeholder_collisions(self):
        builder = ConditionExpressionBuilder()
        serializer = DynamoSerializer()

        first = compile_condition(Attr("a") == 1, serializer, builder)
        second = compile_condition(Attr("b") == 2, serializer, builder)

        assert set(first["ExpressionAttributeValues"]).isdisjoint(
            second["ExpressionAttributeValues"]
        )
        assert set(first["ExpressionAttributeNames"]).isdisjoint(
            second["ExpressionAttributeNames"]
        )

    def test_compile_without_values(self):
        result = compile_condition(Attr("deleted").not_exists(), DynamoSerializer())

        assert "attribute_not_exists" in result["Expression"]
        assert "ExpressionAttributeValues" not in result
