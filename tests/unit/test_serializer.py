"""
Unit tests for the value serializers.

CursorValueSerializer must hand back exactly the value it was given, for
every scalar type a row may hold. DynamoSerializer converts boundary values
for DynamoDB requests and restores items from responses.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from uuid import UUID

import pytest

from keypage.exceptions import CursorSerializationError, MalformedCursorError
from keypage.serializer import CursorValueSerializer, DynamoSerializer


class Status(Enum):
    ACTIVE = "active"


@pytest.fixture
def serializer() -> CursorValueSerializer:
    return CursorValueSerializer()


@pytest.mark.unit
class TestCursorValueSerializer:
    """Test cursor value dump/load."""

    @pytest.mark.parametrize("value", ["text", "", 0, -17, 3.25, True, False, None])
    def test_json_natives_pass_through(self, serializer, value):
        assert serializer.dump(value) == value
        assert serializer.load(value) == value

    def test_bool_stays_bool(self, serializer):
        """True must not come back as 1."""
        assert serializer.load(serializer.dump(True)) is True

    @pytest.mark.parametrize(
        "value",
        [
            datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc),
            datetime(2024, 5, 1, 12, 30, tzinfo=timezone(timedelta(hours=2))),
            datetime(2024, 5, 1, 12, 30),
            date(2024, 5, 1),
            Decimal("10.50"),
            UUID("12345678-1234-5678-1234-567812345678"),
            b"\x00\xffbinary",
        ],
    )
    def test_tagged_values_restore_exactly(self, serializer, value):
        restored = serializer.load(serializer.dump(value))
        assert restored == value
        assert type(restored) is type(value)

    def test_datetime_keeps_timezone(self, serializer):
        value = datetime(2024, 1, 1, tzinfo=timezone(timedelta(hours=-5)))
        assert serializer.load(serializer.dump(value)).utcoffset() == timedelta(hours=-5)

    def test_datetime_tag(self, serializer):
        value = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert serializer.dump(value) == {"$datetime": "2024-01-01T00:00:00+00:00"}

    def test_date_is_not_confused_with_datetime(self, serializer):
        assert serializer.dump(date(2024, 1, 1)) == {"$date": "2024-01-01"}

    def test_enum_written_as_value(self, serializer):
        assert serializer.dump(Status.ACTIVE) == "active"

    def test_unsupported_type_raises(self, serializer):
        with pytest.raises(CursorSerializationError, match="Unsupported cursor value type"):
            serializer.dump(object())

    def test_lists_are_not_scalars(self, serializer):
        with pytest.raises(CursorSerializationError):
            serializer.dump([1, 2])

    @pytest.mark.parametrize(
        "raw",
        [
            [1, 2],
            {"$datetime": "x", "$date": "y"},
            {"$unknown": "value"},
            {"$decimal": 5},
            {"$datetime": "not-a-date"},
            {"$decimal": "abc"},
            {"$uuid": "1234"},
            {"$bytes": "***"},
        ],
    )
    def test_load_rejects_bad_values(self, serializer, raw):
        with pytest.raises(MalformedCursorError):
            serializer.load(raw)


@pytest.mark.unit
class TestDynamoSerializer:
    """Test conversion to and from the DynamoDB low-level format."""

    def test_to_dynamo_value_string(self):
        assert DynamoSerializer().to_dynamo_value("abc") == {"S": "abc"}

    def test_to_dynamo_value_float_becomes_decimal_string(self):
        assert DynamoSerializer().to_dynamo_value(10.5) == {"N": "10.5"}

    def test_to_dynamo_value_int(self):
        assert DynamoSerializer().to_dynamo_value(42) == {"N": "42"}

    def test_to_dynamo_value_utc_datetime_uses_z_suffix(self):
        value = datetime(2023, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert DynamoSerializer().to_dynamo_value(value) == {"S": "2023-01-01T10:00:00Z"}

    def test_to_dynamo_value_uuid_and_enum(self):
        serializer = DynamoSerializer()
        uid = UUID("12345678-1234-5678-1234-567812345678")
        assert serializer.to_dynamo_value(uid) == {"S": str(uid)}
        assert serializer.to_dynamo_value(Status.ACTIVE) == {"S": "active"}

    def test_to_dynamo_value_unsupported(self):
        with pytest.raises(CursorSerializationError, match="Failed to serialize"):
            DynamoSerializer().to_dynamo_value(object())

    def test_from_dynamo_restores_numbers(self):
        item = {"room_id": {"S": "general"}, "likes": {"N": "5"}, "score": {"N": "9.5"}}
        assert DynamoSerializer().from_dynamo(item) == {
            "room_id": "general",
            "likes": 5,
            "score": 9.5,
        }

    def test_from_dynamo_nested(self):
        item = {"tags": {"L": [{"N": "1"}, {"S": "x"}]}, "meta": {"M": {"n": {"N": "2.5"}}}}
        assert DynamoSerializer().from_dynamo(item) == {"tags": [1, "x"], "meta": {"n": 2.5}}
