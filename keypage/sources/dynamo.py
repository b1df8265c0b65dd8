"""
DynamoDB row source.

Paginates the items of one partition (of the table or of a GSI) in sort key
order. DynamoDB can only order a Query by its sort key, so that is the only
ordering this source accepts. A table sort key is unique within a partition,
which makes it a valid keyset on its own. A GSI sort key is not: items may
share it, and rows tied with a page boundary would be skipped. Querying a GSI
therefore requires unique_sort_key=True, stating that the index sort key is
unique within each index partition.

Boundary comparisons on the sort key are moved into the
KeyConditionExpression so DynamoDB seeks straight to the boundary instead of
reading and discarding the rows before it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, TypeVar

import boto3
from boto3.dynamodb.conditions import ConditionExpressionBuilder
from boto3.dynamodb.conditions import Key as Boto3Key

from .._logging import logger, redact_values
from ..conditions import Condition, DynCondition, comparison_parts, compile_condition, wrap_condition
from ..config import DEFAULT_OPTIONS, PaginatorOptions
from ..exceptions import handle_dynamo_errors
from ..ordering import Direction, OrderColumn, OrderingEntry, OrderSpec, normalize_ordering
from ..paginator import CursorPaginateMixin
from ..serializer import DynamoSerializer

T = TypeVar("T")

_KEY_OPERATORS: dict[str, str] = {
    "=": "eq",
    "<": "lt",
    "<=": "lte",
    ">": "gt",
    ">=": "gte",
}


class DynamoRowSource(CursorPaginateMixin, Generic[T]):
    """
    Row source over a DynamoDB Query on a single partition key value.

    Usage:
        source = DynamoRowSource(
            table_name="messages",
            pk_name="room_id",
            pk_value="general",
            sk_name="timestamp",
            direction="desc",
        )
        page = source.cursor_paginate(20)
        older = source.cursor_paginate(20, page.next_cursor)
    """

    _serializer = DynamoSerializer()

    def __init__(
        self,
        table_name: str,
        pk_name: str,
        pk_value: Any,
        sk_name: str,
        *,
        direction: str | Direction = Direction.ASC,
        index_name: str | None = None,
        unique_sort_key: bool = False,
        client: Any | None = None,
        row_factory: Callable[[dict[str, Any]], T] | None = None,
        options: PaginatorOptions | None = None,
    ) -> None:
        self.table_name = table_name
        self.pk_name = pk_name
        self.pk_value = pk_value
        self.sk_name = sk_name
        if index_name and not unique_sort_key:
            raise ValueError(
                f"Index '{index_name}' sort key '{sk_name}' may repeat within a partition; "
                "pass unique_sort_key=True only if it is unique"
            )
        self.index_name = index_name
        self.row_factory = row_factory
        self.options = options or DEFAULT_OPTIONS

        self.scan_forward = Direction.parse(direction) is Direction.ASC
        self._client = client

        # Sort key comparison moved into the key condition (at most one)
        self.sk_condition: DynCondition | None = None
        # Everything else goes to the FilterExpression
        self.filter_condition: DynCondition | None = None

    def _clone(self, **changes: Any) -> DynamoRowSource[T]:
        clone = object.__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone.__dict__.update(changes)
        return clone

    def _get_client(self) -> Any:
        """Returns the injected client, or a default boto3 client for the configured region."""
        if self._client is None:
            self._client = boto3.client("dynamodb", region_name=self.options.region)
        return self._client

    # --- ROW SOURCE INTERFACE ---

    def ordering(self) -> OrderSpec:
        direction = Direction.ASC if self.scan_forward else Direction.DESC
        return (OrderColumn(self.sk_name, direction),)

    def order_by(self, ordering: Iterable[OrderingEntry]) -> DynamoRowSource[T]:
        """
        Returns a new source ordered by the sort key in the given direction.

        Raises:
            ValueError: If the ordering is anything but the sort key alone
        """
        order_spec = normalize_ordering(ordering)
        if len(order_spec) != 1 or order_spec[0].column != self.sk_name:
            columns = [entry.column for entry in order_spec]
            raise ValueError(
                f"DynamoDB queries can only be ordered by the sort key '{self.sk_name}', "
                f"got {columns}"
            )
        return self._clone(scan_forward=order_spec[0].is_ascending)

    def filter(self, condition: Condition) -> DynamoRowSource[T]:
        """
        Returns a new source narrowed by condition.

        A single comparison on the sort key becomes the key condition (if none
        is set yet); anything else is ANDed into the filter expression.
        """
        new_condition = wrap_condition(condition)
        parts = comparison_parts(new_condition)
        if (
            self.sk_condition is None
            and parts is not None
            and parts[0] in _KEY_OPERATORS
            and parts[1] == self.sk_name
        ):
            return self._clone(sk_condition=new_condition)

        if self.filter_condition is not None:
            new_condition = self.filter_condition & new_condition
        return self._clone(filter_condition=new_condition)

    # --- EXECUTION ---

    def _key_condition(self) -> Any:
        key_condition = Boto3Key(self.pk_name).eq(self.pk_value)
        if self.sk_condition is not None:
            operator, name, value = comparison_parts(self.sk_condition)  # type: ignore[misc]
            sk_key = getattr(Boto3Key(name), _KEY_OPERATORS[operator])(value)
            key_condition = key_condition & sk_key
        return key_condition

    def build_request(self, count: int) -> dict[str, Any]:
        """
        Builds the low-level Query arguments.

        Exposed separately so callers can inspect the request that fetch() sends.
        """
        builder = ConditionExpressionBuilder()
        key_params = compile_condition(
            self._key_condition(), self._serializer, builder, is_key_condition=True
        )

        names = dict(key_params.get("ExpressionAttributeNames", {}))
        values = dict(key_params.get("ExpressionAttributeValues", {}))

        kwargs: dict[str, Any] = {
            "TableName": self.table_name,
            "KeyConditionExpression": key_params["Expression"],
            "ScanIndexForward": self.scan_forward,
            "Limit": count,
        }

        if self.index_name:
            kwargs["IndexName"] = self.index_name

        if self.filter_condition is not None:
            filter_params = compile_condition(self.filter_condition, self._serializer, builder)
            kwargs["FilterExpression"] = filter_params["Expression"]
            names.update(filter_params.get("ExpressionAttributeNames", {}))
            values.update(filter_params.get("ExpressionAttributeValues", {}))

        if names:
            kwargs["ExpressionAttributeNames"] = names
        if values:
            kwargs["ExpressionAttributeValues"] = values

        return kwargs

    def _iter_items(self, kwargs: dict[str, Any]) -> Iterator[dict[str, Any]]:
        client = self._get_client()
        with handle_dynamo_errors(table_name=self.table_name):
            paginator = client.get_paginator("query")
            for response in paginator.paginate(**kwargs):
                yield from response.get("Items", [])

    def fetch(self, count: int) -> list[T]:
        """
        Runs the query and returns up to count rows.

        Follows LastEvaluatedKey across responses: with a filter expression
        DynamoDB applies Limit before filtering, so one response may hold
        fewer matching items than requested.
        """
        kwargs = self.build_request(count)

        logger.info(
            "Executing query fetch",
            extra={
                "table": self.table_name,
                "index": self.index_name,
                "pk_hash": redact_values(str(self.pk_value)),
                "has_key_boundary": self.sk_condition is not None,
                "has_filter": self.filter_condition is not None,
                "count": count,
            },
        )

        rows: list[T] = []
        for item in self._iter_items(kwargs):
            data = self._serializer.from_dynamo(item)
            rows.append(self.row_factory(data) if self.row_factory else data)  # type: ignore[arg-type]
            if len(rows) >= count:
                break
        return rows
