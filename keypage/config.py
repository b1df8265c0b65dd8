from dataclasses import dataclass

from .exceptions import InvalidLimitError
from .ordering import Direction


@dataclass(frozen=True)
class PaginatorOptions:
    """
    Settings shared by every paginate() call.

    Attributes:
        fallback_column: Unique row identifier used when a source reports no ordering
        fallback_direction: Direction of the fallback column
        max_limit: Upper bound for the page size (None for no bound)
        region: AWS region used when a DynamoRowSource creates its own client
    """

    fallback_column: str = "id"
    fallback_direction: Direction = Direction.DESC
    max_limit: int | None = None
    region: str = "us-east-1"

    def __post_init__(self) -> None:
        if not self.fallback_column:
            raise ValueError("fallback_column must be a non-empty string")
        object.__setattr__(self, "fallback_direction", Direction.parse(self.fallback_direction))
        if self.max_limit is not None and (
            isinstance(self.max_limit, bool)
            or not isinstance(self.max_limit, int)
            or self.max_limit < 1
        ):
            raise ValueError(f"max_limit must be a positive integer, got {self.max_limit!r}")

    def validate_limit(self, limit: object) -> int:
        """
        Checks a requested page size.

        Returns:
            The limit, unchanged

        Raises:
            InvalidLimitError: If the limit is not an int >= 1 or exceeds max_limit
        """
        # bool is an int subclass; True must not mean a page of one
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidLimitError(limit, self.max_limit)
        if self.max_limit is not None and limit > self.max_limit:
            raise InvalidLimitError(limit, self.max_limit)
        return limit


DEFAULT_OPTIONS = PaginatorOptions()
