# src/models/errors.py

"""Error taxonomy for feed adapters and the aggregation cycle.

Every adapter failure is a :class:`FeedError`.  The aggregator catches
them, logs them and turns them into omissions, so none of these cross
the aggregation boundary as raised exceptions.
"""


class FeedError(Exception):
    """A feed adapter could not produce results for this cycle."""

    def __init__(
        self,
        source_id: str,
        message: str,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.source_id = source_id
        self.message = message
        self.http_status = http_status

    def __str__(self) -> str:
        if self.http_status is not None:
            return (
                f"[{self.source_id}] HTTP {self.http_status}: "
                f"{self.message}"
            )
        return f"[{self.source_id}] {self.message}"


class ConfigError(FeedError):
    """A required credential or setting is missing."""


class AuthError(FeedError):
    """Token acquisition or request signing failed."""


class UpstreamError(FeedError):
    """Non-2xx status, transport failure or timeout from a feed."""


class ParseError(FeedError):
    """The upstream payload is not the expected shape at all."""


class AggregateEmptyError(Exception):
    """Advisory: every feed failed during one aggregation cycle.

    Never raised by the pipeline.  It is attached to the aggregate
    result so callers can show it next to an empty list.
    """
