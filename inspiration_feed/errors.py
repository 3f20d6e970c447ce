"""
Exception taxonomy for the feed engine.

  FeedLoadError       — fatal: the candidate fetch failed, nothing to show
  EnrichmentError     — degradable: author / style / linked-content lookups
  FeedLoadSuperseded  — a newer load for the same session won the race
  MutationError       — a like/save write was rejected by the store
  SeedServiceError    — the content-seeding service failed
"""


class FeedError(Exception):
    """Base class for every error raised by the feed engine."""


class FeedLoadError(FeedError):
    pass


class EnrichmentError(FeedError):
    def __init__(self, source: str, cause: Exception | None = None) -> None:
        self.source = source
        self.cause = cause
        super().__init__(f"{source} lookup failed: {cause}")


class StyleAffinityUnavailable(EnrichmentError):
    def __init__(self, cause: Exception | None = None) -> None:
        super().__init__("style_tags", cause)


class FeedLoadSuperseded(FeedError):
    def __init__(self, ticket: int, latest: int) -> None:
        self.ticket = ticket
        self.latest = latest
        super().__init__(f"load #{ticket} superseded by #{latest}")


class MutationError(FeedError):
    pass


class SeedServiceError(FeedError):
    pass
