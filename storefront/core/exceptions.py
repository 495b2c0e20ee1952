"""Domain exceptions raised by the search engine."""


class StorefrontError(Exception):
    """Base class for storefront search errors."""


class StoreUnavailableError(StorefrontError):
    """The catalog store failed or did not answer within the configured timeout.

    The original driver error is chained as ``__cause__`` for diagnostics;
    it is never rendered into an API response.
    """

    def __init__(self, operation: str) -> None:
        super().__init__(f"Catalog store unavailable during {operation}")
        self.operation = operation
