class NexSearchError(Exception):
    """Base class for errors raised inside the search pipeline."""


class InvalidQueryError(NexSearchError):
    """The caller sent a query we cannot work with (rendered as a 400)."""


class ProviderError(NexSearchError):
    """
    A collaborator answered with something unusable.

    Raised inside adapters only; the adapter boundary turns it into an empty
    partial record, so it never reaches the caller.
    """

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider