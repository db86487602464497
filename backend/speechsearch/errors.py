from typing import Optional


class SearchError(Exception):
    """Base for errors that surface at the HTTP boundary as ``{error}``."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidRequest(SearchError):
    status_code = 400


class ProviderUnconfigured(SearchError):
    pass


class ProviderError(SearchError):
    pass


class UnsupportedProvider(SearchError):
    pass


class PayloadTooLarge(SearchError):
    status_code = 413


class RateLimited(SearchError):
    status_code = 429

    def __init__(self, message: str = "Too Many Requests", retry_after: float = 0.0):
        super().__init__(message)
        self.retry_after = retry_after
