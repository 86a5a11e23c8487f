"""
Custom exception hierarchy for the Agency Portal.

Exception Hierarchy:
    ProviderError (base)
    ├── ProviderConnectionError  - Network/timeout issues
    ├── ProviderAPIError         - Provider returned an error response
    └── ProviderDataError        - Response body is not the JSON we expect

    ValidationError              - Input validation failed
    NotFoundError                - Entity missing or owned by another tenant
"""


class ProviderError(Exception):
    """Base exception for all email-provider errors."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ProviderConnectionError(ProviderError):
    """Network-related errors (timeout, connection refused, DNS, etc.)."""


class ProviderAPIError(ProviderError):
    """
    Provider returned an error response.

    Check status_code for specifics (401 usually means a revoked API key).
    """

    def __init__(self, message: str, details: str = None, status_code: int = None):
        super().__init__(message, details)
        self.status_code = status_code


class ProviderDataError(ProviderError):
    """
    Provider response has unexpected structure.

    Raised for non-JSON bodies or JSON of the wrong shape.
    """

    def __init__(self, message: str, details: str = None, expected: str = None, got: str = None):
        super().__init__(message, details)
        self.expected = expected
        self.got = got


class ValidationError(Exception):
    """
    Input validation failed.

    Used for validating user input before processing.
    """

    def __init__(self, field: str, message: str, value: any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value!r})"
        return f"{self.field}: {self.message}"


class NotFoundError(Exception):
    """
    Entity does not exist or is not owned by the caller.

    Both cases produce the same error so that callers cannot probe
    for other tenants' ids.
    """

    def __init__(self, entity: str, entity_id: str = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")
