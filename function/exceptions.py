"""Custom exception types for nsgallow.

Each failure step of the request handler has its own exception type so the
handler can name the step when it reports a fatal result.

Exception Hierarchy:
    NsgAllowError (base)
    ├── MissingFieldError - Required composite resource field not found
    ├── DesiredResourcesError - Desired composed resources cannot be read
    ├── AddressFetchError - Address range endpoint unreachable
    ├── ResponseBodyError - Address range response body unreadable
    ├── ResourceConversionError - Security rule cannot be converted to a Struct
    └── DesiredResourcesWriteError - Desired composed resources cannot be stored
"""

from typing import Any, Dict, Optional


class NsgAllowError(Exception):
    """Root of every error raised while composing a security rule.

    The handler turns any NsgAllowError into one fatal result, so the
    rendered string is what ends up in the composite's events.

    Attributes:
        message: What went wrong, without the step prefix the handler adds
        context: Values that locate the failure, such as the field path or URL
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = dict(context) if context else {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} (context: {details})"


class MissingFieldError(NsgAllowError):
    """Raised when a required field of the observed composite is missing.

    Examples:
        - spec.nsgName not set on the XR
        - spec.nsgName set to a non-string value
    """

    pass


class DesiredResourcesError(NsgAllowError):
    """Raised when the desired composed resources of a request cannot be read."""

    pass


class AddressFetchError(NsgAllowError):
    """Raised when the address range endpoint cannot be reached.

    Examples:
        - DNS resolution or connection failures
        - Read timeouts
        - Retries exhausted
    """

    pass


class ResponseBodyError(NsgAllowError):
    """Raised when the address range response body cannot be read or decoded."""

    pass


class ResourceConversionError(NsgAllowError):
    """Raised when a security rule cannot be converted to a composed resource."""

    pass


class DesiredResourcesWriteError(NsgAllowError):
    """Raised when the desired composed resources cannot be set on a response."""

    pass
