"""
Custom exception classes for the API handlers and services.
"""
from typing import Optional, List, Any


class ValidationError(Exception):
    """Exception raised when a request fails validation (HTTP 400)."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None
    ):
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation if available
            value: Invalid value if available
        """
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value


class MissingParameterError(ValidationError):
    """One or more required query parameters are absent or empty."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        quoted = ", ".join(f"'{name}'" for name in self.missing)
        super().__init__(
            f"Missing required query parameter(s): {quoted}",
            field=self.missing[0] if self.missing else None,
        )


class StaleTimestampError(ValidationError):
    """The ``secret`` timestamp is not an integer or is outside the window."""


class UnknownActionError(ValidationError):
    """The ``action`` parameter names no supported instance action."""

    def __init__(self, action: str, allowed: List[str]):
        super().__init__(
            f"Invalid action specified: '{action}'. "
            f"Expected one of: {', '.join(allowed)}",
            field="action",
            value=action,
        )


class ProviderError(Exception):
    """Exception raised when a cloud provider call fails (HTTP 500)."""

    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        resource: Optional[str] = None
    ):
        """
        Initialize provider error.

        Args:
            message: Error message reported by the provider
            step: Operation or workflow step that failed
            resource: Instance or static IP name if available
        """
        super().__init__(f"{step} failed: {message}" if step else message)
        self.message = message
        self.step = step
        self.resource = resource


class CredentialError(ProviderError):
    """A provider client could not be built from the configured credentials."""

    def __init__(self, message: str, profile: Optional[str] = None):
        super().__init__(message, step="credentials", resource=profile)


class MultipleStaticIPsError(ProviderError):
    """More than one static IP is attached to the instance being reassigned."""

    def __init__(self, instance_name: str, ip_names: List[str]):
        super().__init__(
            f"instance {instance_name} has {len(ip_names)} attached static IPs "
            f"({', '.join(ip_names)}); refusing to choose one",
            step="release",
            resource=instance_name,
        )
        self.ip_names = list(ip_names)


class DNSSyncError(Exception):
    """Exception raised for DNS provider errors; never fails a request."""

    def __init__(
        self,
        message: str,
        domain: Optional[str] = None,
        record: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.domain = domain
        self.record = record
        self.status_code = status_code
