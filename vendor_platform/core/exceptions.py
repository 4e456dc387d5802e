"""
Platform-wide exception hierarchy.

Every service raises one of these types instead of a bare ``ValueError`` or
``RuntimeError``. Blueprints register handlers against them once and get
consistent HTTP status codes everywhere:

    NotFoundError        -> 404
    ValidationError      -> 422
    ConflictError        -> 409  (DuplicateReviewError is a ConflictError)
    StorageError         -> 502

Usage:
    from vendor_platform.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Vendor", resource_id=42)
    raise ValidationError("rating must be between 1.0 and 5.0", details={"rating": "out of range"})
"""


class NotFoundError(Exception):
    """Raised when a referenced vendor, document, review, case or notification does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Vendor", "VendorDocument").
        resource_id: The PK that was looked up. Included in logs and message.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is well-formed but violates a field or workflow rule.

    Covers string length caps, numeric ranges (rating, score), required
    fields, unknown enum values and invalid state transitions.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would violate a uniqueness rule.

    Args:
        resource: Model name.
        field: The unique field (or field pair) that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class DuplicateReviewError(ConflictError):
    """A customer already has an approved review for this vendor."""

    def __init__(self, vendor_id: int, customer_email: str | None) -> None:
        super().__init__("VendorReview", "vendor_id+customer_email", f"{vendor_id}/{customer_email}")
        self.vendor_id = vendor_id
        self.customer_email = customer_email


class StorageError(Exception):
    """Raised when the blob store cannot write, read or delete a stored file.

    Args:
        message: What went wrong (no file content is ever included).
        reference: Blob reference involved, if one exists yet.
    """

    def __init__(self, message: str, reference: str | None = None) -> None:
        self.reference = reference
        super().__init__(message)
