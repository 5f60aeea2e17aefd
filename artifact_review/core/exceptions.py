"""
Platform-wide exception hierarchy.

Services raise these; ``utils.errors.register_error_handlers`` maps each one
to a single HTTP status so every blueprint answers the same way.

Usage:
    from artifact_review.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Project", resource_id=42)
    raise ValidationError("rating is required", details={"rating": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested project/artifact/user does not exist.

    Distinct from "not yet reviewed": a missing canonical review is a normal
    empty result, never a NotFoundError.

    Args:
        resource: Human-readable model/entity name (e.g. "Project", "Requirement").
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
    """Raised when input fails validation in the service layer.

    Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class InvalidArtifactTypeError(ValidationError):
    """Raised when an artifact/rubric type key is outside the closed enumeration."""

    def __init__(self, artifact_type: str, valid_types) -> None:
        self.artifact_type = artifact_type
        super().__init__(
            f"Invalid artifact type '{artifact_type}'",
            details={"valid_types": sorted(valid_types)},
        )


class ForbiddenError(Exception):
    """Raised when the actor may not read or write the requested resource.

    Maps to HTTP 403. Always raised before any store mutation.
    """

    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would violate a unique constraint.

    Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")
