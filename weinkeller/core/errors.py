"""Domain errors shared by services and the web layer."""


class WeinkellerError(Exception):
    """Base class for errors with a client-facing message."""

    error_type: str = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(WeinkellerError):
    """Raised for missing or invalid input, including insufficient stock."""

    error_type = "validation"


class DuplicateTagError(ValidationError):
    """Raised when a tag name already exists in its taxonomy."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind.replace('_', ' ').capitalize()} tag '{name}' already exists")


class NotFoundError(WeinkellerError):
    """Raised when a referenced wine, producer, tag or assessment is absent."""

    error_type = "not_found"

    def __init__(self, resource: str, resource_id: object):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} with ID {resource_id} not found")
