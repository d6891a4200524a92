"""Application error taxonomy.

Services raise these internally. Public service entry points turn them
into ``{"success": False, "message": ...}`` results; the admin blueprint
maps any that escape to an HTTP status through ``status_code``.
"""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    status_code = 500

    def __init__(self, message):
        self.message = message
        super().__init__(message)

    def to_dict(self):
        return {"success": False, "message": self.message}


class Unauthorized(StorefrontError):
    status_code = 401

    def __init__(self, message="Unauthorized"):
        super().__init__(message)


class NotFound(StorefrontError):
    status_code = 404

    def __init__(self, resource, identifier=None):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found")


class ValidationFailed(StorefrontError):
    """One or more validation messages, kept as plain strings."""

    status_code = 422

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")

    def to_dict(self):
        return {"success": False, "message": self.message, "errors": self.errors}


class ParseFailed(StorefrontError):
    status_code = 400


class PersistenceFailed(StorefrontError):
    status_code = 500


class DuplicateSlug(PersistenceFailed):
    status_code = 409

    def __init__(self, slug, entity="product"):
        self.slug = slug
        super().__init__(f"A {entity} with this slug already exists")


class InvalidTransition(StorefrontError):
    status_code = 409

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change order status from {current} to {target}")
