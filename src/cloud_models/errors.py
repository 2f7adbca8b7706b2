"""
cloud-models: error catalog

File: src/cloud_models/errors.py

Purpose
- Typed errors for every known entity construction, validation and persistence failure.

Functional requirements
- Each error carries machine-readable fields (``code`` plus condition-specific attributes).
- Messages name the exact field/class/condition that failed.

Non-functional requirements
- No imports from the rest of the package; safe to import anywhere.
"""

from __future__ import annotations


class CloudModelError(Exception):
    """Base error with a stable machine-readable ``code``."""

    code: str = "cloud_model_error"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"code={self.code} detail={detail}")


class InterfaceNotImplementedError(CloudModelError, TypeError):
    """Concrete entity is missing a capability required by its interface."""

    code = "interface_not_implemented"

    def __init__(self, interface: str, method: str) -> None:
        self.interface = interface
        self.method = method
        super().__init__(f"{method!r} of interface {interface!r} is not implemented")


class InvalidArgumentsError(CloudModelError, TypeError):
    """Entity constructor received a parameter that is neither JSON text nor a record."""

    code = "invalid_arguments"

    def __init__(self, class_name: str, given: object) -> None:
        self.class_name = class_name
        self.given_type = type(given).__name__
        super().__init__(
            f"{class_name} expects a JSON string or a record handle, got {self.given_type}"
        )


class InvalidJsonError(CloudModelError, ValueError):
    """Input text is not a JSON object."""

    code = "invalid_json"

    def __init__(self, detail: str = "JSON schema not valid") -> None:
        super().__init__(detail)


class FieldNotPresentError(CloudModelError, ValueError):
    code = "field_not_present"

    def __init__(self, field: str, class_name: str) -> None:
        self.field = field
        self.class_name = class_name
        super().__init__(f"could not find field {field!r} of class {class_name!r} in the JSON")


class TypeMismatchError(CloudModelError, TypeError):
    """Field value has the wrong JSON type.

    ``index`` is set when one element of a sequence field is the offender.
    """

    code = "type_mismatch"

    def __init__(
        self,
        field: str,
        class_name: str,
        found: str,
        expected: str,
        *,
        index: int | None = None,
    ) -> None:
        self.field = field
        self.class_name = class_name
        self.found = found
        self.expected = expected
        self.index = index
        location = field if index is None else f"{field}[{index}]"
        super().__init__(
            f"incorrect type for {location!r} of class {class_name!r}: "
            f"expected {expected!r} but found {found!r}"
        )


class ReferenceNotFoundError(CloudModelError, LookupError):
    code = "reference_not_found"

    def __init__(self, object_id: str, class_name: str) -> None:
        self.object_id = object_id
        self.class_name = class_name
        super().__init__(f"object with id {object_id!r} for class {class_name!r} not found")


class ClassMismatchError(CloudModelError, TypeError):
    """Record handle handed to an entity of a different class."""

    code = "class_mismatch"

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"expected a record of class {expected!r} but got {actual!r}")


class ImmutablePropertyError(CloudModelError):
    code = "immutable_property"

    def __init__(self, class_name: str, property_name: str) -> None:
        self.class_name = class_name
        self.property_name = property_name
        super().__init__(f"property {property_name!r} of {class_name!r} cannot be set")


class BackendError(CloudModelError, RuntimeError):
    """Opaque wrapper for backend failures other than a missing object."""

    code = "backend_error"

    def __init__(self, detail: str, *, backend_code: int | None = None) -> None:
        self.backend_code = backend_code
        super().__init__(detail)


__all__ = [
    "BackendError",
    "ClassMismatchError",
    "CloudModelError",
    "FieldNotPresentError",
    "ImmutablePropertyError",
    "InterfaceNotImplementedError",
    "InvalidArgumentsError",
    "InvalidJsonError",
    "ReferenceNotFoundError",
    "TypeMismatchError",
]
