"""
cloud-models: entity interface contract

File: src/cloud_models/model/interface.py

Purpose
- Base class every backend-mapped entity derives from.

Contract
- Concrete entities implement ``construct_from_record``, ``construct_from_json``,
  ``get_raw_object``, ``save``, ``serialize_with_ids`` and ``serialize_with_objects``.
  A class missing any of them cannot be instantiated (``InterfaceNotImplementedError``).
- ``initialize`` dispatches on the constructor parameter: JSON text runs the concrete
  entity's validation, a record handle of the same class is copied as trusted data.
- Field attributes are ``ReadOnlyField`` descriptors; assignment always raises
  ``ImmutablePropertyError``. Only validation logic sets field values, through the
  frozen field state.

Shared validators
- ``validate_reference_field``: presence, then type, then backend existence.
- ``validate_boolean_field``: presence, then type.
"""

from __future__ import annotations

import abc
from collections.abc import Awaitable, Callable, Mapping, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final, Self

import structlog

from cloud_models.backend.base import OBJECT_NOT_FOUND, BackendOperationError, RecordHandle
from cloud_models.errors import (
    BackendError,
    ClassMismatchError,
    CloudModelError,
    FieldNotPresentError,
    ImmutablePropertyError,
    InterfaceNotImplementedError,
    InvalidArgumentsError,
    ReferenceNotFoundError,
    TypeMismatchError,
)
from cloud_models.utils.json_utils import json_type_name

if TYPE_CHECKING:
    from cloud_models.backend.base import Backend
    from cloud_models.utils.json_utils import JSONValue

INTERFACE_NAME: Final[str] = "CloudEntity"

REQUIRED_CAPABILITIES: Final[tuple[str, ...]] = (
    "construct_from_record",
    "construct_from_json",
    "get_raw_object",
    "save",
    "serialize_with_ids",
    "serialize_with_objects",
)

ValidationStep = tuple[str, Callable[[], Awaitable[None]]]


class EntityState(StrEnum):
    """Lifecycle of one entity instance."""

    UNINITIALIZED = "uninitialized"
    PARSING_JSON = "parsing_json"
    VALIDATING_FIELDS = "validating_fields"
    VALIDATED = "validated"
    SAVED = "saved"
    REJECTED = "rejected"


class ReadOnlyField:
    """Public accessor for one validated field; writes always fail."""

    def __init__(self, doc: str | None = None) -> None:
        self.__doc__ = doc
        self._attribute = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self._attribute = name

    @property
    def attribute(self) -> str:
        return self._attribute

    def __get__(self, instance: CloudEntity | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return instance._field_value(self._attribute)

    def __set__(self, instance: CloudEntity, value: object) -> None:
        instance._logger.warning(
            "immutable_property_write",
            entity_class=instance.class_name,
            attribute=self._attribute,
        )
        raise ImmutablePropertyError(instance.class_name, self._attribute)

    def __delete__(self, instance: CloudEntity) -> None:
        raise ImmutablePropertyError(instance.class_name, self._attribute)


class CloudEntity(abc.ABC):
    """Validated, typed in-memory representation of one backend record class."""

    def __new__(cls, *args: object, **kwargs: object) -> Self:
        missing = getattr(cls, "__abstractmethods__", frozenset())
        for capability in REQUIRED_CAPABILITIES:
            if capability in missing:
                raise InterfaceNotImplementedError(INTERFACE_NAME, capability)
        return super().__new__(cls)

    def __init__(
        self,
        class_name: str,
        parameter: str | RecordHandle,
        *,
        backend: Backend,
        logger: Any | None = None,
    ) -> None:
        if not isinstance(class_name, str) or not class_name.strip():
            raise ValueError("class_name must be a non-empty string")
        if not isinstance(parameter, str) and not isinstance(parameter, RecordHandle):
            raise InvalidArgumentsError(class_name, parameter)

        self._class_name = class_name.strip()
        self._parameter: str | RecordHandle | None = parameter
        self._backend = backend
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._record: RecordHandle | None = None
        self._fields: object | None = None
        self._state = EntityState.UNINITIALIZED

    @property
    def class_name(self) -> str:
        return self._class_name

    @property
    def state(self) -> EntityState:
        return self._state

    @property
    def record(self) -> RecordHandle | None:
        """Backing record handle; ``None`` until construction succeeds."""

        return self._record

    @property
    def backend(self) -> Backend:
        return self._backend

    async def initialize(self) -> Self:
        """Construct the entity from the parameter given at instantiation."""

        if self._state is not EntityState.UNINITIALIZED:
            raise RuntimeError(f"{self._class_name} entity already initialized ({self._state})")

        parameter = self._parameter
        self._parameter = None
        if isinstance(parameter, str):
            return await self.construct_from_json(parameter)
        if parameter is None:
            raise RuntimeError(f"{self._class_name} entity has no construction parameter")

        if parameter.class_name != self._class_name:
            error = ClassMismatchError(self._class_name, parameter.class_name)
            self._reject(error, step="initialize")
            raise error
        return await self.construct_from_record(parameter)

    # Required capabilities.

    @abc.abstractmethod
    async def construct_from_record(self, record: RecordHandle) -> Self:
        """Copy field values from a trusted record handle."""

    @abc.abstractmethod
    async def construct_from_json(self, json_text: str) -> Self:
        """Parse and validate ``json_text``; raise the first validation error."""

    @abc.abstractmethod
    def get_raw_object(self) -> Mapping[str, JSONValue] | None:
        """Parsed JSON object under validation, ``None`` outside construction."""

    @abc.abstractmethod
    async def save(self) -> RecordHandle:
        """Write every field into the backing record and persist it."""

    @abc.abstractmethod
    def serialize_with_ids(self) -> str:
        """JSON text with reference fields as ids."""

    @abc.abstractmethod
    async def serialize_with_objects(self) -> str:
        """JSON text with reference fields expanded to the referenced objects."""

    # Shared validators.

    async def validate_reference_field(
        self, field_name: str, target_class_name: str
    ) -> RecordHandle | None:
        """Validate a nullable reference to an object of ``target_class_name``.

        Returns the resolved record, or ``None`` when the field holds ``null``.
        Non-string values fail before any backend lookup is made.
        """

        value = self._read_field(field_name)
        if value is None:
            return None
        if not isinstance(value, str):
            raise TypeMismatchError(field_name, self._class_name, json_type_name(value), "string")
        return await self._lookup_reference(target_class_name, value)

    async def validate_boolean_field(self, field_name: str, class_name: str) -> bool:
        raw = self._require_raw_object()
        if field_name not in raw:
            raise FieldNotPresentError(field_name, class_name)
        value = raw[field_name]
        if not isinstance(value, bool):
            raise TypeMismatchError(field_name, class_name, json_type_name(value), "boolean")
        return value

    # Helpers for concrete entities.

    def field_values(self) -> dict[str, object]:
        """Public field values keyed by attribute, in declaration order."""

        return {attribute: getattr(self, attribute) for attribute in self.field_attributes()}

    @classmethod
    def field_attributes(cls) -> tuple[str, ...]:
        attributes: list[str] = []
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, ReadOnlyField) and name not in attributes:
                    attributes.append(name)
        return tuple(attributes)

    def _field_value(self, attribute: str) -> object:
        if self._fields is None:
            return None
        return getattr(self._fields, attribute)

    def _require_raw_object(self) -> Mapping[str, JSONValue]:
        raw = self.get_raw_object()
        if raw is None:
            raise RuntimeError(f"{self._class_name} has no JSON object under validation")
        return raw

    def _read_field(self, field_name: str) -> JSONValue:
        raw = self._require_raw_object()
        if field_name not in raw:
            raise FieldNotPresentError(field_name, self._class_name)
        return raw[field_name]

    async def _lookup_reference(self, target_class_name: str, object_id: str) -> RecordHandle:
        try:
            return await self._backend.lookup_by_id(target_class_name, object_id)
        except BackendOperationError as exc:
            if exc.code == OBJECT_NOT_FOUND:
                raise ReferenceNotFoundError(object_id, target_class_name) from exc
            raise BackendError(
                f"lookup of {target_class_name} {object_id!r} failed: {exc.detail}",
                backend_code=exc.code,
            ) from exc
        except Exception as exc:
            raise BackendError(
                f"lookup of {target_class_name} {object_id!r} failed: {exc}"
            ) from exc

    async def _run_validation_chain(self, steps: Sequence[ValidationStep]) -> None:
        """Await each step in order; the first failure rejects the entity and propagates."""

        self._state = EntityState.VALIDATING_FIELDS
        for step_name, step in steps:
            try:
                await step()
            except Exception as exc:
                self._reject(exc, step=step_name)
                raise

    def _accept(self, fields: object, record: RecordHandle) -> None:
        self._fields = fields
        self._record = record
        self._state = EntityState.VALIDATED

    def _reject(self, error: BaseException, *, step: str) -> None:
        self._state = EntityState.REJECTED
        self._logger.warning(
            "entity_validation_failed",
            entity_class=self._class_name,
            step=step,
            code=error.code if isinstance(error, CloudModelError) else type(error).__name__,
            error=str(error),
        )

    def _require_constructed(self) -> RecordHandle:
        if self._state not in (EntityState.VALIDATED, EntityState.SAVED) or self._record is None:
            raise RuntimeError(f"{self._class_name} entity is not constructed ({self._state})")
        return self._record

    async def _persist(self, object_id: str | None) -> RecordHandle:
        record = self._require_constructed()
        if object_id:
            record.object_id = object_id
        saved = await record.save()
        self._state = EntityState.SAVED
        self._logger.info(
            "entity_saved",
            entity_class=self._class_name,
            object_id=saved.object_id,
        )
        return saved

    def __repr__(self) -> str:
        return f"{type(self).__name__}(class_name={self._class_name!r}, state={self._state.value!r})"


__all__ = [
    "REQUIRED_CAPABILITIES",
    "CloudEntity",
    "EntityState",
    "ReadOnlyField",
    "ValidationStep",
]
