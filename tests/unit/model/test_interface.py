"""Entity contract enforcement, dispatch and the shared validators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest

from cloud_models.backend.base import ObjectNotFoundError
from cloud_models.backend.memory import InMemoryBackend
from cloud_models.errors import (
    ClassMismatchError,
    FieldNotPresentError,
    InterfaceNotImplementedError,
    ReferenceNotFoundError,
    TypeMismatchError,
)
from cloud_models.model.interface import (
    REQUIRED_CAPABILITIES,
    CloudEntity,
    EntityState,
    ReadOnlyField,
)
from cloud_models.utils.json_utils import canonical_json, try_parse_json

if TYPE_CHECKING:
    from cloud_models.backend.base import RecordHandle


@dataclass(frozen=True, slots=True)
class _LabelFields:
    label: object
    flag: object


class _Label(CloudEntity):
    label = ReadOnlyField()
    flag = ReadOnlyField()

    def __init__(self, parameter: str | RecordHandle, *, backend: InMemoryBackend) -> None:
        super().__init__("Label", parameter, backend=backend)
        self.raw: dict[str, object] | None = None
        self.calls: list[str] = []

    async def construct_from_record(self, record: RecordHandle) -> _Label:
        self.calls.append("record")
        self._accept(_LabelFields(label=record.get("label"), flag=record.get("flag")), record)
        return self

    async def construct_from_json(self, json_text: str) -> _Label:
        self.calls.append("json")
        self.raw = try_parse_json(json_text)
        fields = _LabelFields(label=self.raw["label"], flag=self.raw.get("flag"))
        self._accept(fields, self._backend.create_record(self.class_name))
        return self

    def get_raw_object(self) -> dict[str, object] | None:
        return self.raw

    async def save(self) -> RecordHandle:
        return await self._persist(None)

    def serialize_with_ids(self) -> str:
        return canonical_json(self.field_values())

    async def serialize_with_objects(self) -> str:
        return self.serialize_with_ids()


def _label_with_raw(raw: dict[str, object], backend: InMemoryBackend | None = None) -> _Label:
    entity = _Label("{}", backend=backend if backend is not None else InMemoryBackend())
    entity.raw = raw
    return entity


def _subclass_without(*missing: str) -> type[CloudEntity]:
    namespace = {
        name: value
        for name, value in vars(_Label).items()
        if name in REQUIRED_CAPABILITIES and name not in missing
    }
    namespace["__init__"] = _Label.__init__
    return type("Partial", (CloudEntity,), namespace)


@pytest.mark.parametrize("capability", REQUIRED_CAPABILITIES)
def test_missing_capability_fails_at_construction(capability: str) -> None:
    partial = _subclass_without(capability)

    with pytest.raises(InterfaceNotImplementedError) as exc_info:
        partial("{}", backend=InMemoryBackend())

    assert exc_info.value.method == capability
    assert exc_info.value.interface == "CloudEntity"
    assert isinstance(exc_info.value, TypeError)


def test_first_missing_capability_is_reported() -> None:
    partial = _subclass_without("save", "construct_from_json")

    with pytest.raises(InterfaceNotImplementedError) as exc_info:
        partial("{}", backend=InMemoryBackend())

    assert exc_info.value.method == "construct_from_json"


def test_base_class_itself_cannot_be_instantiated() -> None:
    with pytest.raises(InterfaceNotImplementedError):
        CloudEntity("Label", "{}", backend=InMemoryBackend())


@pytest.mark.asyncio
async def test_initialize_dispatches_json_text() -> None:
    entity = _Label('{"label": "x", "flag": true}', backend=InMemoryBackend())

    result = await entity.initialize()

    assert result is entity
    assert entity.calls == ["json"]
    assert entity.label == "x"
    assert entity.state is EntityState.VALIDATED


@pytest.mark.asyncio
async def test_initialize_dispatches_matching_record() -> None:
    backend = InMemoryBackend()
    record = backend.seed("Label", "l1", label="stored", flag=False)
    entity = _Label(record, backend=backend)

    await entity.initialize()

    assert entity.calls == ["record"]
    assert entity.record is record
    assert entity.label == "stored"


@pytest.mark.asyncio
async def test_initialize_rejects_record_of_other_class() -> None:
    backend = InMemoryBackend()
    record = backend.seed("Other", "o1", label="stored")
    entity = _Label(record, backend=backend)

    with pytest.raises(ClassMismatchError):
        await entity.initialize()

    assert entity.calls == []
    assert entity.state is EntityState.REJECTED


def test_fields_are_none_before_construction() -> None:
    entity = _Label("{}", backend=InMemoryBackend())

    assert entity.state is EntityState.UNINITIALIZED
    assert entity.label is None
    assert entity.record is None


def test_read_only_field_descriptor_on_class_and_ordering() -> None:
    assert isinstance(_Label.label, ReadOnlyField)
    assert _Label.label.attribute == "label"
    assert _Label.field_attributes() == ("label", "flag")


@pytest.mark.asyncio
async def test_persist_stores_record_and_marks_saved() -> None:
    backend = InMemoryBackend()
    entity = await _Label('{"label": "x"}', backend=backend).initialize()

    saved = await entity.save()

    assert saved.object_id is not None
    assert entity.state is EntityState.SAVED
    assert backend.count("Label") == 1


@pytest.mark.asyncio
async def test_boolean_validator_missing_field_uses_given_class_name() -> None:
    entity = _label_with_raw({})

    with pytest.raises(FieldNotPresentError) as exc_info:
        await entity.validate_boolean_field("flag", "Custom")

    assert (exc_info.value.field, exc_info.value.class_name) == ("flag", "Custom")


@pytest.mark.parametrize(("value", "found"), [("true", "string"), (0, "integer"), (None, "null")])
@pytest.mark.asyncio
async def test_boolean_validator_rejects_non_booleans(value: object, found: str) -> None:
    entity = _label_with_raw({"flag": value})

    with pytest.raises(TypeMismatchError) as exc_info:
        await entity.validate_boolean_field("flag", "Label")

    assert exc_info.value.found == found
    assert exc_info.value.expected == "boolean"


@pytest.mark.parametrize("value", [True, False])
@pytest.mark.asyncio
async def test_boolean_validator_returns_value(value: bool) -> None:
    entity = _label_with_raw({"flag": value})

    assert await entity.validate_boolean_field("flag", "Label") is value


@pytest.mark.asyncio
async def test_reference_validator_missing_field() -> None:
    entity = _label_with_raw({})

    with pytest.raises(FieldNotPresentError) as exc_info:
        await entity.validate_reference_field("owner", "User")

    assert exc_info.value.field == "owner"
    assert exc_info.value.class_name == "Label"


@pytest.mark.asyncio
async def test_reference_validator_null_returns_none_without_lookup() -> None:
    backend = InMemoryBackend()
    entity = _label_with_raw({"owner": None}, backend)

    assert await entity.validate_reference_field("owner", "User") is None
    assert backend.lookup_calls == []


@pytest.mark.asyncio
async def test_reference_validator_type_mismatch_without_lookup() -> None:
    backend = InMemoryBackend()
    entity = _label_with_raw({"owner": 17}, backend)

    with pytest.raises(TypeMismatchError) as exc_info:
        await entity.validate_reference_field("owner", "User")

    assert exc_info.value.found == "integer"
    assert backend.lookup_calls == []


@pytest.mark.asyncio
async def test_reference_validator_not_found() -> None:
    backend = InMemoryBackend()
    entity = _label_with_raw({"owner": "u404"}, backend)

    with pytest.raises(ReferenceNotFoundError) as exc_info:
        await entity.validate_reference_field("owner", "User")

    assert (exc_info.value.object_id, exc_info.value.class_name) == ("u404", "User")
    assert isinstance(exc_info.value.__cause__, ObjectNotFoundError)
    assert backend.lookup_calls == [("User", "u404")]


@pytest.mark.asyncio
async def test_reference_validator_returns_resolved_record() -> None:
    backend = InMemoryBackend()
    backend.seed("User", "u1", username="una")
    entity = _label_with_raw({"owner": "u1"}, backend)

    record = await entity.validate_reference_field("owner", "User")

    assert record is not None
    assert record.object_id == "u1"
    assert record.get("username") == "una"


@pytest.mark.asyncio
async def test_validators_require_an_object_under_validation() -> None:
    entity = _Label("{}", backend=InMemoryBackend())

    with pytest.raises(RuntimeError, match="no JSON object"):
        await entity.validate_boolean_field("flag", "Label")
