"""
cloud-models: Project entity

File: src/cloud_models/model/project.py

Purpose
- Typed, validated mapping of one ``Project`` record.

Validation chain (strict order, each step awaited before the next)
- id, parent, original_parent, category, language, author, name, description,
  tags, is_dubbed, is_edited, resolution_x, resolution_y, slides,
  slide_ordering_sequence.
- Every step checks presence, then type, then (references) existence. The first
  failure rejects the entity and no field is exposed.

Field names
- Attribute names equal the logical roles of ``projectConfig.json``; the record
  field name for each comes from that table.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, Final, Self

from cloud_models.config.models import load_model_configs
from cloud_models.errors import InvalidJsonError, TypeMismatchError
from cloud_models.model.interface import CloudEntity, EntityState, ReadOnlyField, ValidationStep
from cloud_models.utils.json_utils import canonical_json, json_type_name, try_parse_json

if TYPE_CHECKING:
    from collections.abc import Mapping

    from cloud_models.backend.base import Backend, RecordHandle
    from cloud_models.config.models import EntityConfig, ModelConfigs
    from cloud_models.utils.json_utils import JSONValue

ENTITY_NAME: Final[str] = "project"

# Reference attribute -> config document naming the target class.
REFERENCE_TARGETS: Final[dict[str, str]] = {
    "parent": "project",
    "original_parent": "project",
    "category": "category",
    "language": "language",
    "author": "user",
}


@dataclass(frozen=True, slots=True)
class ProjectFields:
    id: str
    parent: str | None
    original_parent: str | None
    category: str | None
    language: str | None
    author: str | None
    name: str
    description: str
    tags: tuple[str, ...]
    is_dubbed: bool
    is_edited: bool
    resolution_x: int
    resolution_y: int
    slide_ordering_sequence: tuple[int, ...]
    slides: object


PROJECT_ATTRIBUTES: Final[tuple[str, ...]] = tuple(item.name for item in fields(ProjectFields))


class Project(CloudEntity):
    """A slide project owned by a user, optionally derived from another project."""

    id = ReadOnlyField("Object id of the project.")
    parent = ReadOnlyField("Id of the project this one was derived from, or None.")
    original_parent = ReadOnlyField("Id of the root of the derivation chain, or None.")
    category = ReadOnlyField("Id of the Category, or None.")
    language = ReadOnlyField("Id of the Language, or None.")
    author = ReadOnlyField("Id of the authoring User, or None.")
    name = ReadOnlyField()
    description = ReadOnlyField()
    tags = ReadOnlyField()
    is_dubbed = ReadOnlyField()
    is_edited = ReadOnlyField()
    resolution_x = ReadOnlyField()
    resolution_y = ReadOnlyField()
    slide_ordering_sequence = ReadOnlyField("Slide indexes in presentation order.")
    slides = ReadOnlyField("Slide payload, kept as given.")

    def __init__(
        self,
        parameter: str | RecordHandle,
        *,
        backend: Backend,
        configs: ModelConfigs | None = None,
        logger: Any | None = None,
    ) -> None:
        self._configs = configs if configs is not None else load_model_configs()
        self._config: EntityConfig = self._configs.require(ENTITY_NAME)
        super().__init__(self._config.class_name, parameter, backend=backend, logger=logger)
        self._json_text: str | None = None
        self._raw_object: dict[str, JSONValue] | None = None
        self._draft: dict[str, object] = {}
        self._resolved: dict[str, RecordHandle] = {}

    @classmethod
    async def create(
        cls,
        parameter: str | RecordHandle,
        *,
        backend: Backend,
        configs: ModelConfigs | None = None,
        logger: Any | None = None,
    ) -> Self:
        """Instantiate and initialize in one step."""

        entity = cls(parameter, backend=backend, configs=configs, logger=logger)
        return await entity.initialize()

    @property
    def config(self) -> EntityConfig:
        return self._config

    def field_name(self, attribute: str) -> str:
        """Backing record field name for ``attribute``."""

        return self._config.field(attribute)

    # Construction.

    async def construct_from_json(self, json_text: str) -> Self:
        self._state = EntityState.PARSING_JSON
        self._json_text = json_text
        raw_object = try_parse_json(json_text)
        if raw_object is None:
            error = InvalidJsonError()
            self._discard_scratch()
            self._reject(error, step="parse_json")
            raise error
        self._raw_object = raw_object
        await self.parse_json()
        return self

    async def parse_json(self) -> None:
        """Run the validation chain over the parsed object and keep the result."""

        self._draft = {}
        self._resolved = {}
        try:
            await self._run_validation_chain(self.validation_chain())
        except Exception:
            self._resolved = {}
            self._discard_scratch()
            raise

        validated = ProjectFields(**self._draft)
        self._discard_scratch()
        self._accept(validated, self._backend.create_record(self.class_name))
        self._logger.info(
            "entity_validated",
            entity_class=self.class_name,
            entity_id=validated.id,
        )

    async def construct_from_record(self, record: RecordHandle) -> Self:
        values: dict[str, object] = {}
        for attribute in PROJECT_ATTRIBUTES:
            value = record.get(self.field_name(attribute))
            values[attribute] = tuple(value) if isinstance(value, list) else value
        if values["id"] is None:
            values["id"] = record.object_id
        self._accept(ProjectFields(**values), record)
        self._logger.debug(
            "entity_loaded",
            entity_class=self.class_name,
            entity_id=values["id"],
        )
        return self

    def get_raw_object(self) -> Mapping[str, JSONValue] | None:
        return self._raw_object

    def validation_chain(self) -> tuple[ValidationStep, ...]:
        return (
            ("id", self.validate_id),
            ("parent", self.validate_parent_id),
            ("original_parent", self.validate_original_parent_id),
            ("category", self.validate_category_id),
            ("language", self.validate_language_id),
            ("author", self.validate_author_id),
            ("name", self.validate_name),
            ("description", self.validate_description),
            ("tags", self.validate_tags),
            ("is_dubbed", self.validate_is_dubbed),
            ("is_edited", self.validate_is_edited),
            ("resolution_x", self.validate_resolution_x),
            ("resolution_y", self.validate_resolution_y),
            ("slides", self.validate_slides),
            ("slide_ordering_sequence", self.validate_slide_ordering_sequence),
        )

    # Validators.

    async def validate_id(self) -> None:
        self._draft["id"] = self._require_string("id")

    async def validate_parent_id(self) -> None:
        await self._validate_reference("parent")

    async def validate_original_parent_id(self) -> None:
        await self._validate_reference("original_parent")

    async def validate_category_id(self) -> None:
        await self._validate_reference("category")

    async def validate_language_id(self) -> None:
        await self._validate_reference("language")

    async def validate_author_id(self) -> None:
        await self._validate_reference("author")

    async def validate_name(self) -> None:
        self._draft["name"] = self._require_string("name")

    async def validate_description(self) -> None:
        self._draft["description"] = self._require_string("description")

    async def validate_tags(self) -> None:
        field_name = self.field_name("tags")
        value = self._require_array("tags")
        for index, item in enumerate(value):
            if not isinstance(item, str):
                raise TypeMismatchError(
                    field_name, self.class_name, json_type_name(item), "string", index=index
                )
        self._draft["tags"] = tuple(value)

    async def validate_is_dubbed(self) -> None:
        field_name = self.field_name("is_dubbed")
        value = self._read_field(field_name)
        if not isinstance(value, bool):
            raise TypeMismatchError(field_name, self.class_name, json_type_name(value), "boolean")
        self._draft["is_dubbed"] = value

    async def validate_is_edited(self) -> None:
        self._draft["is_edited"] = await self.validate_boolean_field(
            self.field_name("is_edited"), self.class_name
        )

    async def validate_resolution_x(self) -> None:
        self._draft["resolution_x"] = self._require_integer("resolution_x")

    async def validate_resolution_y(self) -> None:
        self._draft["resolution_y"] = self._require_integer("resolution_y")

    async def validate_slides(self) -> None:
        # Slide payloads are not validated yet; kept as given.
        raw = self._require_raw_object()
        value = raw.get(self.field_name("slides"))
        self._draft["slides"] = tuple(value) if isinstance(value, list) else value

    async def validate_slide_ordering_sequence(self) -> None:
        field_name = self.field_name("slide_ordering_sequence")
        value = self._require_array("slide_ordering_sequence")
        sequence: list[int] = []
        for index, item in enumerate(value):
            number = _as_integer(item)
            if number is None:
                raise TypeMismatchError(
                    field_name, self.class_name, json_type_name(item), "integer", index=index
                )
            sequence.append(number)
        self._draft["slide_ordering_sequence"] = tuple(sequence)

    # Persistence and serialization.

    async def save(self) -> RecordHandle:
        record = self._require_constructed()
        for attribute, value in self.field_values().items():
            record.set(self.field_name(attribute), _to_record_value(value))
        return await self._persist(self.id)

    def serialize_with_ids(self) -> str:
        self._require_constructed()
        return canonical_json(self._record_payload())

    async def serialize_with_objects(self) -> str:
        self._require_constructed()
        payload = self._record_payload()
        for attribute, target in REFERENCE_TARGETS.items():
            object_id = getattr(self, attribute)
            if object_id is None:
                continue
            record = self._resolved.get(attribute)
            if record is None:
                record = await self._lookup_reference(self._configs.class_name(target), object_id)
                self._resolved[attribute] = record
            payload[self.field_name(attribute)] = record.to_dict()
        return canonical_json(payload)

    # Internals.

    async def _validate_reference(self, attribute: str) -> None:
        target_class = self._configs.class_name(REFERENCE_TARGETS[attribute])
        record = await self.validate_reference_field(self.field_name(attribute), target_class)
        if record is None:
            self._draft[attribute] = None
            return
        self._draft[attribute] = self._require_raw_object()[self.field_name(attribute)]
        self._resolved[attribute] = record

    def _require_string(self, attribute: str) -> str:
        field_name = self.field_name(attribute)
        value = self._read_field(field_name)
        if not isinstance(value, str):
            raise TypeMismatchError(field_name, self.class_name, json_type_name(value), "string")
        return value

    def _require_integer(self, attribute: str) -> int:
        field_name = self.field_name(attribute)
        value = self._read_field(field_name)
        number = _as_integer(value)
        if number is None:
            raise TypeMismatchError(field_name, self.class_name, json_type_name(value), "integer")
        return number

    def _require_array(self, attribute: str) -> list[JSONValue]:
        field_name = self.field_name(attribute)
        value = self._read_field(field_name)
        if not isinstance(value, list):
            raise TypeMismatchError(field_name, self.class_name, json_type_name(value), "array")
        return value

    def _record_payload(self) -> dict[str, object]:
        return {
            self.field_name(attribute): _to_record_value(value)
            for attribute, value in self.field_values().items()
        }

    def _discard_scratch(self) -> None:
        self._json_text = None
        self._raw_object = None
        self._draft = {}


def _as_integer(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _to_record_value(value: object) -> object:
    if isinstance(value, tuple):
        return [_to_record_value(item) for item in value]
    return value


__all__ = ["ENTITY_NAME", "PROJECT_ATTRIBUTES", "REFERENCE_TARGETS", "Project", "ProjectFields"]
