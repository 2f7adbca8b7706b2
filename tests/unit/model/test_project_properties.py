"""Property checks for Project field round-tripping, typing and immutability."""

from __future__ import annotations

import asyncio
import json

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from cloud_models.errors import ImmutablePropertyError, TypeMismatchError
from cloud_models.model.project import PROJECT_ATTRIBUTES, Project

from . import DEMO_PAYLOAD, FIELD_ORDER, REFERENCE_FIELDS, demo_json, demo_payload, make_backend

_REFERENCE_ORDER = [name for name in FIELD_ORDER if name in REFERENCE_FIELDS]

_text = st.text(alphabet=st.characters(blacklist_categories=("Cs",)), max_size=24)
_resolution = st.integers(min_value=0, max_value=16_384)
_non_string_json = st.one_of(
    st.integers(),
    st.floats(allow_nan=False, allow_infinity=False),
    st.booleans(),
    st.lists(st.integers(), max_size=3),
    st.dictionaries(st.sampled_from(["a", "b"]), st.integers(), max_size=2),
)
_any_value = st.one_of(st.none(), _text, st.integers(), st.booleans(), st.lists(_text, max_size=3))


def _build(text: str) -> Project:
    return asyncio.run(Project.create(text, backend=make_backend()))


@settings(max_examples=40, deadline=None)
@given(
    name=_text,
    description=_text,
    tags=st.lists(_text, max_size=6),
    is_dubbed=st.booleans(),
    is_edited=st.booleans(),
    resolution_x=_resolution,
    resolution_y=_resolution,
    ordering=st.lists(st.integers(min_value=0, max_value=500), max_size=8),
)
def test_well_formed_payload_round_trips_through_getters(
    name: str,
    description: str,
    tags: list[str],
    is_dubbed: bool,
    is_edited: bool,
    resolution_x: int,
    resolution_y: int,
    ordering: list[int],
) -> None:
    payload = demo_payload(
        name=name,
        description=description,
        tags=tags,
        is_dubbed=is_dubbed,
        is_edited=is_edited,
        resolution_x=resolution_x,
        resolution_y=resolution_y,
        slide_ordering_sequence=ordering,
    )

    project = _build(json.dumps(payload))

    assert project.name == name
    assert project.description == description
    assert project.tags == tuple(tags)
    assert project.is_dubbed is is_dubbed
    assert project.is_edited is is_edited
    assert (project.resolution_x, project.resolution_y) == (resolution_x, resolution_y)
    assert project.slide_ordering_sequence == tuple(ordering)
    assert json.loads(project.serialize_with_ids()) == payload


@settings(max_examples=40, deadline=None)
@given(
    field=st.sampled_from(_REFERENCE_ORDER),
    value=_non_string_json,
)
def test_non_string_reference_never_reaches_the_backend(field: str, value: object) -> None:
    backend = make_backend()
    earlier = _REFERENCE_ORDER[: _REFERENCE_ORDER.index(field)]
    expected_calls = [
        (REFERENCE_FIELDS[name], DEMO_PAYLOAD[name])
        for name in earlier
        if DEMO_PAYLOAD[name] is not None
    ]

    with pytest.raises(TypeMismatchError) as exc_info:
        asyncio.run(Project.create(demo_json(**{field: value}), backend=backend))

    assert exc_info.value.field == field
    assert backend.lookup_calls == expected_calls


@settings(max_examples=40, deadline=None)
@given(value=st.one_of(_text, st.none(), st.floats(allow_nan=False, allow_infinity=False)))
def test_non_integer_resolution_is_rejected(value: object) -> None:
    assume(not (isinstance(value, float) and value.is_integer()))

    with pytest.raises(TypeMismatchError) as exc_info:
        _build(demo_json(resolution_x=value))

    assert exc_info.value.field == "resolution_x"
    assert exc_info.value.expected == "integer"


@settings(max_examples=30, deadline=None)
@given(attribute=st.sampled_from(PROJECT_ATTRIBUTES), value=_any_value)
def test_any_assignment_is_rejected_and_leaves_value_unchanged(
    attribute: str, value: object
) -> None:
    project = _build(demo_json())
    before = project.field_values()

    with pytest.raises(ImmutablePropertyError):
        setattr(project, attribute, value)

    assert project.field_values() == before
