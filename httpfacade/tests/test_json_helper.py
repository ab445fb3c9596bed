from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone

import pytest

from httpfacade.errors import ParseFailure
from httpfacade.utils.json_helper import to_json_string, to_jsonable, to_list, to_map, to_maps


class Person:
    def __init__(self, first_name: str, last_name: str):
        self._first_name = first_name
        self._last_name = last_name

    @property
    def firstName(self) -> str:
        return self._first_name

    @property
    def lastName(self) -> str:
        return self._last_name


def test_object_to_json_keeps_property_order() -> None:
    assert to_json_string(Person("John", "Smith")) == '{"firstName":"John","lastName":"Smith"}'


def test_plain_attributes_in_assignment_order() -> None:
    class Pet:
        def __init__(self):
            self.name = "Rex"
            self.age = 3
            self._secret = "hidden"

    assert to_json_string(Pet()) == '{"name":"Rex","age":3}'


def test_dataclass_and_nested_values() -> None:
    @dataclass
    class Order:
        id: int
        owner: Person
        tags: tuple
        placed: datetime

    order = Order(
        id=1,
        owner=Person("Ann", "Lee"),
        tags=("a", "b"),
        placed=datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    )
    assert json.loads(to_json_string(order)) == {
        "id": 1,
        "owner": {"firstName": "Ann", "lastName": "Lee"},
        "tags": ["a", "b"],
        "placed": "2020-01-02T03:04:05+00:00",
    }


def test_round_trip_reproduces_property_values() -> None:
    parsed = to_map(to_json_string(Person("John", "Smith")))
    assert parsed == {"firstName": "John", "lastName": "Smith"}


def test_bytes_become_base64_text() -> None:
    assert to_jsonable(b"hi") == "aGk="


def test_to_list() -> None:
    items = to_list("[1, 2]")
    assert items == [1, 2]
    assert all(type(x) is int for x in items)


def test_to_map() -> None:
    m = to_map('{ "name" : "John", "age": 22 }')
    assert len(m) == 2
    assert m["name"] == "John"
    assert m["age"] == 22
    assert type(m["age"]) is int
    assert list(m) == ["name", "age"]


def test_fractional_numbers_are_floats() -> None:
    m = to_map('{"price": 9.5, "qty": 2}')
    assert type(m["price"]) is float
    assert type(m["qty"]) is int


def test_to_maps() -> None:
    maps = to_maps('[{ "name" : "John", "age": 22 },{ "name" : "Samantha", "age": 21 }]')
    assert len(maps) == 2
    assert maps[0]["name"] == "John"
    assert maps[0]["age"] == 22
    assert maps[1]["name"] == "Samantha"
    assert maps[1]["age"] == 21


@pytest.mark.parametrize("bad", ["{", "[1, 2", "not json", ""])
def test_malformed_text_raises_parse_failure(bad: str) -> None:
    with pytest.raises(ParseFailure) as ei:
        to_map(bad)
    assert ei.value.text == bad


def test_parse_failure_names_the_text() -> None:
    with pytest.raises(ParseFailure) as ei:
        to_list("{oops")
    assert "{oops" in str(ei.value)


def test_wrong_top_level_type_is_a_parse_failure() -> None:
    with pytest.raises(ParseFailure):
        to_map("[1]")
    with pytest.raises(ParseFailure):
        to_list('{"a": 1}')
    with pytest.raises(ParseFailure):
        to_maps("[1, 2]")


def test_null_text_is_a_parse_failure() -> None:
    with pytest.raises(ParseFailure):
        to_map(None)
