"""
Entry renderer tests: field classification, deep rendering and the structlog processor.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import NamedTuple

from kanlog.errors import StackError
from kanlog.render import STACK_TRACE_KEY, FieldKind, Renderable, classify, render, render_fields


@dataclass
class Point:
    x: int
    y: int


class Box:
    def __init__(self) -> None:
        self.items = {"k": None}


class Slotted:
    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name


class Pair(NamedTuple):
    left: int
    right: str


class Color(Enum):
    RED = "red"


class Account:
    def log_text(self) -> str:
        return "account#42"


class BrokenRepr:
    def __repr__(self) -> str:
        raise RuntimeError("no repr")


class TestClassify:
    def test_strings_are_text(self) -> None:
        assert classify("alice") is FieldKind.TEXT

    def test_exceptions_are_errors(self) -> None:
        assert classify(ValueError("x")) is FieldKind.ERROR

    def test_types_with_own_str_are_text(self) -> None:
        assert classify(datetime(2024, 1, 1)) is FieldKind.TEXT

    def test_renderable_is_text(self) -> None:
        assert isinstance(Account(), Renderable)
        assert classify(Account()) is FieldKind.TEXT

    def test_compound_values_are_structured(self) -> None:
        assert classify({"a": 1}) is FieldKind.STRUCTURED
        assert classify([1, 2]) is FieldKind.STRUCTURED
        assert classify(Point(1, 2)) is FieldKind.STRUCTURED
        assert classify(Box()) is FieldKind.STRUCTURED


class TestRender:
    def test_nested_containers_expand(self) -> None:
        value = {"b": [Point(1, 2)], "a": (1,)}
        assert render(value) == "{'a': (1,), 'b': [Point(x=1, y=2)]}"

    def test_plain_object_expands_attributes(self) -> None:
        assert render(Box()) == "Box(items={'k': None})"

    def test_slotted_object_expands_slots(self) -> None:
        assert render(Slotted("n")) == "Slotted(name='n')"

    def test_named_tuple_uses_field_names(self) -> None:
        assert render(Pair(1, "r")) == "Pair(left=1, right='r')"

    def test_sets_are_sorted(self) -> None:
        assert render({3, 1, 2}) == "{1, 2, 3}"
        assert render(frozenset({1})) == "frozenset({1})"
        assert render(set()) == "set()"

    def test_enum_member(self) -> None:
        assert render(Color.RED) == "Color.RED"

    def test_renderable_inside_container(self) -> None:
        assert render([Account()]) == "[account#42]"

    def test_recursion_is_marked(self) -> None:
        loop: list = []
        loop.append(loop)
        assert render(loop) == "[<recursive list>]"

    def test_repeated_reference_is_not_recursion(self) -> None:
        shared = [1]
        assert render([shared, shared]) == "[[1], [1]]"

    def test_custom_repr_is_used(self) -> None:
        stamp = datetime(2024, 1, 2, tzinfo=timezone.utc)
        assert render([stamp]) == f"[{stamp!r}]"

    def test_failing_repr_does_not_raise(self) -> None:
        assert render(BrokenRepr()) == "<unrenderable BrokenRepr>"


class TestRenderFields:
    def test_entry_without_fields_is_untouched(self) -> None:
        event_dict = {"event": "hello"}
        assert render_fields(None, "info", event_dict) == {"event": "hello"}

    def test_error_field_is_split(self) -> None:
        err = StackError("boom", stack=['  File "app.py", line 1, in run\n'])
        event_dict = render_fields(None, "info", {"fields": {"error": err}})
        assert event_dict["fields"]["error"] == "boom"
        assert event_dict["fields"][STACK_TRACE_KEY] == '\nTraceback (most recent call last):\n  File "app.py", line 1, in run'

    def test_text_values_pass_through(self) -> None:
        stamp = datetime(2024, 1, 2)
        account = Account()
        event_dict = render_fields(None, "info", {"fields": {"user": "alice", "at": stamp, "acct": account}})
        assert event_dict["fields"] == {"user": "alice", "at": stamp, "acct": account}

    def test_structured_values_are_rendered(self) -> None:
        event_dict = render_fields(None, "info", {"fields": {"point": Point(1, 2), "tags": ["a"]}})
        assert event_dict["fields"] == {"point": "Point(x=1, y=2)", "tags": "['a']"}

    def test_timestamp_keys_are_not_rendered(self) -> None:
        box = Box()
        event_dict = render_fields(None, "info", {"fields": {"time": box, "fields.time": box}})
        assert event_dict["fields"]["time"] is box
        assert event_dict["fields"]["fields.time"] is box
