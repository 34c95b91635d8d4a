import enum
import dataclasses

from typing import Callable, Iterator, Mapping, Optional, TypeVar

from strictbencode.errors import (AmbiguousDispatchError,
                                  UnsupportedVariantEncodeError)
from strictbencode.values import (ByteString,
                                  Dictionary,
                                  Integer,
                                  List,
                                  Value)


__all__ = (
    "Shape",
    "VariantSet",
    "variant",
)


_SHAPE_ATTR = "__bencode_shape__"

T = TypeVar("T", bound=type)


class Shape(enum.Enum):
    INTEGER = "integer"
    BYTE_STRING = "byte string"
    LIST = "list"
    DICTIONARY = "dictionary"

    @classmethod
    def from_lead_byte(cls, byte: Optional[int]) -> Optional["Shape"]:
        if byte is None:
            return None
        if byte == ord("i"):
            return cls.INTEGER
        elif byte == ord("l"):
            return cls.LIST
        elif byte == ord("d"):
            return cls.DICTIONARY
        elif ord("0") <= byte <= ord("9"):
            return cls.BYTE_STRING
        return None

    @classmethod
    def of(cls, value: Value) -> "Shape":
        return _VALUE_TYPES_TO_SHAPES[type(value)]

    @property
    def is_container(self) -> bool:
        return self in (Shape.LIST, Shape.DICTIONARY)


_VALUE_TYPES_TO_SHAPES: dict[type, Shape] = {
    Integer: Shape.INTEGER,
    ByteString: Shape.BYTE_STRING,
    List: Shape.LIST,
    Dictionary: Shape.DICTIONARY,
}

_SHAPES_TO_VALUE_TYPES: dict[Shape, type] = {
    shape: value_type
    for value_type, shape in _VALUE_TYPES_TO_SHAPES.items()
}


def variant(shape: Shape) -> Callable[[T], T]:
    """Mark a one-field dataclass as the case carrying ``shape``."""
    def mark(case: T) -> T:
        setattr(case, _SHAPE_ATTR, shape)
        return case
    return mark


class VariantSet:
    """Closed set of caller cases, at most one per wire shape.

    Each case is a dataclass with a single field holding the payload:
    ``int`` for integers, ``bytes`` for byte strings, ``list[Value]`` for
    lists and ``dict[bytes, Value]`` for dictionaries.
    """

    def __init__(self, cases: Mapping[type, Shape]) -> None:
        self._cases_to_shapes: dict[type, Shape] = {}
        self._shapes_to_cases: dict[Shape, type] = {}
        self._payload_fields: dict[type, str] = {}
        for case, shape in cases.items():
            self._add_case(case, shape)

    @classmethod
    def of(cls, *cases: type) -> "VariantSet":
        mapping: dict[type, Shape] = {}
        for case in cases:
            shape = getattr(case, _SHAPE_ATTR, None)
            if not isinstance(shape, Shape):
                raise AmbiguousDispatchError(
                    f"Case {case.__name__} is not marked with a shape")
            mapping[case] = shape
        return cls(mapping)

    def _add_case(self, case: type, shape: Shape) -> None:
        if not isinstance(shape, Shape):
            raise AmbiguousDispatchError(
                f"Case {case.__name__} is bound to {shape!r}, not a Shape")
        if shape in self._shapes_to_cases:
            raise AmbiguousDispatchError(
                f"Shape {shape.value} is claimed by both "
                f"{self._shapes_to_cases[shape].__name__} "
                f"and {case.__name__}")
        self._payload_fields[case] = self._get_payload_field(case)
        self._cases_to_shapes[case] = shape
        self._shapes_to_cases[shape] = case

    @staticmethod
    def _get_payload_field(case: type) -> str:
        if not dataclasses.is_dataclass(case):
            raise AmbiguousDispatchError(
                f"Case {case.__name__} must be a dataclass")
        case_fields = dataclasses.fields(case)
        if len(case_fields) != 1:
            raise AmbiguousDispatchError(
                f"Case {case.__name__} must have exactly one field, "
                f"has {len(case_fields)}")
        return case_fields[0].name

    @property
    def cases(self) -> tuple[type, ...]:
        return tuple(self._cases_to_shapes)

    @property
    def shapes(self) -> frozenset[Shape]:
        return frozenset(self._shapes_to_cases)

    def __contains__(self, case: object) -> bool:
        return case in self._cases_to_shapes

    def __iter__(self) -> Iterator[tuple[type, Shape]]:
        return iter(self._cases_to_shapes.items())

    def case_for(self, shape: Shape) -> Optional[type]:
        return self._shapes_to_cases.get(shape)

    def shape_for(self, case: type) -> Optional[Shape]:
        return self._cases_to_shapes.get(case)

    def wrap(self, value: Value) -> object:
        case = self._shapes_to_cases[Shape.of(value)]
        if isinstance(value, List):
            return case(value.items)
        elif isinstance(value, Dictionary):
            return case(value.entries)
        return case(value.value)

    def unwrap(self, element: object) -> Value:
        case = type(element)
        shape = self._cases_to_shapes.get(case)
        if shape is None:
            raise UnsupportedVariantEncodeError(
                f"Element of type {case.__name__} is not a declared case")
        payload = getattr(element, self._payload_fields[case])
        return _SHAPES_TO_VALUE_TYPES[shape](payload)

    def __repr__(self) -> str:
        cases = ", ".join(
            f"{case.__name__}={shape.name}"
            for case, shape in self._cases_to_shapes.items())
        return f"VariantSet({cases})"
