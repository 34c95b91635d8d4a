from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Union, cast

from strictbencode.errors import BencodeEncodeError


__all__ = (
    "Value",
    "Integer",
    "ByteString",
    "List",
    "Dictionary",
    "NativeValue",
    "to_value",
)


NativeValue = Union[int, bytes, list, dict]


@dataclass(frozen=True)
class Integer:
    value: int

    def to_python(self) -> int:
        return self.value


@dataclass(frozen=True)
class ByteString:
    value: bytes

    def to_python(self) -> bytes:
        return self.value


@dataclass
class List:
    items: list["Value"] = field(default_factory=list)

    def to_python(self) -> list:
        return _convert_tree(self, _to_native)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, idx: int) -> "Value":
        return self.items[idx]


@dataclass
class Dictionary:
    """Byte-string keyed mapping.

    Entries keep the order they were inserted in; the encoder sorts them,
    and a strict decoder only ever inserts them in ascending order.
    """

    entries: dict[bytes, "Value"] = field(default_factory=dict)

    def to_python(self) -> dict:
        return _convert_tree(self, _to_native)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, key: bytes) -> "Value":
        return self.entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self.entries


Value = Union[Integer, ByteString, List, Dictionary]

VALUE_TYPES = (Integer, ByteString, List, Dictionary)


Children = Optional[Iterator[tuple[Optional[bytes], Any]]]


def to_value(obj: object) -> Value:
    """Build a value tree out of plain ``int``/``bytes``/``list``/``dict``.

    Tuples are taken as lists, ``bytearray`` as bytes. Dictionary keys must
    be ``bytes``. Anything else, ``str`` and ``bool`` included, is refused.
    """
    return _convert_tree(obj, _from_native)


def _from_native(obj: Any) -> tuple[Any, Children]:
    if isinstance(obj, VALUE_TYPES):
        return obj, None
    # bool is an int subclass, but has no bencode meaning
    if isinstance(obj, bool):
        raise BencodeEncodeError(
            "Object of type bool is not Bencode serializable")
    if isinstance(obj, int):
        return Integer(obj), None
    if isinstance(obj, (bytes, bytearray)):
        return ByteString(bytes(obj)), None
    if isinstance(obj, (list, tuple)):
        return List([]), ((None, item) for item in obj)
    if isinstance(obj, dict):
        for key in obj:
            if not isinstance(key, (bytes, bytearray)):
                raise BencodeEncodeError(
                    f"Dictionary key of type {type(key).__name__} "
                    f"is not Bencode serializable")
        return Dictionary({}), iter([
            (bytes(key), value) for key, value in obj.items()
        ])
    raise BencodeEncodeError(
        f"Object of type {type(obj).__name__} is not Bencode serializable")


def _to_native(value: Any) -> tuple[Any, Children]:
    if isinstance(value, List):
        return [], ((None, item) for item in value.items)
    elif isinstance(value, Dictionary):
        return {}, iter(value.entries.items())
    return value.to_python(), None


def _convert_tree(
    root: Any,
    convert: Callable[[Any], tuple[Any, Children]]
) -> Any:
    """Convert a tree node by node, keeping open containers on a stack."""
    converted, children = convert(root)
    stack = [] if children is None else [(converted, children)]
    while stack:
        target, children = stack[-1]
        entry = next(children, None)
        if entry is None:
            stack.pop()
            continue
        key, child = entry
        node, grandchildren = convert(child)
        _attach(target, key, node)
        if grandchildren is not None:
            stack.append((node, grandchildren))
    return converted


def _attach(target: Any, key: Optional[bytes], node: Any) -> None:
    if isinstance(target, List):
        target.items.append(node)
    elif isinstance(target, Dictionary):
        target.entries[cast(bytes, key)] = node
    elif isinstance(target, list):
        target.append(node)
    else:
        target[key] = node
