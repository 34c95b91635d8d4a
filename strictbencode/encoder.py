from typing import Iterable, Iterator, Optional, cast

from strictbencode.variants import VariantSet
from strictbencode.decoder import DEFAULT_INT_BITS, DEFAULT_MAX_DEPTH
from strictbencode.errors import BencodeEncodeError, UnrepresentableValueError
from strictbencode.values import (ByteString,
                                  Dictionary,
                                  Integer,
                                  List,
                                  Value,
                                  to_value)


__all__ = (
    "BencodeEncoder",
    "encode",
    "encode_sequence",
    "dumps",
)


_END = object()


class BencodeEncoder:
    def __init__(
        self,
        data: Value,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        int_bits: Optional[int] = DEFAULT_INT_BITS
    ) -> None:
        self._data = data
        self._max_depth = max_depth
        self._int_bits = int_bits

    def encode(self) -> bytes:
        chunks: list[bytes] = []
        # One iterator per open container, innermost last
        stack: list[Iterator[Value]] = []
        self._encode(self._data, chunks, stack)
        while stack:
            item = next(stack[-1], _END)
            if item is _END:
                chunks.append(b"e")
                stack.pop()
            else:
                self._encode(cast(Value, item), chunks, stack)
        return b"".join(chunks)

    def _encode(
        self,
        data: Value,
        chunks: list[bytes],
        stack: list[Iterator[Value]]
    ) -> None:
        if isinstance(data, Integer):
            chunks.append(self._encode_int(data.value))
        elif isinstance(data, ByteString):
            chunks.append(self._encode_string(data.value))
        elif isinstance(data, (List, Dictionary)):
            if len(stack) >= self._max_depth:
                raise UnrepresentableValueError(
                    f"Nesting deeper than {self._max_depth} containers")
            if isinstance(data, List):
                chunks.append(b"l")
                stack.append(iter(data.items))
            else:
                self._check_keys(data)
                chunks.append(b"d")
                stack.append(self._iter_dict_values(data, chunks))
        else:
            raise BencodeEncodeError(
                f"Object of type {type(data).__name__} "
                f"is not Bencode serializable")

    def _encode_int(self, value: int) -> bytes:
        if not isinstance(value, int) or isinstance(value, bool):
            raise BencodeEncodeError(
                f"Integer payload of type {type(value).__name__} "
                f"is not Bencode serializable")
        if self._int_bits is not None:
            limit = 2 ** (self._int_bits - 1)
            if not -limit <= value < limit:
                raise UnrepresentableValueError(
                    f"Integer {value} is out of {self._int_bits}-bit range",
                    value)
        return b"i%de" % value

    @staticmethod
    def _encode_string(value: bytes) -> bytes:
        if not isinstance(value, (bytes, bytearray)):
            raise BencodeEncodeError(
                f"Byte string payload of type {type(value).__name__} "
                f"is not Bencode serializable")
        return b"%d:%s" % (len(value), value)

    @staticmethod
    def _check_keys(data: Dictionary) -> None:
        for key in data.entries:
            if not isinstance(key, bytes):
                raise BencodeEncodeError(
                    f"Dictionary key of type {type(key).__name__} "
                    f"is not Bencode serializable")

    def _iter_dict_values(
        self,
        data: Dictionary,
        chunks: list[bytes]
    ) -> Iterator[Value]:
        for key in sorted(data.entries):
            chunks.append(self._encode_string(key))
            yield data.entries[key]


def encode(
    value: Value,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    int_bits: Optional[int] = DEFAULT_INT_BITS
) -> bytes:
    return BencodeEncoder(
        value, max_depth=max_depth, int_bits=int_bits).encode()


def encode_sequence(
    elements: Iterable[object],
    variants: VariantSet,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    int_bits: Optional[int] = DEFAULT_INT_BITS
) -> bytes:
    wrapped = List([variants.unwrap(element) for element in elements])
    return encode(wrapped, max_depth=max_depth, int_bits=int_bits)


def dumps(obj: object, **options) -> bytes:
    return encode(to_value(obj), **options)
