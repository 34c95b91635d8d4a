import re
import logging

from typing import Iterator, Optional, Union, cast

from strictbencode.cursor import ByteCursor, BytesLike
from strictbencode.variants import Shape, VariantSet
from strictbencode.values import (ByteString,
                                  Dictionary,
                                  Integer,
                                  List,
                                  NativeValue,
                                  Value)
from strictbencode.errors import (BencodeDecodeError,
                                  ExpectedListError,
                                  InvalidKeyError,
                                  MalformedIntegerError,
                                  MalformedLengthError,
                                  NestingTooDeepError,
                                  TrailingDataError,
                                  TruncatedInputError,
                                  UnknownTagError,
                                  UnorderedKeysError,
                                  UnsupportedNestedVariantError,
                                  UnsupportedVariantError,
                                  UnterminatedContainerError)


__all__ = (
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_INT_BITS",
    "BencodeDecoder",
    "decode",
    "decode_as",
    "loads",
)


logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 512
DEFAULT_INT_BITS = 64

_INTEGER_RE = re.compile(rb"0|-?[1-9][0-9]*")
_LENGTH_RE = re.compile(rb"0|[1-9][0-9]*")


class _ListFrame:
    wants_key = False
    wants_value = False

    def __init__(self) -> None:
        self._items: list[Value] = []

    def add(self, value: Value) -> None:
        self._items.append(value)

    def build(self) -> List:
        return List(self._items)


class _DictFrame:
    def __init__(self, strict: bool) -> None:
        self._strict = strict
        self._entries: dict[bytes, Value] = {}
        self._key: Optional[bytes] = None
        self._prev_key: Optional[bytes] = None
        self._is_sorted = True

    @property
    def wants_key(self) -> bool:
        return self._key is None

    @property
    def wants_value(self) -> bool:
        return self._key is not None

    def set_key(self, key: bytes, key_pos: int) -> None:
        if key in self._entries:
            raise UnorderedKeysError(
                f"Duplicate dictionary key {key!r}", key_pos)
        if self._prev_key is not None and key < self._prev_key:
            if self._strict:
                raise UnorderedKeysError(
                    f"Dictionary key {key!r} is not greater than "
                    f"{self._prev_key!r}", key_pos)
            self._is_sorted = False
        self._key = key

    def add(self, value: Value) -> None:
        key = cast(bytes, self._key)
        self._entries[key] = value
        self._prev_key = key
        self._key = None

    def build(self) -> Dictionary:
        entries = self._entries
        if not self._is_sorted:
            logger.debug("Re-sorting unordered dictionary keys")
            entries = dict(sorted(entries.items()))
        return Dictionary(entries)


class BencodeDecoder:
    def __init__(
        self,
        data: BytesLike,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        int_bits: Optional[int] = DEFAULT_INT_BITS,
        strict: bool = True
    ) -> None:
        self._cursor = ByteCursor(data)
        self._max_depth = max_depth
        self._int_bits = int_bits
        self._strict = strict
        self._depth = 0

    @property
    def position(self) -> int:
        return self._cursor.position

    def decode(self) -> Value:
        if self._cur_ch == b"i":
            return self._decode_int()
        elif self._cur_ch == b"l":
            return self._decode_list()
        elif self._cur_ch == b"d":
            return self._decode_dict()
        elif self._cur_ch.isdigit():
            return self._decode_string()
        elif not self._cur_ch:
            raise TruncatedInputError(
                "Unexpected end of input", self._cursor.position)
        else:
            raise UnknownTagError(
                f"Invalid character {self._cur_ch!r}", self._cursor.position)

    def decode_all(self) -> Value:
        value = self.decode()
        self._ensure_consumed()
        return value

    def decode_iter(self) -> Iterator[Value]:
        while not self._cursor.at_end():
            yield self.decode()

    def decode_variants(self, variants: VariantSet) -> list:
        if self._cursor.at_end():
            raise TruncatedInputError(
                "Unexpected end of input", self._cursor.position)
        if self._cur_ch != b"l":
            raise ExpectedListError(
                f"Expected a list, got {self._cur_ch!r}",
                self._cursor.position)
        self._enter_container()
        elements = []
        while self._cur_ch != b"e":
            self._ensure_container_open()
            shape = Shape.from_lead_byte(self._cursor.peek())
            if shape is not None and variants.case_for(shape) is None:
                self._raise_unsupported_variant(shape)
            elements.append(variants.wrap(self.decode()))
        self._leave_container()
        self._ensure_consumed()
        return elements

    @property
    def _cur_ch(self) -> bytes:
        byte = self._cursor.peek()
        return b"" if byte is None else bytes((byte,))

    def _decode_int(self) -> Integer:
        begin = self._cursor.position
        self._cursor.advance()
        digits = self._cursor.take_until(b"e")
        if not _INTEGER_RE.fullmatch(digits):
            raise MalformedIntegerError(
                f"Invalid integer {digits!r}", begin)
        return Integer(self._parse_int(digits, begin))

    def _parse_int(self, digits: bytes, begin: int) -> int:
        if self._int_bits is not None:
            limit = 2 ** (self._int_bits - 1)
            if len(digits.lstrip(b"-")) > len(str(limit)):
                raise MalformedIntegerError(
                    f"Integer out of {self._int_bits}-bit range", begin)
        try:
            value = int(digits)
        except ValueError:
            raise MalformedIntegerError(
                "Integer has too many digits", begin) from None
        if self._int_bits is not None and not -limit <= value < limit:
            raise MalformedIntegerError(
                f"Integer out of {self._int_bits}-bit range", begin)
        return value

    def _decode_string(self) -> ByteString:
        begin = self._cursor.position
        raw_length = self._cursor.take_until(b":")
        if not _LENGTH_RE.fullmatch(raw_length):
            raise MalformedLengthError(
                f"Invalid byte string length {raw_length!r}", begin)
        if len(raw_length) > len(str(self._cursor.remaining)):
            raise TruncatedInputError(
                "Byte string length exceeds input size",
                self._cursor.position)
        return ByteString(self._cursor.take_exact(int(raw_length)))

    def _decode_list(self) -> List:
        return cast(List, self._decode_nested())

    def _decode_dict(self) -> Dictionary:
        return cast(Dictionary, self._decode_nested())

    def _decode_nested(self) -> Union[List, Dictionary]:
        # Open containers are kept on an explicit stack, not the call stack
        stack = [self._open_container()]
        while True:
            frame = stack[-1]
            if not frame.wants_value:
                if self._cur_ch == b"e":
                    self._leave_container()
                    value = stack.pop().build()
                    if not stack:
                        return value
                    stack[-1].add(value)
                    continue
                self._ensure_container_open()
                if frame.wants_key:
                    frame.set_key(*self._decode_key())
                    continue
            if self._cur_ch in (b"l", b"d"):
                stack.append(self._open_container())
            else:
                frame.add(self.decode())

    def _decode_key(self) -> tuple[bytes, int]:
        key_pos = self._cursor.position
        if not self._cur_ch.isdigit():
            raise InvalidKeyError(
                f"Dictionary key must be a byte string, "
                f"got {self._cur_ch!r}", key_pos)
        return self._decode_string().value, key_pos

    def _open_container(self) -> Union[_ListFrame, _DictFrame]:
        is_dict = self._cur_ch == b"d"
        self._enter_container()
        return _DictFrame(self._strict) if is_dict else _ListFrame()

    def _enter_container(self) -> None:
        if self._depth >= self._max_depth:
            raise NestingTooDeepError(
                f"Nesting deeper than {self._max_depth} containers",
                self._cursor.position)
        self._cursor.advance()
        self._depth += 1

    def _leave_container(self) -> None:
        self._cursor.advance()
        self._depth -= 1

    def _ensure_container_open(self) -> None:
        if self._cursor.at_end():
            raise UnterminatedContainerError(
                "Container is not terminated", self._cursor.position)

    def _ensure_consumed(self) -> None:
        if not self._cursor.at_end():
            raise TrailingDataError(
                f"{self._cursor.remaining} trailing bytes",
                self._cursor.position)

    def _raise_unsupported_variant(self, shape: Shape) -> None:
        error_cls = (UnsupportedNestedVariantError if shape.is_container
                     else UnsupportedVariantError)
        raise error_cls(
            f"No case declared for {shape.value} elements",
            self._cursor.position)


def decode(
    data: BytesLike,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    int_bits: Optional[int] = DEFAULT_INT_BITS,
    strict: bool = True
) -> Value:
    decoder = BencodeDecoder(
        data, max_depth=max_depth, int_bits=int_bits, strict=strict)
    try:
        return decoder.decode_all()
    except BencodeDecodeError as err:
        logger.debug("Bencode decoding failed: %s", err)
        raise


def decode_as(
    data: BytesLike,
    variants: VariantSet,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    int_bits: Optional[int] = DEFAULT_INT_BITS,
    strict: bool = True
) -> list:
    decoder = BencodeDecoder(
        data, max_depth=max_depth, int_bits=int_bits, strict=strict)
    try:
        return decoder.decode_variants(variants)
    except BencodeDecodeError as err:
        logger.debug("Bencode variant decoding failed: %s", err)
        raise


def loads(data: BytesLike, **options) -> NativeValue:
    return decode(data, **options).to_python()
