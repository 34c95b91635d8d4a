from typing import Optional, Union

from strictbencode.errors import TruncatedInputError, UnterminatedTokenError


BytesLike = Union[bytes, bytearray, memoryview]


class ByteCursor:
    def __init__(self, data: BytesLike) -> None:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"Bencode data must be bytes-like, not {type(data).__name__}")
        self._data = bytes(data)
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def peek(self) -> Optional[int]:
        if self.at_end():
            return None
        return self._data[self._pos]

    def advance(self) -> int:
        if self.at_end():
            raise TruncatedInputError("Unexpected end of input", self._pos)
        byte = self._data[self._pos]
        self._pos += 1
        return byte

    def take_until(self, delimiter: bytes) -> bytes:
        end = self._data.find(delimiter, self._pos)
        if end == -1:
            raise UnterminatedTokenError(
                f"Missing {delimiter!r} delimiter", self._pos)
        token = self._data[self._pos: end]
        self._pos = end + len(delimiter)
        return token

    def take_exact(self, length: int) -> bytes:
        if length > self.remaining:
            raise TruncatedInputError(
                f"Expected {length} bytes, only {self.remaining} left",
                self._pos)
        chunk = self._data[self._pos: self._pos + length]
        self._pos += length
        return chunk
