from typing import Optional


__all__ = (
    "BencodeError",
    "BencodeDecodeError",
    "MalformedIntegerError",
    "MalformedLengthError",
    "TruncatedInputError",
    "UnterminatedTokenError",
    "UnterminatedContainerError",
    "UnorderedKeysError",
    "InvalidKeyError",
    "UnknownTagError",
    "ExpectedListError",
    "TrailingDataError",
    "NestingTooDeepError",
    "UnsupportedVariantError",
    "UnsupportedNestedVariantError",
    "BencodeEncodeError",
    "UnsupportedVariantEncodeError",
    "UnrepresentableValueError",
    "AmbiguousDispatchError",
)


class BencodeError(Exception):
    pass


class BencodeDecodeError(BencodeError, ValueError):
    def __init__(self, reason: str, position: int) -> None:
        super().__init__(f"{reason} on position {position}")
        self.reason = reason
        self.position = position


class MalformedIntegerError(BencodeDecodeError):
    pass


class MalformedLengthError(BencodeDecodeError):
    pass


class TruncatedInputError(BencodeDecodeError):
    pass


class UnterminatedTokenError(TruncatedInputError):
    pass


class UnterminatedContainerError(BencodeDecodeError):
    pass


class UnorderedKeysError(BencodeDecodeError):
    pass


class InvalidKeyError(BencodeDecodeError):
    pass


class UnknownTagError(BencodeDecodeError):
    pass


class ExpectedListError(UnknownTagError):
    pass


class TrailingDataError(BencodeDecodeError):
    pass


class NestingTooDeepError(BencodeDecodeError):
    pass


class UnsupportedVariantError(BencodeDecodeError):
    pass


class UnsupportedNestedVariantError(UnsupportedVariantError):
    pass


class BencodeEncodeError(BencodeError, TypeError):
    pass


class UnsupportedVariantEncodeError(BencodeEncodeError):
    pass


class UnrepresentableValueError(BencodeError, ValueError):
    def __init__(self, reason: str, value: Optional[object] = None) -> None:
        super().__init__(reason)
        self.value = value


class AmbiguousDispatchError(BencodeError, TypeError):
    pass
