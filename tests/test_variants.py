from dataclasses import dataclass

import pytest

from strictbencode.decoder import decode_as
from strictbencode.encoder import encode_sequence
from strictbencode.variants import Shape, VariantSet, variant
from strictbencode.values import ByteString, Dictionary, Integer, List
from strictbencode.errors import (AmbiguousDispatchError,
                                  ExpectedListError,
                                  NestingTooDeepError,
                                  TrailingDataError,
                                  TruncatedInputError,
                                  UnknownTagError,
                                  UnsupportedNestedVariantError,
                                  UnsupportedVariantEncodeError,
                                  UnsupportedVariantError,
                                  UnterminatedContainerError)


@dataclass
class Number:
    value: int


@dataclass
class ByteStringElem:
    value: bytes


@variant(Shape.LIST)
@dataclass
class Group:
    items: list


@variant(Shape.DICTIONARY)
@dataclass
class Record:
    fields: dict


SCALARS = VariantSet({Number: Shape.INTEGER, ByteStringElem: Shape.BYTE_STRING})


class TestShape:
    @pytest.mark.parametrize("byte, expected_shape", [
        (ord("i"), Shape.INTEGER),
        (ord("0"), Shape.BYTE_STRING),
        (ord("9"), Shape.BYTE_STRING),
        (ord("l"), Shape.LIST),
        (ord("d"), Shape.DICTIONARY),
        (ord("e"), None),
        (ord("-"), None),
        (None, None)
    ])
    def test_from_lead_byte(self, byte, expected_shape):
        assert Shape.from_lead_byte(byte) is expected_shape

    @pytest.mark.parametrize("value, expected_shape", [
        (Integer(1), Shape.INTEGER),
        (ByteString(b""), Shape.BYTE_STRING),
        (List([]), Shape.LIST),
        (Dictionary({}), Shape.DICTIONARY)
    ])
    def test_of(self, value, expected_shape):
        assert Shape.of(value) is expected_shape

    def test_is_container(self):
        assert Shape.LIST.is_container
        assert Shape.DICTIONARY.is_container
        assert not Shape.INTEGER.is_container
        assert not Shape.BYTE_STRING.is_container


class TestVariantSet:
    def test_lookup(self):
        assert SCALARS.case_for(Shape.INTEGER) is Number
        assert SCALARS.case_for(Shape.LIST) is None
        assert SCALARS.shape_for(ByteStringElem) is Shape.BYTE_STRING
        assert SCALARS.shape_for(Group) is None
        assert SCALARS.shapes == {Shape.INTEGER, Shape.BYTE_STRING}
        assert SCALARS.cases == (Number, ByteStringElem)
        assert Number in SCALARS
        assert dict(SCALARS) == {Number: Shape.INTEGER,
                                 ByteStringElem: Shape.BYTE_STRING}

    def test_of_marked_cases(self):
        variants = VariantSet.of(Group, Record)
        assert variants.case_for(Shape.LIST) is Group
        assert variants.case_for(Shape.DICTIONARY) is Record

    def test_of_unmarked_case(self):
        with pytest.raises(AmbiguousDispatchError):
            VariantSet.of(Group, Number)

    def test_shape_collision(self):
        @dataclass
        class OtherNumber:
            value: int

        with pytest.raises(AmbiguousDispatchError) as err:
            VariantSet({Number: Shape.INTEGER, OtherNumber: Shape.INTEGER})
        assert str(err.value) == \
            "Shape integer is claimed by both Number and OtherNumber"

    def test_case_must_be_dataclass(self):
        class Plain:
            def __init__(self, value):
                self.value = value

        with pytest.raises(AmbiguousDispatchError):
            VariantSet({Plain: Shape.INTEGER})

    def test_case_must_have_one_field(self):
        @dataclass
        class Pair:
            first: int
            second: int

        with pytest.raises(AmbiguousDispatchError):
            VariantSet({Pair: Shape.INTEGER})

    def test_shape_must_be_shape(self):
        with pytest.raises(AmbiguousDispatchError):
            VariantSet({Number: "integer"})

    def test_wrap_unwrap(self):
        assert SCALARS.wrap(Integer(5)) == Number(5)
        assert SCALARS.unwrap(Number(5)) == Integer(5)
        assert SCALARS.unwrap(ByteStringElem(b"x")) == ByteString(b"x")

    def test_unwrap_undeclared(self):
        with pytest.raises(UnsupportedVariantEncodeError):
            SCALARS.unwrap(Group([]))


class TestDecodeAs:
    def test_heterogeneous_sequence(self):
        assert decode_as(b"li5e5:helloe", SCALARS) == \
            [Number(5), ByteStringElem(b"hello")]

    def test_elements_pattern_match(self):
        seen = []
        for element in decode_as(b"l1:ai-3ei7e0:e", SCALARS):
            match element:
                case Number(value):
                    seen.append(("number", value))
                case ByteStringElem(value):
                    seen.append(("bytes", value))
        assert seen == [("bytes", b"a"), ("number", -3),
                        ("number", 7), ("bytes", b"")]

    def test_empty_sequence(self):
        assert decode_as(b"le", SCALARS) == []

    def test_nested_cases(self):
        variants = VariantSet({Number: Shape.INTEGER,
                               Group: Shape.LIST,
                               Record: Shape.DICTIONARY})
        assert decode_as(b"li1eli2eed1:ai3eee", variants) == [
            Number(1),
            Group([Integer(2)]),
            Record({b"a": Integer(3)}),
        ]

    @pytest.mark.parametrize("data, position", [
        (b"li5eli1eee", 4),
        (b"lde", 1)
    ])
    def test_undeclared_nested_case(self, data, position):
        with pytest.raises(UnsupportedNestedVariantError) as err:
            decode_as(data, SCALARS)
        assert err.value.position == position

    def test_undeclared_scalar_case(self):
        with pytest.raises(UnsupportedVariantError) as err:
            decode_as(b"li1e4:spame", VariantSet({Number: Shape.INTEGER}))
        assert not isinstance(err.value, UnsupportedNestedVariantError)
        assert err.value.position == 4

    @pytest.mark.parametrize("data, error_cls", [
        (b"i1e", ExpectedListError),
        (b"d1:ai1ee", ExpectedListError),
        (b"", TruncatedInputError),
        (b"lxe", UnknownTagError),
        (b"li1e", UnterminatedContainerError),
        (b"lei1e", TrailingDataError)
    ])
    def test_decode_as_with_err(self, data, error_cls):
        with pytest.raises(error_cls):
            decode_as(data, SCALARS)

    def test_empty_input(self):
        with pytest.raises(TruncatedInputError) as err:
            decode_as(b"", SCALARS)
        assert not isinstance(err.value, ExpectedListError)
        assert err.value.position == 0

    def test_nesting_limit_counts_outer_list(self):
        variants = VariantSet({Group: Shape.LIST})
        assert decode_as(b"llee", variants, max_depth=2) == [Group([])]
        with pytest.raises(NestingTooDeepError):
            decode_as(b"llleee", variants, max_depth=2)


class TestEncodeSequence:
    def test_encode_sequence(self):
        elements = [Number(5), ByteStringElem(b"hello")]
        assert encode_sequence(elements, SCALARS) == b"li5e5:helloe"

    def test_encode_nested_cases(self):
        variants = VariantSet.of(Group, Record)
        elements = [Record({b"z": Integer(1), b"a": ByteString(b"x")}),
                    Group([Integer(2)])]
        assert encode_sequence(elements, variants) == \
            b"ld1:a1:x1:zi1eeli2eee"

    def test_encode_empty_sequence(self):
        assert encode_sequence([], SCALARS) == b"le"

    def test_encode_undeclared_case(self):
        with pytest.raises(UnsupportedVariantEncodeError):
            encode_sequence([Number(1), Group([])], SCALARS)

    def test_round_trip(self):
        elements = [ByteStringElem(b"spam"), Number(-1), Number(0)]
        encoded = encode_sequence(elements, SCALARS)
        assert decode_as(encoded, SCALARS) == elements
