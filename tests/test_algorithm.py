import pytest

from wwkit.algorithm import (
    align_down,
    align_up,
    get_bits,
    join_path,
    parse_null_terminated_strings,
    set_bits,
)


@pytest.mark.parametrize("value", [0, 1, 7, 8, 9, 4095, 4096, 4097, 123456])
@pytest.mark.parametrize("align", [1, 8, 4096])
def test_align_up_invariants(value, align):
    result = align_up(value, align)
    assert result % align == 0
    assert result >= value
    assert result - value < align


@pytest.mark.parametrize("value", [0, 1, 7, 8, 9, 4095, 4096, 4097, 123456])
@pytest.mark.parametrize("align", [1, 8, 4096])
def test_align_down_invariants(value, align):
    result = align_down(value, align)
    assert result % align == 0
    assert result <= value
    assert value - result < align


def test_align_of_aligned_value_is_identity():
    assert align_up(4096, 4096) == 4096
    assert align_down(4096, 4096) == 4096


@pytest.mark.parametrize("val", [0, 0xFFFF_FFFF_FFFF_FFFF, 0x1234_5678_9ABC_DEF0])
@pytest.mark.parametrize("begin,end,bits", [(0, 4, 0xA), (12, 20, 0x5C), (60, 64, 0x3)])
def test_set_then_get_bits_round_trip(val, begin, end, bits):
    assert get_bits(set_bits(val, bits, begin, end), begin, end) == bits


@pytest.mark.parametrize("val", [0, 0xFFFF_FFFF_FFFF_FFFF, 0x1234_5678_9ABC_DEF0])
def test_set_bits_with_current_value_is_identity(val):
    assert set_bits(val, get_bits(val, 8, 24), 8, 24) == val


def test_set_bits_leaves_other_bits_alone():
    val = 0x1234_5678_9ABC_DEF0
    updated = set_bits(val, 0, 16, 32)
    assert get_bits(updated, 0, 16) == get_bits(val, 0, 16)
    assert get_bits(updated, 32, 64) == get_bits(val, 32, 64)
    assert get_bits(updated, 16, 32) == 0


def test_join_path_empty_sides():
    assert join_path("", "b") == "b"
    assert join_path("a", "") == "a"


def test_join_path_absolute_second_replaces():
    assert join_path("/a", "/b/c") == "/b/c"


def test_join_path_inserts_single_separator():
    assert join_path("/a", "b") == "/a/b"
    assert join_path("/a/", "b") == "/a/b"


def test_parse_names():
    assert parse_null_terminated_strings(b"abc\0de\0") == ["abc", "de"]


def test_parse_stops_at_empty_name():
    assert parse_null_terminated_strings(b"a\0\0b\0") == ["a"]


def test_parse_empty_buffer():
    assert parse_null_terminated_strings(b"") == []


def test_parse_unterminated_tail():
    assert parse_null_terminated_strings(b"x\0yz") == ["x", "yz"]