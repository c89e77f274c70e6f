from __future__ import annotations

import pytest

from torrentdb.security import (
    ValidationError,
    check_allowed_text,
    clean_name,
    decode_text,
    join_clean_path,
    printable_text,
    validate_file_paths,
    validate_info_text,
)


def test_clean_name_deletes_invalid_bytes() -> None:
    assert clean_name(decode_text(b"caf\xc3\xa9 \xff\xfemix")) == "café mix"


def test_clean_name_keeps_valid_text() -> None:
    assert clean_name("Ünïcode ✓") == "Ünïcode ✓"


@pytest.mark.parametrize(
    ("parts", "expected"),
    [
        (["root", "a", "b.txt"], "root/a/b.txt"),
        (["root", "", "b.txt"], "root/b.txt"),
        (["root", ".", "b.txt"], "root/b.txt"),
        (["", ""], ""),
    ],
)
def test_join_clean_path(parts: list[str], expected: str) -> None:
    assert join_clean_path(parts) == expected


@pytest.mark.parametrize(
    "path",
    [
        ["..", "a"],
        ["a", "..", "b"],
        ["a", "b", ".."],
        ["a", " .. "],
    ],
)
def test_traversal_rejected_at_any_position(path: list[str]) -> None:
    with pytest.raises(ValidationError) as error:
        validate_file_paths([["fine"], path])
    assert error.value.code == "INVALID_PATH_TRAVERSAL"
    assert "invalid file name" in error.value.message


@pytest.mark.parametrize(
    "path",
    [
        [decode_text(b".\xff."), "etc"],
        ["x/../../etc"],
        ["ok", "a/.."],
    ],
)
def test_traversal_hidden_by_cleaning_or_embedded_separator(path: list[str]) -> None:
    with pytest.raises(ValidationError) as error:
        validate_file_paths([path])
    assert error.value.code == "INVALID_PATH_TRAVERSAL"


@pytest.mark.parametrize("parts", [["..", "a"], ["/etc", "passwd"], ["root/../.."]])
def test_join_refuses_escaping_paths(parts: list[str]) -> None:
    with pytest.raises(ValidationError) as error:
        join_clean_path(parts)
    assert error.value.code == "INVALID_PATH_TRAVERSAL"


def test_join_keeps_embedded_absolute_component_under_root() -> None:
    assert join_clean_path(["root", "/etc", "passwd"]) == "root/etc/passwd"


def test_dotted_names_are_not_traversal() -> None:
    validate_file_paths([["..hidden", "a..b", "..."]])


def test_invalid_byte_is_reported_with_position() -> None:
    with pytest.raises(ValidationError) as error:
        check_allowed_text(decode_text(b"ab\xffc"), "name")
    assert error.value.code == "INVALID_ENCODING"
    assert error.value.message == "not allowed char 3: invalid byte 0xff; in name: ab\\xffc"


def test_control_character_is_reported() -> None:
    with pytest.raises(ValidationError) as error:
        check_allowed_text("a\tb", "filename")
    assert error.value.code == "CONTROL_CHARACTER"
    assert error.value.message == "not allowed char 2: 0x09 U+0009; in filename: a\\x09b"


def test_validate_info_text_checks_every_path() -> None:
    validate_info_text("name", ["a/b", "c"])
    with pytest.raises(ValidationError) as error:
        validate_info_text("name", ["a/b", "c\nd"])
    assert "in filename" in error.value.message


def test_printable_text_is_single_line() -> None:
    assert printable_text(decode_text(b"x\ny\xfe")) == "x\\x0ay\\xfe"
