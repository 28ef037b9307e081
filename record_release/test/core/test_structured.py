from record_release.core.structured import (
    as_obj_list,
    as_str_dict,
    get_bool,
    get_exact_str,
    get_id,
    get_raw_str,
    get_str,
    get_table,
    is_str_dict,
)


def test_is_str_dict_requires_string_keys() -> None:
    assert is_str_dict({"a": 1})
    assert not is_str_dict({1: "a"})
    assert not is_str_dict(["a"])


def test_as_str_dict_and_list() -> None:
    assert as_str_dict({"a": 1}) == {"a": 1}
    assert as_str_dict("nope") is None
    assert as_obj_list([1, 2]) == [1, 2]
    assert as_obj_list({"a": 1}) is None


def test_get_str_strips_and_drops_blank() -> None:
    table: dict[str, object] = {"a": "  x ", "b": "   ", "c": 3}
    assert get_str(table, "a") == "x"
    assert get_str(table, "b") is None
    assert get_str(table, "c") is None
    assert get_str(table, "missing") is None


def test_get_raw_str_keeps_whitespace() -> None:
    table: dict[str, object] = {"body": "  line 1\nline 2\n", "empty": ""}
    assert get_raw_str(table, "body") == "  line 1\nline 2\n"
    assert get_raw_str(table, "empty") is None


def test_get_exact_str_keeps_empty_and_padding() -> None:
    table: dict[str, object] = {"prefix": "", "by": " ci ", "n": 1}
    assert get_exact_str(table, "prefix") == ""
    assert get_exact_str(table, "by") == " ci "
    assert get_exact_str(table, "n") is None
    assert get_exact_str(table, "missing") is None


def test_get_bool_accepts_true_strings_only() -> None:
    table: dict[str, object] = {"a": "true", "b": "TRUE", "c": "yes", "d": True, "e": 1}
    assert get_bool(table, "a") is True
    assert get_bool(table, "b") is True
    assert get_bool(table, "c") is False
    assert get_bool(table, "d") is True
    assert get_bool(table, "e") is False
    assert get_bool(table, "missing") is False
    assert get_bool(table, "missing", default=True) is True


def test_get_id_accepts_numbers_and_strings() -> None:
    table: dict[str, object] = {"n": 42, "s": "abc", "b": True}
    assert get_id(table, "n") == "42"
    assert get_id(table, "s") == "abc"
    assert get_id(table, "b") is None


def test_get_table() -> None:
    table: dict[str, object] = {"head_commit": {"message": "m"}, "x": [1]}
    assert get_table(table, "head_commit") == {"message": "m"}
    assert get_table(table, "x") is None
