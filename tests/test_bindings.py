import pytest

from qai.bindings import KEY_MAP, key_name_to_sequence, valid_key_names
from qai.errors import ConfigurationError, UnknownKeyError


def test_tab_and_enter_aliases():
    assert key_name_to_sequence("tab") == "^I"
    assert key_name_to_sequence("TAB") == key_name_to_sequence("tab") == key_name_to_sequence("ctrl-i")
    assert key_name_to_sequence("enter") == key_name_to_sequence("return") == key_name_to_sequence("ctrl-m") == "^M"


def test_ctrl_letters():
    assert key_name_to_sequence("ctrl-a") == "^A"
    assert key_name_to_sequence("ctrl-g") == "^G"
    assert key_name_to_sequence("ctrl-z") == "^Z"


def test_ctrl_special_chars():
    assert key_name_to_sequence("ctrl-space") == "^@"
    assert key_name_to_sequence("ctrl-backslash") == "^\\"
    assert key_name_to_sequence("ctrl-]") == "^]"
    assert key_name_to_sequence("ctrl-^") == "^^"
    assert key_name_to_sequence("ctrl-_") == "^_"


def test_function_arrow_and_navigation_keys():
    assert key_name_to_sequence("f1") == "^[OP"
    assert key_name_to_sequence("f5") == "^[[15~"
    assert key_name_to_sequence("f12") == "^[[24~"
    assert key_name_to_sequence("up") == "^[[A"
    assert key_name_to_sequence("left") == "^[[D"
    assert key_name_to_sequence("home") == "^[[H"
    assert key_name_to_sequence("delete") == "^[[3~"
    assert key_name_to_sequence("page-up") == key_name_to_sequence("pageup") == "^[[5~"


def test_escape_and_backspace():
    assert key_name_to_sequence("escape") == key_name_to_sequence("esc") == "^["
    assert key_name_to_sequence("backspace") == "^?"


def test_normalization_is_case_and_separator_insensitive():
    assert key_name_to_sequence("Ctrl-A") == "^A"
    assert key_name_to_sequence("CTRL SPACE") == "^@"
    assert key_name_to_sequence("page up") == "^[[5~"


def test_registry_size():
    assert len(KEY_MAP) == 61


def test_resolution_is_deterministic_for_all_names():
    for name in valid_key_names():
        assert key_name_to_sequence(name) == key_name_to_sequence(name.upper()) == KEY_MAP[name]


def test_unknown_key_lists_every_valid_name_once():
    with pytest.raises(UnknownKeyError) as excinfo:
        key_name_to_sequence("invalid-key")

    err = excinfo.value
    assert isinstance(err, ConfigurationError)
    assert err.name == "invalid-key"
    message = str(err)
    assert message.startswith("Unknown key 'invalid-key'. Valid keys: ")
    listed = message.split("Valid keys: ", 1)[1].split(", ")
    assert listed == valid_key_names()
    assert len(listed) == len(set(listed))


def test_valid_key_names_sorted():
    names = valid_key_names()
    assert names == sorted(names)
    assert "tab" in names and "ctrl-space" in names and "f1" in names
