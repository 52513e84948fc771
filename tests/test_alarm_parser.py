import pytest

from alarms.errors import ValidationError
from alarms.parser import (
    parse_clock_text,
    parse_command,
    parse_int_field,
    parse_recurrence,
    parse_time_input,
)
from alarms.storage import Daily, Monthly, Once, Weekly


def test_parse_int_field_is_lenient():
    assert parse_int_field("7") == 7
    assert parse_int_field("07abc") == 7
    assert parse_int_field("") == 0
    assert parse_int_field("abc") == 0
    assert parse_int_field(None) == 0


def test_parse_time_input_blank_fields_default_to_zero():
    assert parse_time_input("7", "30", "") == (7, 30, 0)


@pytest.mark.parametrize("fields", [("24", "0", "0"), ("0", "60", "0"), ("0", "0", "60"), ("-1", "0", "0")])
def test_parse_time_input_rejects_out_of_range(fields):
    with pytest.raises(ValidationError):
        parse_time_input(*fields)


def test_parse_clock_text_variants():
    assert parse_clock_text("7") == (7, 0, 0)
    assert parse_clock_text("07:30") == (7, 30, 0)
    assert parse_clock_text("23:59:59") == (23, 59, 59)
    with pytest.raises(ValidationError):
        parse_clock_text("7h30")


def test_parse_recurrence():
    assert parse_recurrence([]) == Once()
    assert parse_recurrence(["daily"]) == Daily()
    assert parse_recurrence(["weekly", "fri"]) == Weekly(4)
    assert parse_recurrence(["weekly", "6"]) == Weekly(6)
    assert parse_recurrence(["monthly", "15"]) == Monthly(15)


def test_parse_recurrence_requires_day():
    with pytest.raises(ValidationError):
        parse_recurrence(["weekly"])
    with pytest.raises(ValidationError):
        parse_recurrence(["monthly", "32"])
    with pytest.raises(ValidationError):
        parse_recurrence(["hourly"])


def test_parse_add_command():
    result = parse_command("add 07:30 weekly monday")
    assert result
    assert result.action == "add"
    assert (result.hour, result.minute, result.second) == (7, 30, 0)
    assert result.recurrence == Weekly(0)


def test_parse_add_command_invalid_time():
    result = parse_command("add 25:00")
    assert result
    assert result.action == "unknown"
    assert "Invalid time" in result.error


def test_parse_index_commands():
    assert parse_command("toggle 2").index == 2
    assert parse_command("rm #3").action == "delete"
    assert parse_command("delete").action == "unknown"


def test_parse_blank_and_unknown():
    assert parse_command("   ") is None
    assert parse_command("dance").action == "unknown"
    assert parse_command("exit").action == "quit"
