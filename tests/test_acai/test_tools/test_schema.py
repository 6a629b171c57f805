"""Tests for argument parsing and validation."""

import pytest

from acai.errors import ToolValidationError
from acai.tools.schema import parse_arguments, validate_arguments

SCHEMA = {
    "type": "object",
    "properties": {
        "command": {"type": "string"},
        "timeout": {"type": "number"},
        "count": {"type": "integer"},
        "flag": {"type": ["boolean", "null"]},
    },
    "required": ["command"],
}


class TestParseArguments:
    @pytest.mark.parametrize("raw", ["", "   ", "{}"])
    def test_empty_means_no_arguments(self, raw):
        assert parse_arguments(raw) == {}

    def test_object(self):
        assert parse_arguments('{"command": "ls"}') == {"command": "ls"}

    def test_invalid_json(self):
        with pytest.raises(ToolValidationError, match="not valid JSON"):
            parse_arguments("{command: ls")

    def test_non_object(self):
        with pytest.raises(ToolValidationError, match="got list"):
            parse_arguments('["ls"]')


class TestValidateArguments:
    def test_valid(self):
        validate_arguments({"command": "ls", "timeout": 1.5, "count": 2, "flag": None}, SCHEMA)

    def test_integer_accepted_as_number(self):
        validate_arguments({"command": "ls", "timeout": 3}, SCHEMA)

    def test_missing_required(self):
        with pytest.raises(ToolValidationError, match="missing required argument\\(s\\): command"):
            validate_arguments({}, SCHEMA)

    def test_wrong_type(self):
        with pytest.raises(ToolValidationError, match="'command' must be of type string, got int"):
            validate_arguments({"command": 5}, SCHEMA)

    @pytest.mark.parametrize("key", ["timeout", "count"])
    def test_bool_is_not_numeric(self, key):
        with pytest.raises(ToolValidationError):
            validate_arguments({"command": "ls", key: True}, SCHEMA)

    def test_float_is_not_integer(self):
        with pytest.raises(ToolValidationError):
            validate_arguments({"command": "ls", "count": 1.5}, SCHEMA)

    def test_extra_arguments_allowed_by_default(self):
        validate_arguments({"command": "ls", "verbose": True}, SCHEMA)

    def test_extra_arguments_rejected_when_closed(self):
        closed = {**SCHEMA, "additionalProperties": False}
        with pytest.raises(ToolValidationError, match="unexpected argument: verbose"):
            validate_arguments({"command": "ls", "verbose": True}, closed)
