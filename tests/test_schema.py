"""
Tests for structural validation of state JSON.
"""

import json

from anglesetter.io import default_state, export_state, validate_state_json


def _default_data():
    return json.loads(export_state(default_state()))


class TestValidateStateJson:
    """validate_state_json reports what parse_state would substitute."""

    def test_default_export_is_valid(self):
        result = validate_state_json(_default_data())

        assert result["valid"] is True
        assert result["errors"] == []
        assert result["warnings"] == []
        assert result["version"] == 3

    def test_root_not_object(self):
        result = validate_state_json([1, 2, 3])
        assert result["valid"] is False
        assert result["version"] is None

    def test_missing_sections_are_warnings(self):
        result = validate_state_json({"version": 3})

        assert result["valid"] is True
        assert any("'global'" in w for w in result["warnings"])
        assert any("'wheels'" in w for w in result["warnings"])

    def test_missing_version_warns(self):
        data = _default_data()
        del data["version"]
        result = validate_state_json(data)

        assert result["valid"] is True
        assert result["version"] is None
        assert any("version" in w for w in result["warnings"])

    def test_bad_version(self):
        data = _default_data()
        data["version"] = 0
        assert validate_state_json(data)["valid"] is False

    def test_newer_version_warns(self):
        data = _default_data()
        data["version"] = 99
        result = validate_state_json(data)
        assert result["valid"] is True
        assert any("newer" in w for w in result["warnings"])

    def test_non_numeric_constant(self):
        data = _default_data()
        data["constants"]["rear"]["hc"] = "29"
        result = validate_state_json(data)

        assert result["valid"] is False
        assert "constants.rear.hc must be a number" in result["errors"]

    def test_wheel_missing_field(self):
        data = _default_data()
        del data["wheels"][0]["D"]
        result = validate_state_json(data)

        assert result["valid"] is False
        assert "wheels[0] missing required field 'D'" in result["errors"]

    def test_duplicate_wheel_id_warns(self):
        data = _default_data()
        data["wheels"].append(dict(data["wheels"][0]))
        result = validate_state_json(data)

        assert result["valid"] is True
        assert any("Duplicate wheel id" in w for w in result["warnings"])

    def test_list_section_wrong_type(self):
        data = _default_data()
        data["sessionSteps"] = {}
        assert "Section 'sessionSteps' must be an array" in validate_state_json(data)["errors"]

    def test_step_missing_wheel_id(self):
        data = _default_data()
        data["sessionSteps"] = [{"id": "s1"}]
        result = validate_state_json(data)
        assert "sessionSteps[0] missing required field 'wheelId'" in result["errors"]
