import json

import pytest
import yaml

from filevars.config import FileVarRecord, load_definitions
from filevars.exceptions import ConfigError


def write_json(path, data):
    path.write_text(json.dumps(data))
    return path


class TestLoadDefinitions:
    """Reading definition files."""

    def test_json(self, definitions_file, template_files, tmp_path):
        records = load_definitions(definitions_file)

        assert [r.name for r in records] == ["/sys/network/status", "/sys/info/banner"]
        assert records[0].file == str(template_files["A"])
        # relative to the definition file
        assert records[1].file == str(tmp_path.resolve() / "banner.tpl")
        assert [r.index for r in records] == [0, 1]

    def test_yaml_and_name_alias(self, tmp_path):
        path = tmp_path / "defs.yml"
        path.write_text(yaml.dump({"config": [{"name": "hostname", "file": "/etc/host.tpl"}]}))

        records = load_definitions(path)

        assert records == [FileVarRecord(name="hostname", file="/etc/host.tpl", index=0)]

    def test_relative_paths_can_be_kept(self, tmp_path):
        path = write_json(tmp_path / "defs.json", {"config": [{"var": "a", "file": "a.tpl"}]})

        assert load_definitions(path, resolve_relative=False)[0].file == "a.tpl"

    def test_malformed_records_are_kept_invalid(self, tmp_path):
        path = write_json(
            tmp_path / "defs.json",
            {"config": [{"var": "a"}, "not a record", {"var": "  ", "file": "x"}, {"var": "b", "file": "/b"}]},
        )

        records = load_definitions(path)

        assert len(records) == 4
        assert [r.is_valid for r in records] == [False, False, False, True]
        assert records[2].name is None

    def test_record_index_cannot_be_spoofed(self, tmp_path):
        path = write_json(tmp_path / "defs.json", {"config": [{"var": "a", "file": "/a", "index": 7}]})

        assert load_definitions(path)[0].index == 0

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="File not found"):
            load_definitions(tmp_path / "nope.json")

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "defs.txt"
        path.write_text("{}")

        with pytest.raises(ConfigError, match="Unsupported file type"):
            load_definitions(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "defs.json"
        path.write_text("{not json")

        with pytest.raises(ConfigError, match="Failed to parse"):
            load_definitions(path)

    @pytest.mark.parametrize("content", [{}, {"config": {"var": "a"}}, ["a", "b"]])
    def test_missing_config_array(self, tmp_path, content):
        path = write_json(tmp_path / "defs.json", content)

        with pytest.raises(ConfigError, match="'config' array"):
            load_definitions(path)


class TestFileVarRecord:
    def test_var_takes_precedence_over_name(self):
        record = FileVarRecord.model_validate({"var": "a", "name": "b", "file": "f"})
        assert record.name == "a"

    def test_strips_whitespace(self):
        record = FileVarRecord.model_validate({"var": " a ", "file": " /f "})
        assert (record.name, record.file) == ("a", "/f")

    def test_non_string_values_are_missing(self):
        record = FileVarRecord.model_validate({"var": 12, "file": ["x"]})
        assert not record.is_valid
