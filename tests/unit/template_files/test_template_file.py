"""Unit tests for template_files.template_file module."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from transloadify.template_files.errors import FilesystemError, MalformedTemplateFileError
from transloadify.template_files.models import TemplateFile
from transloadify.template_files.template_file import TemplateFileHandler


class TestParse:
    """Test cases for TemplateFileHandler.parse."""

    def test_splits_id_from_body(self):
        text = json.dumps({"transloadit_template_id": "abc", "steps": {"resize": {}}})

        template_file = TemplateFileHandler.parse("t/resize.json", text)

        assert template_file.template_id == "abc"
        assert template_file.body == {"steps": {"resize": {}}}
        assert template_file.name == "resize"

    def test_no_id(self):
        template_file = TemplateFileHandler.parse("a.json", '{"steps": {}}')

        assert template_file.template_id is None
        assert not template_file.is_bare_reference

    def test_empty_id_is_no_id(self):
        template_file = TemplateFileHandler.parse("a.json", '{"transloadit_template_id": "", "steps": {}}')

        assert template_file.template_id is None

    def test_bare_reference(self):
        template_file = TemplateFileHandler.parse("a.json", '{"transloadit_template_id": "abc"}')

        assert template_file.is_bare_reference

    def test_custom_reserved_key(self):
        template_file = TemplateFileHandler.parse(
            "a.json", '{"id": "abc", "transloadit_template_id": "x"}', reserved_key="id"
        )

        assert template_file.template_id == "abc"
        assert template_file.body == {"transloadit_template_id": "x"}

    @pytest.mark.parametrize("text", ["not json", "[1, 2]", '"string"'])
    def test_malformed(self, text):
        with pytest.raises(MalformedTemplateFileError):
            TemplateFileHandler.parse("a.json", text)

    def test_non_string_id(self):
        with pytest.raises(MalformedTemplateFileError) as exc_info:
            TemplateFileHandler.parse("a.json", '{"transloadit_template_id": 12}')

        assert "must be a string" in str(exc_info.value)


class TestRead:
    """Test cases for TemplateFileHandler.read and read_content."""

    def test_read(self, tmp_path):
        path = tmp_path / "one.json"
        path.write_text('{"steps": {}}', encoding="utf-8")

        template_file = TemplateFileHandler.read(path, depth=2)

        assert template_file.path == path
        assert template_file.depth == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FilesystemError):
            TemplateFileHandler.read(tmp_path / "missing.json")

    def test_non_utf8(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_bytes(b'{"a": "\xff"}')

        with pytest.raises(MalformedTemplateFileError):
            TemplateFileHandler.read(path)

    def test_too_large(self, tmp_path):
        path = tmp_path / "big.json"
        path.write_text("{}", encoding="utf-8")

        with patch('transloadify.template_files.template_file.MAX_FILE_SIZE', 1):
            with pytest.raises(MalformedTemplateFileError) as exc_info:
                TemplateFileHandler.read(path)

        assert "exceeds maximum" in str(exc_info.value)

    def test_read_content_strips_id(self, tmp_path):
        path = tmp_path / "one.json"
        path.write_text('{"transloadit_template_id": "abc", "steps": {}}', encoding="utf-8")

        assert TemplateFileHandler.read_content(path) == {"steps": {}}

    def test_read_content_empty_file(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("  \n", encoding="utf-8")

        assert TemplateFileHandler.read_content(path) is None

    def test_read_content_missing_file(self, tmp_path):
        with pytest.raises(FilesystemError):
            TemplateFileHandler.read_content(tmp_path / "missing.json")


class TestRender:
    """Test cases for TemplateFileHandler.render."""

    def test_id_first_then_body_in_order(self):
        text = TemplateFileHandler.render({"b": 1, "a": 2}, template_id="abc")

        assert list(json.loads(text)) == ["transloadit_template_id", "b", "a"]
        assert text.endswith("}\n")

    def test_without_id(self):
        assert json.loads(TemplateFileHandler.render({"a": 1})) == {"a": 1}

    def test_stale_reserved_key_in_body_is_replaced(self):
        text = TemplateFileHandler.render({"transloadit_template_id": "old", "a": 1}, template_id="new")

        assert json.loads(text) == {"transloadit_template_id": "new", "a": 1}


class TestWriteAtomic:
    """Test cases for atomic write-back."""

    def test_replaces_content(self, tmp_path):
        path = tmp_path / "one.json"
        path.write_text("old", encoding="utf-8")

        TemplateFileHandler.write_atomic(path, "new")

        assert path.read_text(encoding="utf-8") == "new"
        assert os.listdir(tmp_path) == ["one.json"]

    def test_failed_replace_leaves_original_and_no_temp_file(self, tmp_path):
        path = tmp_path / "one.json"
        path.write_text("old", encoding="utf-8")

        with patch('transloadify.template_files.template_file.os.replace', side_effect=OSError("disk full")):
            with pytest.raises(FilesystemError) as exc_info:
                TemplateFileHandler.write_atomic(path, "new")

        assert exc_info.value.operation == "write"
        assert path.read_text(encoding="utf-8") == "old"
        assert os.listdir(tmp_path) == ["one.json"]

    def test_write_template_embeds_id(self, tmp_path):
        path = tmp_path / "one.json"
        path.write_text('{"steps": {}}', encoding="utf-8")
        template_file = TemplateFile(path=path, template_id=None, body={"steps": {}})

        updated = TemplateFileHandler.write_template(template_file, "abc")

        assert updated.template_id == "abc"
        assert json.loads(path.read_text(encoding="utf-8")) == {
            "transloadit_template_id": "abc",
            "steps": {},
        }

    def test_write_template_with_new_body(self, tmp_path):
        path = tmp_path / "one.json"
        template_file = TemplateFile(path=path, template_id="abc")

        updated = TemplateFileHandler.write_template(template_file, "abc", body={"steps": {"x": {}}})

        assert updated.body == {"steps": {"x": {}}}
        assert TemplateFileHandler.read(Path(path)).body == {"steps": {"x": {}}}
