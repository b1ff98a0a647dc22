"""Unit tests for sync.reconciler module."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from tests.fixtures.template_tree import read_json, write_json
from transloadify.cli.output import BufferedOutput
from transloadify.sync.errors import DuplicateReferenceError, OrphanedReferenceError
from transloadify.sync.models import FileOutcome
from transloadify.sync.reconciler import Reconciler
from transloadify.sync.remote_index import RemoteIndex
from transloadify.template_client.errors import RemoteRejectedError, RemoteUnavailableError
from transloadify.template_files.errors import FilesystemError
from transloadify.template_files.template_file import TemplateFileHandler


def load(path: Path):
    return TemplateFileHandler.read(path)


def make_reconciler(client, output=None):
    return Reconciler(client, RemoteIndex(client), output=output)


class TestDecisions:
    """Each kind of file gets the right remote operation."""

    def test_new_file_is_created_and_id_written_back(self, tmp_path, client):
        path = write_json(tmp_path / "resize.json", {"steps": {"r": {}}})

        [result] = make_reconciler(client).reconcile([load(path)])

        assert result.outcome == FileOutcome.CREATED
        assert client.templates[result.template_id].name == "resize"
        assert client.templates[result.template_id].content == {"steps": {"r": {}}}
        assert read_json(path) == {"transloadit_template_id": result.template_id, "steps": {"r": {}}}

    def test_changed_content_is_modified_without_rename(self, tmp_path, client):
        template_id = client.add("remote-name", {"steps": {}})
        path = write_json(tmp_path / "local-name.json", {"transloadit_template_id": template_id, "steps": {"x": {}}})

        [result] = make_reconciler(client).reconcile([load(path)])

        assert result.outcome == FileOutcome.UPDATED
        assert client.templates[template_id].content == {"steps": {"x": {}}}
        assert client.templates[template_id].name == "remote-name"
        assert client.mutations == [("modify_template", (template_id, None, {"steps": {"x": {}}}))]

    def test_matching_file_is_unchanged(self, tmp_path, client):
        template_id = client.add("one", {"steps": {}})
        path = write_json(tmp_path / "one.json", {"transloadit_template_id": template_id, "steps": {}})
        before = path.read_text(encoding="utf-8")

        [result] = make_reconciler(client).reconcile([load(path)])

        assert result.outcome == FileOutcome.UNCHANGED
        assert client.mutations == []
        assert path.read_text(encoding="utf-8") == before

    def test_orphaned_reference_is_skipped(self, tmp_path, client):
        path = write_json(tmp_path / "gone.json", {"transloadit_template_id": "missing", "steps": {}})

        [result] = make_reconciler(client).reconcile([load(path)])

        assert result.outcome == FileOutcome.SKIPPED
        assert isinstance(result.error, OrphanedReferenceError)
        assert client.mutations == []

    def test_bare_reference_pulls_remote_content(self, tmp_path, client):
        template_id = client.add("one", {"steps": {":original": {"robot": "/upload/handle"}}})
        path = write_json(tmp_path / "one.json", {"transloadit_template_id": template_id})

        [result] = make_reconciler(client).reconcile([load(path)])

        assert result.outcome == FileOutcome.PULLED
        assert read_json(path) == {
            "transloadit_template_id": template_id,
            "steps": {":original": {"robot": "/upload/handle"}},
        }
        assert client.mutations == []

    def test_explicit_rename(self, tmp_path, client):
        template_id = client.add("old", {"steps": {}})
        path = write_json(tmp_path / "one.json", {"transloadit_template_id": template_id, "steps": {}})

        [result] = make_reconciler(client).reconcile([load(path)], renames={path: "new"})

        assert result.outcome == FileOutcome.UPDATED
        assert client.mutations == [("modify_template", (template_id, "new", None))]


class TestIsolation:
    """One file's failure never affects the others."""

    def test_remote_failure_is_recorded_per_file(self, tmp_path, client):
        good_id = client.add("good", {})
        bad_id = client.add("bad", {})
        client.failures[("modify_template", bad_id)] = RemoteRejectedError("INVALID_TEMPLATE")
        good = write_json(tmp_path / "good.json", {"transloadit_template_id": good_id, "a": 1})
        bad = write_json(tmp_path / "bad.json", {"transloadit_template_id": bad_id, "a": 1})

        results = make_reconciler(client).reconcile([load(bad), load(good)])

        assert [r.outcome for r in results] == [FileOutcome.ERRORED, FileOutcome.UPDATED]
        assert client.templates[good_id].content == {"a": 1}

    def test_results_follow_input_order(self, tmp_path, client):
        paths = [write_json(tmp_path / f"{i}.json", {"n": i}) for i in range(8)]

        results = Reconciler(client, RemoteIndex(client), max_workers=4).reconcile([load(p) for p in paths])

        assert [r.path for r in results] == paths

    def test_write_back_failure_reports_new_id(self, tmp_path, client):
        path = write_json(tmp_path / "one.json", {"a": 1})

        with patch.object(TemplateFileHandler, "write_atomic", side_effect=FilesystemError(str(path), "write")):
            [result] = make_reconciler(client).reconcile([load(path)])

        assert result.outcome == FileOutcome.ERRORED
        assert result.template_id in client.templates

    def test_duplicate_reference_only_first_file_wins(self, tmp_path, client):
        template_id = client.add("one", {})
        first = write_json(tmp_path / "a.json", {"transloadit_template_id": template_id, "v": 1})
        second = write_json(tmp_path / "b.json", {"transloadit_template_id": template_id, "v": 2})

        results = make_reconciler(client).reconcile([load(first), load(second)])

        assert results[0].outcome == FileOutcome.UPDATED
        assert results[1].outcome == FileOutcome.SKIPPED
        assert isinstance(results[1].error, DuplicateReferenceError)
        assert client.templates[template_id].content == {"v": 1}

    def test_listing_failure_aborts_before_any_mutation(self, tmp_path, client):
        client.add("one", {})
        client.failing_pages.add(1)
        path = write_json(tmp_path / "new.json", {"a": 1})

        with pytest.raises(RemoteUnavailableError):
            make_reconciler(client).reconcile([load(path)])

        assert client.mutations == []
        assert "transloadit_template_id" not in read_json(path)


class TestPlan:
    """Test cases for Reconciler.plan."""

    def test_plan_changes_nothing(self, tmp_path, client):
        existing = client.add("one", {"a": 1})
        new = write_json(tmp_path / "new.json", {"a": 1})
        changed = write_json(tmp_path / "one.json", {"transloadit_template_id": existing, "a": 2})
        orphan = write_json(tmp_path / "orphan.json", {"transloadit_template_id": "gone", "a": 1})

        planned = make_reconciler(client).plan([load(new), load(changed), load(orphan)])

        assert [(op.action, op.path) for op in planned] == [
            ("create", new),
            ("modify", changed),
            ("skip", orphan),
        ]
        assert planned[1].fields == ["content"]
        assert client.mutations == []
        assert "transloadit_template_id" not in read_json(new)

    def test_plan_omits_unchanged_files(self, tmp_path, client):
        existing = client.add("one", {"a": 1})
        path = write_json(tmp_path / "one.json", {"transloadit_template_id": existing, "a": 1})

        assert make_reconciler(client).plan([load(path)]) == []


class TestReporting:
    """Outcomes are reported as debug entries, failures as errors."""

    def test_success_reports_only_debug(self, tmp_path, client):
        output = BufferedOutput()
        path = write_json(tmp_path / "one.json", {"a": 1})

        make_reconciler(client, output=output).reconcile([load(path)])

        assert output.get() == []
        [entry] = output.get(debug=True)
        assert entry.type == "debug"
        assert entry.msg.startswith("created: ")

    def test_failure_reports_error(self, tmp_path, client):
        output = BufferedOutput()
        path = write_json(tmp_path / "gone.json", {"transloadit_template_id": "missing", "a": 1})

        make_reconciler(client, output=output).reconcile([load(path)])

        [entry] = output.get()
        assert entry.type == "error"
        assert "missing" in entry.msg
