"""
Tests for the on-disk application store
"""
import json

import pytest

from permit_portal.applications.application_store import StatusConflictError


def _write_row(store, **row):
    (store.root / f"{row['id']}.json").write_text(json.dumps(row), encoding="utf-8")


class TestWrites:
    def test_create_assigns_id_and_timestamps(self, store):
        row = store.create_application({"status": "draft", "project_title": "Borehole"})
        assert row["id"]
        assert row["created_at"] == row["updated_at"]
        assert row["project_title"] == "Borehole"
        assert store.get_application(row["id"]) == row

    def test_create_ignores_caller_id(self, store):
        row = store.create_application({"id": "chosen-by-client", "status": "draft"})
        assert row["id"] != "chosen-by-client"

    def test_update_merges_patch(self, store):
        row = store.create_application({"status": "draft", "project_title": "Borehole", "district": "Gasabo"})
        updated = store.update_application(row["id"], {"status": "submitted", "project_title": "Deep borehole"})
        assert updated["status"] == "submitted"
        assert updated["project_title"] == "Deep borehole"
        assert updated["district"] == "Gasabo"
        assert updated["created_at"] == row["created_at"]
        assert store.get_application(row["id"]) == updated

    def test_update_cannot_rewrite_protected_columns(self, store):
        row = store.create_application({"status": "draft"})
        updated = store.update_application(row["id"], {"id": "other", "created_at": "1970-01-01"})
        assert updated["id"] == row["id"]
        assert updated["created_at"] == row["created_at"]

    def test_update_missing_returns_none(self, store):
        assert store.update_application("does-not-exist", {"status": "draft"}) is None

    def test_guarded_update_writes_matching_status(self, store):
        row = store.create_application({"status": "draft", "project_title": "Borehole"})
        updated = store.update_application(row["id"], {"status": "submitted"}, expected_status="draft")
        assert updated["status"] == "submitted"

    def test_guarded_update_refuses_other_status(self, store):
        row = store.create_application({"status": "submitted", "project_title": "Borehole"})
        with pytest.raises(StatusConflictError) as excinfo:
            store.update_application(
                row["id"], {"status": "draft", "project_title": "Changed"}, expected_status="draft"
            )
        assert excinfo.value.status == "submitted"
        stored = store.get_application(row["id"])
        assert stored["status"] == "submitted"
        assert stored["project_title"] == "Borehole"
        assert stored["updated_at"] == row["updated_at"]

    def test_second_guarded_save_after_submit_is_refused(self, store):
        row = store.create_application({"status": "draft"})
        store.update_application(row["id"], {"status": "submitted"}, expected_status="draft")
        with pytest.raises(StatusConflictError):
            store.update_application(row["id"], {"status": "draft"}, expected_status="draft")
        assert store.get_application(row["id"])["status"] == "submitted"

    def test_delete(self, store):
        row = store.create_application({"status": "draft"})
        assert store.delete_application(row["id"]) is True
        assert store.get_application(row["id"]) is None
        assert store.delete_application(row["id"]) is False

    def test_no_temp_files_left_behind(self, store):
        store.create_application({"status": "draft"})
        assert not list(store.root.glob("*.tmp"))


class TestReads:
    @pytest.mark.parametrize("application_id", ["../etc/passwd", "a/b", "", "x" * 65, None])
    def test_invalid_ids_are_not_found(self, store, application_id):
        assert store.get_application(application_id) is None
        assert store.update_application(application_id, {"status": "draft"}) is None
        assert store.delete_application(application_id) is False

    def test_corrupt_row_raises(self, store):
        (store.root / "broken.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="Corrupt"):
            store.get_application("broken")

    @pytest.mark.parametrize("content", ["[]", '"just a string"', "42", "null"])
    def test_non_object_row_is_corrupt(self, store, content):
        (store.root / "stray.json").write_text(content, encoding="utf-8")
        with pytest.raises(ValueError, match="Corrupt"):
            store.get_application("stray")

    def test_row_deleted_while_reading_is_not_found(self, store, monkeypatch):
        row = store.create_application({"status": "draft"})
        read = store._read

        def read_after_delete(path):
            path.unlink()
            return read(path)

        monkeypatch.setattr(store, "_read", read_after_delete)
        assert store.get_application(row["id"]) is None

    def test_list_filters(self, store):
        _write_row(store, id="a1", status="draft", province="Kigali", district="Gasabo",
                   application_type="domestic", water_source="borehole", sla_status="on_time",
                   applicant_id="user-1", created_at="2024-01-10T08:00:00+00:00")
        _write_row(store, id="a2", status="submitted", province="Kigali", district="Kicukiro",
                   application_type="industrial", water_source="river", sla_status="due_soon",
                   applicant_id="user-1", created_at="2024-02-15T08:00:00+00:00")
        _write_row(store, id="a3", status="draft", province="Northern", district="Musanze",
                   application_type="mining_water_use", water_source="river", sla_status="overdue",
                   applicant_id="user-2", assigned_reviewer_id="reviewer-9",
                   created_at="2024-03-20T08:00:00+00:00")

        def ids(**filters):
            return sorted(row["id"] for row in store.list_applications(**filters))

        assert ids() == ["a1", "a2", "a3"]
        assert ids(status="draft") == ["a1", "a3"]
        assert ids(province="Kigali") == ["a1", "a2"]
        assert ids(status="draft", province="Northern") == ["a3"]
        assert ids(status=["draft", "submitted"], province=["Northern"]) == ["a3"]
        assert ids(applicant_id="user-1") == ["a1", "a2"]
        assert ids(application_type=["industrial", "mining_water_use"]) == ["a2", "a3"]
        assert ids(water_source="river") == ["a2", "a3"]
        assert ids(sla_status=["on_time", "overdue"]) == ["a1", "a3"]
        assert ids(district="Gasabo") == ["a1"]
        assert ids(assigned_reviewer_id="reviewer-9") == ["a3"]
        assert ids(status=[]) == ["a1", "a2", "a3"]

    def test_list_created_range(self, store):
        for index, stamp in enumerate(("2024-01-10T08:00:00+00:00", "2024-02-15T23:59:00+00:00",
                                       "2024-03-20T08:00:00+00:00")):
            _write_row(store, id=f"a{index}", status="draft", created_at=stamp)

        def ids(**filters):
            return sorted(row["id"] for row in store.list_applications(**filters))

        assert ids(created_from="2024-02-01") == ["a1", "a2"]
        assert ids(created_to="2024-02-15") == ["a0", "a1"]
        assert ids(created_from="2024-02-01", created_to="2024-02-28") == ["a1"]

    def test_list_rejects_unknown_filter(self, store):
        with pytest.raises(TypeError, match="colour"):
            store.list_applications(colour="blue")

    def test_list_newest_first(self, store):
        for stamp in ("2024-01-01T00:00:00+00:00", "2024-03-01T00:00:00+00:00", "2024-02-01T00:00:00+00:00"):
            row = store.create_application({"status": "draft"})
            row["created_at"] = stamp
            (store.root / f"{row['id']}.json").write_text(json.dumps(row), encoding="utf-8")

        listed = [row["created_at"] for row in store.list_applications()]
        assert listed == [
            "2024-03-01T00:00:00+00:00",
            "2024-02-01T00:00:00+00:00",
            "2024-01-01T00:00:00+00:00",
        ]

    def test_list_skips_corrupt_files(self, store):
        store.create_application({"status": "draft"})
        (store.root / "broken.json").write_text("{not json", encoding="utf-8")
        assert len(store.list_applications()) == 1

    def test_list_skips_non_object_files(self, store):
        store.create_application({"status": "draft"})
        (store.root / "stray.json").write_text("[]", encoding="utf-8")
        assert len(store.list_applications(status="draft")) == 1
