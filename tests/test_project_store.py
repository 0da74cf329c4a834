import json

import pytest

from conftest import wait_for
from vertex.services.project_store import (
    ProjectStore,
    SubmittedProjectError,
    format_last_edited,
)
from vertex.services.snapshot_storage import SqlSnapshotStorage


def make_store(storage, context, **kwargs):
    kwargs.setdefault("debounce_seconds", 0.05)
    return ProjectStore(storage, context, **kwargs)


def test_first_load_creates_starter_files(storage, student):
    store = make_store(storage, student)

    store.load("Lab 1")

    assert [f.name for f in store.files] == ["index.html", "style.css", "script.js", "main.py"]
    assert [f.language for f in store.files] == ["html", "css", "javascript", "python"]
    assert len({f.id for f in store.files}) == 4
    assert store.active_file_id == store.files[0].id
    assert store.submitted is False
    assert storage.writes == 0


def test_starter_files_get_new_ids_per_project(storage, student):
    first = make_store(storage, student)
    first.load("Lab 1")
    second = make_store(storage, student)
    second.load("Lab 2")

    assert not {f.id for f in first.files} & {f.id for f in second.files}


def test_blank_project_name_uses_default(storage, student):
    store = make_store(storage, student)

    store.load("   ")

    assert store.project_name == "My Vertex Project"
    assert store.key == "vertex:s-100:My Vertex Project"


def test_save_then_reload_restores_the_same_files(storage, student):
    store = make_store(storage, student)
    store.load("Lab 1")
    store.files[3].content = 'print("changed")'
    store.set_active_file(store.files[3].id)

    assert store.save(manual=True)

    reloaded = make_store(storage, student)
    reloaded.load("Lab 1")
    assert [f.to_dict() for f in reloaded.files] == [f.to_dict() for f in store.files]
    assert reloaded.active_file_id == store.files[3].id
    assert reloaded.last_edited == store.last_edited


def test_snapshot_document_format(storage, student):
    store = make_store(storage, student, clock=lambda: 1700000000000)
    store.load("Lab 1")
    store.save()

    document = json.loads(storage.data["vertex:s-100:Lab 1"])

    assert set(document) == {"files", "activeFileId", "lastEdited", "submitted"}
    assert document["lastEdited"] == 1700000000000
    assert document["submitted"] is False
    assert set(document["files"][0]) == {"id", "name", "language", "content"}


def test_projects_are_scoped_per_user(storage, student, staff):
    mine = make_store(storage, student)
    mine.load("Shared")
    mine.files[0].content = "mine"
    mine.save()

    theirs = make_store(storage, staff)
    theirs.load("Shared")

    assert theirs.files[0].content != "mine"


@pytest.mark.parametrize("payload", [
    "{not json",
    "[]",
    json.dumps({"files": []}),
    json.dumps({"files": [{"name": "a.py"}]}),
    json.dumps({"files": [{"id": "1", "name": "a.rb", "language": "ruby", "content": ""}]}),
    json.dumps({"files": [{"id": "1", "name": "a.py", "language": "python", "content": ""}], "submitted": "false"}),
    json.dumps({"files": [{"id": "1", "name": "a.py", "language": "python", "content": ""}], "submitted": 1}),
])
def test_corrupt_snapshot_falls_back_to_defaults(storage, student, payload):
    storage.data["vertex:s-100:Lab 1"] = payload
    store = make_store(storage, student)

    store.load("Lab 1")

    assert [f.name for f in store.files] == ["index.html", "style.css", "script.js", "main.py"]
    assert store.submitted is False


def test_unreadable_storage_falls_back_to_defaults(storage, student):
    storage.fail_reads = True
    store = make_store(storage, student)

    store.load("Lab 1")

    assert len(store.files) == 4


def test_unknown_active_file_falls_back_to_first(storage, student):
    storage.data["vertex:s-100:Lab 1"] = json.dumps({
        "files": [
            {"id": "a", "name": "main.py", "language": "python", "content": "print(1)"},
            {"id": "b", "name": "util.py", "language": "python", "content": ""},
        ],
        "activeFileId": "gone",
        "lastEdited": 1,
        "submitted": False,
    })
    store = make_store(storage, student)

    store.load("Lab 1")

    assert store.active_file_id == "a"
    assert store.active_file.content == "print(1)"


def test_set_active_file_rejects_unknown_ids(storage, student):
    store = make_store(storage, student)
    store.load("Lab 1")

    with pytest.raises(KeyError):
        store.set_active_file("nope")


def test_save_states(storage, student):
    store = make_store(storage, student)
    store.load("Lab 1")

    store.save(manual=True)
    assert store.save_state == "Saved"

    store.save(manual=False)
    assert store.save_state == "Auto-saved"


def test_failed_write_is_reported_not_raised(storage, student):
    store = make_store(storage, student)
    store.load("Lab 1")
    store.mark_dirty()
    store.cancel_pending_save()
    storage.fail_writes = True

    assert store.save(manual=True) is False
    assert store.save_state == "Save failed"
    assert store.dirty is True


def test_rapid_edits_are_coalesced_into_one_autosave(storage, student):
    store = make_store(storage, student, debounce_seconds=0.2)
    store.load("Lab 1")

    for i in range(5):
        store.files[0].content = f"edit {i}"
        store.mark_dirty()

    assert store.save_state == "Unsaved changes"
    assert wait_for(lambda: storage.writes == 1)
    assert wait_for(lambda: store.save_state == "Auto-saved")
    assert not store.dirty
    assert json.loads(storage.data[store.key])["files"][0]["content"] == "edit 4"

    # nothing else is queued behind it
    assert not wait_for(lambda: storage.writes > 1, timeout=0.3)


def test_add_file_infers_language_and_becomes_active(storage, student):
    store = make_store(storage, student)
    store.load("Lab 1")

    new_file = store.add_file("helpers.PY")

    assert new_file.language == "python"
    assert new_file.content == ""
    assert store.files[-1] is new_file
    assert store.active_file_id == new_file.id
    assert store.save_state == "Saved"
    assert storage.writes == 1


def test_add_file_rejects_blank_names(storage, student):
    store = make_store(storage, student)
    store.load("Lab 1")

    with pytest.raises(ValueError):
        store.add_file("  ")
    assert len(store.files) == 4


def test_submit_freezes_the_stored_snapshot(storage, student):
    store = make_store(storage, student)
    store.load("Lab 1")
    store.files[3].content = "print('final answer')"

    assert store.submit() is True
    stored = storage.data[store.key]
    assert json.loads(stored)["submitted"] is True
    assert store.save_state == "Submitted (read-only)"

    store.files[3].content = "print('sneaky change')"
    assert store.save(manual=True) is False
    assert store.save(manual=False) is False
    assert store.submit() is False
    assert storage.data[store.key] == stored

    with pytest.raises(SubmittedProjectError):
        store.add_file("late.py")

    reloaded = make_store(storage, student)
    reloaded.load("Lab 1")
    assert reloaded.submitted is True
    assert reloaded.files[3].content == "print('final answer')"


def test_submit_cancels_pending_autosave(storage, student):
    store = make_store(storage, student, debounce_seconds=0.2)
    store.load("Lab 1")
    store.mark_dirty()

    store.submit()

    assert not store.save_pending
    assert not wait_for(lambda: storage.writes > 1, timeout=0.4)


def test_failed_submission_can_be_retried(storage, student):
    store = make_store(storage, student)
    store.load("Lab 1")
    storage.fail_writes = True

    assert store.submit() is False
    assert store.submitted is False
    assert store.save_state == "Save failed"

    storage.fail_writes = False
    assert store.submit() is True


def test_last_edited_label():
    assert format_last_edited(0).startswith("Last edited: ")
    label = format_last_edited(1700000000000)
    assert "2023" in label
    assert label.count(":") == 3


def test_sql_storage_round_trip(app, student):
    storage = SqlSnapshotStorage(app)
    store = make_store(storage, student)
    store.load("Persisted")
    store.files[0].content = "<p>db</p>"
    store.save(manual=True)

    reloaded = make_store(SqlSnapshotStorage(app), student)
    reloaded.load("Persisted")

    assert reloaded.files[0].content == "<p>db</p>"
    assert [f.id for f in reloaded.files] == [f.id for f in store.files]


def test_snapshot_without_submitted_flag_is_editable(storage, student):
    storage.data["vertex:s-100:Lab 1"] = json.dumps({
        "files": [{"id": "a", "name": "main.py", "language": "python", "content": "print(1)"}],
        "activeFileId": "a",
    })
    store = make_store(storage, student)

    store.load("Lab 1")

    assert store.submitted is False
    assert store.files[0].content == "print(1)"
