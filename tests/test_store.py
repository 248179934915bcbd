from rag_notes_service.store import NoteStore


def test_insert_returns_generated_row(store):
    first = store.insert_note("one")
    second = store.insert_note("two")
    assert first.id != second.id
    assert first.text == "one"
    assert first.created_at is not None


def test_get_notes_by_ids(store):
    a = store.insert_note("a")
    store.insert_note("b")
    c = store.insert_note("c")

    notes = store.get_notes([str(a.id), str(c.id)])

    assert sorted(n.text for n in notes) == ["a", "c"]


def test_get_notes_ignores_unknown_and_bad_ids(store):
    store.insert_note("a")
    assert store.get_notes([]) == []
    assert store.get_notes(["42"]) == []
    assert store.get_notes(["1) OR (1=1"]) == []


def test_delete_and_count(store):
    note = store.insert_note("a")
    assert store.count_notes() == 1
    assert store.delete_note(note.id) is True
    assert store.delete_note(note.id) is False
    assert store.count_notes() == 0


def test_init_schema_is_idempotent(tmp_path):
    store = NoteStore(tmp_path / "db.sqlite")
    store.init_schema()
    store.insert_note("kept")
    store.init_schema()
    assert store.count_notes() == 1
