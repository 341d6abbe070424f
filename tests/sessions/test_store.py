import json

from llmc.errors import CorruptSessionError, NotFoundError
from tests.sessions.base import SessionStoreTestCase, days_ago, make_session


class SessionStoreTests(SessionStoreTestCase):
    def test_root_is_created_on_first_use(self) -> None:
        self.assertFalse(self._root.exists())
        self.assertEqual([], self._store.list_all())
        self.assertTrue(self._root.is_dir())

    def test_persist_writes_one_file_named_by_full_id(self) -> None:
        session = make_session(messages=[("user", "hi")])
        path = self._store.persist(session)
        self.assertEqual(self._root / f"{session.id}.json", path)
        data = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(session.id, data["id"])
        self.assertEqual("hi", data["messages"][0]["content"])

    def test_round_trip_preserves_every_field_and_message_order(self) -> None:
        session = make_session(
            parent_id="11111111-2222-3333-4444-555555555555",
            name="Trip planning",
            messages=[("user", "first"), ("assistant", "second"), ("user", "third")],
        )
        session.template_name = "travel"
        session.system_prompt = "You are a travel agent."
        self._store.persist(session)

        loaded = self._store.load(session.id)
        self.assertEqual(session, loaded)
        self.assertEqual(["first", "second", "third"], [m.content for m in loaded.messages])

    def test_persist_overwrites_previous_version(self) -> None:
        session = make_session()
        self._store.persist(session)
        session.add_message("user", "later")
        self._store.persist(session)
        self.assertEqual(1, self._store.load(session.id).message_count)
        self.assertEqual(1, len(list(self._root.glob("*.json"))))

    def test_last_writer_wins(self) -> None:
        session = make_session()
        self._store.persist(session)
        first = self._store.load(session.id)
        second = self._store.load(session.id)
        first.add_message("user", "from writer one")
        second.add_message("user", "from writer two")
        self._store.persist(first)
        self._store.persist(second)
        loaded = self._store.load(session.id)
        self.assertEqual(["from writer two"], [m.content for m in loaded.messages])

    def test_load_missing_raises_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            self._store.load("00000000-0000-0000-0000-000000000000")

    def test_load_unparseable_raises_corrupt(self) -> None:
        self._root.mkdir(parents=True)
        (self._root / "broken.json").write_text("{not json", encoding="utf-8")
        with self.assertRaises(CorruptSessionError):
            self._store.load("broken")

    def test_load_missing_required_field_raises_corrupt(self) -> None:
        self._root.mkdir(parents=True)
        (self._root / "partial.json").write_text(json.dumps({"id": "partial"}), encoding="utf-8")
        with self.assertRaises(CorruptSessionError):
            self._store.load("partial")

    def test_delete_removes_file_and_second_delete_is_not_found(self) -> None:
        session = make_session()
        self._store.persist(session)
        self._store.delete(session.id)
        self.assertFalse(self._store.path_for(session.id).exists())
        with self.assertRaises(NotFoundError):
            self._store.delete(session.id)

    def test_list_all_sorts_by_updated_desc(self) -> None:
        old = make_session("aaaa0001", created_at=days_ago(10), updated_at=days_ago(9))
        newest = make_session("aaaa0002", created_at=days_ago(8), updated_at=days_ago(1))
        middle = make_session("aaaa0003", created_at=days_ago(7), updated_at=days_ago(5))
        self._save(old, newest, middle)
        self.assertEqual(["aaaa0002", "aaaa0003", "aaaa0001"], [s.id for s in self._store.list_all()])

    def test_list_all_breaks_ties_by_created_then_id(self) -> None:
        same = days_ago(1)
        b = make_session("bbbb0000", created_at=days_ago(3), updated_at=same)
        a = make_session("aaaa0000", created_at=days_ago(3), updated_at=same)
        c = make_session("cccc0000", created_at=days_ago(2), updated_at=same)
        self._save(b, a, c)
        self.assertEqual(["cccc0000", "aaaa0000", "bbbb0000"], [s.id for s in self._store.list_all()])

    def test_list_all_skips_corrupt_files_and_non_json(self) -> None:
        good = make_session("good0000")
        self._save(good)
        (self._root / "bad.json").write_text("[]", encoding="utf-8")
        (self._root / "garbage.json").write_text("\x00\x01", encoding="utf-8")
        (self._root / "notes.txt").write_text("ignore me", encoding="utf-8")
        (self._root / "dir.json").mkdir()

        sessions = self._store.list_all()
        self.assertEqual(["good0000"], [s.id for s in sessions])

    def test_renamed_file_is_rejected_on_load(self) -> None:
        session = make_session(messages=[("user", "hi")])
        self._store.persist(session).rename(self._root / "backup.json")
        with self.assertRaises(CorruptSessionError):
            self._store.load("backup")

    def test_list_all_skips_file_whose_id_does_not_match_its_name(self) -> None:
        kept = make_session("keep0000")
        moved = make_session("move0000")
        self._save(kept, moved)
        self._store.path_for(moved.id).rename(self._root / "backup.json")

        self.assertEqual(["keep0000"], [s.id for s in self._store.list_all()])
        with self.assertRaises(NotFoundError):
            self._resolver.resolve("move")
