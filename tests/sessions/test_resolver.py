from llmc.errors import AmbiguousSessionError, CorruptSessionError, InvalidArgumentError, NotFoundError
from llmc.sessions.resolver import is_full_id
from tests.sessions.base import SessionStoreTestCase, days_ago, make_session

ID_A = "abcd1234-0000-4000-8000-000000000001"
ID_B = "abcd5678-0000-4000-8000-000000000002"
ID_C = "ffff0000-0000-4000-8000-000000000003"


class SessionResolverTests(SessionStoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        self._a = make_session(ID_A, created_at=days_ago(5), updated_at=days_ago(3), messages=[("user", "a")])
        self._b = make_session(ID_B, created_at=days_ago(4), updated_at=days_ago(1))
        self._c = make_session(ID_C, created_at=days_ago(2), updated_at=days_ago(2))
        self._save(self._a, self._b, self._c)

    def test_full_id_loads_directly(self) -> None:
        self.assertEqual(ID_C, self._resolver.resolve(ID_C).id)

    def test_full_id_missing_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            self._resolver.resolve("12345678-0000-4000-8000-000000000009")

    def test_full_id_corrupt_file_is_reported(self) -> None:
        self._store.path_for(ID_C).write_text("oops", encoding="utf-8")
        with self.assertRaises(CorruptSessionError):
            self._resolver.resolve(ID_C)

    def test_unique_prefix_resolves(self) -> None:
        self.assertEqual(ID_A, self._resolver.resolve("abcd1").id)
        self.assertEqual(ID_C, self._resolver.resolve("ffff").id)

    def test_short_id_resolves(self) -> None:
        self.assertEqual(ID_B, self._resolver.resolve(self._b.short_id).id)

    def test_prefix_without_match_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            self._resolver.resolve("9999")

    def test_prefix_shorter_than_four_is_invalid(self) -> None:
        for value in ("", "a", "ab", "abc"):
            with self.subTest(value=value):
                with self.assertRaises(InvalidArgumentError):
                    self._resolver.resolve(value)

    def test_ambiguous_prefix_lists_exactly_the_matches(self) -> None:
        with self.assertRaises(AmbiguousSessionError) as ctx:
            self._resolver.resolve("abcd")
        error = ctx.exception
        self.assertEqual("abcd", error.prefix)
        self.assertEqual({ID_A, ID_B}, {s.id for s in error.matches})
        message = str(error)
        self.assertIn("abcd1234", message)
        self.assertIn("abcd5678", message)
        self.assertIn("1 messages", message)
        self.assertIn("openai:gpt-4.1", message)
        self.assertNotIn("ffff0000", message)

    def test_latest_returns_most_recently_updated(self) -> None:
        self.assertEqual(ID_B, self._resolver.resolve("latest").id)

    def test_latest_follows_updates(self) -> None:
        self._a.add_message("user", "bump")
        self._store.persist(self._a)
        self.assertEqual(ID_A, self._resolver.resolve("latest").id)

    def test_latest_on_empty_store_is_not_found(self) -> None:
        for session_id in (ID_A, ID_B, ID_C):
            self._store.delete(session_id)
        with self.assertRaises(NotFoundError):
            self._resolver.resolve("latest")

    def test_path_like_identifier_is_never_joined_into_a_path(self) -> None:
        outside = self._tmp_dir / "outsi-aaaa-bbbb-cccc-dddddddddddd.json"
        self._store.persist(make_session(ID_A))
        self._store.path_for(ID_A).rename(outside)
        value = "../outsi-aaaa-bbbb-cccc-dddddddddddd"
        self.assertEqual(36, len(value))
        with self.assertRaises(NotFoundError):
            self._resolver.resolve(value)

    def test_prefix_scan_skips_corrupt_files(self) -> None:
        (self._root / "ffff9999-broken.json").write_text("{", encoding="utf-8")
        self.assertEqual(ID_C, self._resolver.resolve("ffff").id)


class IsFullIdTests(SessionStoreTestCase):
    def test_accepts_uuid_shape(self) -> None:
        self.assertTrue(is_full_id(ID_A))

    def test_rejects_wrong_length_or_dash_placement(self) -> None:
        self.assertFalse(is_full_id(ID_A[:-1]))
        self.assertFalse(is_full_id("abcd1234000-04000-8000-0000000000001"))
        self.assertFalse(is_full_id("a" * 36))

    def test_rejects_non_hex_characters_in_uuid_shape(self) -> None:
        for value in ("zzzzzzzz-zzzz-zzzz-zzzz-zzzzzzzzzzzz", "..//..//-....-..//-....-............"):
            with self.subTest(value=value):
                self.assertEqual(36, len(value))
                self.assertFalse(is_full_id(value))
