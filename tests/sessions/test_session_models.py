import unittest
from datetime import timedelta

from llmc.sessions import Message, Session
from llmc.sessions.models import parse_model_string, parse_timestamp
from tests.sessions.base import NOW, make_session


class SessionModelTests(unittest.TestCase):
    def test_short_id_is_first_eight_characters(self) -> None:
        session = make_session("550e8400-e29b-41d4-a716-446655440000")
        self.assertEqual("550e8400", session.short_id)

    def test_short_id_of_short_identifier_is_whole_identifier(self) -> None:
        self.assertEqual("abc", make_session("abc").short_id)

    def test_new_session_has_uuid_and_equal_timestamps(self) -> None:
        session = Session.new("anthropic:claude-sonnet-4-5")
        self.assertEqual(36, len(session.id))
        self.assertEqual(session.created_at, session.updated_at)
        self.assertEqual([], session.messages)
        self.assertIsNone(session.parent_id)

    def test_new_sessions_have_distinct_ids(self) -> None:
        ids = {Session.new("openai:gpt-4.1").id for _ in range(20)}
        self.assertEqual(20, len(ids))

    def test_display_name_falls_back_to_short_id(self) -> None:
        session = make_session("12345678-aaaa")
        self.assertEqual("12345678", session.display_name)
        session.name = "Planning"
        self.assertEqual("Planning", session.display_name)

    def test_add_message_appends_in_order_and_bumps_updated_at(self) -> None:
        session = make_session(created_at=NOW - timedelta(days=1))
        before = session.updated_at
        session.add_message("user", "hello")
        session.add_message("assistant", "hi there")
        self.assertEqual(["user", "assistant"], [m.role for m in session.messages])
        self.assertGreater(session.updated_at, before)

    def test_updated_at_never_moves_backwards(self) -> None:
        session = make_session(created_at=NOW)
        session.append(Message(role="user", content="old", created_at=NOW - timedelta(hours=1)))
        self.assertEqual(NOW, session.updated_at)

    def test_append_rejects_unknown_role(self) -> None:
        session = make_session()
        with self.assertRaises(ValueError):
            session.add_message("system", "nope")

    def test_provider_and_model_name_are_derived(self) -> None:
        session = make_session(model="anthropic:claude-sonnet-4-5")
        self.assertEqual("anthropic", session.provider_name)
        self.assertEqual("claude-sonnet-4-5", session.model_name)

        legacy = make_session(model="gpt-4")
        self.assertEqual("", legacy.provider_name)
        self.assertEqual("gpt-4", legacy.model_name)

    def test_from_dict_ignores_unknown_fields_and_defaults_missing_optionals(self) -> None:
        session = Session.from_dict({
            "id": "abcd1234-0000-0000-0000-000000000000",
            "model": "openai:gpt-4.1",
            "created_at": "2024-01-01T00:00:00Z",
            "updated_at": "2024-01-02T00:00:00+09:00",
            "future_field": {"anything": True},
        })
        self.assertIsNone(session.parent_id)
        self.assertIsNone(session.name)
        self.assertEqual([], session.messages)
        self.assertIsNotNone(session.created_at.tzinfo)

    def test_empty_strings_load_as_none(self) -> None:
        data = make_session(parent_id="p").to_dict()
        data["parent_id"] = ""
        self.assertIsNone(Session.from_dict(data).parent_id)

    def test_naive_timestamp_is_treated_as_utc(self) -> None:
        self.assertEqual(NOW, parse_timestamp("2025-06-01T12:00:00"))


class ParseModelStringTests(unittest.TestCase):
    def test_splits_provider_and_model(self) -> None:
        self.assertEqual(("openai", "gpt-4"), parse_model_string("openai:gpt-4"))

    def test_model_may_contain_colons(self) -> None:
        self.assertEqual(("ollama", "llama3:8b"), parse_model_string("ollama:llama3:8b"))

    def test_rejects_missing_separator_or_empty_parts(self) -> None:
        for bad in ("gpt-4", ":gpt-4", "openai:", " : "):
            with self.subTest(value=bad):
                with self.assertRaises(ValueError):
                    parse_model_string(bad)


if __name__ == "__main__":
    unittest.main()
