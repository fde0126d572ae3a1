"""Tests for member search helpers."""

from prompt_toolkit.document import Document

from trip_split.models import Member
from trip_split.ui import MemberCompleter, fuzzy_match


class TestFuzzyMatch:
    def test_in_order_characters(self):
        assert fuzzy_match("lnh", "linh")
        assert fuzzy_match("an", "minh anh")

    def test_out_of_order_fails(self):
        assert not fuzzy_match("hl", "linh")

    def test_empty_query_matches(self):
        assert fuzzy_match("", "bao")


class TestMemberCompleter:
    def test_completions_filter_by_name(self):
        completer = MemberCompleter(
            [Member(id="1", name="Linh"), Member(id="2", name="Bao"), Member(id="3", name="Minh Anh")]
        )

        completions = list(completer.get_completions(Document("nh"), None))

        assert [c.text for c in completions] == ["Linh", "Minh Anh"]
        assert completer.name_to_id["Bao"] == "2"

    def test_repeated_names_keep_both_members(self):
        completer = MemberCompleter(
            [Member(id="m1", name="Minh"), Member(id="m2", name="Minh"), Member(id="b1", name="Bao")]
        )

        completions = list(completer.get_completions(Document("minh"), None))

        assert [c.text for c in completions] == ["Minh (m1)", "Minh (m2)"]
        assert completer.name_to_id["Minh (m1)"] == "m1"
        assert completer.name_to_id["Minh (m2)"] == "m2"
        assert completer.name_to_id["Bao"] == "b1"
