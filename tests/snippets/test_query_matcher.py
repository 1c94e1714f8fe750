from fakes import make_event
from services.snippets.QueryMatcher import matches_criteria, matches_query
from shared.clients.node.models.SnippetEvent import SnippetEvent


NDK_EVENT = make_event("e1", content="import NDK from '@nostr-dev-kit/ndk'", language="javascript")


class TestMatchesQuery:
    def test_short_query_matches_content_substring(self):
        assert matches_query(NDK_EVENT, "ndk")

    def test_long_unknown_word_does_not_match(self):
        assert not matches_query(NDK_EVENT, "xyz123longword")

    def test_empty_and_blank_queries_match_everything(self):
        assert matches_query(NDK_EVENT, "")
        assert matches_query(NDK_EVENT, None)
        assert matches_query(NDK_EVENT, "   ")

    def test_any_word_of_a_long_query_is_enough(self):
        event = make_event("e2", content="const [state, setState] = useState(0) // hooks")
        assert matches_query(event, "react hooks example")

    def test_single_character_words_are_ignored(self):
        event = make_event("e3", content="print(1)")
        assert not matches_query(event, "x y")

    def test_tag_values_are_searched_case_insensitively(self):
        event = make_event("e4", content="...", name="Relay Pool Helper")
        assert matches_query(event, "POOL")

    def test_only_the_first_value_of_a_tag_is_searched(self):
        event = SnippetEvent(id="e5", pubkey="b" * 64, content="...", tags=[["t", "one", "secretword"]])
        assert not matches_query(event, "secretword")

    def test_query_is_trimmed_before_matching(self):
        assert matches_query(NDK_EVENT, "  NDK  ")


class TestMatchesCriteria:
    def test_language_is_case_insensitive(self):
        assert matches_criteria(NDK_EVENT, "JavaScript", None, None)
        assert not matches_criteria(NDK_EVENT, "python", None, None)

    def test_author_must_equal_pubkey(self):
        assert matches_criteria(NDK_EVENT, None, "a" * 64, None)
        assert not matches_criteria(NDK_EVENT, None, "c" * 64, None)

    def test_all_given_filters_must_hold(self):
        assert matches_criteria(NDK_EVENT, "javascript", "a" * 64, "ndk")
        assert not matches_criteria(NDK_EVENT, "javascript", "a" * 64, "xyz123longword")
