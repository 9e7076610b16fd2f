"""Tests for mention extraction, resolution and substitution (mentions.py)."""

import pytest

from step_slack_notify.errors import SlackApiError, UnresolvedMentionError
from step_slack_notify.mentions import (
    Group,
    Individual,
    MentionKind,
    Reference,
    extract_tokens,
    interpolate_mentions,
    resolve_mentions,
    scan_mentions,
    substitute_mentions,
)
from step_slack_notify.slack.client import MockSlackClient


# extract_tokens

class TestExtractTokens:
    def test_users_and_groups(self):
        tokens = extract_tokens("hello <@jh>, <@some user group>, how is it going?")
        assert tokens == ["jh", "some user group"]

    def test_no_mentions(self):
        assert extract_tokens("nothing to see here") == []
        assert extract_tokens("") == []

    def test_duplicates_kept_in_order(self):
        assert extract_tokens("<@b> <@a> <@b>") == ["b", "a", "b"]

    def test_allowed_characters(self):
        assert extract_tokens("<@Dev_Team-2 east>") == ["Dev_Team-2 east"]

    def test_internal_spaces_not_trimmed(self):
        assert extract_tokens("<@ padded >") == [" padded "]

    @pytest.mark.parametrize("message", ["<@>", "<@jh", "@jh>", "<jh>", "<@j.h>", "<@jh!>"])
    def test_malformed_mentions_ignored(self, message):
        assert extract_tokens(message) == []

    def test_recovers_after_false_start(self):
        assert extract_tokens("<@<@jh>") == ["jh"]
        assert extract_tokens("<@bad.name> then <@good>") == ["good"]

    def test_adjacent_mentions(self):
        assert extract_tokens("<@a><@b>") == ["a", "b"]

    def test_already_resolved_slack_syntax_is_not_a_mention(self):
        assert extract_tokens("<!subteam^G1> <#C123>") == []

    def test_spans(self):
        message = "hi <@jh>!"
        (token,) = list(scan_mentions(message))
        assert token.text == "jh"
        assert message[token.start:token.end] == "<@jh>"

    def test_scan_is_restartable(self):
        message = "<@a> <@b>"
        assert list(scan_mentions(message)) == list(scan_mentions(message))


# Reference

class TestReference:
    def test_individual_syntax(self):
        assert Reference.individual("U1").render() == "<@U1>"

    def test_group_syntax(self):
        assert Reference.group("G1").render() == "<!subteam^G1>"

    def test_kinds_are_distinct(self):
        assert Reference.individual("X") != Reference.group("X")


# resolve_mentions

class TestResolveMentions:
    def test_user_and_group(self, mock_slack):
        mapping = resolve_mentions("hello <@jh>, <@some user group>, how is it going?", mock_slack)
        assert mapping["jh"].render() == "<@U1>"
        assert mapping["some user group"].render() == "<!subteam^G1>"

    def test_no_mentions_skips_lookup(self, mock_slack):
        assert resolve_mentions("plain text", mock_slack) == {}
        assert mock_slack.calls == {}

    def test_groups_not_fetched_when_all_users_found(self, mock_slack):
        resolve_mentions("<@jh> <@alice>", mock_slack)
        assert mock_slack.calls.get("list_individuals") == 1
        assert "list_groups" not in mock_slack.calls

    def test_case_insensitive(self, mock_slack):
        mapping = resolve_mentions("<@JH> <@ALICE> <@dev experience>", mock_slack)
        assert mapping["jh"] == Reference.individual("U1")
        assert mapping["alice"] == Reference.individual("U2")
        assert mapping["dev experience"] == Reference.group("G2")

    def test_hyphens_match_group_spaces(self, mock_slack):
        mapping = resolve_mentions("<@some-user-group>", mock_slack)
        assert mapping["some-user-group"] == Reference.group("G1")

    def test_hyphens_not_rewritten_for_users(self, mock_slack):
        mapping = resolve_mentions("<@bob_the-builder>", mock_slack)
        assert mapping["bob_the-builder"] == Reference.individual("U3")

    def test_duplicate_mentions_resolve_once(self, mock_slack):
        mapping = resolve_mentions("<@jh> and again <@jh> and <@Jh>", mock_slack)
        assert list(mapping) == ["jh"]

    def test_individual_wins_over_group(self):
        lookup = MockSlackClient(
            individuals=[Individual(id="U9", display_name="oncall")],
            groups=[Group(id="G9", name="oncall")],
        )
        mapping = resolve_mentions("<@oncall>", lookup)
        assert mapping["oncall"].kind == MentionKind.INDIVIDUAL

    def test_first_user_with_name_wins(self):
        lookup = MockSlackClient(individuals=[
            Individual(id="U1", display_name="sam"),
            Individual(id="U2", display_name="Sam"),
        ])
        assert resolve_mentions("<@sam>", lookup)["sam"] == Reference.individual("U1")

    def test_unresolved_reports_partial_mapping(self, mock_slack):
        with pytest.raises(UnresolvedMentionError) as exc_info:
            resolve_mentions("<@jh> <@nobody> <@some user group>", mock_slack)

        err = exc_info.value
        assert err.missing == ["nobody"]
        assert err.found == {"jh": "<@U1>", "some user group": "<!subteam^G1>"}
        assert "could not find all slack users and groups" in str(err)

    def test_lookup_errors_propagate(self):
        class BrokenLookup(MockSlackClient):
            def list_individuals(self):
                raise SlackApiError("slack users.list failed: invalid_auth", method="users.list")

        with pytest.raises(SlackApiError, match="invalid_auth"):
            resolve_mentions("<@jh>", BrokenLookup())


# substitute_mentions / interpolate_mentions

class TestSubstitution:
    def test_replaces_every_occurrence(self):
        mapping = {"jh": Reference.individual("U1")}
        result = substitute_mentions("<@jh> ping <@jh>", mapping)
        assert result == "<@U1> ping <@U1>"
        assert "<@jh>" not in result

    def test_replaces_each_casing(self):
        mapping = {"jh": Reference.individual("U1")}
        assert substitute_mentions("<@jh> <@JH>", mapping) == "<@U1> <@U1>"

    def test_unmapped_left_alone(self):
        mapping = {"jh": Reference.individual("U1")}
        assert substitute_mentions("<@jh> <@other>", mapping) == "<@U1> <@other>"

    def test_interpolate(self, mock_slack):
        result = interpolate_mentions("hello <@jh>, <@some user group>, how is it going?", mock_slack)
        assert result == "hello <@U1>, <!subteam^G1>, how is it going?"

    def test_interpolate_without_mentions_is_identity(self, mock_slack):
        assert interpolate_mentions("all green", mock_slack) == "all green"

    def test_interpolate_fails_rather_than_partially_substituting(self, mock_slack):
        with pytest.raises(UnresolvedMentionError):
            interpolate_mentions("<@jh> <@ghost>", mock_slack)
