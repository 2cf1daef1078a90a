"""Tests for mention rewriting of relayed content."""

from __future__ import annotations

from unittest.mock import MagicMock

from relaybot.formatting.mentions import guild_resolver, rewrite_mentions
from tests.mocks import make_guild


def _resolver(names: dict[int, str]):
    return lambda user_id: names.get(user_id)


def test_text_without_mentions_unchanged() -> None:
    assert rewrite_mentions("just a normal message", _resolver({})) == "just a normal message"


def test_empty_text_unchanged() -> None:
    assert rewrite_mentions("", _resolver({})) == ""


def test_user_mention_resolved_to_display_name() -> None:
    assert rewrite_mentions("hello <@123>", _resolver({123: "Alice"})) == "hello @Alice"


def test_nickname_mention_resolved() -> None:
    """<@!id> (nickname form) is rewritten like <@id>."""
    assert rewrite_mentions("hi <@!42>!", _resolver({42: "Bob"})) == "hi @Bob!"


def test_unknown_user_placeholder() -> None:
    assert rewrite_mentions("ping <@999>", _resolver({})) == "ping @UnknownUser"


def test_multiple_mentions() -> None:
    result = rewrite_mentions("<@1> and <@!2> and <@3>", _resolver({1: "A", 2: "B"}))
    assert result == "@A and @B and @UnknownUser"


def test_role_and_channel_mentions_untouched() -> None:
    text = "see <#55> and <@&77>"
    assert rewrite_mentions(text, _resolver({55: "x", 77: "y"})) == text


def test_everyone_and_here_stripped() -> None:
    assert rewrite_mentions("@everyone look", _resolver({})) == "everyone look"
    assert rewrite_mentions("hey @here", _resolver({})) == "hey here"


def test_broadcast_after_punctuation_and_inside_words() -> None:
    assert rewrite_mentions("(@here)", _resolver({})) == "(here)"
    assert rewrite_mentions("x@everyone!", _resolver({})) == "xeveryone!"
    assert rewrite_mentions("@@here", _resolver({})) == "here"


def test_display_name_cannot_smuggle_broadcast() -> None:
    assert rewrite_mentions("<@1>", _resolver({1: "everyone"})) == "everyone"


def test_guild_resolver_uses_member_cache() -> None:
    resolve = guild_resolver(make_guild({123: "Alice"}))
    assert resolve(123) == "Alice"
    assert resolve(456) is None


def test_guild_resolver_without_guild() -> None:
    resolve = guild_resolver(None)
    assert resolve(123) is None
    assert rewrite_mentions("<@123>", resolve) == "@UnknownUser"


def test_resolver_called_with_int_id() -> None:
    resolve = MagicMock(return_value="Zed")
    rewrite_mentions("<@!0042>", resolve)
    resolve.assert_called_once_with(42)


def test_repeated_at_signs_leave_no_broadcast() -> None:
    result = rewrite_mentions("@@@everyone and @@here", _resolver({}))
    assert result == "everyone and here"
    assert "@" not in result
