import pytest

from chat_relay.providers.selector import PRIORITY, select_provider


class TestSelectProvider:
    def test_auto_without_credentials_falls_back_to_claude(self):
        assert select_provider("auto", set()) == "claude"

    def test_auto_with_only_openai(self):
        assert select_provider("auto", {"openai"}) == "openai"

    def test_auto_prefers_claude_when_everything_is_configured(self):
        assert select_provider("auto", {"grok", "gemini", "openai", "claude"}) == "claude"

    def test_auto_follows_priority_order(self):
        assert select_provider("auto", {"grok", "gemini"}) == "gemini"
        assert select_provider("auto", {"grok"}) == "grok"

    @pytest.mark.parametrize("credentials", [set(), {"claude"}, {"openai", "grok"}])
    def test_explicit_provider_is_returned_unchanged(self, credentials):
        assert select_provider("gemini", credentials) == "gemini"

    def test_explicit_unknown_provider_is_not_validated_here(self):
        assert select_provider("mistral", {"claude"}) == "mistral"

    def test_priority(self):
        assert PRIORITY == ("claude", "openai", "gemini", "grok")
