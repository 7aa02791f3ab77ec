import pytest

from chat_relay.core.errors import ValidationError
from chat_relay.providers.claude_provider import ClaudeProvider
from chat_relay.providers.gemini_provider import GeminiProvider
from chat_relay.providers.openai_provider import GrokProvider, OpenAIProvider
from chat_relay.schemas import ChatMessage

MESSAGES = [
    ChatMessage(role="user", content="What is a monad?"),
    ChatMessage(role="assistant", content="A monoid in the category of endofunctors."),
    ChatMessage(role="user", content="  Explain   like I'm five\n"),
]
SYSTEM = "You are Ada, a helpful personal AI assistant."


def build(provider_cls):
    if provider_cls is ClaudeProvider:
        return ClaudeProvider("sk-ant-test")
    return provider_cls("key-test", base_url="https://upstream.test/v1")


def contents_of(provider, request):
    """Message texts in upstream order, system prompt excluded."""
    if isinstance(provider, GeminiProvider):
        return [c["parts"][0]["text"] for c in request.payload["contents"]]
    texts = []
    for message in request.payload["messages"]:
        if message["role"] == "system":
            continue
        content = message["content"]
        texts.append(content if isinstance(content, str) else content[0]["text"])
    return texts


ALL_PROVIDERS = [ClaudeProvider, OpenAIProvider, GrokProvider, GeminiProvider]


@pytest.mark.parametrize("provider_cls", ALL_PROVIDERS)
def test_messages_forwarded_unmodified_and_in_order(provider_cls):
    provider = build(provider_cls)
    request = provider.translate(MESSAGES, SYSTEM, None)
    assert contents_of(provider, request) == [m.content for m in MESSAGES]


@pytest.mark.parametrize("provider_cls", ALL_PROVIDERS)
def test_caller_messages_are_not_mutated(provider_cls):
    messages = [m.model_copy() for m in MESSAGES]
    build(provider_cls).translate(messages, SYSTEM, None)
    assert messages == MESSAGES


@pytest.mark.parametrize("provider_cls", ALL_PROVIDERS)
def test_model_override_and_default(provider_cls):
    provider = build(provider_cls)
    assert provider.translate(MESSAGES, None, None).model == provider.descriptor.default_model
    assert provider.translate(MESSAGES, None, "custom-model").model == "custom-model"


@pytest.mark.parametrize("provider_cls", ALL_PROVIDERS)
def test_empty_messages_fail_fast(provider_cls):
    with pytest.raises(ValidationError):
        build(provider_cls).translate([], SYSTEM, None)


class TestClaudeTranslation:
    def test_system_block_is_cacheable(self):
        request = ClaudeProvider("sk-ant-test").translate(MESSAGES, SYSTEM, None)
        assert request.payload["system"] == [
            {"type": "text", "text": SYSTEM, "cache_control": {"type": "ephemeral"}}
        ]
        assert request.payload["max_tokens"] == 8192
        # the SDK client sends the call; nothing credential-bearing is kept here
        assert request.url is None
        assert request.headers == {}

    def test_second_to_last_message_is_cacheable(self):
        payload = ClaudeProvider("sk-ant-test").translate(MESSAGES, SYSTEM, None).payload
        first, second_to_last, last = payload["messages"]
        assert first == {"role": "user", "content": MESSAGES[0].content}
        assert second_to_last["role"] == "assistant"
        assert second_to_last["content"] == [
            {
                "type": "text",
                "text": MESSAGES[1].content,
                "cache_control": {"type": "ephemeral"},
            }
        ]
        assert last == {"role": "user", "content": MESSAGES[2].content}

    def test_single_message_has_no_cache_marker(self):
        payload = ClaudeProvider("sk-ant-test").translate(MESSAGES[:1], None, None).payload
        assert payload["messages"] == [{"role": "user", "content": MESSAGES[0].content}]
        assert "system" not in payload


class TestOpenAICompatibleTranslation:
    @pytest.mark.parametrize("provider_cls", [OpenAIProvider, GrokProvider])
    def test_system_prompt_is_leading_message(self, provider_cls):
        request = build(provider_cls).translate(MESSAGES, SYSTEM, None)
        assert request.payload["messages"][0] == {"role": "system", "content": SYSTEM}
        assert len(request.payload["messages"]) == len(MESSAGES) + 1
        assert request.payload["stream"] is True
        assert request.payload["max_tokens"] == 8192
        assert request.headers == {"Authorization": "Bearer key-test"}
        assert request.url == "https://upstream.test/v1/chat/completions"

    def test_no_system_prompt(self):
        request = build(OpenAIProvider).translate(MESSAGES, None, None)
        assert [m["role"] for m in request.payload["messages"]] == ["user", "assistant", "user"]


class TestGeminiTranslation:
    def test_roles_and_system_instruction(self):
        request = build(GeminiProvider).translate(MESSAGES, SYSTEM, None)
        payload = request.payload
        assert [c["role"] for c in payload["contents"]] == ["user", "model", "user"]
        assert payload["systemInstruction"] == {"parts": [{"text": SYSTEM}]}
        assert payload["generationConfig"] == {"maxOutputTokens": 8192}

    def test_key_embedded_in_url(self):
        request = build(GeminiProvider).translate(MESSAGES, None, "gemini-1.5-flash")
        assert request.url == (
            "https://upstream.test/v1/models/gemini-1.5-flash:streamGenerateContent?key=key-test"
        )
        assert request.headers == {}
        assert "systemInstruction" not in request.payload
