import pytest

from core.errors import MalformedResponse, UpstreamUnavailable
from core.services.completion_service import CompletionService
from models.schemas import Turn, TurnRole


def test_unavailable_without_key():
    assert not CompletionService(api_key="").available
    assert not CompletionService(api_key="   ").available
    assert CompletionService(api_key="sk-test").available


async def test_complete_without_key_raises():
    with pytest.raises(UpstreamUnavailable):
        await CompletionService(api_key="").complete("system", [])


def test_payload_puts_system_prompt_first():
    service = CompletionService(api_key="sk-test", model="test-model")
    history = [
        Turn(role=TurnRole.USER, content="hi"),
        Turn(role=TurnRole.ASSISTANT, content="hello"),
    ]
    payload = service._build_payload("be helpful", history)
    assert payload["model"] == "test-model"
    assert payload["messages"] == [
        {"role": "system", "content": "be helpful"},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ]


def test_extract_text():
    data = {"choices": [{"message": {"content": "  Hello!  "}}]}
    assert CompletionService._extract_text(data) == "Hello!"


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": "   "}}]},
        {"choices": [{"message": {"content": None}}]},
        None,
    ],
)
def test_extract_text_malformed(data):
    with pytest.raises(MalformedResponse):
        CompletionService._extract_text(data)
