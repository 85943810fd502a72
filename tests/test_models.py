"""Tests for the request/response records."""

import pytest
from pydantic import ValidationError

from heygpt.models import ChatRequest, Message, ResponseMessage, ResponseStreamMessage


class TestChatRequest:
    def test_unset_sampling_fields_are_omitted(self):
        request = ChatRequest(model="gpt-3.5-turbo", messages=[Message(role="user", content="hi")], stream=True)

        payload = request.to_payload()

        assert payload == {
            "model": "gpt-3.5-turbo",
            "messages": [{"role": "user", "content": "hi"}],
            "stream": True,
        }
        assert "temperature" not in payload
        assert "top_p" not in payload

    def test_set_sampling_fields_are_sent(self):
        request = ChatRequest(model="m", messages=[], stream=False, temperature=0.2, top_p=0.9)

        payload = request.to_payload()

        assert payload["temperature"] == 0.2
        assert payload["top_p"] == 0.9
        assert payload["stream"] is False

    def test_zero_temperature_is_not_dropped(self):
        payload = ChatRequest(model="m", messages=[], stream=True, temperature=0.0).to_payload()
        assert payload["temperature"] == 0.0

    def test_out_of_range_temperature_rejected(self):
        with pytest.raises(ValidationError):
            ChatRequest(model="m", messages=[], stream=True, temperature=2.5)


class TestResponseModels:
    def test_null_content_decodes_as_empty(self):
        assert Message.model_validate({"role": "assistant", "content": None}).content == ""

    def test_batch_reply_requires_a_choice(self):
        with pytest.raises(ValidationError):
            ResponseMessage.model_validate({"choices": []})

    def test_unknown_keys_are_ignored(self):
        resp = ResponseMessage.model_validate(
            {
                "choices": [{"message": {"role": "assistant", "content": "x"}, "index": 0, "logprobs": None}],
                "system_fingerprint": "fp_1",
            }
        )
        assert resp.choices[0].message.content == "x"
        assert resp.usage is None

    def test_stream_chunk_without_choices(self):
        chunk = ResponseStreamMessage.model_validate_json('{"id": "x", "choices": [], "usage": {"total_tokens": 3}}')
        assert chunk.choices == []
