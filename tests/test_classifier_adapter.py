"""Tests for the classifier adapter and its fallback behaviour."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from antitox.ai.classifier_adapter import ClassifierAdapter
from antitox.configuration.ai_settings import AISettings
from antitox.datatypes.action_datatypes import ActionKind
from antitox.datatypes.classification_datatypes import FailureKind


def completion(content=None, finish_reason="stop", refusal=None):
    message = SimpleNamespace(content=content, refusal=refusal)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason=finish_reason)])


def make_adapter(*responses):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=list(responses))
    settings = AISettings({"model_name": "primary-model", "fallback_model_name": "fallback-model"})
    return ClassifierAdapter(settings, client=client), client.chat.completions.create


BATCH = {"Steve": ["you are trash"]}
WARN_REPLY = json.dumps({
    "sanctions": [
        {"player": "Steve", "action": "WARN", "duration": "", "reason": "insult", "trigger_message": "you are trash"}
    ]
})


def connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "http://classifier.test"))


class TestAnalyze:
    """Tests for ClassifierAdapter.analyze."""

    @pytest.mark.asyncio
    async def test_successful_reply_is_parsed(self):
        adapter, create = make_adapter(completion(WARN_REPLY))

        result = await adapter.analyze(BATCH, {"Steve": []})

        assert result.ok
        assert result.model == "primary-model"
        assert [(v.player, v.action) for v in result.verdicts] == [("Steve", ActionKind.WARN)]
        create.assert_awaited_once()
        assert create.await_args.kwargs["model"] == "primary-model"
        assert create.await_args.kwargs["response_format"]["type"] == "json_schema"

    @pytest.mark.asyncio
    async def test_empty_batch_makes_no_request(self):
        adapter, create = make_adapter()

        result = await adapter.analyze({})

        assert result.ok
        assert result.verdicts == []
        create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_veto_retries_once_on_fallback(self):
        adapter, create = make_adapter(
            completion(None, finish_reason="content_filter"),
            completion(WARN_REPLY),
        )

        result = await adapter.analyze(BATCH)

        assert result.ok
        assert result.model == "fallback-model"
        assert create.await_count == 2
        assert create.await_args_list[1].kwargs["model"] == "fallback-model"

    @pytest.mark.asyncio
    async def test_refusal_counts_as_veto(self):
        adapter, create = make_adapter(
            completion(None, refusal="I can't help with that"),
            completion("[]"),
        )

        result = await adapter.analyze(BATCH)

        assert result.ok
        assert create.await_count == 2

    @pytest.mark.asyncio
    async def test_fallback_veto_becomes_transport_failure(self):
        """Exactly one fallback call is made before giving up."""
        adapter, create = make_adapter(
            completion(None, finish_reason="content_filter"),
            completion(None, finish_reason="content_filter"),
        )

        result = await adapter.analyze(BATCH)

        assert not result.ok
        assert result.failure is FailureKind.TRANSPORT
        assert create.await_count == 2

    @pytest.mark.asyncio
    async def test_fallback_transport_error_becomes_transport_failure(self):
        adapter, create = make_adapter(
            completion(None, finish_reason="content_filter"),
            connection_error(),
        )

        result = await adapter.analyze(BATCH)

        assert result.failure is FailureKind.TRANSPORT
        assert create.await_count == 2

    @pytest.mark.asyncio
    async def test_transport_error_does_not_use_fallback(self):
        adapter, create = make_adapter(connection_error())

        result = await adapter.analyze(BATCH)

        assert result.failure is FailureKind.TRANSPORT
        assert result.verdicts == []
        create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_http_status_error_is_transport_failure(self):
        response = httpx.Response(503, request=httpx.Request("POST", "http://classifier.test"))
        error = openai.InternalServerError("unavailable", response=response, body=None)
        adapter, _ = make_adapter(error)

        result = await adapter.analyze(BATCH)

        assert result.failure is FailureKind.TRANSPORT
        assert "503" in result.detail

    @pytest.mark.asyncio
    async def test_malformed_reply_is_empty_success(self):
        adapter, _ = make_adapter(completion("this is not json"))

        result = await adapter.analyze(BATCH)

        assert result.ok
        assert result.verdicts == []
        assert result.parse_failed is True

    @pytest.mark.asyncio
    async def test_no_choices_is_empty_success(self):
        adapter, _ = make_adapter(SimpleNamespace(choices=[]))

        result = await adapter.analyze(BATCH)

        assert result.ok
        assert result.verdicts == []

    @pytest.mark.asyncio
    async def test_structured_output_can_be_disabled(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=completion("[]"))
        adapter = ClassifierAdapter(AISettings({"structured_output": False}), client=client)

        await adapter.analyze(BATCH)

        assert "response_format" not in client.chat.completions.create.await_args.kwargs
