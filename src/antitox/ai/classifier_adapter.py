"""
Classifier adapter for an OpenAI-compatible chat-completion API.

One round of classification:
1. Annotate messages with their evasion-normalized form and build the request.
2. Ask the primary model.
3. If the primary model vetoes the content, ask the fallback model exactly once.
4. Parse the reply into verdicts.

Failures are returned as values (:class:`ClassificationResult`), never raised.
A transport failure means "unknown, keep the messages"; an unreadable reply
means "nothing to sanction" and is reported as an empty success.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

import openai
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletionMessageParam
from openai.types.shared_params.response_format_json_schema import ResponseFormatJSONSchema

from antitox.ai import llm_payload_builder
from antitox.configuration.ai_settings import AISettings
from antitox.datatypes.classification_datatypes import ClassificationResult, FailureKind, ModelReply
from antitox.moderation import moderation_parsing
from antitox.util.logger import get_logger

logger = get_logger("classifier_adapter")

VETO_FINISH_REASONS = frozenset({"content_filter", "safety", "prohibited_content", "blocklist"})


class ClassifierAdapter:
    """
    Submit pending batches to the content classifier.

    Args:
        settings: Classifier settings (models, base URL, prompt, sampling).
        client: Optional pre-built AsyncOpenAI client; created from settings when omitted.
    """

    def __init__(self, settings: AISettings, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._model_name = settings.model_name
        self._fallback_model_name = settings.fallback_model_name
        if client is None:
            if not settings.api_key:
                logger.error("[CLASSIFIER] API key is not configured (env %s)", settings.api_key_env)
            client = AsyncOpenAI(
                api_key=settings.api_key,
                base_url=settings.base_url,
                timeout=settings.request_timeout_seconds,
            )
        self._client = client
        logger.info(
            "[CLASSIFIER] Initialized with base_url=%s, model=%s, fallback=%s",
            settings.base_url,
            self._model_name,
            self._fallback_model_name,
        )

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def fallback_model_name(self) -> str:
        return self._fallback_model_name

    async def analyze(
        self,
        batch_by_author: Mapping[str, Sequence[str]],
        context_by_author: Mapping[str, Sequence[str]] | None = None,
    ) -> ClassificationResult:
        """Classify one batch and return its verdicts or a TRANSPORT failure."""
        if not batch_by_author:
            return ClassificationResult.success([], self._model_name)

        messages, originals = llm_payload_builder.build_classifier_messages(
            batch_by_author,
            context_by_author,
            self._settings.system_prompt,
            self._settings.server_type,
        )

        reply = await self._request(self._model_name, messages)

        if reply.failure is FailureKind.VETO:
            logger.warning(
                "[CLASSIFIER] Primary model blocked (%s). Retrying with %s...",
                reply.detail or "no detail",
                self._fallback_model_name,
            )
            reply = await self._request(self._fallback_model_name, messages)
            if not reply.ok:
                logger.error(
                    "[CLASSIFIER] Fallback model %s also failed (%s): %s",
                    self._fallback_model_name,
                    reply.failure,
                    reply.detail,
                )
                return ClassificationResult.failed(FailureKind.TRANSPORT, reply.model, reply.detail)
        elif not reply.ok:
            logger.error("[CLASSIFIER] API error, messages will be retained for next cycle: %s", reply.detail)
            return ClassificationResult.failed(FailureKind.TRANSPORT, reply.model, reply.detail)

        verdicts, parsed = moderation_parsing.parse_verdicts(reply.content or "", originals)
        if not parsed:
            logger.warning("[CLASSIFIER] Reply from %s was unreadable; treating as no sanctions", reply.model)

        summary = ", ".join(f"{v.action}({v.player})" for v in verdicts)
        logger.info("[RESULT] %s returned %d verdicts [%s]", reply.model, len(verdicts), summary or "none")
        return ClassificationResult.success(verdicts, reply.model, parse_failed=not parsed)

    async def _request(self, model: str, messages: List[ChatCompletionMessageParam]) -> ModelReply:
        """Make one API request and classify its outcome."""
        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_output_tokens,
        }
        if self._settings.structured_output:
            kwargs["response_format"] = ResponseFormatJSONSchema(
                type="json_schema",
                json_schema={
                    "name": "moderation_response",
                    "strict": True,
                    "schema": moderation_parsing.RESPONSE_SCHEMA,
                },
            )

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APIStatusError as exc:
            return ModelReply(model=model, failure=FailureKind.TRANSPORT, detail=f"HTTP {exc.status_code}: {exc.message}")
        except openai.APIError as exc:
            return ModelReply(model=model, failure=FailureKind.TRANSPORT, detail=str(exc))

        if not response.choices:
            logger.warning("[CLASSIFIER] %s returned no choices", model)
            return ModelReply(model=model, content="")

        choice = response.choices[0]
        refusal = getattr(choice.message, "refusal", None)
        finish_reason = str(choice.finish_reason or "").lower()
        if refusal or (finish_reason in VETO_FINISH_REASONS and not choice.message.content):
            return ModelReply(model=model, failure=FailureKind.VETO, detail=refusal or finish_reason)

        return ModelReply(model=model, content=(choice.message.content or "").strip())
