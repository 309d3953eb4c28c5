"""
LLM-powered story autofill.

Given a partial story (a description plus whatever fields are already
filled in) asks an OpenAI-compatible chat-completion endpoint for:
  - Title
  - As a / I want / So that
  - Acceptance criteria

If the configured model is unavailable the request is retried once with
the fallback model. There is no other retry.
"""
import json
import logging
import re
from typing import Any, Dict, Optional

import requests

from .config import Config
from .errors import ConfigError, SchemaError, UpstreamError
from .schema import AutofillPayload, AutofillResult

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are a product manager writing user stories. Only return JSON, no markdown. "
    "Keep answers concise. Use null for fields you cannot infer."
)


def build_prompt(payload: AutofillPayload) -> str:
    """Build the user prompt embedding every known story field."""
    return (
        "Generate missing story fields. Return JSON only with keys: title, asA, iWant, "
        "soThat, acceptanceCriteria (array of strings).\n\n"
        f"Description: {payload.description}\n"
        f"Existing title: {payload.title or ''}\n"
        f"Existing asA: {payload.as_a or ''}\n"
        f"Existing iWant: {payload.i_want or ''}\n"
        f"Existing soThat: {payload.so_that or ''}\n"
        f"Existing acceptanceCriteria: {'; '.join(payload.acceptance_criteria or [])}"
    )


def build_request_body(model: str, prompt: str) -> Dict[str, Any]:
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "response_format": {"type": "json_object"},
    }


def parse_autofill_response(content: str) -> AutofillResult:
    """Parse the model's JSON message content into an AutofillResult."""
    # Strip markdown code fences if present
    content = content.strip()
    if content.startswith("```"):
        content = re.sub(r'^```(?:json)?\s*', '', content)
        content = re.sub(r'\s*```$', '', content)

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise SchemaError(f"json error: {e}") from e
    return AutofillResult.from_dict(data)


def extract_content(response_json: Any) -> str:
    """``choices[0].message.content``, or ``"{}"`` when absent."""
    try:
        content = response_json["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return "{}"
    return content if isinstance(content, str) else "{}"


def should_fallback(model: str, fallback_model: str, status: int, text: str) -> bool:
    """True when the failure looks like the primary model is unavailable."""
    return model != fallback_model and (status == 404 or "model" in text.lower())


class AutofillClient:
    """HTTP client for the chat-completion API."""

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        self.api_key = config.openai_api_key.strip()
        self.model = config.openai_model
        self.fallback_model = config.openai_model_fallback
        self.url = config.openai_base_url.rstrip("/") + "/chat/completions"
        self.timeout = config.openai_timeout
        self.http = session or requests

    def _post(self, model: str, prompt: str) -> requests.Response:
        try:
            return self.http.post(
                self.url,
                json=build_request_body(model, prompt),
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamError(f"openai error: {e}") from e

    def autofill(self, payload: AutofillPayload) -> AutofillResult:
        """Infer missing story fields. Raises ConfigError without an API key."""
        if not self.api_key:
            raise ConfigError(
                "OpenAI API key not configured. Set OPENAI_API_KEY in the environment."
            )

        prompt = build_prompt(payload)
        response = self._post(self.model, prompt)

        if not response.ok:
            text = response.text or ""
            if should_fallback(self.model, self.fallback_model, response.status_code, text):
                logger.warning(
                    f"Model {self.model} unavailable ({response.status_code}), "
                    f"retrying with {self.fallback_model}"
                )
                response = self._post(self.fallback_model, prompt)
            else:
                raise UpstreamError(f"OpenAI error: {text}", status=response.status_code)

        if not response.ok:
            raise UpstreamError(f"OpenAI error: {response.text or ''}", status=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise SchemaError(f"json error: {e}") from e
        return parse_autofill_response(extract_content(body))
