"""LLM client wrapper around litellm.

Any model litellm supports can back the enrichment step; the provider's API
key is read by litellm from the usual environment variables.
"""

import json
import logging
import re

from litellm import completion

from repo_spec_agent.errors import EnrichmentError

DEFAULT_MODEL = "claude-sonnet-4-20250514"

logger = logging.getLogger("repo-spec-agent.llm")

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def extract_json(text: str) -> dict:
    """The outermost JSON object in a model reply, code fences or not."""
    match = _JSON_OBJECT.search(text or "")
    if not match:
        raise EnrichmentError("The model reply contains no JSON object")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise EnrichmentError(f"The model reply is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise EnrichmentError("The model reply is not a JSON object")
    return data


class LlmClient:
    """Wrapper for LLM API calls via litellm."""

    def __init__(self, model: str | None = None, temperature: float = 0.2):
        self.model = model or DEFAULT_MODEL
        self.temperature = temperature

    def call(self, system: str, user: str) -> str:
        """Send a system+user message to the LLM and return the response text."""
        logger.debug("Calling %s (%d prompt chars)", self.model, len(system) + len(user))
        response = completion(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=self.temperature,
        )
        content = response.choices[0].message.content
        if not content:
            raise EnrichmentError(f"{self.model} returned an empty reply")
        return content

    def call_json(self, system: str, user: str) -> dict:
        return extract_json(self.call(system, user))
