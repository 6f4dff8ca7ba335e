"""Optional AI enrichment of synthesized documents.

Operations are sent to the model in small chunks with a fixed pause between
calls. A chunk that fails for any reason leaves its operations as they were;
enrichment never makes a document worse than the synthesized one.
"""

import copy
import json
import logging
import time
from pathlib import Path

from repo_spec_agent.config import DEFAULT_CONFIG, HTTP_METHODS, AnalyzerConfig
from repo_spec_agent.context import ProjectContext, RelatedModel
from repo_spec_agent.llm import LlmClient
from repo_spec_agent.parser.base import ParseResult

PROMPTS_DIR = Path(__file__).parent / "prompts"

logger = logging.getLogger("repo-spec-agent.enrichment")


def _operation_keys(spec: dict) -> list[tuple[str, str]]:
    return [
        (method, path)
        for path, item in (spec.get("paths") or {}).items()
        if isinstance(item, dict)
        for method in item
        if isinstance(method, str) and method.lower() in HTTP_METHODS
    ]


def _json_media(container: dict) -> dict | None:
    content = container.get("content") if isinstance(container, dict) else None
    media = content.get("application/json") if isinstance(content, dict) else None
    return media if isinstance(media, dict) else None


def apply_enrichment(operation: dict, data: dict):
    """Copy the model's fields for one operation onto it, in place."""
    if isinstance(data.get("summary"), str) and data["summary"].strip():
        operation["summary"] = data["summary"].strip()
    if isinstance(data.get("description"), str) and data["description"].strip():
        operation["description"] = data["description"].strip()

    media = _json_media(operation.get("requestBody") or {})
    if media is not None and data.get("requestExample"):
        media["example"] = data["requestExample"]

    responses = operation.setdefault("responses", {})
    success = data.get("successResponse")
    if isinstance(success, dict):
        code = str(success.get("code") or "200")
        entry = responses.setdefault(code, {
            "description": success.get("description") or "Operación exitosa",
            "content": {"application/json": {"schema": {"type": "object"}}},
        })
        media = _json_media(entry)
        if media is not None and success.get("example") is not None:
            media["example"] = success["example"]

    for error in data.get("errorResponses") or []:
        if not isinstance(error, dict) or not error.get("code"):
            continue
        entry = responses.get(str(error["code"]))
        media = _json_media(entry) if entry else None
        if media is not None and error.get("example") is not None:
            media["example"] = error["example"]


class SpecEnricher:
    """Asks an LLM to fill in summaries, descriptions and examples."""

    def __init__(self, client: LlmClient | None = None, config: AnalyzerConfig = DEFAULT_CONFIG):
        self.config = config
        self.client = client or LlmClient(model=config.settings.ai_model)

    def _system_prompt(self) -> str:
        return (PROMPTS_DIR / "enrich.md").read_text(encoding="utf-8")

    def _user_prompt(self, spec: dict, keys: list[tuple[str, str]], source: str,
                     context: ProjectContext | None, models: list[RelatedModel]) -> str:
        endpoints = []
        for method, path in keys:
            operation = spec["paths"][path][method]
            endpoints.append({
                "method": method.upper(),
                "path": path,
                "summary": operation.get("summary"),
                "params": operation.get("parameters", []),
                "requiresAuth": "security" in operation,
            })
        parts = []
        if context is not None:
            parts.append(
                "CONTEXTO GLOBAL:\n"
                f"- Proyecto: {context.name}\n"
                f"- Framework: {context.framework}\n"
                f"- Dependencias clave: {', '.join(context.dependencies) or 'N/A'}\n"
                f"- Estructura: {context.structure or 'N/A'}"
            )
        if source:
            parts.append(f"CÓDIGO FUENTE:\n```\n{source[: self.config.settings.ai_context_chars]}\n```")
        if models:
            parts.append("MODELOS DE DATOS DEL PROYECTO:\n" + "\n".join(
                f"--- {m.name}{' (importado en este archivo)' if m.prioritized else ''} ---\n{m.content}"
                for m in models
            ))
        parts.append("ENDPOINTS A DOCUMENTAR:\n" + json.dumps(endpoints, ensure_ascii=False, indent=2))
        return "\n\n".join(parts)

    def enrich(self, spec: dict, result: ParseResult | None = None, context: ProjectContext | None = None,
               source: str = "", models: list[RelatedModel] | None = None) -> dict:
        """Return an enriched copy of ``spec``; chunks that fail are left alone."""
        if result is not None and result.framework_flavor and context is not None and context.framework == "Unknown":
            context = context.model_copy(update={"framework": result.framework_flavor})
        keys = _operation_keys(spec)
        if not keys:
            return spec
        enriched = copy.deepcopy(spec)
        size = self.config.settings.ai_chunk_size
        chunks = [keys[i: i + size] for i in range(0, len(keys), size)]
        system = self._system_prompt()

        for index, chunk in enumerate(chunks):
            if index:
                time.sleep(self.config.settings.ai_delay_s)
            try:
                reply = self.client.call_json(system, self._user_prompt(enriched, chunk, source, context, models or []))
            except Exception as exc:
                logger.warning("Enrichment of %d operations failed, keeping them as synthesized: %s", len(chunk), exc)
                continue
            wanted = {f"{method.upper()} {path}": (method, path) for method, path in chunk}
            for key, data in reply.items():
                if key not in wanted or not isinstance(data, dict):
                    continue
                method, path = wanted[key]
                apply_enrichment(enriched["paths"][path][method], data)
        return enriched
