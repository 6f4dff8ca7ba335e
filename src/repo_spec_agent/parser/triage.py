"""Content triage: a cheap framework-agnostic pass over one file."""

import re

from pydantic import BaseModel, Field

from repo_spec_agent.config import DEFAULT_CONFIG, AnalyzerConfig

from .base import Endpoint

DOC_BLOCK = re.compile(r"/\*\*(?:(?!\*/).)*?@(?:swagger|openapi)\b.*?\*/", re.DOTALL)
# A bare ``http`` server has no route calls, only url comparisons.
SOCKET_SERVER = re.compile(r"\bcreateServer\s*\(")

# Applied whatever the detected framework. Member calls must use an absolute
# path so that ``map.get('key')`` and friends are not taken for routes.
UNIVERSAL_ROUTE_PATTERNS = (
    re.compile(r"\b\w+\.(get|post|put|delete|patch)\s*\(\s*['\"`](/[^'\"`]*)['\"`]", re.IGNORECASE),
    re.compile(r"Route::(get|post|put|delete|patch)\s*\(\s*['\"`]([^'\"`]+)['\"`]", re.IGNORECASE),
    re.compile(r"@(Get|Post|Put|Delete|Patch)\s*\(\s*['\"`]([^'\"`]*)['\"`]"),
)


class TriageResult(BaseModel):
    has_doc_comments: bool = False
    doc_comment_blocks: int = 0
    is_api_file: bool = False
    endpoints: list[Endpoint] = Field(default_factory=list)

    @property
    def relevant(self) -> bool:
        return self.is_api_file or self.has_doc_comments


def count_doc_blocks(content: str) -> int:
    return len(DOC_BLOCK.findall(content))


def triage(content: str, framework: str | None = None, config: AnalyzerConfig = DEFAULT_CONFIG) -> TriageResult:
    """Look for documentation comments, route-looking code and raw endpoints."""
    result = TriageResult()

    blocks = count_doc_blocks(content)
    result.has_doc_comments = blocks > 0
    result.doc_comment_blocks = blocks

    signature = config.frameworks.get(framework) if framework else None
    signatures = [signature] if signature else list(config.frameworks.values())
    result.is_api_file = any(
        pattern.search(content) for sig in signatures for pattern in sig.code_patterns
    )
    if signature is None and SOCKET_SERVER.search(content):
        result.is_api_file = True

    seen = set()
    for pattern in UNIVERSAL_ROUTE_PATTERNS:
        for match in pattern.finditer(content):
            endpoint = Endpoint(method=match.group(1), path=match.group(2))
            if endpoint.key in seen:
                continue
            seen.add(endpoint.key)
            result.endpoints.append(endpoint)

    if result.endpoints:
        result.is_api_file = True
    return result
