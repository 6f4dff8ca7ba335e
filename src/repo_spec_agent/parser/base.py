"""Unified data models for endpoints extracted from source code.

Every framework parser converts a source file into a ``ParseResult``
made of these models; the document synthesizer only ever sees this shape.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field, field_validator

from .paths import normalize_path


class Param(BaseModel):
    """A single operation parameter (path, query, header or cookie)."""

    name: str
    location: str  # path / query / header / cookie
    required: bool
    param_type: str = "string"  # string / integer / number / boolean / array
    description: str = ""  # empty when inferred
    constraints: dict = {}  # format, enum, etc.


class ResponseSpec(BaseModel):
    """A response status code detected in handler code."""

    code: str
    description: str = ""
    fields: dict[str, str] = {}  # field name -> type, when the payload shape is known


class Endpoint(BaseModel):
    """A single (method, path) operation found in a source file."""

    method: str  # GET / POST / PUT / DELETE / PATCH / OPTIONS / HEAD
    path: str  # canonical syntax: /users/{id}
    summary: str = ""
    description: str | None = None  # only set from real source documentation
    parameters: list[Param] = []
    request_body: dict | None = None  # JSON schema of the body
    responses: list[ResponseSpec] = []
    requires_auth: bool = False
    tags: list[str] = []
    handler: str | None = None

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    @field_validator("path")
    @classmethod
    def _canonical_path(cls, value: str) -> str:
        return normalize_path(value)

    @property
    def key(self) -> str:
        return f"{self.method.upper()}:{self.path}"


class ParseResult(BaseModel):
    """Everything one parser learned about one file."""

    endpoints: list[Endpoint] = Field(default_factory=list)
    has_auth: bool = False
    framework_flavor: str | None = None
    imports: list[str] = Field(default_factory=list)
    base_route: str | None = None

    def add(self, endpoint: Endpoint) -> bool:
        """Append an endpoint unless its method+path was already seen."""
        if any(e.key == endpoint.key for e in self.endpoints):
            return False
        self.endpoints.append(endpoint)
        return True


class FrameworkParser(ABC):
    """A strategy that extracts endpoints from one source file."""

    name: str = "base"

    @abstractmethod
    def parse(self, content: str, file_path: str) -> ParseResult:
        """Extract endpoints from file content. Must not raise on odd input."""
