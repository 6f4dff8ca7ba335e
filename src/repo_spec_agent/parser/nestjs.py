"""NestJS controllers: ``@Controller('prefix')`` classes with verb decorators."""

import re

from repo_spec_agent.config import BODY_METHODS

from .base import Endpoint, FrameworkParser, ParseResult, ResponseSpec
from .fields import infer_field_type, merge_params, path_params, query_params, schema_from_fields
from .paths import join_paths
from .text import block_end, docblock_before, matching_close, quoted

CONTROLLER = re.compile(r"@Controller\s*\(")
VERB_DECORATOR = re.compile(r"@(Get|Post|Put|Patch|Delete|Options|Head|All)\s*\(")
METHOD_NAME = re.compile(r"(?:public\s+|async\s+)*(\w+)\s*\(")
NEXT_DECORATOR = re.compile(r"\s*@(\w+)\s*\(")
# End of the previous member: a statement, a closed block or the class opening.
MEMBER_BOUNDARY = re.compile(r"(?:;|\}(?!\s*\))|(?<!\()\{)[ \t]*\n")
BODY_PARAM = re.compile(r"@Body\s*\(\s*(?:['\"](\w+)['\"])?\s*\)\s*(\w+)\s*:\s*(\w+)")
QUERY_PARAM = re.compile(r"@Query\s*\(\s*['\"](\w+)['\"]\s*\)")
QUERY_DTO = re.compile(r"@Query\s*\(\s*\)\s*\w+\s*:\s*(\w+)")
API_OPERATION = re.compile(r"@ApiOperation\s*\(\s*\{[^}]*summary\s*:\s*(['\"`])([^'\"`]+)\1")
HTTP_CODE = re.compile(r"@HttpCode\s*\(\s*(?:HttpStatus\.(\w+)|(\d{3}))\s*\)")
THROWN = re.compile(r"throw\s+new\s+(\w+Exception)\s*\(")
FILE_AUTH = re.compile(r"@UseGuards\s*\(|AuthGuard|JwtAuthGuard|@ApiBearerAuth")

HTTP_STATUS = {
    "OK": "200",
    "CREATED": "201",
    "ACCEPTED": "202",
    "NO_CONTENT": "204",
}
EXCEPTION_CODES = {
    "BadRequestException": "400",
    "UnauthorizedException": "401",
    "ForbiddenException": "403",
    "NotFoundException": "404",
    "ConflictException": "409",
    "UnprocessableEntityException": "422",
    "InternalServerErrorException": "500",
}
_DTO_FIELD = re.compile(r"^\s*(?:readonly\s+)?(\w+)(\?)?\s*[!]?:\s*([\w\[\]<>]+)", re.MULTILINE)
_TS_TYPES = {"number": "number", "boolean": "boolean", "string": "string", "Date": "string"}


def dto_fields(content: str, class_name: str) -> tuple[dict[str, str], list[str]]:
    """Typed fields of a DTO class declared in the same file."""
    match = re.search(r"class\s+" + re.escape(class_name) + r"\b[^{]*\{", content)
    if not match:
        return {}, []
    body = content[match.end(): block_end(content, match.end() - 1) - 1]
    fields, required = {}, []
    for name, optional, ts_type in _DTO_FIELD.findall(body):
        if ts_type.endswith("[]") or ts_type.startswith("Array<"):
            json_type = "array"
        else:
            json_type = _TS_TYPES.get(ts_type, infer_field_type(name))
        fields[name] = json_type
        if not optional:
            required.append(name)
    return fields, required


class NestjsParser(FrameworkParser):
    name = "nestjs"

    def _prefix(self, content: str) -> tuple[str, int]:
        match = CONTROLLER.search(content)
        if not match:
            return "", -1
        close = matching_close(content, match.end() - 1)
        args = content[match.end(): close] if close != -1 else ""
        prefix = quoted(args.split(",")[0]) if args.strip() else None
        if prefix is None:
            named = re.search(r"path\s*:\s*['\"]([^'\"]*)['\"]", args)
            prefix = named.group(1) if named else ""
        return prefix, match.start()

    def parse(self, content: str, file_path: str) -> ParseResult:
        result = ParseResult(framework_flavor=self.name)
        prefix, controller_at = self._prefix(content)
        if controller_at == -1:
            return result
        result.has_auth = bool(FILE_AUTH.search(content))
        class_decl = re.compile(r"\bclass\s+\w+").search(content, controller_at)
        class_at = class_decl.start() if class_decl else controller_at
        class_guarded = "@UseGuards" in content[max(0, controller_at - 300): class_at]

        for match in VERB_DECORATOR.finditer(content, controller_at):
            verb = match.group(1).upper()
            if verb == "ALL":
                continue
            close = matching_close(content, match.end() - 1)
            if close == -1:
                continue
            route = quoted(content[match.end(): close]) if content[match.end(): close].strip() else ""
            if route is None:
                continue

            # Decorators stacked below the verb decorator, down to the method.
            cursor = close + 1
            while True:
                following = NEXT_DECORATOR.match(content, cursor)
                end = matching_close(content, following.end() - 1) if following else -1
                if end == -1:
                    break
                cursor = end + 1
            method_match = METHOD_NAME.search(content, cursor)
            if not method_match:
                continue
            signature_end = matching_close(content, method_match.end() - 1)
            signature = content[method_match.end(): signature_end] if signature_end != -1 else ""
            body_end = block_end(content, max(signature_end, method_match.end()))
            body = content[method_match.end(): body_end]

            # ... and above it, back to the end of the previous member.
            lead_start = max(0, match.start() - 600)
            boundaries = list(MEMBER_BOUNDARY.finditer(content, lead_start, match.start()))
            member_start = boundaries[-1].end() if boundaries else lead_start
            stacked = content[member_start: cursor]
            doc_end = content.rfind("*/", member_start, match.start())

            full_path = join_paths(prefix, route)
            summary = API_OPERATION.search(stacked)
            docs = docblock_before(content, doc_end + 2) if doc_end != -1 else None

            codes = []
            http_code = HTTP_CODE.search(stacked)
            if http_code:
                codes.append(HTTP_STATUS.get(http_code.group(1), "200") if http_code.group(1) else http_code.group(2))
            for exception in THROWN.findall(body):
                code = EXCEPTION_CODES.get(exception)
                if code and code not in codes:
                    codes.append(code)

            request_body = None
            if verb in BODY_METHODS:
                body_param = BODY_PARAM.search(signature)
                if body_param:
                    if body_param.group(1):
                        request_body = schema_from_fields([body_param.group(1)])
                    else:
                        fields, required = dto_fields(content, body_param.group(3))
                        request_body = schema_from_fields(fields, required=required) if fields else None

            queries = QUERY_PARAM.findall(signature)
            dto = QUERY_DTO.search(signature)
            if dto:
                queries += [name for name in dto_fields(content, dto.group(1))[0] if name not in queries]

            requires_auth = class_guarded or "@UseGuards" in stacked
            result.add(Endpoint(
                method=verb,
                path=full_path,
                summary=(summary.group(2) if summary else docs) or "",
                handler=method_match.group(1),
                parameters=merge_params(path_params(full_path), query_params(queries)),
                request_body=request_body,
                responses=[ResponseSpec(code=code) for code in codes],
                requires_auth=requires_auth,
            ))
        if any(e.requires_auth for e in result.endpoints):
            result.has_auth = True
        return result

