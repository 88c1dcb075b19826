"""Generated client package scanner.

Recovers endpoints and models from the source text of a TypeScript (or
compiled JavaScript) client produced by openapi-generator. There is no
compiler here: everything is pattern matching, and anything that does not
match a known shape is skipped so the rest of the package still loads.

Recognised request styles:

* old: ``let urlPath = `/users/{id}`;`` then ``.replace(...)`` or inline
  ``${requestParameters.id}`` substitutions
* new: ``this.request({ path: `/users/{id}`.replace(...) })`` with
  ``{${"id"}}`` placeholders
* fetch-wrapper: ``url: `${this.configuration.basePath}/users/${requestParameters.id}` ``

Models are assembled from up to three sources cross-referenced by property
name: the ``XToJSON`` function (wire keys), the ``XFromJSONTyped`` function
(dates, arrays, nested model references) and the ``interface`` declaration
(declared types and optionality).
"""

from __future__ import annotations

import json
import re
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from mockseed.errors import SchemaLoadError
from mockseed.models import ClientPackage, Endpoint, ModelField, ModelSchema, ResponseTypeInfo

log = structlog.get_logger()

PRIMITIVE_TYPES = frozenset(
    {
        "string",
        "number",
        "boolean",
        "Date",
        "object",
        "any",
        "unknown",
        "void",
        "null",
        "undefined",
        "Blob",
    }
)
LIST_FIELD_PRIORITY = ("items", "data", "posts", "comments", "results", "records", "list")

# --- API file patterns -------------------------------------------------------

_CLASS_RE = re.compile(r"(?:export\s+)?class\s+(\w+Api)\b")
_JSDOC = r"/\*\*((?:(?!\*/)[\s\S])*)\*/\s*\n\s*"
_RAW_METHOD_TS_RE = re.compile(
    _JSDOC
    + r"async\s+(\w+)Raw\s*\([^)]*\)\s*:\s*"
    + r"Promise<(?:runtime\.)?ApiResponse<((?:[^<>]|<[^<>]*>)+)>>"
)
_RAW_METHOD_JS_RE = re.compile(_JSDOC + r"(?:async\s+)?(\w+)Raw\s*\([^)]*\)\s*\{")
_NEXT_MEMBER_RE = re.compile(r"\n\s*(?:/\*\*|async\s+\w+\s*\(|\w+Raw\s*\()")

_URL_PATH_RE = re.compile(r"let\s+urlPath\s*=\s*`([^`]+)`")
_REQUEST_PATH_RE = re.compile(r"path:\s*`([^`]+)`")
_BASE_URL_RE = re.compile(r"url:\s*`\$\{this\.configuration\.basePath\}([^`]*)`")
_TEMPLATE_EXPR_RE = re.compile(r"\$\{([^}]+)\}")
_NESTED_PLACEHOLDER_RE = re.compile(r"\{\$\{[\"']?(\w+)[\"']?\}\}")
_PARAM_ACCESS_RE = re.compile(r"requestParameters(?:\.(\w+)|\[[\"']?(\w+)[\"']?\])")
_BARE_IDENTIFIER_RE = re.compile(r"^\s*(\w+)\s*$")
_METHOD_RE = re.compile(r"method:\s*['\"](\w+)['\"]")
_PATH_PARAM_RE = re.compile(r"\{(\w+)\}")
_QUERY_PARAM_RE = re.compile(
    r"if\s*\(\s*requestParameters(?:\.(\w+)|\[['\"](\w+)['\"]\])\s*!==?\s*(?:undefined|null)\s*\)"
    r"\s*\{\s*queryParameters\[['\"](\w+)['\"]\]"
)
_PUSHED_QUERY_RE = re.compile(r"queryParams\.push\(\s*`(\w+)=")
_BODY_TYPE_RE = re.compile(
    r"body:\s*(\w+)ToJSON\(\s*requestParameters(?:\.(\w+)|\[['\"](\w+)['\"]\])"
)

# --- model file patterns -----------------------------------------------------

_TO_JSON_RE = re.compile(
    r"(?:export\s+)?function\s+\w+ToJSON\b[^{]*\{[\s\S]*?return\s*\{([\s\S]*?)\};?\s*\}"
)
_FROM_JSON_RE = re.compile(
    r"(?:export\s+)?function\s+\w+FromJSONTyped\b[^{]*\{[\s\S]*?return\s*\{([\s\S]*?)\};?\s*\}"
)
_TO_JSON_FIELD_RE = re.compile(
    r"^\s*['\"]?(\w+)['\"]?\s*:\s*(?:value\.(\w+)|[^,\n]*?value\.(\w+))", re.MULTILINE
)
_FROM_JSON_FIELD_RE = re.compile(r"^\s*['\"]?(\w+)['\"]?\s*:(.*)$", re.MULTILINE)
_FROM_JSON_WIRE_KEY_RE = re.compile(r"(?:json|obj)\[['\"](\w+)['\"]\]")
_FROM_JSON_REF_RE = re.compile(r"(\w+)FromJSON\(\s*(?:json|obj)\[")
_FROM_JSON_ARRAY_REF_RE = re.compile(r"\.map\(\s*(\w+)FromJSON\s*\)")
_INTERFACE_RE = re.compile(
    r"export\s+interface\s+(\w+)(?:<[^>]*>)?(?:\s+extends\s+[\w<>,\s]+)?\s*\{([\s\S]*?)\n\}"
)
_INTERFACE_FIELD_RE = re.compile(r"^\s*['\"]?(\w+)['\"]?(\?)?\s*:\s*(.+?);?\s*$")
_CONST_ENUM_RE = re.compile(r"export\s+const\s+(\w+)\s*=\s*\{([^}]+)\}\s*as\s+const")
_TS_ENUM_RE = re.compile(r"export\s+enum\s+(\w+)\s*\{([^}]+)\}")
_ENUM_VALUE_RE = re.compile(r"(\w+)\s*:\s*['\"]([^'\"]+)['\"]")
_TS_ENUM_VALUE_RE = re.compile(r"(\w+)\s*=\s*['\"]([^'\"]+)['\"]")
_LINE_COMMENT_RE = re.compile(r"/\*.*?\*/|//.*$")


@dataclass
class _FieldDraft:
    """Mutable field record while evidence from the three sources is merged."""

    name: str
    json_key: str | None = None
    type: str = "unknown"
    required: bool = False
    is_array: bool = False
    ref_type: str | None = None

    def freeze(self) -> ModelField:
        return ModelField(
            name=self.name,
            type=self.type,
            required=self.required,
            is_array=self.is_array,
            ref_type=self.ref_type,
            json_key=self.json_key if self.json_key and self.json_key != self.name else None,
        )


@dataclass(frozen=True)
class TypeInfo:
    type: str
    is_array: bool = False
    ref_type: str | None = None


def analyze_type(raw_type: str) -> TypeInfo:
    """Split a TypeScript type annotation into base type, array flag and model reference."""
    text = raw_type.strip().rstrip(";").strip()
    parts = [p.strip() for p in text.split("|")]
    non_null = [p for p in parts if p not in ("null", "undefined")]
    if len(non_null) == 1:
        text = non_null[0]

    if text.startswith("{"):
        return TypeInfo(type="object")

    is_array = False
    array_match = re.fullmatch(r"(?:Readonly)?Array<(.+)>", text) or re.fullmatch(r"(.+)\[\]", text)
    if array_match:
        is_array = True
        text = array_match.group(1).strip()
        if text.startswith("(") and text.endswith(")"):
            text = text[1:-1].strip()

    if text.startswith("{") or text.startswith("Record<") or text.startswith("Map<"):
        return TypeInfo(type="object", is_array=is_array)

    ref_type = None
    if (
        text not in PRIMITIVE_TYPES
        and "|" not in text
        and "&" not in text
        and re.fullmatch(r"\w+", text)
    ):
        ref_type = text
    return TypeInfo(type=text, is_array=is_array, ref_type=ref_type)


# --- API files ---------------------------------------------------------------


def _substitute_template(path: str) -> str:
    """Turn ``${...}`` template expressions into ``{name}`` placeholders."""

    def repl(match: re.Match[str]) -> str:
        expr = match.group(1)
        access = _PARAM_ACCESS_RE.search(expr)
        if access:
            return "{" + (access.group(1) or access.group(2)) + "}"
        bare = _BARE_IDENTIFIER_RE.match(expr)
        if bare and bare.group(1) not in ("queryString", "query"):
            return "{" + bare.group(1) + "}"
        return ""

    return _TEMPLATE_EXPR_RE.sub(repl, path)


def _extract_path(body: str) -> str | None:
    old_style = _URL_PATH_RE.search(body)
    if old_style:
        return _substitute_template(_NESTED_PLACEHOLDER_RE.sub(r"{\1}", old_style.group(1)))
    new_style = _REQUEST_PATH_RE.search(body)
    if new_style:
        return _substitute_template(_NESTED_PLACEHOLDER_RE.sub(r"{\1}", new_style.group(1)))
    base_url = _BASE_URL_RE.search(body)
    if base_url:
        return _substitute_template(base_url.group(1)) or "/"
    return None


def _summary(jsdoc: str, fallback: str) -> str:
    lines = [re.sub(r"^\s*\*\s?", "", line).strip() for line in jsdoc.splitlines()]
    lines = [line for line in lines if line and not line.startswith("@")]
    return lines[-1] if lines else fallback


def _method_body(content: str, start: int) -> str:
    following = _NEXT_MEMBER_RE.search(content, start)
    return content[start : following.start() if following else len(content)]


def parse_api_source(content: str, file_name: str) -> list[Endpoint]:
    """Extract endpoints from one generated ``*Api.ts``/``*Api.js`` file.

    Methods whose body has no recognisable request path are skipped.
    """
    is_js = file_name.endswith(".js")
    class_match = _CLASS_RE.search(content)
    api_class_name = class_match.group(1) if class_match else re.sub(r"\.(ts|js)$", "", file_name)

    method_re = _RAW_METHOD_JS_RE if is_js else _RAW_METHOD_TS_RE
    endpoints: list[Endpoint] = []
    for match in method_re.finditer(content):
        jsdoc, operation_id = match.group(1), match.group(2)
        response_type = "unknown" if is_js else match.group(3).strip()
        body = _method_body(content, match.end())

        path = _extract_path(body)
        if not path:
            log.debug(
                "skipping method without request path", api=api_class_name, operation=operation_id
            )
            continue

        method_match = _METHOD_RE.search(body)
        query_params = [
            qm.group(3) or qm.group(1) or qm.group(2) for qm in _QUERY_PARAM_RE.finditer(body)
        ]
        query_params.extend(_PUSHED_QUERY_RE.findall(body))
        body_match = _BODY_TYPE_RE.search(body)

        endpoints.append(
            Endpoint(
                path=path,
                method=(method_match.group(1) if method_match else "GET").upper(),
                operation_id=operation_id,
                api_class_name=api_class_name,
                summary=_summary(jsdoc, operation_id),
                path_params=tuple(_PATH_PARAM_RE.findall(path)),
                query_params=tuple(dict.fromkeys(query_params)),
                request_body_type=body_match.group(1) if body_match else None,
                response_type=response_type,
            )
        )
    return endpoints


# --- model files -------------------------------------------------------------


def parse_enums(content: str) -> dict[str, tuple[str, ...]]:
    """Collect every ``as const`` object and ``enum`` declared in a file, by name."""
    enums: dict[str, tuple[str, ...]] = {}
    for match in _CONST_ENUM_RE.finditer(content):
        values = tuple(v for _, v in _ENUM_VALUE_RE.findall(match.group(2)))
        if values:
            enums[match.group(1)] = values
    for match in _TS_ENUM_RE.finditer(content):
        values = tuple(v for _, v in _TS_ENUM_VALUE_RE.findall(match.group(2)))
        if values:
            enums.setdefault(match.group(1), values)
    return enums


def parse_inline_enums(content: str, file_name: str) -> list[ModelSchema]:
    """Enums declared next to a record, such as v7's ``UserStatusEnum``.

    The file's own model is left to ``parse_model_source``.
    """
    model_name = re.sub(r"\.(ts|js)$", "", file_name)
    return [
        ModelSchema(name=name, enum_values=values)
        for name, values in parse_enums(content).items()
        if name != model_name
    ]


def _close_type(raw_type: str) -> str:
    """Stand in for a member type whose inline object continues on later lines."""
    text = raw_type.strip()
    if text.count("{") <= text.count("}"):
        return raw_type
    if re.match(r"(?:Readonly)?Array<\s*\{", text):
        return "Array<{}>"
    return "{}"


def _interface_fields(body: str) -> Iterable[tuple[str, bool, str]]:
    """Yield ``(name, optional, raw_type)`` for top-level interface members."""
    depth = 0
    for raw_line in body.splitlines():
        line = _LINE_COMMENT_RE.sub("", raw_line)
        if not line.strip() or line.strip().startswith("*"):
            continue
        if depth == 0:
            match = _INTERFACE_FIELD_RE.match(line)
            if match:
                yield match.group(1), match.group(2) == "?", _close_type(match.group(3))
        depth += line.count("{") - line.count("}")
        depth = max(depth, 0)


def parse_model_source(content: str, file_name: str) -> ModelSchema | None:
    """Extract one model (record or enum) from a generated model file.

    Returns None when the file declares nothing recognisable.
    """
    model_name = re.sub(r"\.(ts|js)$", "", file_name)

    if not re.search(rf"export\s+interface\s+{re.escape(model_name)}\b", content):
        values = parse_enums(content).get(model_name)
        if values:
            return ModelSchema(name=model_name, enum_values=values)

    drafts: dict[str, _FieldDraft] = {}
    wire_keys: dict[str, str] = {}

    to_json = _TO_JSON_RE.search(content)
    if to_json:
        for fm in _TO_JSON_FIELD_RE.finditer(to_json.group(1)):
            json_key, prop = fm.group(1), fm.group(2) or fm.group(3)
            if not prop:
                continue
            wire_keys[prop] = json_key
            drafts.setdefault(prop, _FieldDraft(name=prop, json_key=json_key))

    from_json = _FROM_JSON_RE.search(content)
    if from_json:
        for fm in _FROM_JSON_FIELD_RE.finditer(from_json.group(1)):
            prop, expr = fm.group(1), fm.group(2)
            wire = _FROM_JSON_WIRE_KEY_RE.search(expr)
            if wire and prop not in wire_keys:
                wire_keys[prop] = wire.group(1)
            draft = drafts.get(prop)
            if draft is None:
                if not to_json:
                    draft = _FieldDraft(name=prop, json_key=wire_keys.get(prop))
                    drafts[prop] = draft
                else:
                    continue
            if re.search(r"new\s+Date\(", expr):
                draft.type = "Date"
            if re.search(r"as\s+(?:unknown\[\]|Array)", expr):
                draft.is_array = True
            array_ref = _FROM_JSON_ARRAY_REF_RE.search(expr)
            ref = _FROM_JSON_REF_RE.search(expr)
            if array_ref:
                draft.is_array = True
                draft.ref_type = draft.type = array_ref.group(1)
            elif ref and "Array" not in ref.group(1):
                draft.ref_type = draft.type = ref.group(1)

    interface = _INTERFACE_RE.search(content)
    if interface:
        for name, optional, raw_type in _interface_fields(interface.group(2)):
            info = analyze_type(raw_type)
            draft = drafts.get(name)
            if draft is None:
                drafts[name] = _FieldDraft(
                    name=name,
                    json_key=wire_keys.get(name),
                    type=info.type,
                    required=not optional,
                    is_array=info.is_array,
                    ref_type=info.ref_type,
                )
                continue
            if draft.type == "unknown":
                draft.type = info.type
            draft.required = not optional
            draft.is_array = draft.is_array or info.is_array
            draft.ref_type = draft.ref_type or info.ref_type
    elif drafts:
        # Without declared optionality every serialized field is assumed present
        for draft in drafts.values():
            draft.required = True

    if not drafts:
        return None
    return ModelSchema(name=model_name, fields=tuple(d.freeze() for d in drafts.values()))


# --- package scanning --------------------------------------------------------


def resolve_source_dir(root: Path, configured: str) -> Path:
    """Resolve a configured source dir, falling back between ``src/`` and ``dist/``."""
    primary = root / configured
    if primary.is_dir():
        return primary
    for source, target in (("src/", "dist/"), ("dist/", "src/")):
        if configured.startswith(source):
            alternative = root / (target + configured[len(source) :])
            if alternative.is_dir():
                return alternative
    return primary


def _is_source_file(name: str) -> bool:
    if name.endswith(".d.ts") or name.startswith("index."):
        return False
    return name.endswith((".ts", ".js"))


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        log.warning("skipping unreadable client file", path=str(path), error=str(exc))
        return None


def _package_info(root: Path) -> dict[str, str | None]:
    info: dict[str, str | None] = {"name": "unknown", "version": None, "description": None}
    manifest = root / "package.json"
    if not manifest.is_file():
        return info
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        log.warning("invalid package.json", path=str(manifest), error=str(exc))
        return info
    info["name"] = data.get("name") or "unknown"
    info["version"] = data.get("version")
    info["description"] = data.get("description")
    return info


def scan_client_package(
    root: str | Path,
    *,
    apis_dir: str = "src/apis",
    models_dir: str = "src/models",
) -> ClientPackage:
    """Scan a generated client package into endpoints and models.

    Raises:
        SchemaLoadError: If the package root, or both its API and model
            directories, are missing.
    """
    root = Path(root).resolve()
    if not root.is_dir():
        raise SchemaLoadError(str(root), "package directory does not exist")

    apis_path = resolve_source_dir(root, apis_dir)
    models_path = resolve_source_dir(root, models_dir)
    if not apis_path.is_dir() and not models_path.is_dir():
        raise SchemaLoadError(str(root), f"neither {apis_dir} nor {models_dir} found (src/dist)")

    endpoints: list[Endpoint] = []
    if apis_path.is_dir():
        for path in sorted(apis_path.iterdir()):
            if not path.name.endswith(("Api.ts", "Api.js")) or not _is_source_file(path.name):
                continue
            content = _read(path)
            if content is not None:
                endpoints.extend(parse_api_source(content, path.name))

    models: dict[str, ModelSchema] = {}
    inline_enums: dict[str, ModelSchema] = {}
    if models_path.is_dir():
        for path in sorted(models_path.iterdir()):
            if not _is_source_file(path.name):
                continue
            content = _read(path)
            if content is None:
                continue
            model = parse_model_source(content, path.name)
            if model is not None:
                models[model.name] = model
            for enum in parse_inline_enums(content, path.name):
                inline_enums.setdefault(enum.name, enum)
    # A model file of the same name takes precedence over an inline declaration
    for name, enum in inline_enums.items():
        models.setdefault(name, enum)

    info = _package_info(root)
    log.info(
        "client package scanned",
        package=info["name"],
        endpoints=len(endpoints),
        models=len(models),
    )
    return ClientPackage(
        root=root,
        endpoints=tuple(endpoints),
        models=models,
        name=info["name"] or "unknown",
        version=info["version"],
        description=info["description"],
    )


@dataclass
class ClientPackageCache:
    """Scanned packages keyed by resolved root path."""

    apis_dir: str = "src/apis"
    models_dir: str = "src/models"
    _packages: dict[Path, ClientPackage] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self, root: str | Path) -> ClientPackage:
        """Return the cached scan of ``root``, scanning on first use."""
        key = Path(root).resolve()
        with self._lock:
            cached = self._packages.get(key)
        if cached is not None:
            return cached
        package = scan_client_package(key, apis_dir=self.apis_dir, models_dir=self.models_dir)
        with self._lock:
            self._packages[key] = package
        return package

    def invalidate(self, root: str | Path) -> bool:
        with self._lock:
            return self._packages.pop(Path(root).resolve(), None) is not None

    def reset(self) -> None:
        with self._lock:
            self._packages.clear()

    def __len__(self) -> int:
        return len(self._packages)


# --- response analysis -------------------------------------------------------


def extract_data_model_name(
    response_type: str, models: Mapping[str, ModelSchema]
) -> ResponseTypeInfo:
    """Find the item model behind an endpoint's declared response type."""
    response_type = response_type.strip()
    array_match = re.fullmatch(r"Array<(.+)>", response_type) or re.fullmatch(
        r"(.+)\[\]", response_type
    )
    if array_match:
        return ResponseTypeInfo(model_name=array_match.group(1).strip(), is_list=True)

    schema = models.get(response_type)
    if schema is not None and not schema.is_enum:
        for name in LIST_FIELD_PRIORITY:
            f = next((f for f in schema.fields if f.name == name and f.is_array), None)
            if f is not None and f.ref_type:
                return ResponseTypeInfo(f.ref_type, True, f.output_key, response_type)

        array_field = next((f for f in schema.fields if f.is_array and f.ref_type), None)
        if array_field is not None:
            return ResponseTypeInfo(
                array_field.ref_type or "", True, array_field.output_key, response_type
            )

        data_field = next((f for f in schema.fields if f.name == "data" and not f.is_array), None)
        if data_field is not None and data_field.ref_type:
            return ResponseTypeInfo(data_field.ref_type, False, None, response_type)

    return ResponseTypeInfo(model_name=response_type, is_list=False)


def _template_regex(template: str) -> re.Pattern[str]:
    parts = _PATH_PARAM_RE.split(template)
    pattern = "".join(re.escape(p) if i % 2 == 0 else "([^/]+)" for i, p in enumerate(parts))
    return re.compile(f"^{pattern}$")


def _specificity(path: str) -> int:
    segments = [s for s in path.split("/") if s]
    return len(segments) * 100 - len(_PATH_PARAM_RE.findall(path)) * 10


def match_endpoint(
    endpoints: Iterable[Endpoint], method: str, path: str
) -> tuple[Endpoint, dict[str, str]] | None:
    """Match a concrete request path against endpoint templates.

    Literal segments beat placeholders: templates are tried from most to
    least specific.
    """
    method = method.upper()
    candidates = sorted(
        (e for e in endpoints if e.method == method),
        key=lambda e: _specificity(e.path),
        reverse=True,
    )
    for endpoint in candidates:
        match = _template_regex(endpoint.path).match(path.rstrip("/") or "/")
        if match:
            names = _PATH_PARAM_RE.findall(endpoint.path)
            return endpoint, dict(zip(names, match.groups(), strict=True))
    return None

