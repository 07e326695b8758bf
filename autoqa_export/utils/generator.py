"""Generate ``@playwright/test`` source from IR records.

Each supported tool has one pure generator ``(record, context) -> GeneratedCode``.
``toolName`` alone decides which generator runs; step prose is only used to
recover template variables, never to guess the action.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional
from urllib.parse import urlsplit

from autoqa_export.config import ENV_VAR_PREFIX
from autoqa_export.models.action_record import (
    ActionRecord,
    LiteralFillValue,
    TemplateVarFillValue,
    ToolName,
)
from autoqa_export.models.spec import MarkdownSpec, MarkdownSpecStep
from autoqa_export.utils.naming import (
    NameRegistry,
    deduplicate_fragment,
    identifier_for_element,
    identifier_for_text,
    sanitize_variable_name,
    to_camel_case,
)
from autoqa_export.utils.redact import redact_step_text
from autoqa_export.utils.template_vars import (
    BASE_URL_VAR,
    LOGIN_BASE_URL_VAR,
    RawSpecVars,
    StepVarInfo,
    env_var_identifier,
    exact_template_var,
    extract_template_vars,
    parse_raw_spec_vars,
    recover_template_values,
    template_matches,
    template_to_ts_literal,
)

logger = logging.getLogger(__name__)

INDENT = "  "
DEFAULT_ENV_HELPER_IMPORT = "../helpers/autoqa-env"

_TEMPLATE_VAR_NAME_PATTERN = re.compile(r"^[A-Z0-9_]+$")
_NAVIGATE_PATTERNS = (
    re.compile(r"^navigate\s+to\s+(\S+)", re.IGNORECASE),
    re.compile(r"^导航到\s+(\S+)"),
    re.compile(r"^go\s+to\s+(\S+)", re.IGNORECASE),
)
_URL_VAR_WITH_SUFFIX_PATTERN = re.compile(r"^\{\{\s*(BASE_URL|LOGIN_BASE_URL)\s*\}\}\s*(.*)$")
_QUOTED_SEGMENT_PATTERN = re.compile(r"'([^']+)'|\"([^\"]+)\"|“([^”]+)”|‘([^’]+)’|「([^」]+)」")
_DEFAULT_PORTS = {"http": 80, "https": 443}

# Bindings every generated file declares or receives from the test runner.
FILE_LEVEL_NAMES = ("test", "expect", "page", "loadEnvFiles", "getEnvVar", "baseUrl", "loginBaseUrl")


@dataclass
class StepNeeds:
    """File-level declarations a piece of generated code depends on."""

    env_vars: set[str] = field(default_factory=set)
    login_base_url: bool = False

    def merge(self, other: "StepNeeds") -> None:
        self.env_vars.update(other.env_vars)
        self.login_base_url = self.login_base_url or other.login_base_url


@dataclass
class GeneratedCode:
    code: str = ""
    error: Optional[str] = None
    needs: StepNeeds = field(default_factory=StepNeeds)


@dataclass(frozen=True)
class GeneratorContext:
    base_url: str
    login_base_url: Optional[str] = None
    step_vars: Optional[StepVarInfo] = None
    # Rendered step text, as the agent saw it.
    step_text: Optional[str] = None
    env_identifiers: Mapping[str, str] = field(default_factory=dict)

    def identifier(self, var_name: str) -> str:
        """Binding declared for ``{{var_name}}`` in this file."""
        return self.env_identifiers.get(var_name) or env_var_identifier(var_name)


@dataclass
class TextExpression:
    """A TS expression for asserted text plus the placeholders it stands for."""

    code: str
    var_names: list[str] = field(default_factory=list)
    needs: StepNeeds = field(default_factory=StepNeeds)

    @property
    def is_symbolic(self) -> bool:
        return bool(self.var_names)


@dataclass
class ScriptContent:
    content: str
    errors: list[str] = field(default_factory=list)
    env_vars: list[str] = field(default_factory=list)
    needs_login_base_url: bool = False


def escape_string(value: str) -> str:
    """Escape ``value`` for a single-quoted TS string literal."""
    return (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def _quote(value: str) -> str:
    return f"'{escape_string(value)}'"


def _needs_for_var(name: str) -> StepNeeds:
    if name == BASE_URL_VAR:
        return StepNeeds()
    if name == LOGIN_BASE_URL_VAR:
        return StepNeeds(login_base_url=True)
    return StepNeeds(env_vars={name})


# --- Navigation ---------------------------------------------------------------


def parse_navigate_step(step_text: str) -> Optional[str]:
    """Target of a ``Navigate to X`` style step, as written in the spec."""
    for pattern in _NAVIGATE_PATTERNS:
        match = pattern.match(step_text.strip())
        if match:
            return match.group(1)
    return None


def _origin(url: str) -> Optional[tuple[str, str, Optional[int]]]:
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None
    scheme = parts.scheme.lower()
    return scheme, parts.hostname.lower(), port or _DEFAULT_PORTS.get(scheme)


def extract_relative_from_absolute(url: str, base_url: Optional[str]) -> Optional[str]:
    """Path, query and fragment of ``url`` when it shares ``base_url``'s origin."""
    if not base_url:
        return None
    url_origin = _origin(url)
    if url_origin is None or url_origin != _origin(base_url):
        return None

    parts = urlsplit(url)
    relative = parts.path or "/"
    if parts.query:
        relative += f"?{parts.query}"
    if parts.fragment:
        relative += f"#{parts.fragment}"
    return relative


def _goto(target: str) -> str:
    return f"{INDENT}await page.goto({target});"


def _goto_resolved(path: str, base_var: str) -> str:
    return _goto(f"new URL({_quote(path)}, {base_var}).toString()")


def build_navigate_code_from_url(url: str, context: GeneratorContext) -> GeneratedCode:
    if url.startswith("http"):
        relative = extract_relative_from_absolute(url, context.base_url)
        if relative is not None:
            return GeneratedCode(code=_goto_resolved(relative, "baseUrl"))

        relative = extract_relative_from_absolute(url, context.login_base_url)
        if relative is not None:
            return GeneratedCode(
                code=_goto_resolved(relative, "loginBaseUrl"),
                needs=StepNeeds(login_base_url=True),
            )

        return GeneratedCode(code=_goto(_quote(url)))

    return GeneratedCode(code=_goto_resolved(url, "baseUrl"))


def build_navigate_code_from_raw(raw_url: str, context: GeneratorContext) -> GeneratedCode:
    exact = exact_template_var(raw_url)
    if exact:
        return GeneratedCode(code=_goto(context.identifier(exact)), needs=_needs_for_var(exact))

    suffix_match = _URL_VAR_WITH_SUFFIX_PATTERN.match(raw_url)
    if suffix_match:
        var_name, suffix = suffix_match.group(1), suffix_match.group(2).strip()
        if not extract_template_vars(suffix):
            return GeneratedCode(
                code=_goto_resolved(suffix, context.identifier(var_name)),
                needs=_needs_for_var(var_name),
            )

    if not extract_template_vars(raw_url):
        return build_navigate_code_from_url(raw_url, context)

    literal = template_to_ts_literal(raw_url, context.identifier)
    return GeneratedCode(
        code=_goto(literal.code),
        needs=StepNeeds(env_vars=set(literal.env_vars), login_base_url=literal.uses_login_base_url),
    )


def generate_navigate_code(record: ActionRecord, context: GeneratorContext) -> GeneratedCode:
    if context.step_vars and context.step_vars.raw_text:
        raw_url = parse_navigate_step(context.step_vars.raw_text)
        if raw_url:
            return build_navigate_code_from_raw(raw_url, context)

    url = record.tool_input.get("url")
    if not isinstance(url, str) or not url:
        return GeneratedCode(error="Navigate missing url in IR")
    return build_navigate_code_from_url(url, context)


# --- Element actions ----------------------------------------------------------


def generate_click_code(record: ActionRecord, context: GeneratorContext) -> GeneratedCode:
    if not record.has_valid_chosen_locator():
        return GeneratedCode(error="Click missing valid chosenLocator")
    return GeneratedCode(code=f"{INDENT}await {record.locator_code}.click();")


def generate_select_code(record: ActionRecord, context: GeneratorContext) -> GeneratedCode:
    if not record.has_valid_chosen_locator():
        return GeneratedCode(error="Select missing valid chosenLocator")

    label = record.tool_input.get("label")
    if not isinstance(label, str) or not label:
        return GeneratedCode(error="Select missing label in IR")
    return GeneratedCode(code=f"{INDENT}await {record.locator_code}.selectOption({{ label: {_quote(label)} }});")


def generate_fill_code(record: ActionRecord, context: GeneratorContext) -> GeneratedCode:
    if not record.has_valid_chosen_locator():
        return GeneratedCode(error="Fill missing valid chosenLocator")

    locator = record.locator_code
    fill_value = record.fill_value

    if isinstance(fill_value, TemplateVarFillValue):
        var_name = fill_value.name.strip().upper()
        if not _TEMPLATE_VAR_NAME_PATTERN.match(var_name):
            return GeneratedCode(error=f"Fill has invalid template variable name at step {record.step_index}")
        return GeneratedCode(
            code=f"{INDENT}await {locator}.fill({context.identifier(var_name)});",
            needs=_needs_for_var(var_name),
        )

    if isinstance(fill_value, LiteralFillValue):
        return GeneratedCode(code=f"{INDENT}await {locator}.fill({_quote(fill_value.value)});")

    # Redacted or never captured: the raw spec is the only safe source left.
    if context.step_vars and context.step_vars.vars:
        var_name = context.step_vars.vars[0]
        return GeneratedCode(
            code=f"{INDENT}await {locator}.fill({context.identifier(var_name)});",
            needs=_needs_for_var(var_name),
        )

    reason = "fill value was redacted" if fill_value is not None else "fill value not captured"
    return GeneratedCode(code=f"{INDENT}await {locator}.fill(''); // TODO: {reason}")


def generate_assert_element_code(record: ActionRecord, context: GeneratorContext) -> GeneratedCode:
    if not record.has_valid_chosen_locator():
        return GeneratedCode(error="AssertElement missing valid chosenLocator")

    name = identifier_for_element(record.fingerprint)
    return GeneratedCode(
        code="\n".join(
            [
                f"{INDENT}const {name} = {record.locator_code};",
                f"{INDENT}await expect({name}).toHaveCount(1);",
                f"{INDENT}await expect({name}).toBeVisible();",
            ]
        )
    )


# --- Text assertions ----------------------------------------------------------


def _quoted_segments(text: str) -> list[str]:
    return [next(group for group in match.groups() if group) for match in _QUOTED_SEGMENT_PATTERN.finditer(text)]


def _symbolic_expression(template: str, context: GeneratorContext) -> TextExpression:
    var_names = extract_template_vars(template)
    exact = exact_template_var(template)
    if exact:
        return TextExpression(code=context.identifier(exact), var_names=var_names, needs=_needs_for_var(exact))

    literal = template_to_ts_literal(template, context.identifier)
    return TextExpression(
        code=literal.code,
        var_names=var_names,
        needs=StepNeeds(env_vars=set(literal.env_vars), login_base_url=literal.uses_login_base_url),
    )


def _template_from_values(text: str, values: dict[str, str]) -> Optional[str]:
    """``text`` with every recovered placeholder value put back as ``{{NAME}}``."""
    names_by_value: dict[str, str] = {}
    for name, value in values.items():
        if value.strip():
            names_by_value.setdefault(value, name)
    if not names_by_value:
        return None

    pattern = "|".join(re.escape(value) for value in sorted(names_by_value, key=len, reverse=True))
    template, count = re.subn(pattern, lambda match: f"{{{{{names_by_value[match.group(0)]}}}}}", text)
    return template if count else None


def resolve_text_expression(text: str, context: GeneratorContext) -> TextExpression:
    """Choose the TS expression for asserted text.

    A placeholder in the raw step wins over the recorded (rendered) text, so a
    value that came from ``{{VAR}}`` is referenced rather than embedded.
    """
    literal = TextExpression(code=_quote(text))
    step_vars = context.step_vars
    if not step_vars or not step_vars.raw_text:
        return literal

    raw_text = step_vars.raw_text
    exact = exact_template_var(raw_text)
    if exact and exact not in (BASE_URL_VAR, LOGIN_BASE_URL_VAR):
        return _symbolic_expression(raw_text, context)

    segments = _quoted_segments(raw_text)
    if text in segments:
        return literal

    for candidate in [*segments, raw_text]:
        if extract_template_vars(candidate) and template_matches(candidate, text):
            return _symbolic_expression(candidate, context)

    # Placeholder in unquoted prose: line the raw step up with its rendered form.
    template = _template_from_values(text, recover_template_values(raw_text, context.step_text))
    if template is not None:
        return _symbolic_expression(template, context)

    return literal


def _text_binding_name(text: str, expression: TextExpression) -> str:
    if expression.is_symbolic:
        base = to_camel_case("-".join(expression.var_names).lower())
        return sanitize_variable_name(f"{base}Text")
    return identifier_for_text(text)


def generate_assert_text_code(record: ActionRecord, context: GeneratorContext) -> GeneratedCode:
    text = record.tool_input.get("text")
    if not isinstance(text, str) or not text:
        return GeneratedCode(error="AssertText missing text in IR")

    expression = resolve_text_expression(text, context)
    visible_nth = record.tool_input.get("visibleNth")

    if isinstance(visible_nth, int) and not isinstance(visible_nth, bool) and visible_nth >= 0:
        name = _text_binding_name(text, expression)
        code = "\n".join(
            [
                f"{INDENT}const {name} = page.getByText({expression.code});",
                f"{INDENT}await expect({name}.nth({visible_nth})).toBeVisible();",
            ]
        )
    else:
        code = f"{INDENT}await expect(page.getByText({expression.code}).first()).toBeVisible();"

    return GeneratedCode(code=code, needs=expression.needs)


# --- Runtime-only actions -----------------------------------------------------


def generate_wait_code(record: ActionRecord, context: GeneratorContext) -> GeneratedCode:
    seconds = record.tool_input.get("seconds")
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)) or seconds < 0:
        return GeneratedCode(error="Wait missing valid seconds in IR")
    milliseconds = int(math.floor(seconds * 1000 + 0.5))
    return GeneratedCode(code=f"{INDENT}await page.waitForTimeout({milliseconds});")


def generate_scroll_code(record: ActionRecord, context: GeneratorContext) -> GeneratedCode:
    return GeneratedCode()


ACTION_HANDLERS: dict[ToolName, Callable[[ActionRecord, GeneratorContext], GeneratedCode]] = {
    ToolName.NAVIGATE: generate_navigate_code,
    ToolName.CLICK: generate_click_code,
    ToolName.FILL: generate_fill_code,
    ToolName.SELECT_OPTION: generate_select_code,
    ToolName.ASSERT_TEXT_PRESENT: generate_assert_text_code,
    ToolName.ASSERT_ELEMENT_VISIBLE: generate_assert_element_code,
    ToolName.SCROLL: generate_scroll_code,
    ToolName.WAIT: generate_wait_code,
}


def generate_code_for_record(record: ActionRecord, context: GeneratorContext) -> GeneratedCode:
    tool = record.tool
    if tool is None:
        step = record.step_index if record.step_index is not None else "?"
        return GeneratedCode(code=f"{INDENT}// TODO: Step {step} - Unsupported tool: {record.tool_name}")
    return ACTION_HANDLERS[tool](record, context)


# --- Step aggregation and file assembly ---------------------------------------


@dataclass
class _StepResult:
    step: MarkdownSpecStep
    fragments: list[GeneratedCode]


class PlaywrightScriptGenerator:
    """Assembles a complete Playwright test from a spec and its IR records."""

    def __init__(
        self,
        spec: MarkdownSpec,
        records: list[ActionRecord],
        base_url: str,
        login_base_url: Optional[str] = None,
        raw_spec_content: Optional[str] = None,
        test_name: str = "Exported Test",
        env_helper_import: str = DEFAULT_ENV_HELPER_IMPORT,
    ):
        self.spec = spec
        self.records = records
        self.base_url = base_url
        self.login_base_url = login_base_url
        self.test_name = test_name
        self.env_helper_import = env_helper_import
        self.raw_vars: RawSpecVars = parse_raw_spec_vars(raw_spec_content)

    def _context_for(self, step: MarkdownSpecStep, env_identifiers: Mapping[str, str]) -> GeneratorContext:
        return GeneratorContext(
            base_url=self.base_url,
            login_base_url=self.login_base_url,
            step_vars=self.raw_vars.step_vars.get(step.index),
            step_text=step.text,
            env_identifiers=env_identifiers,
        )

    def _comment_text(self, step: MarkdownSpecStep) -> str:
        step_vars = self.raw_vars.step_vars.get(step.index)
        return redact_step_text(step_vars.raw_text if step_vars else step.text)

    def _records_for(self, step: MarkdownSpecStep) -> list[ActionRecord]:
        return [record for record in self.records if record.outcome.ok and record.step_index == step.index]

    def _unmatched_record_errors(self) -> list[str]:
        known = self.spec.step_indexes()
        unknown = sorted(
            {
                record.step_index
                for record in self.records
                if record.outcome.ok and record.step_index is not None and record.step_index not in known
            }
        )
        return [f"IR record references unknown step {index}" for index in unknown]

    def generate_step_fragments(
        self, step: MarkdownSpecStep, env_identifiers: Optional[Mapping[str, str]] = None
    ) -> list[GeneratedCode]:
        context = self._context_for(step, env_identifiers or {})
        return [generate_code_for_record(record, context) for record in self._records_for(step)]

    def _render_step(self, result: _StepResult, registry: NameRegistry) -> list[str]:
        step = result.step
        comment_text = self._comment_text(step)
        if not result.fragments:
            return [f"{INDENT}// TODO: Step {step.index} - No IR record found for: {comment_text}"]

        codes = [deduplicate_fragment(fragment.code, registry) for fragment in result.fragments]
        codes = [code for code in codes if code]
        if not codes:
            return []
        return [f"{INDENT}// Step {step.index}: {comment_text}", *codes]

    def _get_imports(self) -> list[str]:
        return [
            "import { test, expect } from '@playwright/test'",
            f"import {{ loadEnvFiles, getEnvVar }} from '{escape_string(self.env_helper_import)}'",
            "",
            "loadEnvFiles()",
            "",
        ]

    def _get_env_var_definitions(self, env_identifiers: Mapping[str, str], needs_login_base_url: bool) -> list[str]:
        lines = [f"const baseUrl = getEnvVar('{ENV_VAR_PREFIX}{BASE_URL_VAR}')"]
        if needs_login_base_url:
            lines.append(f"const loginBaseUrl = getEnvVar('{ENV_VAR_PREFIX}{LOGIN_BASE_URL_VAR}')")
        for var_name, identifier in env_identifiers.items():
            lines.append(f"const {identifier} = getEnvVar('{ENV_VAR_PREFIX}{var_name}')")
        return lines

    def _assign_env_identifiers(self, registry: NameRegistry) -> dict[str, str]:
        """Claim one file-level binding per env variable the steps reference."""
        needs = StepNeeds()
        for step in self.spec.steps:
            for fragment in self.generate_step_fragments(step):
                needs.merge(fragment.needs)
        return {var_name: registry.claim(env_var_identifier(var_name)) for var_name in sorted(needs.env_vars)}

    def generate_script_content(self) -> ScriptContent:
        registry = NameRegistry(reserved=FILE_LEVEL_NAMES)
        env_identifiers = self._assign_env_identifiers(registry)

        errors = self._unmatched_record_errors()
        needs = StepNeeds()
        step_results = []

        for step in self.spec.steps:
            fragments = self.generate_step_fragments(step, env_identifiers)
            for fragment in fragments:
                if fragment.error:
                    errors.append(fragment.error)
                needs.merge(fragment.needs)
            step_results.append(_StepResult(step=step, fragments=fragments))

        step_lines: list[str] = []
        for result in step_results:
            step_lines.extend(self._render_step(result, registry))

        lines = self._get_imports()
        lines.extend(self._get_env_var_definitions(env_identifiers, needs.login_base_url))
        lines.append("")
        lines.append(f"test({_quote(self.test_name)}, async ({{ page }}) => {{")
        lines.extend(step_lines)
        lines.append("})")
        lines.append("")

        if errors:
            logger.warning(f"Code generation reported {len(errors)} problem(s)")
        return ScriptContent(
            content="\n".join(lines),
            errors=errors,
            env_vars=list(env_identifiers),
            needs_login_base_url=needs.login_base_url,
        )
