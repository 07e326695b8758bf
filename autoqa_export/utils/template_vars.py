"""Recover ``{{VAR}}`` placeholders from the raw (un-rendered) spec text.

The trace stores rendered values: a fill typed the real password, a navigate
went to the real host. Only the raw Markdown still shows which of those values
came from a template variable, so generators consult the per-step map built
here before falling back to anything concrete.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from autoqa_export.utils.naming import RESERVED_WORDS

TEMPLATE_VAR_PATTERN = re.compile(r"\{\{\s*([A-Z0-9_]+)\s*\}\}")
EXACT_TEMPLATE_VAR_PATTERN = re.compile(r"^\{\{\s*([A-Z0-9_]+)\s*\}\}\s*$")

_STEPS_SECTION_PATTERN = re.compile(r"##\s*Steps[\s\S]*?(?=##|$)", re.IGNORECASE)
_STEP_LINE_PATTERN = re.compile(r"^\s*(\d+)[.)\s]+(.+)$", re.MULTILINE)

BASE_URL_VAR = "BASE_URL"
LOGIN_BASE_URL_VAR = "LOGIN_BASE_URL"
URL_VAR_IDENTIFIERS = {BASE_URL_VAR: "baseUrl", LOGIN_BASE_URL_VAR: "loginBaseUrl"}


@dataclass(frozen=True)
class StepVarInfo:
    vars: list[str]
    raw_text: str


@dataclass
class RawSpecVars:
    step_vars: dict[int, StepVarInfo] = field(default_factory=dict)
    all_vars: set[str] = field(default_factory=set)


@dataclass
class TemplateLiteral:
    """A TypeScript template literal built from text with placeholders."""

    code: str
    env_vars: set[str] = field(default_factory=set)
    uses_base_url: bool = False
    uses_login_base_url: bool = False


def extract_template_vars(text: str) -> list[str]:
    """Return placeholder names in order of first appearance, without duplicates."""
    found: list[str] = []
    for match in TEMPLATE_VAR_PATTERN.finditer(text or ""):
        name = match.group(1).strip()
        if name and name not in found:
            found.append(name)
    return found


def exact_template_var(text: Optional[str]) -> Optional[str]:
    """Name of the placeholder if ``text`` is nothing but a single ``{{VAR}}``."""
    if not text:
        return None
    match = EXACT_TEMPLATE_VAR_PATTERN.match(text.strip())
    return match.group(1).strip() if match else None


def parse_raw_spec_vars(raw_content: Optional[str]) -> RawSpecVars:
    """Map step index to the placeholders its raw text uses.

    Only steps with at least one placeholder are present in ``step_vars``.
    """
    result = RawSpecVars()
    if not raw_content:
        return result

    section = _STEPS_SECTION_PATTERN.search(raw_content)
    if not section:
        return result

    for match in _STEP_LINE_PATTERN.finditer(section.group(0)):
        step_index = int(match.group(1))
        raw_text = match.group(2).strip()
        step_vars = extract_template_vars(raw_text)
        if step_vars:
            result.step_vars[step_index] = StepVarInfo(vars=step_vars, raw_text=raw_text)
            result.all_vars.update(step_vars)

    return result


def env_var_identifier(name: str) -> str:
    """TypeScript binding that holds the value of ``AUTOQA_<name>``."""
    if name in URL_VAR_IDENTIFIERS:
        return URL_VAR_IDENTIFIERS[name]
    identifier = re.sub(r"[^a-z0-9_]", "", name.lower())
    if not identifier or identifier[0].isdigit() or identifier in RESERVED_WORDS:
        identifier = f"env_{identifier}"
    return identifier


def _escape_template_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


def template_to_ts_literal(template: str, identifier: Callable[[str], str] = env_var_identifier) -> TemplateLiteral:
    """Render text containing placeholders as a TS template literal.

    ``Hello {{USERNAME}}`` becomes ```Hello ${username}``` and records that
    ``USERNAME`` must be declared.
    """
    literal = TemplateLiteral(code="")
    parts: list[str] = []
    last_index = 0
    for match in TEMPLATE_VAR_PATTERN.finditer(template):
        if match.start() > last_index:
            parts.append(_escape_template_text(template[last_index:match.start()]))
        name = match.group(1).strip()
        if name == BASE_URL_VAR:
            literal.uses_base_url = True
        elif name == LOGIN_BASE_URL_VAR:
            literal.uses_login_base_url = True
        else:
            literal.env_vars.add(name)
        parts.append("${" + identifier(name) + "}")
        last_index = match.end()
    if last_index < len(template):
        parts.append(_escape_template_text(template[last_index:]))

    literal.code = "`" + "".join(parts) + "`"
    return literal


def _template_pattern(template: str) -> str:
    pattern_parts: list[str] = []
    last_index = 0
    for match in TEMPLATE_VAR_PATTERN.finditer(template):
        pattern_parts.append(re.escape(template[last_index:match.start()]))
        pattern_parts.append(r"(.+?)")
        last_index = match.end()
    pattern_parts.append(re.escape(template[last_index:]))
    return "".join(pattern_parts)


def template_matches(template: str, rendered: str) -> bool:
    """True if ``rendered`` could be ``template`` with every placeholder filled in."""
    return re.fullmatch(_template_pattern(template), rendered, re.DOTALL) is not None


def recover_template_values(template: str, rendered: Optional[str]) -> dict[str, str]:
    """Values each placeholder of ``template`` took in ``rendered``.

    Empty when the two do not line up or a placeholder appears twice with
    different values.
    """
    names = [match.group(1).strip() for match in TEMPLATE_VAR_PATTERN.finditer(template)]
    if not names or not rendered:
        return {}

    match = re.fullmatch(_template_pattern(template), rendered, re.DOTALL)
    if match is None:
        return {}

    values: dict[str, str] = {}
    for name, value in zip(names, match.groups()):
        if values.get(name, value) != value:
            return {}
        values[name] = value
    return values
