import logging
import re

from autoqa_export.errors import SpecParseError
from autoqa_export.models.spec import MarkdownSpec, MarkdownSpecStep

logger = logging.getLogger(__name__)

_HEADING_PATTERN = re.compile(r"^\s*##\s+(.+?)\s*$")
_NUMBERED_ITEM_PATTERN = re.compile(r"^\s*(\d+)[.)]\s+(.+)$")
_BULLET_ITEM_PATTERN = re.compile(r"^\s*[-*+]\s+(.+)$")
_ASSERTION_PATTERN = re.compile(r"^(verify|assert|expect|check|ensure|验证|断言|确认)", re.IGNORECASE)


def classify_step(text: str) -> str:
    return "assertion" if _ASSERTION_PATTERN.match(text.strip()) else "action"


def _sections(raw_content: str) -> dict[str, list[str]]:
    sections: dict[str, list[str]] = {}
    current = None
    for line in raw_content.splitlines():
        heading = _HEADING_PATTERN.match(line)
        if heading:
            current = heading.group(1).strip().lower()
            sections.setdefault(current, [])
            continue
        if current is not None:
            sections[current].append(line)
    return sections


def parse_markdown_spec(raw_content: str) -> MarkdownSpec:
    """Read preconditions and numbered steps from a spec document.

    Placeholders are left as written; rendering them is the runner's job.
    """
    sections = _sections(raw_content or "")

    preconditions = []
    for line in sections.get("preconditions", []):
        match = _BULLET_ITEM_PATTERN.match(line)
        if match:
            preconditions.append(match.group(1).strip())

    if "steps" not in sections:
        raise SpecParseError("Spec has no '## Steps' section")

    steps = []
    for line in sections["steps"]:
        match = _NUMBERED_ITEM_PATTERN.match(line)
        if not match:
            continue
        text = match.group(2).strip()
        steps.append(MarkdownSpecStep(index=int(match.group(1)), text=text, kind=classify_step(text)))

    if not steps:
        raise SpecParseError("Spec '## Steps' section has no numbered steps")

    logger.debug(f"Parsed spec with {len(preconditions)} precondition(s) and {len(steps)} step(s)")
    return MarkdownSpec(preconditions=preconditions, steps=steps)
