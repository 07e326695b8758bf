"""Variable names for generated bindings.

Names are derived from the element fingerprint (or asserted text) so the
exported test reads like something a person wrote, then deduplicated across
the whole file through an explicit ``NameRegistry``.
"""

import re
from typing import Iterable, Optional

from autoqa_export.models.action_record import ElementFingerprint

CJK_CHARS = "一-龥"

_NON_WORD_PATTERN = re.compile(rf"[^a-zA-Z0-9{CJK_CHARS}]+")
_CJK_PATTERN = re.compile(rf"[{CJK_CHARS}]")
_NON_IDENTIFIER_PATTERN = re.compile(r"[^a-zA-Z0-9]+")
_TEST_ID_SUFFIXES = ("-input", "-button", "-btn", "-field")
_PLACEHOLDER_LEAD_INS = (
    re.compile(r"^请输入"),
    re.compile(r"^输入"),
    re.compile(r"^请"),
    re.compile(r"^input\s+", re.IGNORECASE),
    re.compile(r"^enter\s+", re.IGNORECASE),
    re.compile(r"^your\s+", re.IGNORECASE),
)

_DECLARATION_PATTERN = re.compile(r"^\s*const\s+([A-Za-z_$][0-9A-Za-z_$]*)\s*=", re.MULTILINE)
_STRING_LITERAL_PATTERN = re.compile(
    r"""'(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*"|`(?:\\.|[^`\\])*`""",
    re.DOTALL,
)
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Words a TS binding cannot use.
RESERVED_WORDS = frozenset(
    """
    break case catch class const continue debugger default delete do else enum export extends
    false finally for function if import in instanceof new null return super switch this throw
    true try typeof var void while with let static yield await implements interface package
    private protected public
    """.split()
)


def to_camel_case(value: str) -> str:
    """Convert kebab, snake or space separated text to camelCase.

    CJK characters are kept as they are; every other non-alphanumeric run acts
    as a word separator. Only the first character is lowercased, so
    ``"ACCOUNT"`` becomes ``"aCCOUNT"``.
    """
    if not value:
        return ""

    words = _NON_WORD_PATTERN.sub(" ", value).split()
    if not words:
        return ""

    joined = " ".join(words)
    result = [joined[0].lower()]
    for prev_char, char in zip(joined, joined[1:]):
        if char == " ":
            continue
        result.append(char.upper() if prev_char == " " else char)
    return "".join(result)


def sanitize_variable_name(value: str, fallback: str = "text") -> str:
    """Reduce ``value`` to ASCII letters and digits so it is a valid identifier.

    Reserved words get ``fallback`` appended: ``continue`` -> ``continueText``.
    """
    if not value:
        return fallback

    sanitized = _NON_IDENTIFIER_PATTERN.sub("", _CJK_PATTERN.sub("", value))
    if not sanitized:
        return fallback
    if sanitized[0].isdigit():
        sanitized = f"text{sanitized}"
    if sanitized in RESERVED_WORDS:
        sanitized = f"{sanitized}{fallback.capitalize()}"
    return sanitized


def _strip_test_id_suffix(test_id: str) -> str:
    for suffix in _TEST_ID_SUFFIXES:
        if test_id.endswith(suffix):
            test_id = test_id[: -len(suffix)]
    return test_id


def _strip_placeholder_lead_ins(placeholder: str) -> str:
    for pattern in _PLACEHOLDER_LEAD_INS:
        placeholder = pattern.sub("", placeholder, count=1)
    return placeholder


def generate_meaningful_var_name(fingerprint: ElementFingerprint, suffix: Optional[str] = None) -> str:
    """Pick a readable base name for an element.

    Priority: test id, placeholder, visible text, id attribute, role + tag
    name, and finally ``"element"``.
    """
    if fingerprint.test_id:
        name = to_camel_case(_strip_test_id_suffix(fingerprint.test_id.lower()))
    elif fingerprint.placeholder:
        name = to_camel_case(_strip_placeholder_lead_ins(fingerprint.placeholder))
        if not name:
            name = to_camel_case(fingerprint.placeholder)
    elif fingerprint.text_snippet:
        name = to_camel_case(fingerprint.text_snippet)
    elif fingerprint.id:
        name = to_camel_case(fingerprint.id)
    else:
        name = f"{fingerprint.role or ''}{fingerprint.tag_name or ''}"

    name = name or "element"
    if suffix:
        name += suffix
    return name


def identifier_for_element(fingerprint: ElementFingerprint) -> str:
    return sanitize_variable_name(generate_meaningful_var_name(fingerprint), fallback="element")


def identifier_for_text(text: str) -> str:
    return sanitize_variable_name(to_camel_case(text))


class NameRegistry:
    """Names already bound in one generated file.

    One registry is created per export and threaded through step generation;
    nothing about it outlives the export.
    """

    def __init__(self, reserved: Iterable[str] = ()):
        self._used: set[str] = set(reserved)

    def __contains__(self, name: str) -> bool:
        return name in self._used

    def reserve(self, name: str) -> None:
        self._used.add(name)

    def claim(self, base_name: str) -> str:
        """Return ``base_name`` if free, else the first free ``base_name2``, ``base_name3``..."""
        name = base_name
        suffix = 2
        while name in self._used:
            name = f"{base_name}{suffix}"
            suffix += 1
        self._used.add(name)
        return name


def rename_identifier(code: str, old_name: str, new_name: str) -> str:
    """Replace whole-word uses of ``old_name`` outside string literals."""
    word = re.compile(rf"(?<![\w$.]){re.escape(old_name)}(?![\w$])")

    pieces: list[str] = []
    last_index = 0
    for literal in _STRING_LITERAL_PATTERN.finditer(code):
        pieces.append(word.sub(lambda _: new_name, code[last_index:literal.start()]))
        pieces.append(literal.group(0))
        last_index = literal.end()
    pieces.append(word.sub(lambda _: new_name, code[last_index:]))
    return "".join(pieces)


def deduplicate_fragment(code: str, registry: NameRegistry) -> str:
    """Make the fragment's ``const`` binding unique within the file.

    The initializer is left alone: it can only refer to names declared
    before the binding, ``page`` included.
    """
    if not code:
        return code

    declaration = _DECLARATION_PATTERN.search(code)
    if not declaration:
        return code

    declared = declaration.group(1)
    final_name = registry.claim(declared)
    if final_name == declared:
        return code

    statement_end = code.find("\n", declaration.end())
    if statement_end == -1:
        statement_end = len(code)
    return (
        code[: declaration.start(1)]
        + final_name
        + code[declaration.end(1) : statement_end]
        + rename_identifier(code[statement_end:], declared, final_name)
    )
