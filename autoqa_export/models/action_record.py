"""Schema of one recorded action in the IR trace (``ir.jsonl``).

Records are written by the agent during a live run with camelCase keys.
The models here accept those keys as aliases and expose snake_case
attributes; unknown keys are ignored so newer trace writers stay readable.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel


class _TraceModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ToolName(str, Enum):
    NAVIGATE = "navigate"
    CLICK = "click"
    FILL = "fill"
    SELECT_OPTION = "select_option"
    ASSERT_TEXT_PRESENT = "assertTextPresent"
    ASSERT_ELEMENT_VISIBLE = "assertElementVisible"
    SCROLL = "scroll"
    WAIT = "wait"


# Tools that act on a page element and therefore need a chosen locator.
ELEMENT_TOOLS = frozenset(
    {
        ToolName.CLICK,
        ToolName.FILL,
        ToolName.SELECT_OPTION,
        ToolName.ASSERT_ELEMENT_VISIBLE,
    }
)


class LiteralFillValue(_TraceModel):
    kind: Literal["literal"] = "literal"
    value: str


class TemplateVarFillValue(_TraceModel):
    kind: Literal["template_var"] = "template_var"
    name: str


class RedactedFillValue(_TraceModel):
    kind: Literal["redacted"] = "redacted"


FillValue = Annotated[
    Union[LiteralFillValue, TemplateVarFillValue, RedactedFillValue],
    Field(discriminator="kind"),
]

_fill_value_adapter = TypeAdapter(FillValue)


class ElementFingerprint(_TraceModel):
    tag_name: Optional[str] = None
    role: Optional[str] = None
    accessible_name: Optional[str] = None
    id: Optional[str] = None
    name_attr: Optional[str] = None
    type_attr: Optional[str] = None
    placeholder: Optional[str] = None
    aria_label: Optional[str] = None
    test_id: Optional[str] = None
    text_snippet: Optional[str] = None


class LocatorValidation(_TraceModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    unique: Optional[bool] = None
    visible: Optional[bool] = None
    enabled: Optional[bool] = None


class ChosenLocator(_TraceModel):
    kind: str
    value: str = ""
    code: str = ""
    validation: LocatorValidation = Field(default_factory=LocatorValidation)


class ElementInfo(_TraceModel):
    fingerprint: ElementFingerprint = Field(default_factory=ElementFingerprint)
    locator_candidates: list[dict[str, Any]] = Field(default_factory=list)
    chosen_locator: Optional[ChosenLocator] = None


class ActionOutcome(_TraceModel):
    ok: bool
    error: Optional[str] = None


class ActionRecord(_TraceModel):
    run_id: Optional[str] = None
    spec_path: str
    step_index: Optional[int] = None
    tool_name: str
    tool_input: dict[str, Any] = Field(default_factory=dict)
    outcome: ActionOutcome
    element: Optional[ElementInfo] = None
    timestamp: Optional[float] = None

    @property
    def tool(self) -> Optional[ToolName]:
        """The tool as a known ``ToolName``, or None for tools this exporter does not support."""
        try:
            return ToolName(self.tool_name)
        except ValueError:
            return None

    @property
    def targets_element(self) -> bool:
        return self.tool in ELEMENT_TOOLS

    @property
    def locator_code(self) -> Optional[str]:
        if self.element is None or self.element.chosen_locator is None:
            return None
        return self.element.chosen_locator.code

    @property
    def fingerprint(self) -> ElementFingerprint:
        if self.element is None:
            return ElementFingerprint()
        return self.element.fingerprint

    def has_valid_chosen_locator(self) -> bool:
        """True when a ready-to-emit locator was chosen and validated upstream."""
        if self.element is None or self.element.chosen_locator is None:
            return False
        chosen = self.element.chosen_locator
        if not isinstance(chosen.code, str) or not chosen.code.strip():
            return False
        return chosen.validation.unique is not False

    @property
    def fill_value(self) -> Optional[Union[LiteralFillValue, TemplateVarFillValue, RedactedFillValue]]:
        raw = self.tool_input.get("fillValue")
        if raw is None:
            return None
        try:
            return _fill_value_adapter.validate_python(raw)
        except ValidationError:
            return None
