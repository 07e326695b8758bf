from typing import Literal

from pydantic import BaseModel, Field

StepKind = Literal["action", "assertion"]


class MarkdownSpecStep(BaseModel):
    index: int
    text: str
    kind: StepKind = "action"


class MarkdownSpec(BaseModel):
    preconditions: list[str] = Field(default_factory=list)
    steps: list[MarkdownSpecStep] = Field(default_factory=list)

    def step_indexes(self) -> set[int]:
        return {step.index for step in self.steps}
