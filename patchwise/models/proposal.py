#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Schema models for data crossing the reasoning-service boundary.

Everything the LLM returns is parsed into these models before any other
component touches it. Unknown keys and wrong types are rejected outright.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


EditAction = Literal[
    "add_code",
    "modify_code",
    "fix_error",
    "refactor",
    "config_change",
    "shell_command",
    "compound_action",
]

StepAction = Literal["add_code", "modify_code", "shell_command"]


class StrictModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        strict=True,
        frozen=True,
        populate_by_name=True,
    )


class Proposal(StrictModel):
    """A single text edit against one file.

    ``line_number`` of None means append ``replacement`` to the end of the file.
    """

    file: str = Field(min_length=1)
    original: str = ""
    replacement: str
    line_number: Optional[int] = Field(default=None, alias="lineNumber")
    explanation: str = ""

    @property
    def is_append(self) -> bool:
        return self.line_number is None

    def size(self) -> int:
        return len(self.file) + len(self.original) + len(self.replacement) + len(self.explanation)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class CompoundStep(StrictModel):
    action: StepAction
    target: str = ""
    description: str = ""
    command: Optional[str] = None

    @model_validator(mode="after")
    def _shell_step_needs_command(self) -> "CompoundStep":
        if self.action == "shell_command" and not (self.command or "").strip():
            raise ValueError("shell_command step requires a command")
        return self


class QuestionIntent(StrictModel):
    intent_type: Literal["question"] = Field(alias="intentType")
    question: str


class EditIntent(StrictModel):
    intent_type: Literal["edit"] = Field(alias="intentType")
    action: EditAction
    target: str = ""
    description: str = ""
    command: Optional[str] = None
    steps: Optional[List[CompoundStep]] = None

    @model_validator(mode="after")
    def _check_action_payload(self) -> "EditIntent":
        if self.action == "shell_command" and not (self.command or "").strip():
            raise ValueError("shell_command intent requires a command")
        if self.action == "compound_action" and not self.steps:
            raise ValueError("compound_action intent requires at least one step")
        return self


Intent = Annotated[Union[QuestionIntent, EditIntent], Field(discriminator="intent_type")]

INTENT_ADAPTER = TypeAdapter(Intent)
PROPOSAL_LIST_ADAPTER = TypeAdapter(List[Proposal])


class ValidationVerdict(StrictModel):
    """One element of the semantic validator's JSON array."""

    is_valid: bool = Field(alias="isValid")
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


VERDICT_LIST_ADAPTER = TypeAdapter(List[ValidationVerdict])
