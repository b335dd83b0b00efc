"""
Pydantic Schemas for Flow Rule Input

These schemas validate flow rule data at the write boundary so the engine
only ever sees rules with a known TAT type and sane values.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .entities import FlowRule, MergeCondition, TatType


# =============================================================================
# Flow Rule Schemas
# =============================================================================

class FlowRuleCreate(BaseModel):
    """Validated input for creating a flow rule."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    system: str = Field(min_length=1, description="Workflow graph the rule belongs to")
    current_task: str = Field(
        default="",
        alias="currentTask",
        description="Task this edge leaves from; empty for the start rule"
    )
    status: str = Field(default="", description="Completion status that takes this edge")
    next_task: str = Field(
        default="",
        alias="nextTask",
        description="Task this edge leads to; empty ends the flow"
    )
    tat: float = Field(gt=0, le=365, description="Turn-around time magnitude")
    tat_type: TatType = Field(default=TatType.DAY, alias="tatType")
    doer: str = Field(min_length=1, description="Role that performs the next task")
    email: str = Field(min_length=1, description="Assignee email for the next task")
    form_id: Optional[str] = Field(default=None, alias="formId")

    transferable: bool = False
    transfer_to_emails: List[str] = Field(default_factory=list, alias="transferToEmails")
    merge_condition: MergeCondition = Field(default=MergeCondition.ALL, alias="mergeCondition")

    @field_validator("current_task", "status", "next_task", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    @field_validator("tat_type", mode="before")
    @classmethod
    def _parse_tat_type(cls, value):
        if value is None or value == "":
            return TatType.DAY
        try:
            return TatType.parse(value)
        except ValueError:
            raise ValueError(
                f"Unknown TAT type '{value}'; expected one of "
                + ", ".join(t.value for t in TatType)
            )

    @field_validator("transfer_to_emails", mode="before")
    @classmethod
    def _split_emails(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [e.strip() for e in value.split(",") if e.strip()]
        return value

    @field_validator("form_id", mode="before")
    @classmethod
    def _blank_form_id(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_rule_shape(self) -> "FlowRuleCreate":
        if self.current_task and not self.status:
            raise ValueError("status is required unless the rule starts the flow")
        if not self.current_task and not self.next_task:
            raise ValueError("nextTask is required on the starting rule")
        if self.tat_type == TatType.SPECIFY and self.tat > 23:
            raise ValueError("specifytat is an hour of the day and must be between 0 and 23")
        return self

    def to_rule(self, organization_id: Optional[str] = None) -> FlowRule:
        """Build the engine entity from validated input."""
        return FlowRule(
            system=self.system,
            current_task=self.current_task,
            status=self.status,
            next_task=self.next_task,
            tat=self.tat,
            tat_type=self.tat_type,
            doer=self.doer,
            email=self.email,
            form_id=self.form_id,
            organization_id=organization_id,
            transferable=self.transferable,
            transfer_to_emails=list(self.transfer_to_emails),
            merge_condition=self.merge_condition
        )
