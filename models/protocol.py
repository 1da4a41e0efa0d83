"""
Protocol reference models for the Day Planner.

A Medication owns one or more ProtocolVariants (keyed by treatment number).
Each variant is either described by its timing block, from which the
expander derives the action sequence, or by an explicit list of templates.
"""

from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict


class ActionType(str, Enum):
    """Kinds of clinical actions in a patient's timeline."""
    SETUP = "setup"
    INFUSION = "infusion"
    CHECK = "check"
    PROTOCOL_CHECK = "protocol_check"
    OBSERVATION = "observation"
    REMOVAL = "removal"
    PC_SWITCH = "pc_switch"     # protocol-switch check: blood product bag change
    FLUSH = "flush"

    @property
    def is_offset_capable(self) -> bool:
        """Only checks and bag changes may be anchored to the infusion start."""
        return self in (ActionType.CHECK, ActionType.PC_SWITCH)

    @property
    def needs_staff(self) -> bool:
        return self not in (ActionType.INFUSION, ActionType.OBSERVATION)


class MedicationCategory(str, Enum):
    INFUSION = "infusion"
    TRANSFUSION = "transfusion"
    IRON = "iron"
    IMMUNOTHERAPY = "immunotherapy"
    OTHER = "other"


class ActionTemplate(BaseModel):
    """One step of a protocol, before it is placed on a patient's day."""
    name: str = Field(min_length=1, description="Display name of the action")
    type: ActionType = Field(description="Kind of action")
    duration_minutes: int = Field(ge=0, description="Chair time consumed by the action")

    actual_duration_minutes: Optional[int] = Field(
        default=None,
        ge=0,
        description="Staff work time when it differs from the chair time (e.g. flush)"
    )
    check_offset_minutes: Optional[int] = Field(
        default=None,
        ge=0,
        description="Minutes after the owning infusion's start. Only for check / pc_switch."
    )

    @model_validator(mode='after')
    def validate_offset_kind(self):
        if self.check_offset_minutes is not None and not self.type.is_offset_capable:
            raise ValueError(f"{self.type.value} actions cannot carry a check offset")
        return self

    @property
    def has_offset(self) -> bool:
        return self.check_offset_minutes is not None

    @property
    def work_minutes(self) -> int:
        if self.actual_duration_minutes is not None:
            return self.actual_duration_minutes
        return self.duration_minutes


class VariantTiming(BaseModel):
    """Timing block of a variant, in minutes."""
    infusion_minutes: int = Field(ge=0)
    nurse_minutes: int = Field(default=0, ge=0, description="Nurse time (SC injections use this as setup)")
    observation_minutes: int = Field(default=0, ge=0)
    flush_minutes: int = Field(default=0, ge=0)


class ProtocolVariant(BaseModel):
    """Treatment-number specific variant of a medication protocol."""
    treatment_number: int = Field(ge=1, description="1=first, 2=2nd-3rd, 3=4th-6th, 4=7th+ ...")
    timing: Optional[VariantTiming] = Field(default=None)
    actions: List[ActionTemplate] = Field(
        default_factory=list,
        description="Explicit templates. When present they are used as-is."
    )

    @model_validator(mode='after')
    def validate_definition(self):
        if self.timing is None and not self.actions:
            raise ValueError("A variant needs either a timing block or explicit actions")
        return self


class Medication(BaseModel):
    """A medication protocol with its treatment-number variants."""
    id: str = Field(min_length=1, description="Catalog key, e.g. 'infliximab_5mg'")
    name: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    category: MedicationCategory = Field(default=MedicationCategory.OTHER)
    variants: List[ProtocolVariant] = Field(min_length=1)

    check_interval: Optional[int] = Field(default=None, ge=1, description="Minutes between checks")
    checks_enabled: bool = Field(default=False, description="Generate interval checks during the infusion")
    pc_switch_interval: Optional[int] = Field(default=None, ge=1, description="Minutes between bag changes")
    pc_switch_duration: Optional[int] = Field(default=None, ge=1)
    notes: str = Field(default="")

    @field_validator('variants')
    @classmethod
    def validate_unique_variants(cls, v):
        numbers = [variant.treatment_number for variant in v]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Duplicate treatment numbers in medication variants")
        return v

    @model_validator(mode='after')
    def validate_pc_switch(self):
        if (self.pc_switch_interval is None) != (self.pc_switch_duration is None):
            raise ValueError("pc_switch_interval and pc_switch_duration must be provided together")
        return self

    def resolve_variant(self, treatment_number: int) -> Optional[ProtocolVariant]:
        """Highest variant whose treatment number does not exceed the requested one."""
        eligible = [v for v in self.variants if v.treatment_number <= treatment_number]
        if not eligible:
            return None
        return max(eligible, key=lambda v: v.treatment_number)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "transfusion_1pc",
            "name": "Bloedtransfusie 1 PC",
            "display_name": "Transfusie 1PC",
            "category": "transfusion",
            "check_interval": 30,
            "checks_enabled": True,
            "pc_switch_interval": 120,
            "pc_switch_duration": 8,
            "variants": [
                {"treatment_number": 1, "timing": {"infusion_minutes": 90, "nurse_minutes": 30, "flush_minutes": 5}}
            ]
        }
    })
