"""
Domain models for the family health assessment.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation; the JSON shape (camelCase keys) is the one
shared by the local cache, the export file and the record store protocol.
"""

import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

# Matrix cells are mostly presence flags; a few rows carry a free annotation.
MatrixValue = bool | int | float | str
HealthMatrix = dict[str, dict[str, MatrixValue]]


def _new_id() -> str:
    return str(uuid.uuid4())


def _today() -> str:
    return datetime.now(UTC).date().isoformat()


class FamilyRole(str, Enum):
    """Ordered family roles. The head of family always comes first."""

    HEAD = "CF"
    M1 = "M1"
    M2 = "M2"
    M3 = "M3"
    M4 = "M4"
    M5 = "M5"
    M6 = "M6"

    @classmethod
    def sequence(cls) -> list["FamilyRole"]:
        return list(cls)

    def next_after(self) -> "FamilyRole | None":
        """Role that follows this one, or None for the last role."""
        roles = self.sequence()
        position = roles.index(self)
        return roles[position + 1] if position + 1 < len(roles) else None


def role_key(role: FamilyRole | str) -> str:
    """Matrix column key for a member role."""
    return role.value if isinstance(role, FamilyRole) else role


def _default_if_blank(model: type[BaseModel], field_name: str, value: Any) -> Any:
    # The web client stores "" for number inputs and choices left empty
    if value is None or (isinstance(value, str) and not value.strip()):
        return model.model_fields[field_name].get_default(call_default_factory=True)
    return value


class _Section(BaseModel):
    """Base for every record section: camelCase on the wire, immutable in memory."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class FamilyMember(_Section):
    id: str = Field(default_factory=_new_id)
    # Records written by the web client may carry roles past M6 ("M7", ...)
    role: FamilyRole | str = Field(union_mode="left_to_right")
    first_name: str = ""
    last_name: str = ""
    id_number: str = ""
    birth_date: str = ""
    age: int = Field(default=0, ge=0)
    sex: Literal["M", "F"] = "M"
    eapb: str = Field(default="", description="Health plan administrator")
    civil_status: str = ""

    @field_validator("age", "sex", mode="before")
    @classmethod
    def _blank_member_fields(cls, value: Any, info: ValidationInfo) -> Any:
        return _default_if_blank(cls, info.field_name, value)


def _initial_members() -> list[FamilyMember]:
    return [FamilyMember(role=FamilyRole.HEAD)]


class GeneralData(_Section):
    date: str = Field(default_factory=_today, description="Assessment date, ISO format")
    department: str = ""
    municipality: str = ""
    sisben: str = Field(default="", description="SISBEN socioeconomic classification")
    area: Literal["Rural", "Urbana", ""] = ""
    estrato: str = ""
    ethnicity: str = ""


class FamilyInfo(_Section):
    head_last_name1: str = ""
    head_last_name2: str = ""
    address: str = ""
    neighborhood: str = ""
    phone: str = ""
    members: list[FamilyMember] = Field(default_factory=_initial_members, min_length=1)
    family_type: str = ""
    religion: str = ""

    @property
    def head(self) -> FamilyMember:
        return self.members[0]

    def member(self, member_id: str) -> FamilyMember | None:
        return next((m for m in self.members if m.id == member_id), None)


class Socioeconomic(_Section):
    housing_type: str = "Casa"
    housing_material: str = "Ladrillo"
    people_per_room: int = Field(default=1, ge=0)
    rooms_count: int = Field(default=1, ge=0)
    tenure: str = "Propia"
    housing_status: str = "Bueno"

    @field_validator("people_per_room", "rooms_count", mode="before")
    @classmethod
    def _blank_counts(cls, value: Any, info: ValidationInfo) -> Any:
        return _default_if_blank(cls, info.field_name, value)


class HousingConditions(_Section):
    wall_material: str = ""
    roof_material: str = ""
    floor_material: str = ""
    specific_kitchen: bool = False
    indoor_kitchen: bool = False
    gas_cooking: bool = False
    overcrowding: bool = False
    smoke_indoor: bool = False
    humidity_indoor: bool = False
    electricity: bool = False
    sufficient_light: bool = False
    sufficient_ventilation: bool = False
    water_24h: bool = Field(default=False, alias="water24h")
    water_treated: bool = False
    pets_indoor: bool = False
    pest_control: bool = False
    public_services: dict[str, bool] = Field(default_factory=dict)


class Occupation(_Section):
    economic_activity: str = ""
    monthly_income: str = ""
    interviewer_name: str = ""
    student_name: str = ""


class FamilyRecord(_Section):
    """One family assessment. `id` and `created_at` never change after creation."""

    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    general_data: GeneralData = Field(default_factory=GeneralData)
    family_info: FamilyInfo = Field(default_factory=FamilyInfo)

    medical_history: HealthMatrix = Field(default_factory=dict)
    ob_gyn_history: HealthMatrix = Field(default_factory=dict)
    vaccination_history: HealthMatrix = Field(default_factory=dict)
    surgical_history: HealthMatrix = Field(default_factory=dict)
    congenital_history: HealthMatrix = Field(default_factory=dict)

    disabilities: HealthMatrix = Field(default_factory=dict)

    habits: HealthMatrix = Field(default_factory=dict)
    environmental_risks: HealthMatrix = Field(default_factory=dict)

    psychological_factors: dict[int, bool | str] = Field(default_factory=dict)

    socioeconomic: Socioeconomic = Field(default_factory=Socioeconomic)
    housing_conditions: HousingConditions = Field(default_factory=HousingConditions)
    occupation: Occupation = Field(default_factory=Occupation)

    def to_json_dict(self) -> dict:
        """Wire representation (camelCase keys, JSON-safe values)."""
        return self.model_dump(mode="json", by_alias=True)


def new_family_record() -> FamilyRecord:
    """Blank record with every section at its default and a lone head of family."""
    return FamilyRecord()


# Shared validator for JSON arrays of records (mirror, export file, GET /records)
RECORD_LIST = TypeAdapter(list[FamilyRecord])


def records_to_json(records: list[FamilyRecord]) -> str:
    return RECORD_LIST.dump_json(records, by_alias=True).decode("utf-8")


def validate_records(items: Iterable[Any]) -> tuple[list[FamilyRecord], int]:
    """
    Validate each element of a record array on its own.

    Returns the valid records and the number of rejected elements, so one bad
    record never discards the rest of the array.
    """
    records: list[FamilyRecord] = []
    rejected = 0
    for item in items:
        try:
            records.append(FamilyRecord.model_validate(item))
        except ValidationError:
            rejected += 1
    return records, rejected
