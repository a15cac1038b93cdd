"""
Typed partial updates, one per editable record section.

Unset (None) fields are left alone, so a form can send only what changed.
Members and public services have their own operations on the wizard.
"""

from typing import Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

SectionT = TypeVar("SectionT", bound=BaseModel)


class _SectionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def apply(self, section: SectionT) -> SectionT:
        """Return a copy of `section` with the provided fields replaced."""
        changes = self.model_dump(exclude_none=True)
        if not changes:
            return section
        return section.model_copy(update=changes)


class GeneralDataUpdate(_SectionUpdate):
    date: str | None = None
    department: str | None = None
    municipality: str | None = None
    sisben: str | None = None
    area: Literal["Rural", "Urbana", ""] | None = None
    estrato: str | None = None
    ethnicity: str | None = None


class FamilyInfoUpdate(_SectionUpdate):
    head_last_name1: str | None = None
    head_last_name2: str | None = None
    address: str | None = None
    neighborhood: str | None = None
    phone: str | None = None
    family_type: str | None = None
    religion: str | None = None


class MemberUpdate(_SectionUpdate):
    first_name: str | None = None
    last_name: str | None = None
    id_number: str | None = None
    birth_date: str | None = None
    age: int | None = Field(default=None, ge=0)
    sex: Literal["M", "F"] | None = None
    eapb: str | None = None
    civil_status: str | None = None


class SocioeconomicUpdate(_SectionUpdate):
    housing_type: str | None = None
    housing_material: str | None = None
    people_per_room: int | None = Field(default=None, ge=0)
    rooms_count: int | None = Field(default=None, ge=0)
    tenure: str | None = None
    housing_status: str | None = None


class HousingConditionsUpdate(_SectionUpdate):
    wall_material: str | None = None
    roof_material: str | None = None
    floor_material: str | None = None
    specific_kitchen: bool | None = None
    indoor_kitchen: bool | None = None
    gas_cooking: bool | None = None
    overcrowding: bool | None = None
    smoke_indoor: bool | None = None
    humidity_indoor: bool | None = None
    electricity: bool | None = None
    sufficient_light: bool | None = None
    sufficient_ventilation: bool | None = None
    water_24h: bool | None = None
    water_treated: bool | None = None
    pets_indoor: bool | None = None
    pest_control: bool | None = None


class OccupationUpdate(_SectionUpdate):
    economic_activity: str | None = None
    monthly_income: str | None = None
    interviewer_name: str | None = None
    student_name: str | None = None
