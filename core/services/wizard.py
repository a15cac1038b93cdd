"""
Assessment wizard: builds one FamilyRecord across nine steps.

The wizard holds a working copy; the repository owns saved records. Edits are
typed, one operation per section, and each edit restarts the debounced draft
autosave (except when an existing record is being edited). Without a running
event loop the draft is written on every edit.

Steps move one at a time and clamp at both ends. There is no validation gate
between steps: an operator may reach the last step with empty fields.
"""

from collections.abc import Callable

import structlog

from core.domain.catalog import PSYCHOLOGICAL_QUESTIONS, STEP_TITLES, MatrixSection, allows_row
from core.domain.errors import (
    HeadOfFamilyRemovalError,
    MemberLimitError,
    UnknownMatrixItemError,
    UnknownMemberError,
    WizardError,
)
from core.domain.models import (
    FamilyMember,
    FamilyRecord,
    FamilyRole,
    HealthMatrix,
    MatrixValue,
    new_family_record,
    role_key,
)
from core.domain.updates import (
    FamilyInfoUpdate,
    GeneralDataUpdate,
    HousingConditionsUpdate,
    MemberUpdate,
    OccupationUpdate,
    SocioeconomicUpdate,
)
from core.services.autosave import DraftAutosaver
from core.services.sync import RecordRepository

logger = structlog.get_logger(__name__)

# Receives the pending draft, returns True to resume it or False to discard it
DraftPrompt = Callable[[FamilyRecord], bool]


class RecordBuilder:
    FIRST_STEP = 1
    LAST_STEP = 9

    def __init__(
        self,
        repository: RecordRepository,
        quiet_seconds: float = 1.0,
        autosaver: DraftAutosaver | None = None,
    ) -> None:
        self.repository = repository
        self.autosaver = autosaver or DraftAutosaver(repository.save_draft, quiet_seconds)
        self.step = self.FIRST_STEP
        self.editing_id: str | None = None
        self.logger = logger.bind(component="record_builder")
        self._record = new_family_record()
        self._closed = False

    @property
    def record(self) -> FamilyRecord:
        return self._record

    @property
    def step_title(self) -> str:
        return STEP_TITLES[self.step]

    async def open(
        self, editing_id: str | None = None, resume_draft: DraftPrompt | None = None
    ) -> FamilyRecord:
        """
        Load the working copy.

        Editing: the record comes from the full collection; an id that is not
        there yields a fresh blank record. New record: a pending draft is
        offered to `resume_draft` (no prompt means resume).
        """
        if editing_id:
            existing = await self.repository.get(editing_id)
            if self._closed:
                # Closed while the lookup was in flight; nobody is listening
                return self._record
            if existing is None:
                self.logger.warning("edited_record_not_found", record_id=editing_id)
                self._record = new_family_record()
            else:
                self.editing_id = editing_id
                self._record = existing
            return self._record

        draft = self.repository.load_draft()
        if draft is not None:
            if resume_draft is None or resume_draft(draft):
                self._record = draft
                self.logger.info("draft_resumed", record_id=draft.id)
            else:
                self.repository.clear_draft()
                self.logger.info("draft_discarded", record_id=draft.id)
        return self._record

    def close(self) -> None:
        self._closed = True
        self.autosaver.cancel()

    # Navigation

    def next(self) -> int:
        self.step = min(self.step + 1, self.LAST_STEP)
        return self.step

    def prev(self) -> int:
        self.step = max(self.step - 1, self.FIRST_STEP)
        return self.step

    # Section updates

    def update_general_data(self, update: GeneralDataUpdate) -> FamilyRecord:
        return self._replace(general_data=update.apply(self._record.general_data))

    def update_family_info(self, update: FamilyInfoUpdate) -> FamilyRecord:
        return self._replace(family_info=update.apply(self._record.family_info))

    def update_socioeconomic(self, update: SocioeconomicUpdate) -> FamilyRecord:
        return self._replace(socioeconomic=update.apply(self._record.socioeconomic))

    def update_housing_conditions(self, update: HousingConditionsUpdate) -> FamilyRecord:
        return self._replace(housing_conditions=update.apply(self._record.housing_conditions))

    def update_occupation(self, update: OccupationUpdate) -> FamilyRecord:
        return self._replace(occupation=update.apply(self._record.occupation))

    def set_public_service(self, name: str, available: bool) -> FamilyRecord:
        housing = self._record.housing_conditions
        services = {**housing.public_services, name: available}
        housing = housing.model_copy(update={"public_services": services})
        return self._replace(housing_conditions=housing)

    def set_psychological_answer(self, index: int, value: bool | str) -> FamilyRecord:
        if not 0 <= index < len(PSYCHOLOGICAL_QUESTIONS):
            raise ValueError(f"No psychological question at index {index}")
        answers = {**self._record.psychological_factors, index: value}
        return self._replace(psychological_factors=answers)

    # Members

    def add_member(self) -> FamilyMember:
        """Append a member holding the role after the highest role in use."""
        members = self._record.family_info.members
        order = FamilyRole.sequence()
        highest = max((m.role for m in members), key=_role_rank)
        role = highest.next_after() if isinstance(highest, FamilyRole) else None
        if role is None:
            raise MemberLimitError(f"A family holds at most {len(order)} members")

        member = FamilyMember(role=role)
        self._replace_members([*members, member])
        return member

    def update_member(self, member_id: str, update: MemberUpdate) -> FamilyMember:
        member = self._require_member(member_id)
        changed = update.apply(member)
        self._replace_members(
            [changed if m.id == member_id else m for m in self._record.family_info.members]
        )
        return changed

    def remove_member(self, member_id: str) -> None:
        """Drop a member and their matrix cells. Other members keep their roles."""
        member = self._require_member(member_id)
        if member.role is FamilyRole.HEAD:
            raise HeadOfFamilyRemovalError("The head of family cannot be removed")

        remaining = [m for m in self._record.family_info.members if m.id != member_id]
        key = role_key(member.role)
        matrices = {
            section.value: _without_role(getattr(self._record, section.value), key)
            for section in MatrixSection
        }
        family_info = self._record.family_info.model_copy(update={"members": remaining})
        self._replace(family_info=family_info, **matrices)

    # Matrices

    def set_matrix_entry(
        self, section: MatrixSection, item: str, role: FamilyRole | str, value: MatrixValue
    ) -> FamilyRecord:
        section, key = self._check_cell(section, item, role)
        matrix: HealthMatrix = dict(getattr(self._record, section.value))
        matrix[item] = {**matrix.get(item, {}), key: value}
        return self._replace(**{section.value: matrix})

    def clear_matrix_entry(
        self, section: MatrixSection, item: str, role: FamilyRole | str
    ) -> FamilyRecord:
        """Forget a cell, back to "not recorded" (which is not the same as False)."""
        section, key = self._check_cell(section, item, role)
        matrix: HealthMatrix = dict(getattr(self._record, section.value))
        row = {r: v for r, v in matrix.get(item, {}).items() if r != key}
        if row:
            matrix[item] = row
        else:
            matrix.pop(item, None)
        return self._replace(**{section.value: matrix})

    # Persistence

    async def save_progress(self) -> bool:
        """Save the working copy at any step. Returns the remote outcome."""
        return await self.repository.save(self._record)

    async def finalize(self) -> bool:
        """Save on the last step and drop the draft, whatever the remote outcome."""
        if self.step != self.LAST_STEP:
            raise WizardError(f"Records are finalized on step {self.LAST_STEP}, not {self.step}")

        self.autosaver.cancel()
        synced = await self.repository.save(self._record)
        self.repository.clear_draft()
        self.logger.info("record_finalized", record_id=self._record.id, synced=synced)
        return synced

    # Internals

    def _replace(self, **changes: object) -> FamilyRecord:
        self._record = self._record.model_copy(update=changes)
        if self.editing_id is None and not self._closed:
            self.autosaver.schedule(self._record)
        return self._record

    def _replace_members(self, members: list[FamilyMember]) -> None:
        family_info = self._record.family_info.model_copy(update={"members": members})
        self._replace(family_info=family_info)

    def _require_member(self, member_id: str) -> FamilyMember:
        member = self._record.family_info.member(member_id)
        if member is None:
            raise UnknownMemberError(f"No member with id {member_id}")
        return member

    def _check_cell(
        self, section: MatrixSection, item: str, role: FamilyRole | str
    ) -> tuple[MatrixSection, str]:
        section = MatrixSection(section)
        key = role_key(role)
        if not allows_row(section, item):
            raise UnknownMatrixItemError(f"{item!r} is not a row of {section.value}")
        if key not in {role_key(m.role) for m in self._record.family_info.members}:
            raise UnknownMemberError(f"No member holds role {key}")
        return section, key


def _role_rank(role: FamilyRole | str) -> int:
    # Roles outside the sequence only come from records written elsewhere
    order = FamilyRole.sequence()
    return order.index(role) if isinstance(role, FamilyRole) else len(order)


def _without_role(matrix: HealthMatrix, role: str) -> HealthMatrix:
    pruned: HealthMatrix = {}
    for item, cells in matrix.items():
        row = {r: v for r, v in cells.items() if r != role}
        if row:
            pruned[item] = row
    return pruned
