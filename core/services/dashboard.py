"""
Dashboard statistics over the saved record set.

`summarize` is a pure function and recomputes everything on each call; intake
volumes are small enough that incremental maintenance is not worth it.
"""

from collections import Counter

from pydantic import BaseModel, Field

from core.domain.models import RECORD_LIST, FamilyRecord

UNDEFINED_SISBEN = "Sin definir"


class CountBucket(BaseModel):
    name: str
    count: int = Field(ge=0)


class DashboardSummary(BaseModel):
    total_families: int = Field(ge=0)
    total_members: int = Field(ge=0)
    mean_members_per_family: float = Field(ge=0.0)
    sisben_distribution: list[CountBucket]
    condition_counts: list[CountBucket] = Field(
        description="Families with at least one affected member, per medical condition"
    )
    payload_size_kb: float = Field(ge=0.0, description="Approximate serialized size")


def _buckets(counter: Counter[str]) -> list[CountBucket]:
    # Counter keeps insertion order, i.e. first-seen order
    return [CountBucket(name=name, count=count) for name, count in counter.items()]


def summarize(records: list[FamilyRecord]) -> DashboardSummary:
    total_families = len(records)
    total_members = sum(len(r.family_info.members) for r in records)

    sisben: Counter[str] = Counter()
    conditions: Counter[str] = Counter()
    for record in records:
        sisben[record.general_data.sisben or UNDEFINED_SISBEN] += 1
        for condition, cells in record.medical_history.items():
            # One count per family, however many members are affected
            if any(cells.values()):
                conditions[condition] += 1

    payload_bytes = len(RECORD_LIST.dump_json(records, by_alias=True))

    return DashboardSummary(
        total_families=total_families,
        total_members=total_members,
        mean_members_per_family=total_members / max(total_families, 1),
        sisben_distribution=_buckets(sisben),
        condition_counts=_buckets(conditions),
        payload_size_kb=round(payload_bytes / 1024, 2),
    )
