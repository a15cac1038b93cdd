"""Tests for dashboard statistics."""

from hypothesis import given
from hypothesis import strategies as st

from core.domain.models import FamilyMember, FamilyRecord, FamilyRole, new_family_record
from core.services.dashboard import UNDEFINED_SISBEN, summarize


def family(
    sisben: str = "",
    extra_members: int = 0,
    medical_history: dict | None = None,
) -> FamilyRecord:
    record = new_family_record()
    roles = FamilyRole.sequence()[1 : 1 + extra_members]
    members = [*record.family_info.members, *(FamilyMember(role=r) for r in roles)]
    return record.model_copy(
        update={
            "general_data": record.general_data.model_copy(update={"sisben": sisben}),
            "family_info": record.family_info.model_copy(update={"members": members}),
            "medical_history": medical_history or {},
        }
    )


class TestSummarize:
    def test_empty_record_set(self) -> None:
        summary = summarize([])

        assert summary.total_families == 0
        assert summary.total_members == 0
        assert summary.mean_members_per_family == 0
        assert summary.sisben_distribution == []
        assert summary.condition_counts == []

    def test_totals_and_mean(self) -> None:
        summary = summarize([family(extra_members=2), family(extra_members=0)])

        assert summary.total_families == 2
        assert summary.total_members == 4
        assert summary.mean_members_per_family == 2.0

    def test_condition_counted_once_per_family(self) -> None:
        record = family(
            extra_members=1,
            medical_history={"Diabetes Mellitus": {"CF": True, "M1": True}},
        )

        summary = summarize([record])

        assert [(b.name, b.count) for b in summary.condition_counts] == [
            ("Diabetes Mellitus", 1)
        ]

    def test_explicit_false_is_not_counted(self) -> None:
        record = family(medical_history={"Dengue": {"CF": False}, "Cáncer": {"CF": True}})

        summary = summarize([record])

        assert [b.name for b in summary.condition_counts] == ["Cáncer"]

    def test_sisben_buckets_in_first_seen_order(self) -> None:
        records = [family("B2"), family(""), family("A1"), family("B2")]

        summary = summarize(records)

        assert [(b.name, b.count) for b in summary.sisben_distribution] == [
            ("B2", 2),
            (UNDEFINED_SISBEN, 1),
            ("A1", 1),
        ]

    def test_payload_size_grows_with_records(self) -> None:
        one = summarize([family()]).payload_size_kb
        three = summarize([family(), family(), family()]).payload_size_kb

        assert 0 < one < three

    @given(sizes=st.lists(st.integers(min_value=0, max_value=6), max_size=12))
    def test_sisben_buckets_sum_to_total(self, sizes: list[int]) -> None:
        records = [family(sisben=f"C{n}", extra_members=n) for n in sizes]

        summary = summarize(records)

        assert sum(b.count for b in summary.sisben_distribution) == len(records)
        assert summary.total_members == sum(n + 1 for n in sizes)
