import asyncio

from repos.doctor_repo import DoctorRepository
from repos.specialty_repo import SpecialtyRepository
from storage.record_store import InMemoryRecordStore

from fakes import CountingStore


def test_doctor_count_uses_shallow_read(populated_doctors):
    store = CountingStore({"doctors": populated_doctors})
    repo = DoctorRepository(store, timeout_s=0)
    assert asyncio.run(repo.count()) == 3
    assert store.calls == [("read", "doctors")]


def test_doctor_count_on_missing_or_empty_collection():
    assert asyncio.run(DoctorRepository(InMemoryRecordStore(), timeout_s=0).count()) == 0
    assert asyncio.run(DoctorRepository(InMemoryRecordStore({"doctors": {}}), timeout_s=0).count()) == 0


def test_distinct_specialties_ignores_blank_values(populated_doctors):
    doctors = dict(populated_doctors, d9={"name": "No specialty", "specialty": "  "})
    repo = DoctorRepository(InMemoryRecordStore({"doctors": doctors}), timeout_s=0)
    assert asyncio.run(repo.distinct_specialties()) == {"Cardiologist", "Dentist"}


def test_list_all_attaches_record_keys(populated_doctors):
    repo = DoctorRepository(InMemoryRecordStore({"doctors": populated_doctors}), timeout_s=0)
    assert {d["doctor_id"] for d in asyncio.run(repo.list_all())} == set(populated_doctors)


def test_specialty_list_skips_non_record_values(partial_specialties):
    store = InMemoryRecordStore({"specialties": dict(partial_specialties, stray=True)})
    rows = asyncio.run(SpecialtyRepository(store, timeout_s=0).list_all())
    assert len(rows) == 12
    assert "stray" not in {r["specialty_key"] for r in rows}
