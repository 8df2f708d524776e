"""Master data admin operations and the import-time registry snapshot."""
import pytest

from projectintel.core.errors import ConflictError, NotFoundError, ValidationError
from projectintel.features.master_data.registry import SqlMasterDataRegistry
from projectintel.features.master_data.service import (
    DEFAULT_SECTORS,
    DEFAULT_STATES,
    create_sector,
    create_state,
    list_sectors,
    list_states,
    seed_master_data,
    toggle_sector,
    toggle_state,
    update_sector,
    update_state,
)


def test_seed_is_idempotent(seeded_db):
    seed_master_data()
    assert len(list_states()) == len(DEFAULT_STATES)
    assert [s.name for s in list_sectors()] == sorted(DEFAULT_SECTORS)


def test_create_state_normalizes_code(sqlite_db):
    state = create_state("  Andaman  and Nicobar ", code="an")
    assert state.name == "Andaman and Nicobar"
    assert state.code == "AN"
    assert state.is_active


def test_duplicate_state_name_conflicts_regardless_of_case(sqlite_db):
    create_state("Goa")
    with pytest.raises(ConflictError):
        create_state("GOA")


def test_blank_sector_name_rejected(sqlite_db):
    with pytest.raises(ValidationError):
        create_sector("   ")


def test_toggle_state_flips_and_hides_from_snapshot(seeded_db):
    registry = SqlMasterDataRegistry()
    goa = next(s for s in list_states() if s.name == "Goa")

    assert registry.snapshot().match_state("goa") == "Goa"
    assert toggle_state(goa.state_id).is_active is False
    assert registry.snapshot().match_state("goa") is None
    assert "Goa" not in [s.name for s in list_states(is_active=True)]
    assert toggle_state(goa.state_id).is_active is True


def test_toggle_unknown_ids_not_found(sqlite_db):
    with pytest.raises(NotFoundError):
        toggle_state(404)
    with pytest.raises(NotFoundError):
        toggle_sector(404)


def test_resolve_names_returns_canonical_and_unknown(seeded_db):
    registry = SqlMasterDataRegistry()
    resolved, unknown = registry.resolve_state_names(["kerala", "KERALA", "Atlantis"])
    assert resolved == ["Kerala"]
    assert unknown == ["Atlantis"]


def test_deactivated_state_no_longer_resolves(seeded_db):
    registry = SqlMasterDataRegistry()
    goa = next(s for s in list_states() if s.name == "Goa")
    toggle_state(goa.state_id)

    resolved, unknown = registry.resolve_state_names(["Goa"])
    assert resolved == []
    assert unknown == ["Goa"]


def test_rename_state_updates_name_and_code(seeded_db):
    orissa = create_state("Orissa")
    renamed = update_state(orissa.state_id, name="  Odisha  North ", code="on")
    assert renamed.name == "Odisha North"
    assert renamed.code == "ON"

    resolved, _ = SqlMasterDataRegistry().resolve_state_names(["odisha north"])
    assert resolved == ["Odisha North"]


def test_rename_to_own_name_in_other_casing_is_allowed(seeded_db):
    goa = next(s for s in list_states() if s.name == "Goa")
    assert update_state(goa.state_id, name="GOA").name == "GOA"


def test_rename_state_rejects_existing_name_any_casing(seeded_db):
    goa = next(s for s in list_states() if s.name == "Goa")
    with pytest.raises(ConflictError):
        update_state(goa.state_id, name="kerala")
    assert next(s for s in list_states() if s.state_id == goa.state_id).name == "Goa"


def test_rename_sector_rejects_existing_name_any_casing(seeded_db):
    government = next(s for s in list_sectors() if s.name == "Government")
    with pytest.raises(ConflictError):
        update_sector(government.sector_id, name="INDUSTRIAL")

    renamed = update_sector(government.sector_id, name="Public Sector")
    assert renamed.name == "Public Sector"


def test_rename_missing_records_is_not_found(sqlite_db):
    with pytest.raises(NotFoundError):
        update_state(404, name="Nowhere")
    with pytest.raises(NotFoundError):
        update_sector(404, name="Nothing")
