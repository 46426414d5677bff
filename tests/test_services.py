import datetime as dt
from decimal import Decimal

import pytest

from boetepot.core.exceptions import ErrorKind, PersistenceError
from boetepot.models.fine import Fine
from boetepot.services import fine_service, player_service, public_service, reason_service
from boetepot.services.common import check_amount, commit_or_raise

pytestmark = pytest.mark.anyio


async def _player(session, name="Jan Jansen"):
    return await player_service.create_player(session, name)


async def _reason(session, description="Te laat", amount="5.00"):
    return await reason_service.create_reason(session, description, Decimal(amount))


async def test_total_grows_by_inserted_amount(session):
    player = await _player(session)
    reason = await _reason(session)
    assert await fine_service.total_fines(session) == Decimal("0.00")

    await fine_service.create_fine(session, player.id, reason.id, amount=Decimal("7.50"))
    assert await fine_service.total_fines(session) == Decimal("7.50")

    await fine_service.create_fine(session, player.id, reason.id)
    assert await fine_service.total_fines(session) == Decimal("12.50")


async def test_fine_amount_defaults_to_reason_amount(session):
    player = await _player(session)
    reason = await _reason(session, amount="2.25")

    fine = await fine_service.create_fine(session, player.id, reason.id)

    assert fine.amount == Decimal("2.25")
    assert fine.date == dt.date.today()


async def test_player_with_fines_cannot_be_deleted(session):
    player = await _player(session)
    reason = await _reason(session)
    await fine_service.create_fine(session, player.id, reason.id)

    with pytest.raises(PersistenceError) as excinfo:
        await player_service.delete_player(session, player.id)

    assert excinfo.value.kind == ErrorKind.REFERENTIAL_VIOLATION
    assert (await player_service.get_player(session, player.id)).name == "Jan Jansen"


async def test_reason_with_fines_cannot_be_deleted(session):
    player = await _player(session)
    reason = await _reason(session)
    await fine_service.create_fine(session, player.id, reason.id)

    with pytest.raises(PersistenceError) as excinfo:
        await reason_service.delete_reason(session, reason.id)

    assert excinfo.value.kind == ErrorKind.REFERENTIAL_VIOLATION
    assert len(await reason_service.list_reasons(session)) == 1


async def test_unreferenced_player_and_reason_can_be_deleted(session):
    player = await _player(session)
    reason = await _reason(session)

    await player_service.delete_player(session, player.id)
    await reason_service.delete_reason(session, reason.id)

    assert await player_service.list_players(session) == []
    assert await reason_service.list_reasons(session) == []


async def test_player_deletable_once_its_fines_are_gone(session):
    player = await _player(session)
    reason = await _reason(session)
    fine = await fine_service.create_fine(session, player.id, reason.id)

    await fine_service.delete_fine(session, fine.id)
    await player_service.delete_player(session, player.id)

    with pytest.raises(PersistenceError) as excinfo:
        await player_service.get_player(session, player.id)
    assert excinfo.value.kind == ErrorKind.NOT_FOUND


async def test_database_refuses_fine_for_unknown_player(session):
    reason = await _reason(session)
    session.add(Fine(player_id=999, reason_id=reason.id, amount=Decimal("1.00"), date=dt.date(2024, 1, 1)))

    with pytest.raises(PersistenceError) as excinfo:
        await commit_or_raise(session, "Fine")

    assert excinfo.value.kind == ErrorKind.REFERENTIAL_VIOLATION


async def test_duplicate_player_name_rejected(session):
    await _player(session, "Jan")

    with pytest.raises(PersistenceError) as excinfo:
        await player_service.create_players(session, ["Jan"])

    assert excinfo.value.kind == ErrorKind.UNIQUE_VIOLATION
    assert excinfo.value.details["names"] == ["Jan"]


async def test_player_names_differing_in_case_are_distinct(session):
    await _player(session, "Jan Jansen")
    await _player(session, "jan jansen")

    names = sorted(p.name for p in await player_service.list_players(session))
    assert names == ["Jan Jansen", "jan jansen"]


async def test_player_batch_is_all_or_nothing(session):
    await _player(session, "Jan")

    with pytest.raises(PersistenceError):
        await player_service.create_players(session, ["Piet", "Jan", "Klaas"])

    names = [p.name for p in await player_service.list_players(session)]
    assert names == ["Jan"]


async def test_duplicate_inside_batch_rejected(session):
    with pytest.raises(PersistenceError) as excinfo:
        await player_service.create_players(session, ["Kees", "Kees"])

    assert excinfo.value.kind == ErrorKind.UNIQUE_VIOLATION
    assert excinfo.value.details["names"] == ["Kees"]
    assert await player_service.list_players(session) == []


async def test_blank_batch_entries_are_skipped(session):
    players = await player_service.create_players(session, ["  Jan ", "", "   ", "Piet"])

    assert [p.name for p in players] == ["Jan", "Piet"]


async def test_empty_batch_is_invalid(session):
    with pytest.raises(PersistenceError) as excinfo:
        await player_service.create_players(session, ["", "  "])

    assert excinfo.value.kind == ErrorKind.INVALID


async def test_rename_player(session):
    jan = await _player(session, "Jan")
    await _player(session, "Piet")

    with pytest.raises(PersistenceError) as excinfo:
        await player_service.update_player(session, jan.id, "Piet")
    assert excinfo.value.kind == ErrorKind.UNIQUE_VIOLATION

    # keeping the current name is not a conflict
    assert (await player_service.update_player(session, jan.id, "Jan")).name == "Jan"
    assert (await player_service.update_player(session, jan.id, "Johan")).name == "Johan"


async def test_duplicate_reason_description_rejected(session):
    await _reason(session, "Te laat")

    with pytest.raises(PersistenceError) as excinfo:
        await reason_service.create_reasons(session, ["Geel kaart", "Te laat"], Decimal("2.00"))

    assert excinfo.value.kind == ErrorKind.UNIQUE_VIOLATION
    assert len(await reason_service.list_reasons(session)) == 1


async def test_reason_descriptions_differing_in_case_are_distinct(session):
    await _reason(session, "Te laat")
    await reason_service.create_reasons(session, ["te laat", "TE LAAT"], Decimal("2.00"))

    descriptions = sorted(r.description for r in await reason_service.list_reasons(session))
    assert descriptions == ["TE LAAT", "Te laat", "te laat"]


async def test_update_reason_amount_keeps_existing_fines(session):
    player = await _player(session)
    reason = await _reason(session, amount="5.00")
    fine = await fine_service.create_fine(session, player.id, reason.id)

    updated = await reason_service.update_reason(session, reason.id, amount=Decimal("10.00"))

    assert updated.amount == Decimal("10.00")
    assert (await fine_service.get_fine(session, fine.id)).amount == Decimal("5.00")


async def test_fine_batch_creates_one_fine_per_player(session):
    players = await player_service.create_players(session, ["Anna", "Bram", "Cor"])
    reason = await _reason(session, "Telefoon", "3.00")

    fines = await fine_service.create_fines(
        session,
        [p.id for p in players],
        reason.id,
        date=dt.date(2024, 3, 7),
        admin_notes="training",
    )

    assert len(fines) == 3
    assert {f.player_id for f in fines} == {p.id for p in players}
    assert {(f.reason_id, f.amount, f.date, f.admin_notes) for f in fines} == {
        (reason.id, Decimal("3.00"), dt.date(2024, 3, 7), "training")
    }
    assert await fine_service.total_fines(session) == Decimal("9.00")


async def test_fine_batch_with_unknown_player_inserts_nothing(session):
    player = await _player(session)
    reason = await _reason(session)

    with pytest.raises(PersistenceError) as excinfo:
        await fine_service.create_fines(session, [player.id, 4242], reason.id)

    assert excinfo.value.kind == ErrorKind.REFERENTIAL_VIOLATION
    assert excinfo.value.details["player_ids"] == [4242]
    assert await fine_service.list_fines(session) == []


async def test_fine_with_unknown_reason_rejected(session):
    player = await _player(session)

    with pytest.raises(PersistenceError) as excinfo:
        await fine_service.create_fine(session, player.id, 4242)

    assert excinfo.value.kind == ErrorKind.REFERENTIAL_VIOLATION


async def test_negative_amount_rejected(session):
    player = await _player(session)
    reason = await _reason(session)

    with pytest.raises(PersistenceError) as excinfo:
        await fine_service.create_fine(session, player.id, reason.id, amount=Decimal("-1.00"))

    assert excinfo.value.kind == ErrorKind.INVALID


async def test_check_amount_accepts_zero_and_rejects_negatives():
    assert check_amount(Decimal("0.00")) == Decimal("0.00")

    for bad in (Decimal("-0.01"), None):
        with pytest.raises(PersistenceError) as excinfo:
            check_amount(bad)
        assert excinfo.value.kind == ErrorKind.INVALID


async def test_negative_reason_amount_rejected(session):
    with pytest.raises(PersistenceError) as excinfo:
        await _reason(session, amount="-0.01")
    assert excinfo.value.kind == ErrorKind.INVALID

    reason = await _reason(session)
    with pytest.raises(PersistenceError) as excinfo:
        await reason_service.update_reason(session, reason.id, amount=Decimal("-1"))
    assert excinfo.value.kind == ErrorKind.INVALID
    assert (await reason_service.get_reason(session, reason.id)).amount == Decimal("5.00")


async def test_delete_all_fines_resets_total(session):
    players = await player_service.create_players(session, ["Anna", "Bram"])
    reason = await _reason(session)
    await fine_service.create_fines(session, [p.id for p in players], reason.id)

    deleted = await fine_service.delete_all_fines(session)

    assert deleted == 2
    assert await fine_service.total_fines(session) == Decimal("0.00")
    assert len(await player_service.list_players(session)) == 2
    assert len(await reason_service.list_reasons(session)) == 1


async def test_fine_shows_player_name_and_reason(session):
    player = await _player(session, "Jan Jansen")
    reason = await _reason(session, "Te laat", "5.00")
    await fine_service.create_fine(session, player.id, reason.id, date=dt.date(2024, 1, 1))

    [view] = await fine_service.list_fines(session)
    assert view.player_name == "Jan Jansen"
    assert view.reason_description == "Te laat"
    assert view.amount == Decimal("5.00")
    assert view.date == dt.date(2024, 1, 1)

    summary = await public_service.get_summary(session)
    assert summary.total == Decimal("5.00")
    assert [f.id for f in summary.recent_fines] == [view.id]

    history = await public_service.get_player_history(session, player.id)
    assert history.total == Decimal("5.00")
    assert history.player.name == "Jan Jansen"


async def test_list_fines_newest_first_with_limit(session):
    player = await _player(session)
    reason = await _reason(session)
    for day in (3, 1, 2):
        await fine_service.create_fine(session, player.id, reason.id, date=dt.date(2024, 5, day))

    fines = await fine_service.list_fines(session)
    assert [f.date.day for f in fines] == [3, 2, 1]

    recent = await fine_service.list_fines(session, limit=2)
    assert [f.date.day for f in recent] == [3, 2]


async def test_player_history_only_lists_that_player(session):
    anna, bram = await player_service.create_players(session, ["Anna", "Bram"])
    reason = await _reason(session)
    await fine_service.create_fine(session, anna.id, reason.id, amount=Decimal("1.00"))
    await fine_service.create_fine(session, bram.id, reason.id, amount=Decimal("4.00"))
    await fine_service.create_fine(session, anna.id, reason.id, amount=Decimal("2.50"))

    history = await public_service.get_player_history(session, anna.id)

    assert {f.player_id for f in history.fines} == {anna.id}
    assert history.total == Decimal("3.50")
    assert await fine_service.total_fines(session, player_id=bram.id) == Decimal("4.00")


async def test_update_fine_changes_only_given_fields(session):
    anna, bram = await player_service.create_players(session, ["Anna", "Bram"])
    reason = await _reason(session)
    fine = await fine_service.create_fine(
        session, anna.id, reason.id, date=dt.date(2024, 2, 2), admin_notes="eerste keer"
    )

    updated = await fine_service.update_fine(session, fine.id, {"amount": Decimal("8.00"), "player_id": bram.id})
    assert updated.amount == Decimal("8.00")
    assert updated.player_id == bram.id
    assert updated.date == dt.date(2024, 2, 2)
    assert updated.admin_notes == "eerste keer"

    cleared = await fine_service.update_fine(session, fine.id, {"admin_notes": None})
    assert cleared.admin_notes is None


async def test_update_fine_rejects_unknown_reason_and_empty_fields(session):
    player = await _player(session)
    reason = await _reason(session)
    fine = await fine_service.create_fine(session, player.id, reason.id)

    with pytest.raises(PersistenceError) as excinfo:
        await fine_service.update_fine(session, fine.id, {"reason_id": 4242})
    assert excinfo.value.kind == ErrorKind.REFERENTIAL_VIOLATION

    with pytest.raises(PersistenceError) as excinfo:
        await fine_service.update_fine(session, fine.id, {"amount": None})
    assert excinfo.value.kind == ErrorKind.INVALID

    assert (await fine_service.get_fine(session, fine.id)).reason_id == reason.id


async def test_missing_rows_are_not_found(session):
    for call in (
        player_service.get_player(session, 1),
        reason_service.get_reason(session, 1),
        fine_service.get_fine_view(session, 1),
        fine_service.delete_fine(session, 1),
    ):
        with pytest.raises(PersistenceError) as excinfo:
            await call
        assert excinfo.value.kind == ErrorKind.NOT_FOUND
