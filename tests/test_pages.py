import datetime as dt
from decimal import Decimal

import pytest

from boetepot.services import fine_service, player_service, reason_service
from boetepot.ui.admin import DELETE_ALL_PHRASE
from tests.conftest import ADMIN_PASSWORD

pytestmark = pytest.mark.anyio


async def _seed(session):
    player = await player_service.create_player(session, "Jan Jansen")
    reason = await reason_service.create_reason(session, "Te laat", Decimal("5.00"))
    fine = await fine_service.create_fine(session, player.id, reason.id, date=dt.date(2024, 1, 1))
    return player, reason, fine


async def test_landing_page_shows_total_and_recent_fines(client, session):
    await _seed(session)

    response = await client.get("/")

    assert response.status_code == 200
    assert "€ 5,00" in response.text
    assert "Jan Jansen" in response.text
    assert "Te laat" in response.text
    assert "1 januari" in response.text


async def test_landing_page_without_fines(client, db):
    response = await client.get("/")

    assert response.status_code == 200
    assert "€ 0,00" in response.text
    assert "Nog geen boetes." in response.text


async def test_landing_page_player_selection(client, session):
    player, _, _ = await _seed(session)

    response = await client.get("/", params={"player_id": player.id})
    assert "Boetes voor Jan Jansen" in response.text

    unknown = await client.get("/", params={"player_id": 4242})
    assert unknown.status_code == 200
    assert "Speler niet gevonden." in unknown.text


@pytest.mark.parametrize("raw", ["", "  ", "abc"])
async def test_landing_page_placeholder_selection_renders_page(client, session, raw):
    await _seed(session)

    response = await client.get("/", params={"player_id": raw})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "€ 5,00" in response.text
    assert "Boetes voor" not in response.text


async def test_player_page(client, session):
    player, _, _ = await _seed(session)

    response = await client.get(f"/player/{player.id}")
    assert response.status_code == 200
    assert "Boetes voor Jan Jansen" in response.text
    assert "1 januari 2024" in response.text

    missing = await client.get("/player/4242")
    assert missing.status_code == 404
    assert "Speler niet gevonden." in missing.text


async def test_player_names_are_escaped(client, session):
    await player_service.create_player(session, "<script>alert(1)</script>")

    response = await client.get("/")

    assert "<script>alert(1)</script>" not in response.text
    assert "&lt;script&gt;" in response.text


@pytest.mark.parametrize(
    "path", ["/admin/dashboard", "/admin/players", "/admin/reasons", "/admin/fines", "/admin/fines/1/edit"]
)
async def test_admin_pages_redirect_anonymous_visitors(client, db, path):
    response = await client.get(path)

    assert response.status_code == 303
    assert response.headers["location"] == "/admin/login"


async def test_wrong_password_shows_error(client, db):
    response = await client.post("/admin/login", data={"password": "fout"})

    assert response.status_code == 401
    assert "Ongeldig wachtwoord." in response.text
    assert (await client.get("/admin/dashboard")).status_code == 303


async def test_login_and_logout(client, db):
    login = await client.post("/admin/login", data={"password": ADMIN_PASSWORD})
    assert login.status_code == 303
    assert login.headers["location"] == "/admin/dashboard"
    assert "httponly" in login.headers["set-cookie"].lower()

    dashboard = await client.get("/admin/dashboard")
    assert dashboard.status_code == 200
    assert "Admin Dashboard" in dashboard.text

    # an authenticated visitor skips the login form
    assert (await client.get("/admin/login")).headers["location"] == "/admin/dashboard"

    logout = await client.post("/admin/logout")
    assert logout.status_code == 303
    assert logout.headers["location"] == "/admin/login"
    assert (await client.get("/admin/dashboard")).status_code == 303


async def test_revoked_cookie_no_longer_opens_admin(admin_browser):
    token = admin_browser.cookies.get("boetepot_admin")
    assert token
    await admin_browser.post("/admin/logout")

    response = await admin_browser.get("/admin/dashboard", headers={"Cookie": f"boetepot_admin={token}"})
    assert response.status_code == 303


async def test_add_players_from_textarea(admin_browser):
    response = await admin_browser.post("/admin/players", data={"names": "Anna\n\nBram\n"})
    assert response.status_code == 303
    assert response.headers["location"] == "/admin/players?added=2"

    page = await admin_browser.get(response.headers["location"])
    assert "2 speler(s) toegevoegd." in page.text
    assert "Anna" in page.text and "Bram" in page.text


async def test_duplicate_player_keeps_form_input(admin_browser, session):
    await player_service.create_player(session, "Anna")

    response = await admin_browser.post("/admin/players", data={"names": "Cor\nAnna"})

    assert response.status_code == 409
    assert "Eén of meer van deze spelernamen bestaan al." in response.text
    assert "Cor\nAnna</textarea>" in response.text
    assert [p.name for p in await player_service.list_players(session)] == ["Anna"]


async def test_delete_player_with_fines_shows_message(admin_browser, session):
    player, _, _ = await _seed(session)

    response = await admin_browser.post(f"/admin/players/{player.id}/delete")
    assert response.headers["location"] == "/admin/players?error=in_use"

    page = await admin_browser.get(response.headers["location"])
    assert "Er zijn nog boetes aan deze speler gekoppeld." in page.text


async def test_edit_unknown_player_is_terminal(admin_browser, db):
    response = await admin_browser.get("/admin/players/4242/edit")

    assert response.status_code == 404
    assert "Speler niet gevonden." in response.text


async def test_add_reasons_with_decimal_comma(admin_browser, session):
    response = await admin_browser.post(
        "/admin/reasons", data={"descriptions": "Te laat\nGele kaart", "amount": "2,50"}
    )
    assert response.status_code == 303

    reasons = await reason_service.list_reasons(session)
    assert {r.description: r.amount for r in reasons} == {"Gele kaart": Decimal("2.50"), "Te laat": Decimal("2.50")}


@pytest.mark.parametrize("amount", ["1e30", "123456789"])
async def test_oversized_reason_amount_keeps_form_input(admin_browser, session, amount):
    response = await admin_browser.post("/admin/reasons", data={"descriptions": "Te laat", "amount": amount})

    assert response.status_code == 422
    assert "Voer een geldig, niet-negatief bedrag in." in response.text
    assert f'value="{amount}"' in response.text
    assert "Te laat</textarea>" in response.text
    assert await reason_service.list_reasons(session) == []


async def test_add_fines_for_several_players(admin_browser, session):
    anna, bram = await player_service.create_players(session, ["Anna", "Bram"])
    reason = await reason_service.create_reason(session, "Te laat", Decimal("5.00"))

    response = await admin_browser.post(
        "/admin/fines",
        data={
            "player_ids": [str(anna.id), str(bram.id)],
            "reason_id": str(reason.id),
            "amount": "",
            "date": "2024-01-01",
            "admin_notes": "",
        },
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/admin/fines?added=2"
    assert await fine_service.total_fines(session) == Decimal("10.00")


async def test_add_fine_without_players_is_refused(admin_browser, session):
    reason = await reason_service.create_reason(session, "Te laat", Decimal("5.00"))

    response = await admin_browser.post("/admin/fines", data={"reason_id": str(reason.id)})

    assert response.status_code == 422
    assert "Speler(s) en Reden zijn verplicht." in response.text


async def test_edit_fine(admin_browser, session):
    player, reason, fine = await _seed(session)

    page = await admin_browser.get(f"/admin/fines/{fine.id}/edit")
    assert page.status_code == 200
    assert 'value="5.00"' in page.text

    response = await admin_browser.post(
        f"/admin/fines/{fine.id}/edit",
        data={
            "player_id": str(player.id),
            "reason_id": str(reason.id),
            "amount": "7,25",
            "date": "2024-02-03",
            "admin_notes": "aangepast",
        },
    )
    assert response.status_code == 303

    view = await fine_service.get_fine_view(session, fine.id)
    assert view.amount == Decimal("7.25")
    assert view.date == dt.date(2024, 2, 3)
    assert view.admin_notes == "aangepast"


async def test_delete_all_fines_requires_phrase(admin_browser, session):
    await _seed(session)

    refused = await admin_browser.post("/admin/fines/delete-all", data={"confirmation": "ja"})
    assert refused.headers["location"] == "/admin/fines?error=confirm"
    assert len(await fine_service.list_fines(session)) == 1

    cleared = await admin_browser.post("/admin/fines/delete-all", data={"confirmation": DELETE_ALL_PHRASE})
    assert cleared.headers["location"] == "/admin/fines?cleared=1"
    assert await fine_service.total_fines(session) == Decimal("0.00")

    page = await admin_browser.get(cleared.headers["location"])
    assert "Alle boetes zijn succesvol verwijderd." in page.text
