import datetime as dt
import logging
from datetime import timedelta
from decimal import Decimal
from html import escape
from typing import Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.config import settings
from boetepot.core.database import get_session
from boetepot.core.exceptions import ErrorKind, PersistenceError
from boetepot.core.security import AdminSession, resolve_admin_session
from boetepot.services import fine_service, player_service, reason_service
from boetepot.services.auth_service import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    authenticate_admin,
    create_access_token,
    revoke_token,
)
from boetepot.services.common import split_lines
from boetepot.ui.rendering import delete_button, error_card, fine_table, notice, options, render_page
from boetepot.utils.formatting import format_currency, format_date, parse_amount

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", include_in_schema=False)

DELETE_ALL_PHRASE = "ALLES VERWIJDEREN"

PLAYER_NOTICES = {
    "in_use": "Kon speler niet verwijderen. Er zijn nog boetes aan deze speler gekoppeld.",
    "not_found": "Speler niet gevonden.",
    "failed": "Kon de speler niet verwijderen.",
}
REASON_NOTICES = {
    "in_use": "Kon reden niet verwijderen. Er zijn nog boetes aan deze reden gekoppeld.",
    "not_found": "Reden niet gevonden.",
    "failed": "Kon de reden niet verwijderen.",
}
FINE_NOTICES = {
    "not_found": "Boete niet gevonden.",
    "failed": "Kon de boete niet verwijderen.",
    "confirm": f'Typ "{DELETE_ALL_PHRASE}" om alle boetes te verwijderen.',
    "failed_all": "Fout: Kon niet alle boetes verwijderen.",
}


class LoginRequired(Exception):
    """Raised by admin pages when the visitor has no valid admin session."""


async def admin_page(request: Request, session: AsyncSession = Depends(get_session)) -> AdminSession:
    admin = await resolve_admin_session(session, request.cookies.get(settings.AUTH_COOKIE_NAME))
    if admin is None:
        raise LoginRequired()
    return admin


def register_login_redirect(app):
    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        return RedirectResponse("/admin/login", status_code=303)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


async def _explain(session: AsyncSession, exc: Exception, messages: Dict[ErrorKind, str], default: str) -> Tuple[str, int]:
    """User message and status for a failed write; the session is reset for re-rendering."""
    if isinstance(exc, PersistenceError):
        return messages.get(exc.kind, default), exc.status_code
    logger.exception("Database failure on admin page")
    await session.rollback()
    return default, 503


def _delete_key(exc: Exception) -> str:
    if isinstance(exc, PersistenceError):
        return {
            ErrorKind.REFERENTIAL_VIOLATION: "in_use",
            ErrorKind.NOT_FOUND: "not_found",
        }.get(exc.kind, "failed")
    return "failed"


def _terminal(title: str, message: str, back_href: str) -> HTMLResponse:
    return render_page(title, error_card(message, back_href=back_href), admin=True, status_code=404)


# --- LOGIN / LOGOUT / DASHBOARD ---


def _login_page(error: Optional[str] = None, status_code: int = 200) -> HTMLResponse:
    body = f"""
    <div class="card" style="max-width: 380px; margin: 3rem auto;">
      <h2>Admin Login</h2>
      {notice(error=error)}
      <form method="post" action="/admin/login">
        <label for="password">Wachtwoord</label>
        <input id="password" name="password" type="password" required autofocus>
        <button class="primary" type="submit">Inloggen</button>
      </form>
    </div>"""
    return render_page("Admin Login", body, status_code=status_code)


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, session: AsyncSession = Depends(get_session)):
    if await resolve_admin_session(session, request.cookies.get(settings.AUTH_COOKIE_NAME)):
        return _redirect("/admin/dashboard")
    return _login_page()


@router.post("/login", response_class=HTMLResponse)
async def login_submit(password: str = Form("")):
    if not authenticate_admin(password):
        return _login_page(error="Ongeldig wachtwoord.", status_code=401)

    expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    response = _redirect("/admin/dashboard")
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        create_access_token(expires_delta=expires),
        max_age=int(expires.total_seconds()),
        httponly=True,
        samesite="strict",
        secure=settings.ENVIRONMENT == "production",
    )
    return response


@router.post("/logout")
async def logout(request: Request, session: AsyncSession = Depends(get_session)):
    admin = await resolve_admin_session(session, request.cookies.get(settings.AUTH_COOKIE_NAME))
    if admin is not None:
        await revoke_token(session, admin.jti, admin.expires_at)
    response = _redirect("/admin/login")
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return response


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(admin: AdminSession = Depends(admin_page)):
    cards = [
        ("/admin/fines", "Boete Beheer", "Voeg boetes toe, bewerk ze, of verwijder ze."),
        ("/admin/players", "Speler Beheer", "Beheer spelersinformatie en gegevens."),
        ("/admin/reasons", "Boete Redenen", "Beheer de categorieën voor boetes."),
    ]
    body = '<h2>Admin Dashboard</h2><div class="grid">' + "".join(
        f'<a class="card" href="{href}"><h3>{escape(title)}</h3><p class="muted">{escape(text)}</p></a>'
        for href, title, text in cards
    ) + "</div>"
    return render_page("Dashboard", body, admin=True)


# --- PLAYERS ---


async def _players_page(
    session: AsyncSession,
    error: Optional[str] = None,
    success: Optional[str] = None,
    names_value: str = "",
    status_code: int = 200,
) -> HTMLResponse:
    try:
        players = await player_service.list_players(session)
        rows = "".join(
            f"<tr><td>{escape(p.name)}</td><td>{escape(format_date(p.created_at.date(), with_year=True))}</td>"
            f'<td><a href="/admin/players/{p.id}/edit">Bewerken</a> '
            + delete_button(
                f"/admin/players/{p.id}/delete",
                "Weet je zeker dat je deze speler wilt verwijderen?\n"
                "LET OP: Dit kan mislukken als er nog boetes aan deze speler gekoppeld zijn.",
            )
            + "</td></tr>"
            for p in players
        )
        listing = (
            f"<table><thead><tr><th>Naam</th><th>Toegevoegd</th><th></th></tr></thead><tbody>{rows}</tbody></table>"
            if players
            else '<p class="muted">Nog geen spelers.</p>'
        )
    except SQLAlchemyError:
        logger.exception("Players could not be loaded")
        await session.rollback()
        listing = error_card("Kon de spelers niet laden. Probeer het opnieuw.", retry_href="/admin/players")

    body = f"""
    <h2>Speler Beheer</h2>
    {notice(error=error, success=success)}
    <div class="card">
      <h3>Spelers toevoegen</h3>
      <form method="post" action="/admin/players">
        <label for="names">Namen (één per regel)</label>
        <textarea id="names" name="names" rows="4" required>{escape(names_value)}</textarea>
        <button class="primary" type="submit">Toevoegen</button>
      </form>
    </div>
    <div class="card">{listing}</div>
    """
    return render_page("Speler Beheer", body, admin=True, status_code=status_code)


@router.get("/players", response_class=HTMLResponse)
async def players_page(
    error: Optional[str] = None,
    added: Optional[int] = None,
    deleted: Optional[int] = None,
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    success = None
    if added:
        success = f"{added} speler(s) toegevoegd."
    elif deleted:
        success = "Speler verwijderd."
    return await _players_page(session, error=PLAYER_NOTICES.get(error or ""), success=success)


@router.post("/players", response_class=HTMLResponse)
async def players_create(
    names: str = Form(""),
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    try:
        created = await player_service.create_players(session, split_lines(names))
    except (PersistenceError, SQLAlchemyError) as exc:
        message, status_code = await _explain(
            session,
            exc,
            {
                ErrorKind.UNIQUE_VIOLATION: "Eén of meer van deze spelernamen bestaan al.",
                ErrorKind.INVALID: "Voer ten minste één geldige spelernaam in.",
            },
            "Kon de spelers niet toevoegen.",
        )
        return await _players_page(session, error=message, names_value=names, status_code=status_code)
    return _redirect(f"/admin/players?added={len(created)}")


def _player_form(player_id: int, name: str, error: Optional[str] = None) -> str:
    return f"""
    <p><a href="/admin/players">&larr; Terug naar Overzicht</a></p>
    <div class="card">
      <h2>Speler bewerken</h2>
      {notice(error=error)}
      <form method="post" action="/admin/players/{player_id}/edit">
        <label for="name">Naam</label>
        <input id="name" name="name" value="{escape(name)}" required>
        <button class="primary" type="submit">Opslaan</button>
      </form>
    </div>"""


@router.get("/players/{player_id}/edit", response_class=HTMLResponse)
async def player_edit_page(
    player_id: int,
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    try:
        player = await player_service.get_player(session, player_id)
    except PersistenceError:
        return _terminal("Speler bewerken", "Speler niet gevonden.", "/admin/players")
    return render_page("Speler bewerken", _player_form(player.id, player.name), admin=True)


@router.post("/players/{player_id}/edit", response_class=HTMLResponse)
async def player_edit_submit(
    player_id: int,
    name: str = Form(""),
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    try:
        await player_service.update_player(session, player_id, name)
    except (PersistenceError, SQLAlchemyError) as exc:
        if isinstance(exc, PersistenceError) and exc.kind == ErrorKind.NOT_FOUND:
            return _terminal("Speler bewerken", "Speler niet gevonden.", "/admin/players")
        message, status_code = await _explain(
            session,
            exc,
            {
                ErrorKind.UNIQUE_VIOLATION: "Deze spelernaam bestaat al.",
                ErrorKind.INVALID: "Spelernaam is verplicht.",
            },
            "Kon de speler niet bijwerken.",
        )
        return render_page("Speler bewerken", _player_form(player_id, name, message), admin=True, status_code=status_code)
    return _redirect("/admin/players")


@router.post("/players/{player_id}/delete")
async def player_delete(
    player_id: int,
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    try:
        await player_service.delete_player(session, player_id)
    except (PersistenceError, SQLAlchemyError) as exc:
        if not isinstance(exc, PersistenceError):
            logger.exception("Player delete failed", extra={"player_id": player_id})
            await session.rollback()
        return _redirect(f"/admin/players?error={_delete_key(exc)}")
    return _redirect("/admin/players?deleted=1")


# --- REASONS ---


async def _reasons_page(
    session: AsyncSession,
    error: Optional[str] = None,
    success: Optional[str] = None,
    descriptions_value: str = "",
    amount_value: str = "",
    status_code: int = 200,
) -> HTMLResponse:
    try:
        reasons = await reason_service.list_reasons(session)
        rows = "".join(
            f"<tr><td>{escape(r.description)}</td><td class='amount'>{escape(format_currency(r.amount))}</td>"
            f'<td><a href="/admin/reasons/{r.id}/edit">Bewerken</a> '
            + delete_button(
                f"/admin/reasons/{r.id}/delete",
                "Weet je zeker dat je deze boetereden wilt verwijderen?\n"
                "LET OP: Dit kan mislukken als er nog boetes aan deze reden gekoppeld zijn.",
            )
            + "</td></tr>"
            for r in reasons
        )
        listing = (
            "<table><thead><tr><th>Omschrijving</th><th class='amount'>Standaardbedrag</th><th></th></tr></thead>"
            f"<tbody>{rows}</tbody></table>"
            if reasons
            else '<p class="muted">Nog geen redenen.</p>'
        )
    except SQLAlchemyError:
        logger.exception("Reasons could not be loaded")
        await session.rollback()
        listing = error_card("Kon de boeteredenen niet laden. Probeer het opnieuw.", retry_href="/admin/reasons")

    body = f"""
    <h2>Boete Redenen</h2>
    {notice(error=error, success=success)}
    <div class="card">
      <h3>Redenen toevoegen</h3>
      <form method="post" action="/admin/reasons">
        <label for="description">Omschrijvingen (één per regel)</label>
        <textarea id="description" name="descriptions" rows="4" required>{escape(descriptions_value)}</textarea>
        <label for="amount">Standaardbedrag</label>
        <input id="amount" name="amount" inputmode="decimal" placeholder="0,00" value="{escape(amount_value)}">
        <button class="primary" type="submit">Toevoegen</button>
      </form>
    </div>
    <div class="card">{listing}</div>
    """
    return render_page("Boete Redenen", body, admin=True, status_code=status_code)


@router.get("/reasons", response_class=HTMLResponse)
async def reasons_page(
    error: Optional[str] = None,
    added: Optional[int] = None,
    deleted: Optional[int] = None,
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    success = None
    if added:
        success = f"{added} reden(en) toegevoegd."
    elif deleted:
        success = "Reden verwijderd."
    return await _reasons_page(session, error=REASON_NOTICES.get(error or ""), success=success)


@router.post("/reasons", response_class=HTMLResponse)
async def reasons_create(
    descriptions: str = Form(""),
    amount: str = Form(""),
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    try:
        amount_value = parse_amount(amount)
    except ValueError:
        return await _reasons_page(
            session,
            error="Voer een geldig, niet-negatief bedrag in.",
            descriptions_value=descriptions,
            amount_value=amount,
            status_code=422,
        )

    try:
        created = await reason_service.create_reasons(
            session, split_lines(descriptions), amount_value if amount_value is not None else Decimal("0.00")
        )
    except (PersistenceError, SQLAlchemyError) as exc:
        message, status_code = await _explain(
            session,
            exc,
            {
                ErrorKind.UNIQUE_VIOLATION: "Eén of meer van deze omschrijvingen bestaan al.",
                ErrorKind.INVALID: "Voer ten minste één geldige omschrijving in.",
            },
            "Kon de redenen niet toevoegen.",
        )
        return await _reasons_page(
            session, error=message, descriptions_value=descriptions, amount_value=amount, status_code=status_code
        )
    return _redirect(f"/admin/reasons?added={len(created)}")


def _reason_form(reason_id: int, description: str, amount: str, error: Optional[str] = None) -> str:
    return f"""
    <p><a href="/admin/reasons">&larr; Terug naar Overzicht</a></p>
    <div class="card">
      <h2>Reden bewerken</h2>
      {notice(error=error)}
      <form method="post" action="/admin/reasons/{reason_id}/edit">
        <label for="description">Omschrijving</label>
        <input id="description" name="description" value="{escape(description)}" required>
        <label for="amount">Standaardbedrag</label>
        <input id="amount" name="amount" inputmode="decimal" value="{escape(amount)}" required>
        <button class="primary" type="submit">Opslaan</button>
      </form>
    </div>"""


@router.get("/reasons/{reason_id}/edit", response_class=HTMLResponse)
async def reason_edit_page(
    reason_id: int,
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    try:
        reason = await reason_service.get_reason(session, reason_id)
    except PersistenceError:
        return _terminal("Reden bewerken", "Reden niet gevonden.", "/admin/reasons")
    form = _reason_form(reason.id, reason.description, f"{reason.amount:.2f}")
    return render_page("Reden bewerken", form, admin=True)


@router.post("/reasons/{reason_id}/edit", response_class=HTMLResponse)
async def reason_edit_submit(
    reason_id: int,
    description: str = Form(""),
    amount: str = Form(""),
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    def rerender(message: str, status_code: int) -> HTMLResponse:
        form = _reason_form(reason_id, description, amount, message)
        return render_page("Reden bewerken", form, admin=True, status_code=status_code)

    try:
        amount_value = parse_amount(amount)
    except ValueError:
        amount_value = None
    if amount_value is None:
        return rerender("Voer een geldig, niet-negatief bedrag in.", 422)

    try:
        await reason_service.update_reason(session, reason_id, description=description, amount=amount_value)
    except (PersistenceError, SQLAlchemyError) as exc:
        if isinstance(exc, PersistenceError) and exc.kind == ErrorKind.NOT_FOUND:
            return _terminal("Reden bewerken", "Reden niet gevonden.", "/admin/reasons")
        message, status_code = await _explain(
            session,
            exc,
            {
                ErrorKind.UNIQUE_VIOLATION: "Deze omschrijving bestaat al.",
                ErrorKind.INVALID: "Omschrijving is verplicht.",
            },
            "Kon de reden niet bijwerken.",
        )
        return rerender(message, status_code)
    return _redirect("/admin/reasons")


@router.post("/reasons/{reason_id}/delete")
async def reason_delete(
    reason_id: int,
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    try:
        await reason_service.delete_reason(session, reason_id)
    except (PersistenceError, SQLAlchemyError) as exc:
        if not isinstance(exc, PersistenceError):
            logger.exception("Reason delete failed", extra={"reason_id": reason_id})
            await session.rollback()
        return _redirect(f"/admin/reasons?error={_delete_key(exc)}")
    return _redirect("/admin/reasons?deleted=1")


# --- FINES ---


def _reason_select(reasons, selected: str, name: str = "reason_id") -> str:
    # data-amount lets the form propose the reason's default amount
    opts = ['<option value="">Selecteer een reden...</option>']
    for r in reasons:
        sel = " selected" if str(r.id) == str(selected) else ""
        opts.append(
            f'<option value="{r.id}" data-amount="{r.amount:.2f}"{sel}>'
            f"{escape(r.description)} ({escape(format_currency(r.amount))})</option>"
        )
    onchange = "var o=this.options[this.selectedIndex];if(o.dataset.amount){document.getElementById('amount').value=o.dataset.amount;}"
    return f'<select id="reason_id" name="{name}" onchange="{onchange}" required>{"".join(opts)}</select>'


def _fine_actions(fine) -> str:
    return f'<a href="/admin/fines/{fine.id}/edit">Bewerken</a> ' + delete_button(
        f"/admin/fines/{fine.id}/delete", "Weet je zeker dat je deze boete wilt verwijderen?"
    )


async def _fines_page(
    session: AsyncSession,
    error: Optional[str] = None,
    success: Optional[str] = None,
    form: Optional[dict] = None,
    status_code: int = 200,
) -> HTMLResponse:
    form = form or {}
    try:
        fines = await fine_service.list_fines(session)
        players = await player_service.list_players(session)
        reasons = await reason_service.list_reasons(session)
    except SQLAlchemyError:
        # The page needs all three lists; one failure fails the page.
        logger.exception("Fines page could not be loaded")
        await session.rollback()
        body = notice(error=error) + error_card("Kon de boetes niet laden. Probeer het opnieuw.", retry_href="/admin/fines")
        return render_page("Boete Beheer", body, admin=True, status_code=503)

    player_options = options(((p.id, p.name) for p in players), selected=form.get('player_ids', []))
    body = f"""
    <h2>Boete Beheer</h2>
    {notice(error=error, success=success)}
    <div class="card">
      <h3>Boete(s) toevoegen</h3>
      <form method="post" action="/admin/fines">
        <label for="player_ids">Speler(s)</label>
        <select id="player_ids" name="player_ids" multiple size="6" required>{player_options}</select>
        <label for="reason_id">Reden</label>
        {_reason_select(reasons, form.get('reason_id', ''))}
        <label for="amount">Bedrag (leeg = standaardbedrag van de reden)</label>
        <input id="amount" name="amount" inputmode="decimal" value="{escape(form.get('amount', ''))}">
        <label for="date">Datum</label>
        <input id="date" name="date" type="date" value="{escape(form.get('date') or dt.date.today().isoformat())}">
        <label for="admin_notes">Notitie (optioneel)</label>
        <textarea id="admin_notes" name="admin_notes" rows="2">{escape(form.get('admin_notes', ''))}</textarea>
        <button class="primary" type="submit">Toevoegen</button>
      </form>
    </div>
    <div class="card">
      <h3>Alle boetes</h3>
      {fine_table(fines, actions=_fine_actions)}
    </div>
    <div class="card">
      <h3>Alle boetes verwijderen</h3>
      <p class="muted">Dit kan niet ongedaan gemaakt worden. Typ <strong>{DELETE_ALL_PHRASE}</strong> ter bevestiging.</p>
      <form method="post" action="/admin/fines/delete-all"
            onsubmit="return confirm('WEET JE ZEKER DAT JE ALLE BOETES WILT VERWIJDEREN? DIT KAN NIET ONGEDAAN GEMAAKT WORDEN!')">
        <input name="confirmation" autocomplete="off">
        <button class="danger" type="submit">Alles verwijderen</button>
      </form>
    </div>
    """
    return render_page("Boete Beheer", body, admin=True, status_code=status_code)


@router.get("/fines", response_class=HTMLResponse)
async def fines_page(
    error: Optional[str] = None,
    added: Optional[int] = None,
    deleted: Optional[int] = None,
    cleared: Optional[int] = None,
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    success = None
    if added:
        success = f"{added} boete(s) toegevoegd."
    elif deleted:
        success = "Boete verwijderd."
    elif cleared is not None:
        success = "Alle boetes zijn succesvol verwijderd."
    return await _fines_page(session, error=FINE_NOTICES.get(error or ""), success=success)


def _parse_fine_date(raw: str) -> Optional[dt.date]:
    raw = (raw or "").strip()
    return dt.date.fromisoformat(raw) if raw else None


@router.post("/fines", response_class=HTMLResponse)
async def fines_create(
    player_ids: List[int] = Form(default=[]),
    reason_id: str = Form(""),
    amount: str = Form(""),
    date: str = Form(""),
    admin_notes: str = Form(""),
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    form = {
        "player_ids": [str(p) for p in player_ids],
        "reason_id": reason_id,
        "amount": amount,
        "date": date,
        "admin_notes": admin_notes,
    }
    if not player_ids or not reason_id.strip().isdigit():
        return await _fines_page(session, error="Speler(s) en Reden zijn verplicht.", form=form, status_code=422)
    try:
        amount_value = parse_amount(amount)
    except ValueError:
        return await _fines_page(session, error="Voer een geldig, niet-negatief bedrag in.", form=form, status_code=422)
    try:
        date_value = _parse_fine_date(date)
    except ValueError:
        return await _fines_page(session, error="Voer een geldige datum in.", form=form, status_code=422)

    try:
        created = await fine_service.create_fines(
            session,
            player_ids,
            int(reason_id),
            amount=amount_value,
            date=date_value,
            admin_notes=admin_notes,
        )
    except (PersistenceError, SQLAlchemyError) as exc:
        message, status_code = await _explain(
            session,
            exc,
            {
                ErrorKind.REFERENTIAL_VIOLATION: "De gekozen speler of reden bestaat niet meer.",
                ErrorKind.INVALID: "Controleer de ingevoerde gegevens.",
            },
            "Kon de boete(s) niet toevoegen. Controleer de gegevens.",
        )
        return await _fines_page(session, error=message, form=form, status_code=status_code)
    return _redirect(f"/admin/fines?added={len(created)}")


def _fine_form(fine_id: int, form: dict, players, reasons, error: Optional[str] = None) -> str:
    player_options = options(((p.id, p.name) for p in players), selected=[form.get('player_id', '')])
    return f"""
    <p><a href="/admin/fines">&larr; Terug naar Overzicht</a></p>
    <div class="card">
      <h2>Boete bewerken</h2>
      {notice(error=error)}
      <form method="post" action="/admin/fines/{fine_id}/edit">
        <label for="player_id">Speler</label>
        <select id="player_id" name="player_id" required>{player_options}</select>
        <label for="reason_id">Reden</label>
        {_reason_select(reasons, form.get('reason_id', ''))}
        <label for="amount">Bedrag</label>
        <input id="amount" name="amount" inputmode="decimal" value="{escape(form.get('amount', ''))}" required>
        <label for="date">Datum</label>
        <input id="date" name="date" type="date" value="{escape(form.get('date', ''))}" required>
        <label for="admin_notes">Notitie (optioneel)</label>
        <textarea id="admin_notes" name="admin_notes" rows="2">{escape(form.get('admin_notes', ''))}</textarea>
        <button class="primary" type="submit">Opslaan</button>
      </form>
    </div>"""


@router.get("/fines/{fine_id}/edit", response_class=HTMLResponse)
async def fine_edit_page(
    fine_id: int,
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    try:
        fine = await fine_service.get_fine(session, fine_id)
        players = await player_service.list_players(session)
        reasons = await reason_service.list_reasons(session)
    except PersistenceError:
        return _terminal("Boete bewerken", "Boete niet gevonden.", "/admin/fines")
    except SQLAlchemyError:
        logger.exception("Fine editor could not be loaded", extra={"fine_id": fine_id})
        await session.rollback()
        body = error_card(
            "Kon de gegevens voor deze boete niet laden.", retry_href=f"/admin/fines/{fine_id}/edit", back_href="/admin/fines"
        )
        return render_page("Boete bewerken", body, admin=True, status_code=503)

    form = {
        "player_id": str(fine.player_id),
        "reason_id": str(fine.reason_id),
        "amount": f"{fine.amount:.2f}",
        "date": fine.date.isoformat(),
        "admin_notes": fine.admin_notes or "",
    }
    return render_page("Boete bewerken", _fine_form(fine.id, form, players, reasons), admin=True)


@router.post("/fines/{fine_id}/edit", response_class=HTMLResponse)
async def fine_edit_submit(
    fine_id: int,
    player_id: str = Form(""),
    reason_id: str = Form(""),
    amount: str = Form(""),
    date: str = Form(""),
    admin_notes: str = Form(""),
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    form = {"player_id": player_id, "reason_id": reason_id, "amount": amount, "date": date, "admin_notes": admin_notes}

    async def rerender(message: str, status_code: int) -> HTMLResponse:
        try:
            await fine_service.get_fine(session, fine_id)
            players = await player_service.list_players(session)
            reasons = await reason_service.list_reasons(session)
        except PersistenceError:
            return _terminal("Boete bewerken", "Boete niet gevonden.", "/admin/fines")
        page = _fine_form(fine_id, form, players, reasons, message)
        return render_page("Boete bewerken", page, admin=True, status_code=status_code)

    try:
        amount_value = parse_amount(amount)
        date_value = _parse_fine_date(date)
    except ValueError:
        return await rerender("Voer een geldig, niet-negatief bedrag en een geldige datum in.", 422)
    if not player_id.isdigit() or not reason_id.isdigit() or amount_value is None or date_value is None:
        return await rerender("Alle velden behalve de notitie zijn verplicht.", 422)

    changes = {
        "player_id": int(player_id),
        "reason_id": int(reason_id),
        "amount": amount_value,
        "date": date_value,
        "admin_notes": admin_notes,
    }
    try:
        await fine_service.update_fine(session, fine_id, changes)
    except (PersistenceError, SQLAlchemyError) as exc:
        if isinstance(exc, PersistenceError) and exc.kind == ErrorKind.NOT_FOUND:
            return _terminal("Boete bewerken", "Boete niet gevonden.", "/admin/fines")
        message, status_code = await _explain(
            session,
            exc,
            {ErrorKind.REFERENTIAL_VIOLATION: "De gekozen speler of reden bestaat niet meer."},
            "Kon de boete niet bijwerken. Controleer de gegevens en probeer het opnieuw.",
        )
        return await rerender(message, status_code)
    return _redirect("/admin/fines")


@router.post("/fines/delete-all")
async def fines_delete_all(
    confirmation: str = Form(""),
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    if confirmation.strip() != DELETE_ALL_PHRASE:
        return _redirect("/admin/fines?error=confirm")
    try:
        deleted = await fine_service.delete_all_fines(session)
    except (PersistenceError, SQLAlchemyError):
        logger.exception("Deleting all fines failed")
        await session.rollback()
        return _redirect("/admin/fines?error=failed_all")
    return _redirect(f"/admin/fines?cleared={deleted}")


@router.post("/fines/{fine_id}/delete")
async def fine_delete(
    fine_id: int,
    session: AsyncSession = Depends(get_session),
    admin: AdminSession = Depends(admin_page),
):
    try:
        await fine_service.delete_fine(session, fine_id)
    except (PersistenceError, SQLAlchemyError) as exc:
        if not isinstance(exc, PersistenceError):
            logger.exception("Fine delete failed", extra={"fine_id": fine_id})
            await session.rollback()
        return _redirect(f"/admin/fines?error={_delete_key(exc)}")
    return _redirect("/admin/fines?deleted=1")
