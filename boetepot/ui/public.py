import logging
from html import escape
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.config import settings
from boetepot.core.database import get_session
from boetepot.core.exceptions import ErrorKind, PersistenceError
from boetepot.schemas.public import PlayerHistory
from boetepot.services import public_service
from boetepot.ui.rendering import error_card, fine_table, options, render_page
from boetepot.utils.formatting import format_currency, format_date

logger = logging.getLogger(__name__)

router = APIRouter(include_in_schema=False)


def _history_card(history: PlayerHistory) -> str:
    return f"""
    <div class="card">
      <h3>Boetes voor {escape(history.player.name)}</h3>
      <p>Totaal: <strong>{escape(format_currency(history.total))}</strong></p>
      {fine_table(history.fines, show_player=False)}
    </div>"""


def _selected_player(raw: Optional[str]) -> Optional[int]:
    """Player id from the selector; blank or non-numeric means no selection."""
    raw = (raw or "").strip()
    return int(raw) if raw.isdigit() else None


@router.get("/", response_class=HTMLResponse)
async def landing_page(player_id: Optional[str] = None, session: AsyncSession = Depends(get_session)):
    # the selector's placeholder submits an empty value
    selected_id = _selected_player(player_id)
    try:
        summary = await public_service.get_summary(session, recent_limit=settings.RECENT_FINES_LIMIT)
    except (PersistenceError, SQLAlchemyError):
        logger.exception("Landing page data could not be loaded")
        body = error_card("Kon de startpagina gegevens niet laden. Probeer het opnieuw.", retry_href="/")
        return render_page("Startpagina", body, status_code=503)

    recent = "".join(
        f"<tr><td>{escape(f.player_name)}<br><small class='muted'>{escape(f.reason_description)}</small></td>"
        f"<td class='amount'>{escape(format_currency(f.amount))}<br>"
        f"<small class='muted'>{escape(format_date(f.date))}</small></td></tr>"
        for f in summary.recent_fines
    )
    recent_html = f"<table>{recent}</table>" if recent else '<p class="muted">Nog geen boetes.</p>'

    history_html = ""
    if selected_id is not None:
        # Only this request's selection is rendered; no shared state
        # to overwrite.
        try:
            history = await public_service.get_player_history(session, selected_id)
            history_html = _history_card(history)
        except PersistenceError as exc:
            if exc.kind == ErrorKind.NOT_FOUND:
                history_html = error_card("Speler niet gevonden.")
            else:
                logger.warning("Player history failed", extra={"player_id": selected_id, "kind": exc.kind.value})
                history_html = error_card("Kon de geschiedenis van deze speler niet laden.", retry_href=f"/?player_id={selected_id}")
        except SQLAlchemyError:
            logger.exception("Player history failed", extra={"player_id": selected_id})
            history_html = error_card("Kon de geschiedenis van deze speler niet laden.", retry_href=f"/?player_id={selected_id}")

    player_options = options(
        ((p.id, p.name) for p in summary.players),
        selected=[selected_id] if selected_id is not None else [],
        placeholder="Selecteer een speler...",
    )
    body = f"""
    <div class="card">
      <h2>Totaal aan boetes</h2>
      <div class="total">{escape(format_currency(summary.total))}</div>
    </div>
    <div class="grid">
      <div class="card">
        <h3>Recente Boetes</h3>
        {recent_html}
      </div>
      <div class="card">
        <h3>Bekijk Speler Geschiedenis</h3>
        <form method="get" action="/">
          <select name="player_id" onchange="this.form.submit()">{player_options}</select>
          <noscript><button class="primary" type="submit">Toon</button></noscript>
        </form>
      </div>
    </div>
    {history_html}
    """
    return render_page("Startpagina", body)


@router.get("/player/{player_id}", response_class=HTMLResponse)
async def player_page(player_id: int, session: AsyncSession = Depends(get_session)):
    try:
        history = await public_service.get_player_history(session, player_id)
    except PersistenceError as exc:
        if exc.kind == ErrorKind.NOT_FOUND:
            return render_page("Speler", error_card("Speler niet gevonden.", back_href="/"), status_code=404)
        logger.warning("Player page failed", extra={"player_id": player_id, "kind": exc.kind.value})
        return render_page(
            "Speler",
            error_card("Kon de spelergegevens niet laden.", retry_href=f"/player/{player_id}", back_href="/"),
            status_code=exc.status_code,
        )
    except SQLAlchemyError:
        logger.exception("Player page failed", extra={"player_id": player_id})
        return render_page(
            "Speler",
            error_card("Kon de spelergegevens niet laden.", retry_href=f"/player/{player_id}", back_href="/"),
            status_code=503,
        )
    return render_page(history.player.name, f'<p><a href="/">&larr; Terug naar home</a></p>{_history_card(history)}')
