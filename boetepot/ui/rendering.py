from html import escape
from typing import Iterable, List, Optional, Sequence, Tuple

from fastapi.responses import HTMLResponse

from boetepot.schemas.fine import FineView
from boetepot.utils.formatting import format_currency, format_date

STYLE = """
body { font-family: system-ui, sans-serif; margin: 0; background: #f1f5f9; color: #1e293b; }
header { background: #1e88e5; color: white; padding: 0.75rem 1.5rem; display: flex; justify-content: space-between; align-items: center; }
header a, header button { color: white; text-decoration: none; background: none; border: none; font: inherit; cursor: pointer; }
header nav { display: flex; gap: 1rem; align-items: center; }
main { max-width: 960px; margin: 1.5rem auto; padding: 0 1rem; }
.card { background: white; border-radius: 8px; padding: 1rem 1.25rem; margin-bottom: 1.25rem; box-shadow: 0 1px 3px rgba(0,0,0,.08); }
.total { font-size: 2.5rem; font-weight: 700; color: #1e88e5; }
.grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(280px, 1fr)); gap: 1.25rem; }
table { width: 100%; border-collapse: collapse; }
th, td { text-align: left; padding: 0.4rem 0.5rem; border-bottom: 1px solid #e2e8f0; }
.amount { text-align: right; white-space: nowrap; }
.notice { padding: 0.6rem 0.9rem; border-radius: 6px; margin-bottom: 1rem; }
.notice.error { background: #fee2e2; color: #991b1b; }
.notice.success { background: #dcfce7; color: #166534; }
.muted { color: #64748b; }
form.inline { display: inline; }
label { display: block; margin: 0.5rem 0 0.2rem; font-weight: 600; }
input, select, textarea { width: 100%; box-sizing: border-box; padding: 0.4rem; }
button.danger { background: #dc2626; color: white; border: none; padding: 0.4rem 0.8rem; border-radius: 4px; cursor: pointer; }
button.primary { background: #1e88e5; color: white; border: none; padding: 0.5rem 1rem; border-radius: 4px; cursor: pointer; margin-top: 0.75rem; }
"""


def render_page(title: str, body: str, *, admin: bool = False, status_code: int = 200) -> HTMLResponse:
    if admin:
        nav = """
        <a href="/admin/dashboard">Dashboard</a>
        <a href="/">Bekijk Website</a>
        <form class="inline" method="post" action="/admin/logout"><button type="submit">Uitloggen</button></form>
        """
    else:
        nav = '<a href="/admin/login">Admin Login</a>'
    html = f"""<!DOCTYPE html>
<html lang="nl">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{escape(title)} · BoetePot</title>
<style>{STYLE}</style>
</head>
<body>
<header><a href="/"><strong>BoetePot</strong></a><nav>{nav}</nav></header>
<main>
{body}
</main>
</body>
</html>"""
    return HTMLResponse(html, status_code=status_code)


def notice(error: Optional[str] = None, success: Optional[str] = None) -> str:
    parts = []
    if error:
        parts.append(f'<div class="notice error">{escape(error)}</div>')
    if success:
        parts.append(f'<div class="notice success">{escape(success)}</div>')
    return "".join(parts)


def error_card(message: str, retry_href: Optional[str] = None, back_href: Optional[str] = None) -> str:
    links = []
    if retry_href:
        links.append(f'<a href="{escape(retry_href)}">Opnieuw proberen</a>')
    if back_href:
        links.append(f'<a href="{escape(back_href)}">Terug</a>')
    return f'<div class="card">{notice(error=message)}<p>{" · ".join(links)}</p></div>'


def options(items: Iterable[Tuple[object, str]], selected: Sequence = (), placeholder: Optional[str] = None) -> str:
    selected = {str(s) for s in selected}
    html: List[str] = []
    if placeholder is not None:
        html.append(f'<option value="">{escape(placeholder)}</option>')
    for value, label in items:
        sel = " selected" if str(value) in selected else ""
        html.append(f'<option value="{escape(str(value))}"{sel}>{escape(label)}</option>')
    return "".join(html)


def fine_table(fines: List[FineView], *, show_player: bool = True, actions=None) -> str:
    """Table of fines; ``actions`` renders the extra cell for one fine (admin pages)."""
    if not fines:
        return '<p class="muted">Geen boetes gevonden.</p>'
    head = "<th>Datum</th>"
    if show_player:
        head += "<th>Speler</th>"
    head += '<th>Reden</th><th class="amount">Bedrag</th>'
    if actions:
        head += "<th></th>"
    rows = []
    for fine in fines:
        cells = f"<td>{escape(format_date(fine.date, with_year=True))}</td>"
        if show_player:
            cells += f"<td>{escape(fine.player_name)}</td>"
        reason = escape(fine.reason_description)
        if fine.admin_notes and actions:
            reason += f'<br><small class="muted">{escape(fine.admin_notes)}</small>'
        cells += f'<td>{reason}</td><td class="amount">{escape(format_currency(fine.amount))}</td>'
        if actions:
            cells += f"<td>{actions(fine)}</td>"
        rows.append(f"<tr>{cells}</tr>")
    return f"<table><thead><tr>{head}</tr></thead><tbody>{''.join(rows)}</tbody></table>"


def delete_button(action: str, question: str, label: str = "Verwijderen") -> str:
    # confirm() text goes into a JS string inside an attribute
    js_question = escape(question.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n"))
    return (
        f'<form class="inline" method="post" action="{escape(action)}" '
        f"onsubmit=\"return confirm('{js_question}')\">"
        f'<button type="submit" class="danger">{escape(label)}</button></form>'
    )
