"""Async client for the BoetePot API.

Besides one coroutine per endpoint this module carries the page-flow rules a
front end needs:

- ``SessionGate`` keeps the admin token (never a bare "logged in" flag) in a
  local file so a restarted front end comes back authenticated until the token
  expires. The server still checks the token on every admin call.
- ``BoetePotClient.load_dashboard`` / ``load_fine_editor`` fetch everything a
  page needs concurrently; if one fetch fails the whole load fails.
- ``PlayerHistoryLookup`` applies only the result of the latest selection.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import httpx

from boetepot.core.exceptions import ErrorKind
from boetepot.schemas.fine import FineRead, FineView
from boetepot.schemas.player import PlayerRead
from boetepot.schemas.public import PlayerHistory
from boetepot.schemas.reason import ReasonRead

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class ApiError(Exception):
    """An API call failed. ``kind`` is None when the server sent no error kind."""

    def __init__(self, message: str, status_code: int, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.kind = kind

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("error") if isinstance(body, dict) else None
        raw_kind = body.get("kind") if isinstance(body, dict) else None
        try:
            kind = ErrorKind(raw_kind) if raw_kind else None
        except ValueError:
            kind = None
        return cls(str(message or response.reason_phrase), response.status_code, kind)


class InvalidCredential(ApiError):
    """The admin password was rejected."""


class SessionGate:
    """Admin session state on the client side: ``anonymous`` or ``authenticated``."""

    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"

    def __init__(self, token_path: Optional[Path] = None):
        self.token_path = Path(token_path) if token_path else None
        self.token: Optional[str] = None
        self.expires_at: Optional[dt.datetime] = None
        self._rehydrate()

    @property
    def state(self) -> str:
        if self.token and self.expires_at and self.expires_at > _utcnow():
            return self.AUTHENTICATED
        return self.ANONYMOUS

    @property
    def is_authenticated(self) -> bool:
        return self.state == self.AUTHENTICATED

    def headers(self) -> Dict[str, str]:
        if not self.is_authenticated:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def store(self, token: str, expires_in: Optional[int]) -> None:
        self.token = token
        self.expires_at = _utcnow() + dt.timedelta(seconds=expires_in or 0)
        if self.token_path:
            self.token_path.parent.mkdir(parents=True, exist_ok=True)
            self.token_path.write_text(
                json.dumps({"access_token": token, "expires_at": self.expires_at.isoformat()})
            )

    def clear(self) -> None:
        self.token = None
        self.expires_at = None
        if self.token_path and self.token_path.exists():
            self.token_path.unlink()

    def _rehydrate(self) -> None:
        if not self.token_path or not self.token_path.exists():
            return
        try:
            data = json.loads(self.token_path.read_text())
            token = data["access_token"]
            expires_at = dt.datetime.fromisoformat(data["expires_at"])
            if expires_at.tzinfo is None:
                # files written without an offset hold UTC
                expires_at = expires_at.replace(tzinfo=dt.timezone.utc)
        except (OSError, ValueError, KeyError, TypeError):
            logger.warning("Ignoring unreadable token file", extra={"path": str(self.token_path)})
            self.clear()
            return
        if expires_at <= _utcnow():
            self.clear()
            return
        self.token = token
        self.expires_at = expires_at


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dt.date):
        return value.isoformat()
    return value


def _payload(**fields: Any) -> Dict[str, Any]:
    return {k: _jsonable(v) for k, v in fields.items()}


@dataclass
class Dashboard:
    total: Decimal
    recent_fines: List[FineView]
    players: List[PlayerRead]


@dataclass
class FineEditor:
    fine: FineView
    players: List[PlayerRead]
    reasons: List[ReasonRead]


class BoetePotClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        gate: Optional[SessionGate] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.gate = gate or SessionGate()
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "BoetePotClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, *, admin: bool = False, **kwargs) -> Any:
        headers = self.gate.headers() if admin else {}
        response = await self._http.request(method, API_PREFIX + path, headers=headers, **kwargs)
        if response.status_code == 401 and admin:
            # The server no longer accepts this token (expired or revoked)
            self.gate.clear()
        if response.is_error:
            raise ApiError.from_response(response)
        if not response.content:
            return None
        return response.json()

    # --- session ---

    async def login(self, password: str) -> None:
        response = await self._http.post(f"{API_PREFIX}/auth/login", json={"password": password})
        if response.status_code == 401:
            err = ApiError.from_response(response)
            raise InvalidCredential(err.message, err.status_code, err.kind)
        if response.is_error:
            raise ApiError.from_response(response)
        data = response.json()
        self.gate.store(data["access_token"], data.get("expires_in"))

    async def logout(self) -> None:
        try:
            if self.gate.is_authenticated:
                await self._request("POST", "/auth/logout", admin=True)
        except ApiError as exc:
            if exc.status_code != 401:
                raise
        finally:
            self.gate.clear()

    async def check_session(self) -> bool:
        """Ask the server whether the stored token is still accepted."""
        if not self.gate.is_authenticated:
            return False
        try:
            await self._request("GET", "/auth/session", admin=True)
        except ApiError as exc:
            if exc.status_code == 401:
                return False
            raise
        return True

    # --- reads ---

    async def total_fines(self) -> Decimal:
        data = await self._request("GET", "/fines/total")
        return Decimal(str(data["total"]))

    async def fines(self, player_id: Optional[int] = None, limit: Optional[int] = None) -> List[FineView]:
        params = {k: v for k, v in (("player_id", player_id), ("limit", limit)) if v is not None}
        data = await self._request("GET", "/fines", params=params)
        return [FineView.model_validate(item) for item in data]

    async def recent_fines(self, limit: int = 5) -> List[FineView]:
        return await self.fines(limit=limit)

    async def get_fine(self, fine_id: int) -> FineView:
        return FineView.model_validate(await self._request("GET", f"/fines/{fine_id}"))

    async def players(self) -> List[PlayerRead]:
        data = await self._request("GET", "/players")
        return [PlayerRead.model_validate(item) for item in data]

    async def get_player(self, player_id: int) -> PlayerRead:
        return PlayerRead.model_validate(await self._request("GET", f"/players/{player_id}"))

    async def reasons(self) -> List[ReasonRead]:
        data = await self._request("GET", "/reasons")
        return [ReasonRead.model_validate(item) for item in data]

    async def get_reason(self, reason_id: int) -> ReasonRead:
        return ReasonRead.model_validate(await self._request("GET", f"/reasons/{reason_id}"))

    async def player_history(self, player_id: int) -> PlayerHistory:
        data = await self._request("GET", f"/public/players/{player_id}/history")
        return PlayerHistory.model_validate(data)

    # --- page loads ---

    async def load_dashboard(self, recent: int = 5) -> Dashboard:
        total, recent_fines, players = await asyncio.gather(
            self.total_fines(), self.recent_fines(recent), self.players()
        )
        return Dashboard(total=total, recent_fines=recent_fines, players=players)

    async def load_fine_editor(self, fine_id: int) -> FineEditor:
        fine, players, reasons = await asyncio.gather(self.get_fine(fine_id), self.players(), self.reasons())
        return FineEditor(fine=fine, players=players, reasons=reasons)

    # --- admin writes ---

    async def create_players(self, names: Iterable[str] | str) -> List[PlayerRead]:
        if isinstance(names, str):
            names = names.splitlines()
        data = await self._request("POST", "/players/batch", admin=True, json={"names": list(names)})
        return [PlayerRead.model_validate(item) for item in data]

    async def update_player(self, player_id: int, name: str) -> PlayerRead:
        data = await self._request("PATCH", f"/players/{player_id}", admin=True, json={"name": name})
        return PlayerRead.model_validate(data)

    async def delete_player(self, player_id: int) -> None:
        await self._request("DELETE", f"/players/{player_id}", admin=True)

    async def create_reasons(self, descriptions: Iterable[str] | str, amount: Decimal = Decimal("0.00")) -> List[ReasonRead]:
        if isinstance(descriptions, str):
            descriptions = descriptions.splitlines()
        data = await self._request(
            "POST",
            "/reasons/batch",
            admin=True,
            json=_payload(descriptions=list(descriptions), amount=amount),
        )
        return [ReasonRead.model_validate(item) for item in data]

    async def update_reason(self, reason_id: int, **changes: Any) -> ReasonRead:
        data = await self._request("PATCH", f"/reasons/{reason_id}", admin=True, json=_payload(**changes))
        return ReasonRead.model_validate(data)

    async def delete_reason(self, reason_id: int) -> None:
        await self._request("DELETE", f"/reasons/{reason_id}", admin=True)

    async def create_fines(
        self,
        player_ids: Iterable[int],
        reason_id: int,
        amount: Optional[Decimal] = None,
        date: Optional[dt.date] = None,
        admin_notes: Optional[str] = None,
    ) -> List[FineRead]:
        payload = _payload(player_ids=list(player_ids), reason_id=reason_id, amount=amount, date=date, admin_notes=admin_notes)
        data = await self._request("POST", "/fines/batch", admin=True, json=payload)
        return [FineRead.model_validate(item) for item in data]

    async def update_fine(self, fine_id: int, **changes: Any) -> FineRead:
        data = await self._request("PATCH", f"/fines/{fine_id}", admin=True, json=_payload(**changes))
        return FineRead.model_validate(data)

    async def delete_fine(self, fine_id: int) -> None:
        await self._request("DELETE", f"/fines/{fine_id}", admin=True)

    async def delete_all_fines(self) -> int:
        data = await self._request("DELETE", "/fines", admin=True, params={"confirm": "true"})
        return data["deleted"]


class PlayerHistoryLookup:
    """Player selection with a generation counter.

    Every ``select`` bumps the generation; a response is applied only if no
    newer selection was made while it was in flight.
    """

    def __init__(self, client: BoetePotClient):
        self.client = client
        self.generation = 0
        self.player_id: Optional[int] = None
        self.history: Optional[PlayerHistory] = None
        self.error: Optional[ApiError] = None

    async def select(self, player_id: Optional[int]) -> Optional[PlayerHistory]:
        self.generation += 1
        generation = self.generation
        self.player_id = player_id
        self.history = None
        self.error = None
        if player_id is None:
            return None

        try:
            history = await self.client.player_history(player_id)
        except ApiError as exc:
            if generation == self.generation:
                self.error = exc
            return None

        if generation != self.generation:
            logger.debug("Discarding stale player history", extra={"player_id": player_id})
            return None
        self.history = history
        return history
