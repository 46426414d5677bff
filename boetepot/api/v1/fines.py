from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.database import get_session
from boetepot.core.exceptions import ErrorKind, PersistenceError
from boetepot.core.security import require_admin
from boetepot.schemas.fine import (
    FineBatchCreate,
    FineCreate,
    FineRead,
    FinesDeleted,
    FineTotal,
    FineUpdate,
    FineView,
)
from boetepot.services import fine_service

router = APIRouter(prefix="/fines", tags=["fines"])


@router.get("", response_model=List[FineView])
async def get_fines(
    player_id: Optional[int] = None,
    limit: Optional[int] = Query(default=None, ge=1),
    session: AsyncSession = Depends(get_session),
):
    return await fine_service.list_fines(session, player_id=player_id, limit=limit)


@router.get("/total", response_model=FineTotal)
async def get_total(session: AsyncSession = Depends(get_session)):
    return FineTotal(total=await fine_service.total_fines(session))


@router.post("", response_model=FineRead, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
async def create_fine(payload: FineCreate, session: AsyncSession = Depends(get_session)):
    return await fine_service.create_fine(
        session,
        payload.player_id,
        payload.reason_id,
        amount=payload.amount,
        date=payload.date,
        admin_notes=payload.admin_notes,
    )


@router.post(
    "/batch",
    response_model=List[FineRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_fines(payload: FineBatchCreate, session: AsyncSession = Depends(get_session)):
    """One fine per selected player with a shared reason, amount, date and note."""
    return await fine_service.create_fines(
        session,
        payload.player_ids,
        payload.reason_id,
        amount=payload.amount,
        date=payload.date,
        admin_notes=payload.admin_notes,
    )


@router.delete("", response_model=FinesDeleted, dependencies=[Depends(require_admin)])
async def delete_all_fines(
    confirm: bool = Query(default=False, description="Must be true; removes every fine"),
    session: AsyncSession = Depends(get_session),
):
    if not confirm:
        raise PersistenceError(ErrorKind.INVALID, "Deleting all fines requires confirm=true")
    deleted = await fine_service.delete_all_fines(session)
    return FinesDeleted(deleted=deleted)


@router.get("/{fine_id}", response_model=FineView)
async def get_fine(fine_id: int, session: AsyncSession = Depends(get_session)):
    return await fine_service.get_fine_view(session, fine_id)


@router.patch("/{fine_id}", response_model=FineRead, dependencies=[Depends(require_admin)])
async def update_fine(fine_id: int, payload: FineUpdate, session: AsyncSession = Depends(get_session)):
    return await fine_service.update_fine(session, fine_id, payload.model_dump(exclude_unset=True))


@router.delete("/{fine_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
async def delete_fine(fine_id: int, session: AsyncSession = Depends(get_session)):
    await fine_service.delete_fine(session, fine_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
