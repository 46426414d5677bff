from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.database import get_session
from boetepot.core.security import require_admin
from boetepot.schemas.reason import ReasonBatchCreate, ReasonCreate, ReasonRead, ReasonUpdate
from boetepot.services import reason_service

router = APIRouter(prefix="/reasons", tags=["reasons"])


@router.get("", response_model=List[ReasonRead])
async def get_reasons(session: AsyncSession = Depends(get_session)):
    return await reason_service.list_reasons(session)


@router.post("", response_model=ReasonRead, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
async def create_reason(payload: ReasonCreate, session: AsyncSession = Depends(get_session)):
    return await reason_service.create_reason(session, payload.description, payload.amount)


@router.post(
    "/batch",
    response_model=List[ReasonRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_reasons(payload: ReasonBatchCreate, session: AsyncSession = Depends(get_session)):
    return await reason_service.create_reasons(session, payload.descriptions, payload.amount)


@router.get("/{reason_id}", response_model=ReasonRead)
async def get_reason(reason_id: int, session: AsyncSession = Depends(get_session)):
    return await reason_service.get_reason(session, reason_id)


@router.patch("/{reason_id}", response_model=ReasonRead, dependencies=[Depends(require_admin)])
async def update_reason(reason_id: int, payload: ReasonUpdate, session: AsyncSession = Depends(get_session)):
    return await reason_service.update_reason(
        session, reason_id, description=payload.description, amount=payload.amount
    )


@router.delete("/{reason_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
async def delete_reason(reason_id: int, session: AsyncSession = Depends(get_session)):
    await reason_service.delete_reason(session, reason_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
