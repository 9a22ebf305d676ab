from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, List, Optional

from examdesk.db.base import get_db
from examdesk.models.company import Manager
from examdesk.models.user import User
from examdesk.schemas.common import Envelope
from examdesk.schemas.company import ManagerCreate, ManagerResponse, ManagerUpdate
from examdesk.services.auth import get_current_user
from examdesk.services.company import create_manager, delete_manager, list_managers, update_manager
from examdesk.services.lookup import get_or_404

router = APIRouter(prefix="/managers", tags=["managers"])


@router.get("", response_model=Envelope[List[ManagerResponse]])
async def list_managers_route(
    company_id: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": await list_managers(db, current_user, company_id=company_id)}


@router.post("", response_model=Envelope[ManagerResponse], status_code=status.HTTP_201_CREATED)
async def create_manager_route(
    manager_data: ManagerCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    manager = await create_manager(db, current_user, manager_data.model_dump())
    return {"success": True, "message": "Manager added to the company", "data": manager}


@router.get("/{manager_id}", response_model=Envelope[ManagerResponse])
async def get_manager(
    manager_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": get_or_404(db, Manager, manager_id, "Manager")}


@router.put("/{manager_id}", response_model=Envelope[ManagerResponse])
async def update_manager_route(
    manager_id: str,
    update_data: ManagerUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    manager = await update_manager(db, current_user, manager_id, update_data.model_dump(exclude_unset=True))
    return {"success": True, "message": "Manager updated", "data": manager}


@router.delete("/{manager_id}", response_model=Envelope)
async def delete_manager_route(
    manager_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    await delete_manager(db, current_user, manager_id)
    return {"success": True, "message": "Manager deleted"}
