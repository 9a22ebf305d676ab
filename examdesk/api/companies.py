from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, List, Optional

from examdesk.db.base import get_db
from examdesk.models.company import Company
from examdesk.models.user import User
from examdesk.schemas.common import Envelope
from examdesk.schemas.company import CompanyCreate, CompanyResponse, CompanyUpdate
from examdesk.services.auth import get_current_user
from examdesk.services.company import (
    create_company, delete_company, list_companies, list_my_companies, update_company
)
from examdesk.services.lookup import get_or_404

router = APIRouter(prefix="/companies", tags=["companies"])


@router.get("", response_model=Envelope[List[CompanyResponse]])
async def list_companies_route(
    owner_id: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": await list_companies(db, owner_id=owner_id)}


@router.get("/my-companies", response_model=Envelope[List[CompanyResponse]])
async def my_companies(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Any:
    """Companies the caller owns or manages"""
    return {"success": True, "data": await list_my_companies(db, current_user)}


@router.post("", response_model=Envelope[CompanyResponse], status_code=status.HTTP_201_CREATED)
async def create_company_route(
    company_data: CompanyCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    company = await create_company(db, current_user, company_data.model_dump(mode="json"))
    return {"success": True, "message": "Company created", "data": company}


@router.get("/{company_id}", response_model=Envelope[CompanyResponse])
async def get_company(
    company_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": get_or_404(db, Company, company_id, "Company")}


@router.put("/{company_id}", response_model=Envelope[CompanyResponse])
async def update_company_route(
    company_id: str,
    update_data: CompanyUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    company = await update_company(
        db, current_user, company_id, update_data.model_dump(mode="json", exclude_unset=True)
    )
    return {"success": True, "message": "Company updated", "data": company}


@router.delete("/{company_id}", response_model=Envelope)
async def delete_company_route(
    company_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    await delete_company(db, current_user, company_id)
    return {"success": True, "message": "Company deleted"}
