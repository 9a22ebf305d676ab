import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from examdesk.models.company import Company, CompanyStatus, Manager, ManagerStatus
from examdesk.models.user import User, UserRole, UserStatus
from examdesk.services.access import ensure_can_manage_company, limit_to_visible_managers
from examdesk.services.lookup import get_or_404
from examdesk.utils.errors import ConflictError, ForbiddenError

logger = logging.getLogger(__name__)


async def create_company(db: Session, actor: User, company_data: Dict[str, Any]) -> Company:
    company = Company(**company_data, owner_id=actor.id, status=CompanyStatus.ACTIVE)
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


async def list_companies(db: Session, owner_id: Optional[str] = None) -> List[Company]:
    query = db.query(Company)
    if owner_id:
        query = query.filter(Company.owner_id == owner_id)
    return query.order_by(Company.created_at).all()


async def list_my_companies(db: Session, actor: User) -> List[Company]:
    """Companies the actor owns or works in as a manager."""
    return (
        db.query(Company)
        .outerjoin(Manager, Manager.company_id == Company.id)
        .filter(or_(Company.owner_id == actor.id, Manager.user_id == actor.id))
        .distinct()
        .order_by(Company.created_at)
        .all()
    )


async def update_company(db: Session, actor: User, company_id: str, update_data: Dict[str, Any]) -> Company:
    company = get_or_404(db, Company, company_id, "Company")
    ensure_can_manage_company(actor, company)
    for key, value in update_data.items():
        setattr(company, key, value)
    db.commit()
    db.refresh(company)
    return company


async def delete_company(db: Session, actor: User, company_id: str) -> None:
    company = get_or_404(db, Company, company_id, "Company")
    ensure_can_manage_company(actor, company)
    db.delete(company)
    db.commit()


async def create_manager(db: Session, actor: User, manager_data: Dict[str, Any]) -> Manager:
    """
    Register a manager in one of the actor's companies. The person is looked
    up by phone and created with the manager role when unknown.
    """
    company = db.get(Company, manager_data["company_id"])
    if not company or company.owner_id != actor.id:
        raise ForbiddenError("You are not allowed to add managers to this company, or it does not exist")

    user = db.query(User).filter(User.phone == manager_data["phone"]).first()
    if user:
        existing = (
            db.query(Manager)
            .filter(Manager.company_id == company.id, Manager.user_id == user.id)
            .first()
        )
        if existing:
            raise ConflictError("This user is already a manager of this company", data=existing)
    else:
        user = User(
            phone=manager_data["phone"],
            name=manager_data["name"],
            role=UserRole.MANAGER,
            status=UserStatus.ACTIVE,
        )
        db.add(user)
        db.flush()

    manager = Manager(
        company_id=company.id,
        user_id=user.id,
        position=manager_data.get("position"),
        department=manager_data.get("department"),
        status=ManagerStatus.ACTIVE,
        exam_status="not_started",
        can_view_results=False,
    )
    db.add(manager)
    db.commit()
    db.refresh(manager)
    logger.info(f"Added manager {manager.id} to company {company.id}")
    return manager


async def list_managers(db: Session, actor: User, company_id: Optional[str] = None) -> List[Manager]:
    query = limit_to_visible_managers(db.query(Manager), Manager.id, actor)
    if company_id:
        query = query.filter(Manager.company_id == company_id)
    return query.order_by(Manager.created_at).all()


async def update_manager(db: Session, actor: User, manager_id: str, update_data: Dict[str, Any]) -> Manager:
    manager = get_or_404(db, Manager, manager_id, "Manager")
    ensure_can_manage_company(actor, manager.company)
    for key, value in update_data.items():
        setattr(manager, key, value)
    db.commit()
    db.refresh(manager)
    return manager


async def delete_manager(db: Session, actor: User, manager_id: str) -> None:
    manager = get_or_404(db, Manager, manager_id, "Manager")
    ensure_can_manage_company(actor, manager.company)
    db.delete(manager)
    db.commit()
