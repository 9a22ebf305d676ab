from sqlalchemy import or_, select

from examdesk.models.company import Company, Manager
from examdesk.models.user import User
from examdesk.utils.errors import ForbiddenError


def can_manage_company(actor: User, company: Company) -> bool:
    return actor.is_admin or company.owner_id == actor.id


def ensure_can_manage_company(actor: User, company: Company) -> None:
    if not can_manage_company(actor, company):
        raise ForbiddenError("You don't have permission to manage this company")


def ensure_can_act_for_manager(actor: User, manager: Manager) -> None:
    """The manager themself, the owner of the manager's company, or an admin."""
    if manager.user_id == actor.id:
        return
    if can_manage_company(actor, manager.company):
        return
    raise ForbiddenError("You don't have permission to access this manager's exams")


def limit_to_visible_managers(query, manager_id_column, actor: User):
    """
    Narrow a list query to rows whose manager the actor may act for.
    Admins see everything.
    """
    if actor.is_admin:
        return query
    visible = (
        select(Manager.id)
        .join(Company, Manager.company_id == Company.id)
        .where(or_(Manager.user_id == actor.id, Company.owner_id == actor.id))
    )
    return query.filter(manager_id_column.in_(visible))


def ensure_can_edit_authored(actor: User, resource, label: str) -> None:
    """Authored rows are edited by whoever created them, or an admin."""
    if actor.is_admin or resource.created_by == actor.id:
        return
    raise ForbiddenError(f"You don't have permission to modify this {label}")
