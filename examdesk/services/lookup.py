from typing import Iterable, Type, TypeVar

from sqlalchemy.orm import Session

from examdesk.utils.errors import NotFoundError

ModelT = TypeVar("ModelT")


def get_or_404(db: Session, model: Type[ModelT], object_id: str, label: str) -> ModelT:
    obj = db.get(model, object_id)
    if obj is None:
        raise NotFoundError(f"{label} not found", errors={f"{label.lower().replace(' ', '_')}_id": [f"Unknown id {object_id}"]})
    return obj


def ensure_all_exist(db: Session, model: Type[ModelT], ids: Iterable[str], field: str) -> None:
    """NotFound naming every unknown id, before anything is written."""
    wanted = set(ids)
    if not wanted:
        return
    found = {row[0] for row in db.query(model.id).filter(model.id.in_(wanted)).all()}
    missing = sorted(wanted - found)
    if missing:
        raise NotFoundError(
            f"Unknown {field}",
            errors={field: [f"Unknown id {object_id}" for object_id in missing]},
        )
