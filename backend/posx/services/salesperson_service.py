# Overview: Service-layer operations for salespersons; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Salesperson
from ..validation import ConflictError, NotFoundError, ValidationError
from .auth_service import AuthError, hash_password, verify_password


def _get_owned(client_id: int, salesperson_id: int) -> Salesperson:
    person = db.session.query(Salesperson).filter_by(id=salesperson_id, client_id=client_id).first()
    if not person:
        raise NotFoundError("Salesperson not found")
    return person


def _ensure_phone_free(client_id: int, phone_number: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Salesperson.id).filter_by(client_id=client_id, phone_number=phone_number)
    if exclude_id is not None:
        query = query.filter(Salesperson.id != exclude_id)
    if query.first():
        raise ConflictError("A salesperson with this phone number already exists")


def create_salesperson(*, client_id: int, patch: dict) -> Salesperson:
    _ensure_phone_free(client_id, patch["phone_number"])

    person = Salesperson(
        client_id=client_id,
        name=patch["name"],
        phone_number=patch["phone_number"],
        password_hash=hash_password(patch["password"]),
        can_process_returns=bool(patch.get("can_process_returns", False)),
        can_give_discounts=bool(patch.get("can_give_discounts", False)),
        is_active=True,
    )
    db.session.add(person)
    db.session.commit()
    return person


def list_salespersons(client_id: int, *, active_only: bool = False) -> list[Salesperson]:
    query = db.session.query(Salesperson).filter_by(client_id=client_id)
    if active_only:
        query = query.filter(Salesperson.is_active.is_(True))
    return query.order_by(Salesperson.name.asc(), Salesperson.id.asc()).all()


def update_salesperson(*, client_id: int, salesperson_id: int, patch: dict) -> Salesperson:
    person = _get_owned(client_id, salesperson_id)

    if "phone_number" in patch and patch["phone_number"] != person.phone_number:
        _ensure_phone_free(client_id, patch["phone_number"], exclude_id=person.id)

    for attr in ("name", "phone_number", "can_process_returns", "can_give_discounts", "is_active"):
        if attr in patch and patch[attr] is not None:
            setattr(person, attr, patch[attr])

    db.session.commit()
    return person


def delete_salesperson(*, client_id: int, salesperson_id: int) -> None:
    person = _get_owned(client_id, salesperson_id)
    db.session.delete(person)
    db.session.commit()


def change_password(*, client_id: int, salesperson_id: int, new_password: str) -> None:
    person = _get_owned(client_id, salesperson_id)
    person.password_hash = hash_password(new_password)
    db.session.commit()


def authenticate_salesperson(phone_number: str, password: str) -> Salesperson:
    """
    Check a salesperson's phone number and password.

    The same phone number may be registered with several clients; the first
    account whose password matches wins. Raises AuthError(403) for an
    inactive account and AuthError(401) otherwise.
    """
    if not phone_number or not password:
        raise ValidationError("Phone number and password are required")

    candidates = (
        db.session.query(Salesperson)
        .filter_by(phone_number=phone_number.strip())
        .order_by(Salesperson.id.asc())
        .all()
    )
    for person in candidates:
        if verify_password(password, person.password_hash):
            if not person.is_active:
                raise AuthError("This salesperson account is inactive", status=403)
            return person

    raise AuthError("Invalid phone number or password")
