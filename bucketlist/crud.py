"""CRUD operations for users and destinations.

This module contains database interaction logic for user and destination
entities, isolated from FastAPI route handlers. Every operation that acts
on behalf of somebody takes the acting user (``actor``) explicitly and
checks what that user may do before touching the store.
"""

import logging

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas
from .filters import DestinationFilter, compute_stats, filter_destinations

logger = logging.getLogger(__name__)

ADMIN_EXISTS = "An admin already exists."
USER_EXISTS = "User already exists."
DESTINATION_NOT_FOUND = "Destination not found"
USER_NOT_FOUND = "User not found"


def is_admin(actor: models.User) -> bool:
    return actor.role == "admin"


def _forbidden(actor: models.User, detail: str) -> HTTPException:
    logger.warning("Forbidden for user %s: %s", actor.id, detail)
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def _conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _ensure_self_or_admin(actor: models.User, user_id: str, detail: str) -> None:
    if not is_admin(actor) and actor.id != user_id:
        raise _forbidden(actor, detail)


# Users


def admin_exists(db: Session) -> bool:
    return (
        db.execute(
            select(models.User.id).where(models.User.role == "admin")
        ).first()
        is not None
    )


def create_user(
    db: Session, user_in: schemas.UserCreate, hashed_password: str
) -> models.User:
    """
    Create and persist a new user.

    Args:
        db (Session): SQLAlchemy database session.
        user_in (UserCreate): Incoming user data.
        hashed_password (str): Securely hashed password.

    Raises:
        HTTPException: If an admin is requested while one exists, or a
            user with the same email already exists.

    Returns:
        User: Newly created user instance.
    """
    if user_in.role == "admin" and admin_exists(db):
        raise _conflict(ADMIN_EXISTS)
    if get_user_by_email(db, user_in.email):
        raise _conflict(USER_EXISTS)

    user = models.User(
        email=user_in.email,
        name=user_in.name,
        avatar=user_in.avatar,
        hashed_password=hashed_password,
        role=user_in.role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration.
        db.rollback()
        if user_in.role == "admin" and admin_exists(db):
            raise _conflict(ADMIN_EXISTS)
        raise _conflict(USER_EXISTS)
    db.refresh(user)
    logger.info("Registered user %s with role %s", user.id, user.role)
    return user


def get_user_by_email(db: Session, email: str) -> models.User | None:
    """
    Retrieve a user by email address.

    Args:
        db (Session): Database session.
        email (str): User email.

    Returns:
        User | None: User if found, otherwise ``None``.
    """
    return db.execute(
        select(models.User).where(models.User.email == email)
    ).scalar_one_or_none()


def get_user_by_id(db: Session, user_id: str) -> models.User | None:
    """
    Retrieve a user by primary key.

    Args:
        db (Session): Database session.
        user_id (str): User identifier.

    Returns:
        User | None: User if found, otherwise ``None``.
    """
    return db.get(models.User, user_id)


def list_users(db: Session, actor: models.User) -> list[models.User]:
    """Return every user. Administrators only."""
    if not is_admin(actor):
        raise _forbidden(actor, "Only administrators can list users")
    return list(db.scalars(select(models.User).order_by(models.User.created_at)))


def update_user(
    db: Session, user_id: str, user_in: schemas.UserUpdate, actor: models.User
) -> models.User:
    """
    Update name, email or avatar of a user.

    Args:
        db (Session): Database session.
        user_id (str): Target user identifier.
        user_in (UserUpdate): Fields to change.
        actor (User): User performing the update.

    Raises:
        HTTPException: 403 unless the actor is the target or an admin,
            404 if the user is absent, 400 if the email is taken.

    Returns:
        User: Updated user instance.
    """
    _ensure_self_or_admin(actor, user_id, "You can only update your own profile")
    user = get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)

    changes = user_in.model_dump(exclude_unset=True)
    if changes.get("email") is None:
        changes.pop("email", None)
    if changes.get("name") is None:
        changes.pop("name", None)
    if "email" in changes and changes["email"] != user.email:
        if get_user_by_email(db, changes["email"]):
            raise _conflict(USER_EXISTS)

    for key, value in changes.items():
        setattr(user, key, value)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise _conflict(USER_EXISTS)
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: str, actor: models.User) -> None:
    """
    Delete a user account.

    The user's destinations are left in place.

    Args:
        db (Session): Database session.
        user_id (str): Target user identifier.
        actor (User): User performing the deletion.
    """
    _ensure_self_or_admin(actor, user_id, "You can only delete your own account")
    user = get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    db.delete(user)
    db.commit()
    logger.info("User %s deleted by %s", user_id, actor.id)


# Destinations


def to_record(destination: models.Destination) -> dict:
    """Wire-format record of a destination, as consumed by ``filters``."""
    return schemas.DestinationOut.model_validate(destination).model_dump(by_alias=True)


def _find_destination(db: Session, destination_id: str) -> models.Destination:
    destination = db.get(models.Destination, destination_id)
    if destination is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=DESTINATION_NOT_FOUND
        )
    return destination


def _ensure_can_modify(destination: models.Destination, actor: models.User) -> None:
    if is_admin(actor):
        return
    if destination.is_admin_created:
        raise _forbidden(actor, "Only administrators can modify admin-created destinations")
    if destination.user_id != actor.id:
        raise _forbidden(actor, "You can only modify your own destinations")


def list_destinations(
    db: Session,
    actor: models.User,
    criteria: DestinationFilter,
    owner_id: str | None = None,
    include_admin: bool = False,
) -> list[dict]:
    """
    Retrieve filtered and sorted destinations.

    Args:
        db (Session): Database session.
        actor (User): User performing the listing.
        criteria (DestinationFilter): Search, status, country and sort.
        owner_id (str | None): Only destinations of this owner. Defaults
            to the actor for non-admins.
        include_admin (bool): With an owner filter, also keep
            admin-created destinations.

    Returns:
        list[dict]: Matching destination records.
    """
    if not is_admin(actor):
        if owner_id is None:
            owner_id = actor.id
        elif owner_id != actor.id:
            raise _forbidden(actor, "You can only list your own destinations")

    stmt = select(models.Destination)
    if owner_id is not None:
        if include_admin:
            stmt = stmt.where(
                or_(
                    models.Destination.user_id == owner_id,
                    models.Destination.is_admin_created.is_(True),
                )
            )
        else:
            stmt = stmt.where(models.Destination.user_id == owner_id)

    records = [to_record(destination) for destination in db.scalars(stmt)]
    return filter_destinations(records, criteria)


def get_destination(
    db: Session, destination_id: str, actor: models.User
) -> models.Destination:
    """
    Retrieve a single destination.

    Non-admins may read their own destinations and admin-created ones.

    Raises:
        HTTPException: 404 if absent, 403 if not readable by the actor.
    """
    destination = _find_destination(db, destination_id)
    if (
        not is_admin(actor)
        and not destination.is_admin_created
        and destination.user_id != actor.id
    ):
        raise _forbidden(actor, "You can only view your own destinations")
    return destination


def create_destination(
    db: Session, destination_in: schemas.DestinationCreate, actor: models.User
) -> models.Destination:
    """
    Create a destination.

    Non-admins always own what they create and cannot create featured
    or admin-created destinations. Admin-created is the default for
    administrators.

    Args:
        db (Session): Database session.
        destination_in (DestinationCreate): Destination data.
        actor (User): Creating user.

    Returns:
        Destination: Newly created destination.
    """
    data = destination_in.model_dump(exclude={"user_id", "is_admin_created", "featured"})
    if is_admin(actor):
        owner_id = destination_in.user_id or actor.id
        admin_created = (
            True
            if destination_in.is_admin_created is None
            else destination_in.is_admin_created
        )
    else:
        if destination_in.user_id not in (None, actor.id):
            raise _forbidden(actor, "You can only create your own destinations")
        if destination_in.is_admin_created or destination_in.featured:
            raise _forbidden(
                actor, "Only administrators can create featured or admin destinations"
            )
        owner_id = actor.id
        admin_created = False

    destination = models.Destination(
        **data,
        featured=destination_in.featured,
        user_id=owner_id,
        is_admin_created=admin_created,
    )
    db.add(destination)
    db.commit()
    db.refresh(destination)
    logger.info(
        "Destination %s (%s, %s) created for user %s",
        destination.id,
        destination.title,
        destination.country,
        owner_id,
    )
    return destination


def update_destination(
    db: Session,
    destination_id: str,
    destination_in: schemas.DestinationUpdate,
    actor: models.User,
) -> models.Destination:
    """
    Merge the provided fields into an existing destination.

    Only fields present in the request are changed.

    Raises:
        HTTPException: 404 if absent, 403 if the actor may not edit it.
    """
    destination = _find_destination(db, destination_id)
    _ensure_can_modify(destination, actor)

    changes = destination_in.model_dump(exclude_unset=True)
    if "featured" in changes and not is_admin(actor):
        raise _forbidden(actor, "Only administrators can feature destinations")

    for key, value in changes.items():
        setattr(destination, key, value)

    db.add(destination)
    db.commit()
    db.refresh(destination)
    return destination


def delete_destination(
    db: Session, destination_id: str, actor: models.User
) -> dict:
    """
    Delete a destination and return the removed record.

    Personal copies of an admin-created destination are not removed.
    """
    destination = _find_destination(db, destination_id)
    _ensure_can_modify(destination, actor)
    record = to_record(destination)
    db.delete(destination)
    db.commit()
    logger.info("Destination %s deleted by %s", destination_id, actor.id)
    return record


def toggle_featured(
    db: Session, destination_id: str, actor: models.User
) -> models.Destination:
    """Flip the featured flag. Administrators only."""
    if not is_admin(actor):
        raise _forbidden(actor, "Only administrators can feature destinations")
    destination = _find_destination(db, destination_id)
    destination.featured = not destination.featured
    db.add(destination)
    db.commit()
    db.refresh(destination)
    logger.info("Destination %s featured=%s", destination.id, destination.featured)
    return destination


def copy_destination(
    db: Session,
    destination_id: str,
    actor: models.User,
    user_id: str | None = None,
) -> models.Destination:
    """
    Create a personal copy of an admin-created destination.

    Args:
        db (Session): Database session.
        destination_id (str): Admin-created source destination.
        actor (User): User performing the copy.
        user_id (str | None): Owner of the copy, defaults to the actor.
            Only administrators may copy for somebody else.

    Raises:
        HTTPException: 404 if the source is absent, 400 if it is not
            admin-created, 403 when copying for another user.

    Returns:
        Destination: The new personal copy.
    """
    owner_id = user_id or actor.id
    _ensure_self_or_admin(actor, owner_id, "You can only copy destinations for yourself")
    source = _find_destination(db, destination_id)
    if not source.is_admin_created:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only admin-created destinations can be copied",
        )

    copy = models.Destination(
        title=source.title,
        country=source.country,
        description=source.description,
        notes=source.notes,
        status=source.status,
        image_url=source.image_url,
        lat=source.lat,
        lng=source.lng,
        tags=list(source.tags or []),
        rating=source.rating,
        featured=False,
        user_id=owner_id,
        is_admin_created=False,
        parent_destination_id=source.id,
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)
    logger.info("Destination %s copied to %s for user %s", source.id, copy.id, owner_id)
    return copy


def get_user_stats(db: Session, user_id: str, actor: models.User) -> dict:
    """
    Progress statistics over the destinations owned by ``user_id``.

    Admin-created destinations the user can merely see are not counted.
    """
    _ensure_self_or_admin(actor, user_id, "You can only view your own statistics")
    destinations = db.scalars(
        select(models.Destination).where(models.Destination.user_id == user_id)
    )
    return compute_stats(to_record(destination) for destination in destinations)
