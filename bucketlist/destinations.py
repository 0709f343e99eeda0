"""Destination routes for the bucket-list API.

Successful responses use the ``{success, data}`` envelope, listings add
a ``count``.
"""

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from . import schemas, crud
from .auth import get_current_user
from .database import get_db, require_object_id
from .filters import DestinationFilter
from .models import User

router = APIRouter(prefix="/api/destinations", tags=["destinations"])


def valid_destination_id(id: str) -> str:
    """Reject malformed destination ids before any database access."""
    return require_object_id(id)


def valid_owner_id(user_id: str) -> str:
    """Reject malformed owner ids before any database access."""
    return require_object_id(user_id)


@router.get("", response_model=schemas.DestinationListEnvelope)
def list_destinations(
    search: str = "",
    status_filter: str = Query("all", alias="status"),
    country: str = "",
    sort: str = "newest",
    user_id: str | None = Query(None, alias="userId"),
    include_admin: bool = Query(False, alias="includeAdmin"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Retrieve destinations matching the given filters.

    Search matches title, country or description case-insensitively;
    status and country are exact matches. Results are sorted ``newest``
    (default), ``oldest`` or ``alphabetical`` and never paginated.

    Args:
        search (str): Free-text search.
        status_filter (str): ``all``, ``to-visit`` or ``visited``.
        country (str): Exact country name.
        sort (str): Sort key.
        user_id (str | None): Owner filter.
        include_admin (bool): Also keep admin-created destinations.
        db (Session): Database session.
        current_user (User): Authenticated user.

    Returns:
        DestinationListEnvelope: Matching destinations and their count.
    """
    criteria = DestinationFilter(
        search=search, status=status_filter, country=country, sort=sort
    )
    records = crud.list_destinations(
        db, current_user, criteria, owner_id=user_id, include_admin=include_admin
    )
    return {"success": True, "count": len(records), "data": records}


@router.get("/user/{user_id}/stats", response_model=schemas.StatsEnvelope)
def user_stats(
    user_id: str = Depends(valid_owner_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Retrieve bucket-list progress of a user.

    Args:
        user_id (str): Owner whose destinations are counted.
        db (Session): Database session.
        current_user (User): Authenticated user.

    Returns:
        StatsEnvelope: Totals, visited count, distinct countries and
        progress percentage.
    """
    return {"success": True, "data": crud.get_user_stats(db, user_id, current_user)}


@router.get("/{id}", response_model=schemas.DestinationEnvelope)
def get_destination(
    destination_id: str = Depends(valid_destination_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Retrieve a single destination by ID."""
    return {
        "success": True,
        "data": crud.get_destination(db, destination_id, current_user),
    }


@router.post(
    "",
    response_model=schemas.DestinationEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def create_destination(
    destination_in: schemas.DestinationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Create a new destination.

    Args:
        destination_in (DestinationCreate): Destination data.
        db (Session): Database session.
        current_user (User): Authenticated user.

    Returns:
        DestinationEnvelope: Created destination.
    """
    return {
        "success": True,
        "data": crud.create_destination(db, destination_in, current_user),
    }


@router.put("/{id}", response_model=schemas.DestinationEnvelope)
def update_destination(
    changes: schemas.DestinationUpdate,
    destination_id: str = Depends(valid_destination_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Update an existing destination.

    Only fields provided in the request are changed.

    Args:
        changes (DestinationUpdate): Fields to update.
        destination_id (str): Destination identifier.
        db (Session): Database session.
        current_user (User): Authenticated user.

    Returns:
        DestinationEnvelope: Updated destination.
    """
    return {
        "success": True,
        "data": crud.update_destination(db, destination_id, changes, current_user),
    }


@router.delete("/{id}", response_model=schemas.EmptyEnvelope)
def delete_destination(
    destination_id: str = Depends(valid_destination_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete a destination. Personal copies of it are kept."""
    crud.delete_destination(db, destination_id, current_user)
    return {"success": True, "data": {}}


@router.patch("/{id}/featured", response_model=schemas.DestinationEnvelope)
def toggle_featured(
    destination_id: str = Depends(valid_destination_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Flip the featured flag of a destination (administrators only)."""
    return {
        "success": True,
        "data": crud.toggle_featured(db, destination_id, current_user),
    }


@router.post(
    "/{id}/copy",
    response_model=schemas.DestinationEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def copy_destination(
    destination_id: str = Depends(valid_destination_id),
    request: schemas.CopyRequest | None = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Copy an admin-created destination into a personal bucket list.

    Args:
        destination_id (str): Admin-created source destination.
        request (CopyRequest | None): Optional owner of the copy.
        db (Session): Database session.
        current_user (User): Authenticated user.

    Returns:
        DestinationEnvelope: The new personal copy.
    """
    user_id = request.user_id if request else None
    return {
        "success": True,
        "data": crud.copy_destination(db, destination_id, current_user, user_id),
    }
