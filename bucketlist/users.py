"""User management routes for the bucket-list API."""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from .auth import get_current_user
from .database import get_db, require_object_id
from .models import User
from . import schemas, crud

router = APIRouter(prefix="/api/users", tags=["users"])


def valid_user_id(user_id: str) -> str:
    """Reject malformed user ids before any database access."""
    return require_object_id(user_id)


@router.get("", response_model=List[schemas.UserOut])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Retrieve all registered users.

    Only administrators are allowed to list users.

    Args:
        db (Session): Database session.
        current_user (User): Authenticated user.

    Returns:
        list[UserOut]: Every user, without credentials.
    """
    return crud.list_users(db, current_user)


@router.get("/me", response_model=schemas.UserOut)
def read_me(current_user: User = Depends(get_current_user)):
    """
    Retrieve details of the currently authenticated user.

    Args:
        current_user (User): Authenticated user obtained from JWT token.

    Returns:
        UserOut: User profile information.
    """
    return current_user


@router.put("/{user_id}", response_model=schemas.UserOut)
def update_profile(
    user_in: schemas.UserUpdate,
    user_id: str = Depends(valid_user_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Update name, email or avatar of a user.

    Users may update their own profile, administrators any profile.

    Args:
        user_in (UserUpdate): Fields to change.
        user_id (str): Target user identifier.
        db (Session): Database session.
        current_user (User): Authenticated user.

    Returns:
        UserOut: Updated user profile.
    """
    return crud.update_user(db, user_id, user_in, current_user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str = Depends(valid_user_id),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Delete a user account.

    Users may delete their own account, administrators any account.
    Destinations owned by the account are kept.

    Args:
        user_id (str): Target user identifier.
        db (Session): Database session.
        current_user (User): Authenticated user.
    """
    crud.delete_user(db, user_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
