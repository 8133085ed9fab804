from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.database import get_db
from app.schemas.user import (
    UserCreateRequest,
    UserListOut,
    UserMutationOut,
    UserUpdateRequest,
)
from app.services.user_service import (
    apply_user_action,
    create_user,
    list_users,
    serialize_user,
    user_stats,
)

router = APIRouter()


@router.get("", response_model=UserListOut)
async def get_users(
    db: Session = Depends(get_db),
    status: Optional[str] = None,
    subscription_status: Optional[str] = Query(default=None, alias="subscriptionStatus"),
    search: Optional[str] = None,
):
    rows = list_users(db, status=status, subscription_status=subscription_status, search=search)
    return UserListOut(
        users=[serialize_user(row) for row in rows],
        total=len(rows),
        stats=user_stats(db),
    )


@router.patch("", response_model=UserMutationOut)
async def update_user(payload: UserUpdateRequest, db: Session = Depends(get_db)):
    try:
        user = apply_user_action(db, payload)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return UserMutationOut(
        message=f"User {payload.action} successful",
        user=serialize_user(user),
    )


@router.post("", response_model=UserMutationOut, status_code=201)
async def add_user(payload: UserCreateRequest, db: Session = Depends(get_db)):
    try:
        user = create_user(db, payload)
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return UserMutationOut(message="User created successfully", user=serialize_user(user))
