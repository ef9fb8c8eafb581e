"""
Auth API routes - registration, login and the caller's profile.
"""

import uuid
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.orm import Session

from examprep.constants import ROLES, ROLE_STUDENT
from examprep.database import get_db
from examprep.models.user import User
from examprep.security import get_password_hash, verify_password, create_access_token
from examprep.services.validators import is_valid_class, utc_now
from examprep.routes.deps import get_current_user
from examprep.logging_config import get_logger, log_with_context

router = APIRouter(prefix="/api/auth")
logger = get_logger("auth")


# ── Pydantic schemas ─────────────────────────────────────────

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6, description="At least 6 characters")
    role: str = Field(ROLE_STUDENT, description="admin | student")
    student_class: Optional[int] = Field(None, alias="class", description="8 or 9")

    model_config = {"populate_by_name": True}

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value):
        if not value.strip():
            raise ValueError("Name is required")
        return value.strip()

    @field_validator("role")
    @classmethod
    def role_known(cls, value):
        if value not in ROLES:
            raise ValueError("Invalid role specified")
        return value

    @field_validator("student_class")
    @classmethod
    def class_known(cls, value):
        if value is not None and not is_valid_class(value):
            raise ValueError("Invalid class specified")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None


def serialize_user(user: User) -> dict:
    """Serialize a User for API responses (no password hash)."""
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "class": user.student_class,
        "created_at": user.created_at.isoformat() if user.created_at else None
    }


def _token_response(user: User) -> dict:
    return {
        "access_token": create_access_token(user.id, user.role),
        "token_type": "bearer",
        "user": serialize_user(user)
    }


@router.post("/register", status_code=201)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account and return an access token."""
    email = request.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        id=str(uuid.uuid4()),
        name=request.name,
        email=email,
        password_hash=get_password_hash(request.password),
        role=request.role,
        student_class=request.student_class,
        created_at=utc_now()
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    log_with_context(logger, "INFO", "Registered new {}: {}".format(user.role, email),
                     context={"user_id": str(user.id)})
    return _token_response(user)


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for an access token."""
    email = request.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()

    if not user or not verify_password(request.password, user.password_hash):
        log_with_context(logger, "WARNING", "Failed login attempt",
                         extra_data={"email": email})
        raise HTTPException(status_code=401, detail="Invalid credentials")

    log_with_context(logger, "INFO", "User logged in", context={"user_id": str(user.id)})
    return _token_response(user)


@router.get("/profile")
def get_profile(current_user: User = Depends(get_current_user)):
    return serialize_user(current_user)


@router.put("/profile")
def update_profile(request: ProfileUpdate, current_user: User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    """Update the caller's name and/or email."""
    if request.email is not None:
        email = request.email.strip().lower()
        taken = db.query(User).filter(User.email == email, User.id != current_user.id).first()
        if taken:
            raise HTTPException(status_code=400, detail="Email already registered")
        current_user.email = email
    if request.name is not None:
        if not request.name.strip():
            raise HTTPException(status_code=400, detail="Name cannot be empty")
        current_user.name = request.name.strip()

    db.commit()
    db.refresh(current_user)
    return serialize_user(current_user)
