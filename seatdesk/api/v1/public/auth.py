from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from seatdesk.db.session import get_db
from seatdesk.core.security import create_access_token, verify_password

from seatdesk.api.deps import get_current_admin
from seatdesk.models.admin import Admin
from seatdesk.schemas.admin import Token, Admin as AdminSchema

router = APIRouter(prefix="/auth", tags=["auth"])


def _build_token_response(admin: Admin) -> Token:
    return Token(
        access_token=create_access_token(subject=str(admin.id)),
        token_type="bearer",
        admin=AdminSchema.model_validate(admin),
    )


@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """Admin login; `username` carries the admin's email."""
    admin = db.query(Admin).filter(Admin.email == form_data.username).first()
    if not admin or not verify_password(form_data.password, admin.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return _build_token_response(admin)


@router.get("/me", response_model=AdminSchema)
def read_me(current_admin: Admin = Depends(get_current_admin)):
    return current_admin
