from pydantic import BaseModel, EmailStr, UUID4
from typing import Optional


class Admin(BaseModel):
    id: UUID4
    username: str
    email: EmailStr
    is_active: bool

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str
    admin: Admin


class TokenPayload(BaseModel):
    sub: Optional[str] = None
