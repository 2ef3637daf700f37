from pydantic import BaseModel, EmailStr


class UserCreate(BaseModel):
    """Schema for registering a new user."""
    email: EmailStr
    name: str
    password: str
    password_check: str


class LoginRequest(BaseModel):
    """Schema for logging in."""
    email: EmailStr
    password: str


class UserRead(BaseModel):
    """Schema for reading a user. The password hash is never exposed."""
    id: int
    email: str
    name: str
    created: str
    profile_pic: str
    admin: bool
    premium: bool

    model_config = {"from_attributes": True}
