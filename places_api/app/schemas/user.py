"""
Pydantic models for user data.

Passwords are accepted on signup and login only and are never part of
a response model.
"""

from typing import List

from pydantic import BaseModel, EmailStr, Field, field_validator


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, examples=["Max Schwarz"])
    email: EmailStr = Field(..., examples=["max@example.com"])
    password: str = Field(..., min_length=6, examples=["strongpassword"])

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value.strip()

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class UserLogin(BaseModel):
    email: str = Field(..., examples=["max@example.com"])
    password: str = Field(..., examples=["strongpassword"])


class UserRead(BaseModel):
    """Schema for reading a user; ``places`` lists owned place ids in order."""

    id: str
    name: str
    email: str
    image: str
    places: List[str] = Field(default_factory=list)

    model_config = {
        "from_attributes": True,
    }


class UserListResponse(BaseModel):
    users: List[UserRead]


class AuthResponse(BaseModel):
    userId: str
    email: str
    token: str
