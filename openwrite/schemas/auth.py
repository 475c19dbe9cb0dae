from pydantic import EmailStr, Field, field_validator

from openwrite.schemas.base import CamelModel, require_text


class RegisterRequest(CamelModel):
    name: str = Field(..., max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    check_name = field_validator("name")(require_text)


class LoginRequest(CamelModel):
    email: str
    password: str
