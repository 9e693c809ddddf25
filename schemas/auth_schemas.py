import uuid
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator


class CreateUserRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        if not value or not value.strip():
            raise ValueError('Password is required')
        return value


class UpdateUserRequest(CreateUserRequest):
    pass


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        if not value:
            raise ValueError('Password is required')
        return value


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    created_at: datetime
    updated_at: datetime
    is_chirpy_red: bool

    model_config = {"from_attributes": True}


class LoginResponse(UserResponse):
    token: str
    refresh_token: str


class RefreshResponse(BaseModel):
    token: str


class PolkaData(BaseModel):
    user_id: str = ""


class PolkaWebhookRequest(BaseModel):
    # Missing fields default to empty, so unknown event shapes are still acknowledged
    event: str = ""
    data: PolkaData = Field(default_factory=PolkaData)
