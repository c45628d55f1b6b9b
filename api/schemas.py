from __future__ import annotations

from datetime import datetime as dt_datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from core.services.coaching_status import CoachingStatus


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class LoginRequest(ApiModel):
    email: str = Field(min_length=1, max_length=200)
    password: str = Field(min_length=1, max_length=200)
    terms_accepted: bool = False
    disclaimer_accepted: bool = False


class SignupRequest(ApiModel):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(min_length=1, max_length=80)
    password: str = Field(min_length=6, max_length=200)
    terms_accepted: bool = False
    disclaimer_accepted: bool = False


class AcceptTermsRequest(ApiModel):
    terms_accepted: bool = True
    disclaimer_accepted: bool = True


class UserOut(ApiModel):
    id: int
    email: str
    first_name: str
    last_name: str
    is_admin: bool = False
    terms_accepted: bool = False
    disclaimer_accepted: bool = False
    last_login_at: Optional[dt_datetime] = None
    login_count: int = 0


class LoginResponse(ApiModel):
    success: bool
    user: Optional[UserOut] = None
    token: Optional[str] = None
    error: Optional[str] = None


class AcceptTermsResponse(ApiModel):
    success: bool
    user: UserOut


class SessionResponse(ApiModel):
    user: UserOut


class AdminEnrollRequest(ApiModel):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(min_length=1, max_length=80)
    coaching_type: Optional[str] = Field(default=None, max_length=40)


class CoachingClientOut(ApiModel):
    id: int
    user_id: int
    status: str
    coaching_type: str
    payment_status: str
    start_date: Optional[dt_datetime] = None
    end_date: Optional[dt_datetime] = None
    plan_duration_weeks: int
    created_at: dt_datetime


class EnrollmentResponse(ApiModel):
    success: bool
    client: Optional[CoachingClientOut] = None
    error: Optional[str] = None


class StatusUpdateRequest(ApiModel):
    status: CoachingStatus


class StatusUpdateResponse(ApiModel):
    success: bool


class FormResponseRequest(ApiModel):
    form_type: str = Field(min_length=1, max_length=60)
    responses: Any = Field(default_factory=dict)


class FormSubmissionResponse(ApiModel):
    success: bool
    error: Optional[str] = None


class SimpleStatusResponse(BaseModel):
    status: str
