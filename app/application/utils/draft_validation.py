from __future__ import annotations

import re
from dataclasses import asdict
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator

from app.domain.entities.booking_draft import BookingDraft, ClientDetails


NAME_PATTERN = r"^[A-Za-z\s'-]+$"
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
PHONE_SEPARATORS = re.compile(r"[\s\-().]")


class ClientDetailsSchema(BaseModel):
    first_name: str = Field(min_length=1, max_length=50, pattern=NAME_PATTERN)
    last_name: str = Field(min_length=1, max_length=50, pattern=NAME_PATTERN)
    email: EmailStr
    phone: str
    urgency_level: Literal["standard", "urgent", "emergency"] = "standard"
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        digits = PHONE_SEPARATORS.sub("", value)
        if len(digits) < 10 or not PHONE_PATTERN.match(digits):
            raise ValueError("Please enter a valid phone number")
        return digits


def validate_service_step(draft: BookingDraft) -> dict[str, str]:
    if not draft.selected_service_id:
        return {"selected_service_id": "Please select a service"}
    return {}


def validate_client_details(details: ClientDetails) -> dict[str, str]:
    """Return a field -> message map; empty when the details are complete and well-formed."""
    try:
        ClientDetailsSchema.model_validate(asdict(details))
    except ValidationError as e:
        errors: dict[str, str] = {}
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "client_details"
            errors.setdefault(field, err["msg"])
        return errors
    return {}
