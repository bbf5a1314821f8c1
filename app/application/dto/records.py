from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServiceCreateDTO(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    description: str = ""
    duration: int = Field(gt=0, description="Duration in minutes")
    price: float = Field(ge=0)
    category: str = "general"
    isActive: bool = True
    slug: str | None = None


class ClientCreateDTO(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: str = Field(min_length=1)
    firstName: str = ""
    lastName: str = ""
    phone: str = ""

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("email is required")
        return normalized
