from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PatientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    ic_number: str = Field(min_length=1, max_length=64)
    location: str | None = Field(default=None, max_length=120)
    dentist: str = Field(min_length=1, max_length=200)

    @field_validator("name", "ic_number", "dentist")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class PatientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    ic_number: str
    location: str
    dentist: str
    created_at: datetime
