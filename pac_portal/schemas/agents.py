import re
from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

MATRICULA_LENGTH = 11


def normalize_matricula(value: object) -> str:
    digits = re.sub(r"\D", "", str(value or ""))
    if len(digits) != MATRICULA_LENGTH:
        raise ValueError("Matrícula deve ter exatamente 11 dígitos")
    return digits


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class AgentPersonalFields(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=2)
    graduacao: Optional[str] = None
    tipo_sanguineo: Optional[str] = None
    validade_certificacao: Optional[date] = None
    uf: Optional[str] = Field(default=None, min_length=2, max_length=2)
    data_nascimento: Optional[date] = None
    telefone: Optional[str] = None

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    @field_validator(
        "graduacao",
        "tipo_sanguineo",
        "validade_certificacao",
        "uf",
        "data_nascimento",
        "telefone",
        mode="before",
    )
    @classmethod
    def blank_as_null(cls, value):
        return _blank_to_none(value)

    @field_validator("uf")
    @classmethod
    def upper_uf(cls, value: Optional[str]) -> Optional[str]:
        return value.upper() if value else value


class AgentCreate(AgentPersonalFields):
    matricula: str
    email: EmailStr
    full_name: str = Field(min_length=2)
    role: Literal["admin", "agent"] = "agent"
    avatar_url: Optional[str] = None

    @field_validator("matricula", mode="before")
    @classmethod
    def clean_matricula(cls, value):
        return normalize_matricula(value)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class AgentUpdate(AgentPersonalFields):
    matricula: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[Literal["admin", "agent"]] = None
    avatar_url: Optional[str] = None

    @field_validator("email", "role", mode="before")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Campo obrigatório")
        return value

    @field_validator("matricula", mode="before")
    @classmethod
    def clean_matricula(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return normalize_matricula(value)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else value


class AgentStatusUpdate(BaseModel):
    status: bool

    model_config = {"extra": "forbid"}


class AgentMatriculaUpdate(BaseModel):
    matricula: str

    model_config = {"extra": "forbid"}

    @field_validator("matricula", mode="before")
    @classmethod
    def clean_matricula(cls, value):
        return normalize_matricula(value)


class AgentFilters(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)
    search: Optional[str] = None
    status: Optional[Literal["active", "inactive"]] = None
    role: Optional[Literal["admin", "agent"]] = None


class ProfileSelfUpdate(AgentPersonalFields):
    """Fields an agent may change on their own profile."""
