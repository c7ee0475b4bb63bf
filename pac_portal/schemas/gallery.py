from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from pac_portal.schemas.uploads import UUID_PATTERN
from pac_portal.services.slugs import slug_problem

CategoriaTipo = Literal["fotos", "videos"]
ItemTipo = Literal["foto", "video"]


def _check_slug(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    problem = slug_problem(value)
    if problem:
        raise ValueError(problem)
    return value


class CategoriaCreate(BaseModel):
    nome: str = Field(min_length=3, max_length=100)
    slug: str
    descricao: Optional[str] = Field(default=None, max_length=500)
    tipo: CategoriaTipo
    status: bool = True
    ordem: int = Field(default=0, ge=0, le=999)
    arquivada: bool = False

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    @field_validator("slug")
    @classmethod
    def valid_slug(cls, value: str) -> str:
        return _check_slug(value)


class CategoriaUpdate(BaseModel):
    nome: Optional[str] = Field(default=None, min_length=3, max_length=100)
    slug: Optional[str] = None
    descricao: Optional[str] = Field(default=None, max_length=500)
    tipo: Optional[CategoriaTipo] = None
    status: Optional[bool] = None
    ordem: Optional[int] = Field(default=None, ge=0, le=999)
    arquivada: Optional[bool] = None

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    @field_validator("slug")
    @classmethod
    def valid_slug(cls, value: Optional[str]) -> Optional[str]:
        return _check_slug(value)


class CategoriaFilters(BaseModel):
    search: Optional[str] = None
    tipo: Literal["all", "fotos", "videos"] = "all"
    status: Literal["all", "ativo", "inativo"] = "all"
    arquivada: Literal["all", "true", "false"] = "all"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)


class ItemCreate(BaseModel):
    titulo: str = Field(min_length=3, max_length=200)
    descricao: Optional[str] = Field(default=None, max_length=1000)
    categoria_id: Optional[str] = Field(default=None, pattern=UUID_PATTERN)
    tipo: ItemTipo
    ordem: int = Field(default=0, ge=0, le=999)
    status: bool = True
    destaque: bool = False

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    @field_validator("categoria_id", "descricao", mode="before")
    @classmethod
    def blank_as_null(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ItemUpdate(BaseModel):
    titulo: Optional[str] = Field(default=None, min_length=3, max_length=200)
    descricao: Optional[str] = Field(default=None, max_length=1000)
    categoria_id: Optional[str] = Field(default=None, pattern=UUID_PATTERN)
    ordem: Optional[int] = Field(default=None, ge=0, le=999)
    status: Optional[bool] = None
    destaque: Optional[bool] = None

    model_config = {"extra": "forbid", "str_strip_whitespace": True}


class ItemFilters(BaseModel):
    search: Optional[str] = None
    categoria_id: str = "all"
    tipo: Literal["all", "foto", "video"] = "all"
    status: Literal["all", "ativo", "inativo"] = "all"
    destaque: Literal["all", "true", "false"] = "all"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)
    sortBy: Literal["ordem", "created_at"] = "ordem"
    sortOrder: Literal["asc", "desc"] = "asc"


class PublicItemFilters(BaseModel):
    categoria_slug: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)
