from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from pac_portal.services.slugs import slug_problem

NewsStatus = Literal["rascunho", "publicado", "arquivado"]


def _check_slug(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    problem = slug_problem(value)
    if problem:
        raise ValueError(problem)
    return value


class NewsCreate(BaseModel):
    titulo: str = Field(min_length=3, max_length=200)
    slug: Optional[str] = None
    conteudo: str = Field(min_length=1)
    resumo: Optional[str] = Field(default=None, max_length=500)
    imagem: Optional[str] = None
    categoria: Optional[str] = None
    destaque: bool = False
    data_publicacao: Optional[date] = None
    status: NewsStatus = "rascunho"

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    @field_validator("slug")
    @classmethod
    def valid_slug(cls, value: Optional[str]) -> Optional[str]:
        return _check_slug(value or None)


class NewsUpdate(BaseModel):
    titulo: Optional[str] = Field(default=None, min_length=3, max_length=200)
    slug: Optional[str] = None
    conteudo: Optional[str] = Field(default=None, min_length=1)
    resumo: Optional[str] = Field(default=None, max_length=500)
    imagem: Optional[str] = None
    categoria: Optional[str] = None
    destaque: Optional[bool] = None
    data_publicacao: Optional[date] = None
    status: Optional[NewsStatus] = None

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    @field_validator("slug")
    @classmethod
    def valid_slug(cls, value: Optional[str]) -> Optional[str]:
        return _check_slug(value)


class NewsFilters(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)
    category: Optional[str] = None
    featured: Optional[bool] = None
    search: Optional[str] = None
    status: Optional[NewsStatus] = None


class RelatedNewsParams(BaseModel):
    slug: str = Field(min_length=1)
    category: str = Field(min_length=1)
    limit: int = Field(default=3, ge=1, le=20)
