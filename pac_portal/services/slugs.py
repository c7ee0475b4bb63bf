import re
from typing import Callable, Optional

from slugify import slugify as _slugify

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 100

_REPLACEMENTS = [
    ("&", " e "),
    ("º", "o"),
    ("ª", "a"),
]


def make_slug(text: Optional[str]) -> str:
    if not text:
        return ""
    return _slugify(
        text,
        separator="-",
        lowercase=True,
        replacements=_REPLACEMENTS,
        max_length=SLUG_MAX_LENGTH,
        word_boundary=True,
    )


def slug_problem(slug: Optional[str]) -> Optional[str]:
    if not slug:
        return "Slug é obrigatório"
    if len(slug) < SLUG_MIN_LENGTH:
        return "Slug deve ter pelo menos 3 caracteres"
    if len(slug) > SLUG_MAX_LENGTH:
        return "Slug não pode ter mais de 100 caracteres"
    if not SLUG_PATTERN.match(slug):
        return "Slug deve conter apenas letras minúsculas, números e hífens"
    if slug.startswith("-") or slug.endswith("-"):
        return "Slug não pode começar ou terminar com hífen"
    if "--" in slug:
        return "Slug não pode ter hífens consecutivos"
    return None


def available_slug(base: str, exists: Callable[[str], bool], fallback: str = "item") -> str:
    """First of ``base``, ``base-2``, ``base-3``... for which ``exists`` is false."""
    slug = make_slug(base) or fallback
    candidate = slug
    suffix = 2
    while exists(candidate):
        candidate = f"{slug}-{suffix}"
        suffix += 1
    return candidate
