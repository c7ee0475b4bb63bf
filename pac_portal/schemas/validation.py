from typing import Any, Iterable, Type, TypeVar

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from pac_portal.core.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

ROOT_FIELD = "_root"
REQUEST_LOCATIONS = ("body", "query", "path", "header", "cookie")


def _message_for(error: dict[str, Any]) -> str:
    kind = error.get("type", "")
    ctx = error.get("ctx") or {}
    if kind == "missing":
        return "Campo obrigatório"
    if kind == "string_too_short":
        if ctx.get("min_length") == 1:
            return "Campo obrigatório"
        return f"Deve ter no mínimo {ctx.get('min_length')} caracteres"
    if kind == "string_too_long":
        return f"Deve ter no máximo {ctx.get('max_length')} caracteres"
    if kind == "uuid_parsing" or kind == "uuid_type":
        return "ID inválido"
    if kind in ("literal_error", "enum"):
        return "Valor inválido"
    if kind == "string_pattern_mismatch":
        return "Formato inválido"
    if kind == "value_error":
        return str(ctx.get("error") or error.get("msg", "Valor inválido"))
    if kind == "extra_forbidden":
        return "Campo não permitido"
    if kind.startswith("bool_"):
        return "Deve ser verdadeiro ou falso"
    if kind.startswith("int_"):
        return "Deve ser um número inteiro"
    if kind.startswith("date_"):
        return "Data inválida"
    if kind.startswith("datetime_"):
        return "Data e hora inválidas"
    if kind == "greater_than_equal":
        return f"Deve ser maior ou igual a {ctx.get('ge')}"
    if kind == "less_than_equal":
        return f"Deve ser menor ou igual a {ctx.get('le')}"
    if kind == "string_type":
        return "Deve ser um texto"
    return error.get("msg", "Valor inválido")


def error_details(errors: Iterable[dict[str, Any]], skip_prefix: bool = False) -> dict[str, list[str]]:
    details: dict[str, list[str]] = {}
    for error in errors:
        loc = tuple(error.get("loc", ()))
        if skip_prefix and loc and loc[0] in REQUEST_LOCATIONS:
            loc = loc[1:]
        field = ".".join(str(part) for part in loc) or ROOT_FIELD
        details.setdefault(field, []).append(_message_for(error))
    return details


def format_errors(exc: PydanticValidationError) -> dict[str, list[str]]:
    return error_details(exc.errors())


def validate_input(model: Type[ModelT], data: Any) -> ModelT:
    """Validate a raw request record, raising the field map as a ``ValidationError``."""
    try:
        return model.model_validate(data if data is not None else {})
    except PydanticValidationError as exc:
        raise ValidationError(format_errors(exc)) from exc


class IdParam(BaseModel):
    id: str = Field(pattern=r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def validate_id(value: Any, field: str = "id") -> str:
    try:
        return IdParam.model_validate({"id": value}).id.lower()
    except PydanticValidationError as exc:
        raise ValidationError({field: ["ID inválido"]}) from exc
