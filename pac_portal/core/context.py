import uuid
from dataclasses import dataclass, field

from fastapi import Request

SESSION_COOKIE = "sb-access-token"
CODE_VERIFIER_COOKIE = "sb-code-verifier"
DEFAULT_LOCALE = "pt-BR"


@dataclass
class RequestContext:
    """Per-request values handed explicitly to every action."""

    access_token: str | None = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    locale: str = DEFAULT_LOCALE
    code_verifier: str | None = None


def _extract_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        return token or None
    return None


def build_request_context(request: Request) -> RequestContext:
    token = _extract_bearer_token(request) or request.cookies.get(SESSION_COOKIE) or None
    locale = (request.headers.get("accept-language") or DEFAULT_LOCALE).split(",")[0].strip()
    return RequestContext(
        access_token=token,
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        locale=locale or DEFAULT_LOCALE,
        code_verifier=request.cookies.get(CODE_VERIFIER_COOKIE),
    )
