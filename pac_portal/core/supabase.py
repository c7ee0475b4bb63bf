import logging
from functools import lru_cache
from typing import Any, Optional

import httpx

from pac_portal.core.config import get_settings

logger = logging.getLogger("pac_portal.auth")


class SupabaseError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def extract_error_message(res: httpx.Response) -> str:
    try:
        payload = res.json()
    except ValueError:
        return res.text
    if isinstance(payload, dict):
        return (
            payload.get("msg")
            or payload.get("error_description")
            or payload.get("message")
            or payload.get("error")
            or res.text
        )
    return res.text


class SupabaseAuthClient:
    """Thin client for the hosted auth (GoTrue) REST API."""

    def __init__(self, base_url: str, anon_key: str, service_role_key: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self._client = httpx.Client(base_url=f"{self.base_url}/auth/v1", timeout=timeout)

    def _headers(self, token: str | None = None, privileged: bool = False) -> dict[str, str]:
        key = self.service_role_key if privileged else self.anon_key
        return {
            "apikey": key,
            "Authorization": f"Bearer {token or key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            res = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise SupabaseError(f"Falha na comunicacao com o servico de autenticacao: {exc}") from exc
        if res.status_code >= 400:
            raise SupabaseError(extract_error_message(res), status_code=res.status_code)
        if res.status_code == 204 or not res.content:
            return None
        return res.json()

    def get_user(self, access_token: str) -> dict:
        return self._request("GET", "/user", headers=self._headers(access_token))

    def sign_in_with_password(self, email: str, password: str) -> dict:
        return self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers=self._headers(),
        )

    def exchange_code_for_session(self, code: str, code_verifier: str | None = None) -> dict:
        return self._request(
            "POST",
            "/token",
            params={"grant_type": "pkce"},
            json={"auth_code": code, "code_verifier": code_verifier or ""},
            headers=self._headers(),
        )

    def sign_out(self, access_token: str) -> None:
        self._request("POST", "/logout", headers=self._headers(access_token))

    def admin_create_user(self, email: str, password: str, user_metadata: dict | None = None) -> dict:
        payload = {
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": user_metadata or {},
        }
        return self._request("POST", "/admin/users", json=payload, headers=self._headers(privileged=True))

    def admin_delete_user(self, user_id: str) -> None:
        self._request("DELETE", f"/admin/users/{user_id}", headers=self._headers(privileged=True))

    def close(self) -> None:
        self._client.close()


@lru_cache(maxsize=1)
def get_auth_client() -> SupabaseAuthClient:
    settings = get_settings()
    return SupabaseAuthClient(
        settings.SUPABASE_URL,
        settings.SUPABASE_ANON_KEY,
        settings.SUPABASE_SERVICE_ROLE_KEY,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
