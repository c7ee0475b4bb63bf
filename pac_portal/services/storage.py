import logging
import re
from functools import lru_cache
from typing import Iterable, Optional
from urllib.parse import quote, unquote

import httpx

from pac_portal.core.config import get_settings
from pac_portal.core.supabase import extract_error_message

logger = logging.getLogger("pac_portal.storage")

_PUBLIC_URL_RE = re.compile(r"/storage/v1/object/public/([^/]+)/(.+)")


class StorageError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def parse_public_url(url: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """Split a public object URL into ``(bucket, path)``; ``(None, None)`` when it is not one."""
    if not url or not isinstance(url, str):
        return None, None
    clean = url.split("?")[0].split("#")[0]
    match = _PUBLIC_URL_RE.search(clean)
    if not match:
        return None, None
    return match.group(1), unquote(match.group(2))


class SupabaseStorageClient:
    def __init__(self, base_url: str, service_role_key: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.service_role_key = service_role_key
        self._client = httpx.Client(base_url=f"{self.base_url}/storage/v1", timeout=timeout)

    def _headers(self, extra: Optional[dict[str, str]] = None) -> dict[str, str]:
        headers = {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            res = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise StorageError(f"Falha na comunicacao com o storage: {exc}") from exc
        if res.status_code >= 400:
            raise StorageError(extract_error_message(res), status_code=res.status_code)
        return res

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
        upsert: bool = False,
    ) -> str:
        headers = self._headers(
            {
                "Content-Type": content_type or "application/octet-stream",
                "cache-control": "max-age=3600",
                "x-upsert": "true" if upsert else "false",
            }
        )
        self._request("POST", f"/object/{bucket}/{quote(path)}", content=data, headers=headers)
        logger.info("upload bucket=%s path=%s bytes=%s", bucket, path, len(data))
        return path

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{quote(path)}"

    def remove(self, bucket: str, paths: Iterable[str]) -> None:
        prefixes = [p for p in paths if p]
        if not prefixes:
            return
        self._request("DELETE", f"/object/{bucket}", json={"prefixes": prefixes}, headers=self._headers())
        logger.info("remove bucket=%s paths=%s", bucket, prefixes)

    def delete_by_url(self, url: Optional[str]) -> bool:
        bucket, path = parse_public_url(url)
        if not bucket or not path:
            return False
        self.remove(bucket, [path])
        return True

    def close(self) -> None:
        self._client.close()


@lru_cache(maxsize=1)
def get_storage_client() -> SupabaseStorageClient:
    settings = get_settings()
    return SupabaseStorageClient(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
