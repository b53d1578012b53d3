"""
Key-value directory clients for the proposal runtime.

- DirectoryClient: the contract the repository consumes
- MemoryDirectory: in-process dict (tests, local dev)
- FileDirectory: atomic JSON snapshot on disk
- HTTPDirectory: remote key-value service over httpx
- Global: set_client(...), get_client(), init_default_client(cfg)

Semantics shared by every driver:
  get() of an absent key returns b"" (not an error)
  set() overwrites; there is no merge and no compare-and-swap
"""

from __future__ import annotations

import abc
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from ..urban_runtime.atomic_store import AtomicStore
from ..urban_runtime.errors import DirectoryError, WriteRejectedError

log = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40

# Global singleton
_client: Optional["DirectoryClient"] = None


class DirectoryClient(abc.ABC):
    @abc.abstractmethod
    async def is_available(self) -> bool:
        ...

    @abc.abstractmethod
    async def get(self, key: str) -> bytes:
        ...

    @abc.abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        ...

    @abc.abstractmethod
    async def get_address(self) -> str:
        ...

    async def aclose(self) -> None:
        return None


class MemoryDirectory(DirectoryClient):
    def __init__(self, address: str = ZERO_ADDRESS, available: bool = True) -> None:
        self.address = address
        self.available = available
        self.data: Dict[str, bytes] = {}

    async def is_available(self) -> bool:
        return self.available

    async def get(self, key: str) -> bytes:
        return self.data.get(key, b"")

    async def set(self, key: str, value: bytes) -> None:
        self.data[key] = bytes(value)

    async def get_address(self) -> str:
        return self.address


class FileDirectory(MemoryDirectory):
    """
    MemoryDirectory persisted through AtomicStore after every write.
    Single-process only; a second process sees writes after reopening.
    """

    def __init__(self, path: str | Path, address: str = ZERO_ADDRESS, keep_backups: int = 2) -> None:
        super().__init__(address=address)
        self.store = AtomicStore(path, keep_backups=keep_backups)
        self.data = self.store.load()
        log.info("file directory opened at %s (%d keys)", self.store.path, len(self.data))

    async def set(self, key: str, value: bytes) -> None:
        await super().set(key, value)
        try:
            self.store.save(self.data)
        except OSError as e:
            raise DirectoryError(f"could not persist {key}: {e}") from e


class HTTPDirectory(DirectoryClient):
    """
    Remote directory over HTTP:

      GET  /health      -> {"ok": true}
      GET  /kv/{key}    -> raw bytes (404 = absent)
      PUT  /kv/{key}    -> raw bytes body, bearer token for writes
      GET  /address     -> {"address": "0x..."}
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        address: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._address = address
        self._http = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    @staticmethod
    def _kv_path(key: str) -> str:
        return "/kv/" + quote(key, safe="")

    async def is_available(self) -> bool:
        try:
            r = await self._http.get("/health")
            if r.status_code != 200:
                return False
            body = r.json()
            if not isinstance(body, dict):
                log.warning("directory %s returned a malformed health body", self.base_url)
                return False
            return bool(body.get("ok"))
        except (httpx.HTTPError, ValueError):
            log.warning("directory %s not reachable", self.base_url)
            return False

    async def get(self, key: str) -> bytes:
        try:
            r = await self._http.get(self._kv_path(key))
        except httpx.HTTPError as e:
            raise DirectoryError(f"GET {key} failed: {e}") from e
        if r.status_code == 404:
            return b""
        if r.status_code != 200:
            raise DirectoryError(f"GET {key} failed: HTTP {r.status_code}")
        return r.content

    async def set(self, key: str, value: bytes) -> None:
        try:
            r = await self._http.put(self._kv_path(key), content=bytes(value), headers=self._headers())
        except httpx.HTTPError as e:
            raise DirectoryError(f"PUT {key} failed: {e}") from e
        if r.status_code in (401, 403):
            raise WriteRejectedError(f"PUT {key} rejected: write not permitted for this identity")
        if r.status_code >= 400:
            raise DirectoryError(f"PUT {key} failed: HTTP {r.status_code}")

    async def get_address(self) -> str:
        if self._address:
            return self._address
        try:
            r = await self._http.get("/address")
            r.raise_for_status()
            self._address = str(r.json()["address"])
        except (httpx.HTTPError, ValueError, KeyError) as e:
            raise DirectoryError(f"could not resolve directory address: {e}") from e
        return self._address

    async def aclose(self) -> None:
        await self._http.aclose()


def build_client(cfg: Dict[str, Any]) -> DirectoryClient:
    """Build a directory from the `directory` config section."""
    section = cfg.get("directory", {}) or {}
    driver = str(section.get("driver", "memory")).lower()
    address = section.get("address") or None

    if driver == "memory":
        return MemoryDirectory(address=address or ZERO_ADDRESS)
    if driver == "file":
        return FileDirectory(section.get("path", "data/directory.json"), address=address or ZERO_ADDRESS)
    if driver == "http":
        url = section.get("url")
        if not url:
            raise ValueError("directory.url is required for the http driver")
        return HTTPDirectory(
            url,
            token=section.get("token") or None,
            address=address,
            timeout=float(section.get("timeout_sec", 10.0)),
        )
    raise ValueError(f"unknown directory driver: {driver}")


def set_client(client: Optional[DirectoryClient]) -> None:
    global _client
    _client = client


def get_client() -> Optional[DirectoryClient]:
    return _client


def init_default_client(cfg: Dict[str, Any], force: bool = False) -> DirectoryClient:
    global _client
    if _client is not None and not force:
        return _client
    c = build_client(cfg)
    set_client(c)
    return c
