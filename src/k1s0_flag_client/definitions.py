"""フィーチャー定義の条件付き取得（ETag / 304）"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from .cache import DefinitionsCache, DefinitionsCacheEntry
from .config import (
    DEFAULT_TOKEN,
    DEFAULT_URL,
    SDK_NAME,
    SDK_VERSION,
    SUPPORTED_SPEC_VERSION,
    DefinitionsConfig,
    resolve_config,
)
from .exceptions import StaleCacheError
from .models import ClientFeaturesResponse

logger = structlog.stdlib.get_logger(__name__)

_default_cache = DefinitionsCache()


def default_definitions_cache() -> DefinitionsCache:
    """プロセス共有のデフォルト定義キャッシュを返す。"""
    return _default_cache


def reset_definitions_cache() -> None:
    """デフォルト定義キャッシュを空にする。"""
    _default_cache.clear()


def build_headers(config: DefinitionsConfig) -> dict[str, str]:
    """リクエストヘッダーを組み立てる。呼び出し側のヘッダーが最後に適用される。"""
    headers: dict[str, str] = {
        "content-type": "application/json",
        "user-agent": config.app_name,
        "unleash-client-spec": SUPPORTED_SPEC_VERSION,
        "unleash-sdk": f"{SDK_NAME}:{SDK_VERSION}",
        "unleash-appname": config.app_name,
    }

    # The fallback token is never sent alongside an instance ID.
    send_authorization = not config.instance_id or config.token != DEFAULT_TOKEN
    if send_authorization and config.token:
        headers["authorization"] = config.token

    if config.instance_id:
        headers["unleash-instanceid"] = config.instance_id

    for key, value in config.headers.items():
        if value is not None:
            headers[key.lower()] = str(value)

    return headers


def _cache_key(url: str, headers: Mapping[str, str]) -> str:
    return json.dumps(
        {
            "url": url,
            "authorization": headers.get("authorization", ""),
            "instanceId": headers.get("unleash-instanceid", ""),
            "appName": headers.get("unleash-appname", ""),
        }
    )


def resolve_cache_key(config: DefinitionsConfig | Mapping[str, Any] | None = None) -> str:
    """設定に対応する定義キャッシュのキーを返す。"""
    resolved = resolve_config(config)
    return _cache_key(resolved.url, build_headers(resolved))


class HttpDefinitionsClient:
    """httpx を使ったフィーチャー定義取得クライアント。"""

    def __init__(self, config: DefinitionsConfig) -> None:
        self._config = config
        self._headers = build_headers(config)
        self.cache_key = _cache_key(config.url, self._headers)

    def _make_client(self) -> httpx.AsyncClient:
        options: dict[str, Any] = {"timeout": self._config.timeout_seconds}
        options.update(self._config.client_options)
        return httpx.AsyncClient(**options)

    def _warn_on_fallbacks(self) -> None:
        if self._config.url == DEFAULT_URL:
            logger.warning(
                "Using fallback Unleash API URL",
                url=DEFAULT_URL,
                hint="Provide a URL or set UNLEASH_SERVER_API_URL environment variable.",
            )
        if self._config.token == DEFAULT_TOKEN:
            logger.error(
                "Using fallback default token",
                hint="Pass token or set UNLEASH_SERVER_API_TOKEN environment variable.",
            )

    async def fetch(self, cache: DefinitionsCache) -> ClientFeaturesResponse:
        """定義を取得する。キャッシュ済み ETag があれば条件付きリクエストにする。

        Raises:
            StaleCacheError: 304 を受信したがキャッシュ済み定義がない場合
            httpx.TransportError: 通信エラー（そのまま伝播する）
        """
        self._warn_on_fallbacks()

        headers = dict(self._headers)
        cached = cache.get(self.cache_key)
        if "if-none-match" not in headers and cached is not None and cached.etag:
            headers["if-none-match"] = cached.etag
            logger.debug("Sending conditional request", url=self._config.url, etag=cached.etag)

        async with self._make_client() as client:
            resp = await client.get(self._config.url, headers=headers)

        if resp.status_code == 304:
            if cached is not None and cached.definitions is not None:
                logger.debug("Definitions not modified", url=self._config.url)
                return cached.definitions
            raise StaleCacheError(
                "Received 304 Not Modified but no cached definitions are available."
            )

        definitions: ClientFeaturesResponse = resp.json()

        if resp.is_success:
            etag = resp.headers.get("etag")
            if etag:
                cache.set(self.cache_key, DefinitionsCacheEntry(etag=etag, definitions=definitions))
                logger.debug("Stored definitions", url=self._config.url, etag=etag)
            elif cache.delete(self.cache_key):
                logger.debug("Evicted definitions without ETag", url=self._config.url)

        return definitions


async def fetch_definitions_cached(
    config: DefinitionsConfig | Mapping[str, Any] | None = None,
    cache: DefinitionsCache | None = None,
) -> ClientFeaturesResponse:
    """指定キャッシュを使ってフィーチャー定義を取得する。

    url を指定する場合はエンドポイントの完全なパスを渡すこと:
    ``fetch_definitions_cached({"url": "http://localhost:4242/api/client/features"}, cache)``
    """
    client = HttpDefinitionsClient(resolve_config(config))
    return await client.fetch(cache if cache is not None else _default_cache)


async def fetch_definitions(
    config: DefinitionsConfig | Mapping[str, Any] | None = None,
) -> ClientFeaturesResponse:
    """デフォルト定義キャッシュを使ってフィーチャー定義を取得する。"""
    return await fetch_definitions_cached(config, _default_cache)
