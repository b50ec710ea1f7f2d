"""定義取得の設定解決（デフォルト値・環境変数・呼び出し側の上書き）"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import FlagClientError, FlagClientErrorCodes

DEFAULT_URL = "http://localhost:4242/api/client/features"
DEFAULT_TOKEN = "default:development.unleash-insecure-api-token"
DEFAULT_APP_NAME = "k1s0"
SDK_NAME = "k1s0-flag-client"
SDK_VERSION = "0.1.0"
# Unleash client specification version the evaluator follows.
SUPPORTED_SPEC_VERSION = "5.1.9"


class UnleashEnvSettings(BaseSettings):
    """UNLEASH_ プレフィックスの環境変数。

    Example: UNLEASH_SERVER_API_URL=https://unleash.example.com/api
    """

    model_config = SettingsConfigDict(env_prefix="UNLEASH_", extra="ignore")

    server_api_url: str | None = None
    server_api_token: str | None = None
    server_instance_id: str | None = None
    app_name: str | None = None


class DefinitionsConfig(BaseModel):
    """定義取得設定。"""

    model_config = ConfigDict(extra="forbid")

    app_name: str = DEFAULT_APP_NAME
    url: str = DEFAULT_URL
    token: str | None = None
    instance_id: str | None = None
    headers: dict[str, Any] = Field(default_factory=dict)
    timeout_seconds: float | None = Field(default=10.0, gt=0)
    # httpx.AsyncClient keyword arguments, passed unchanged; "timeout" overrides timeout_seconds.
    client_options: dict[str, Any] = Field(default_factory=dict)


def _remove_trailing_slash(url: str | None) -> str | None:
    if url and url.endswith("/"):
        return url[:-1]
    return url


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """override を優先して base にマージした新しい辞書を返す。"""
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def get_default_config(default_app_name: str = DEFAULT_APP_NAME) -> DefinitionsConfig:
    """環境変数からデフォルト設定を組み立てる。

    トークンもインスタンス ID も未設定の場合のみ開発用トークンを使う。
    """
    env = UnleashEnvSettings()
    base_url = _remove_trailing_slash(env.server_api_url)
    instance_id = env.server_instance_id or None

    token: str | None = None
    if env.server_api_token:
        token = env.server_api_token
    elif not instance_id:
        token = DEFAULT_TOKEN

    return DefinitionsConfig(
        app_name=env.app_name or default_app_name,
        url=f"{base_url}/client/features" if base_url else DEFAULT_URL,
        token=token,
        instance_id=instance_id,
    )


def resolve_config(
    config: DefinitionsConfig | Mapping[str, Any] | None = None,
) -> DefinitionsConfig:
    """呼び出し側で明示された項目だけをデフォルト設定に上書きする。"""
    defaults = get_default_config()
    if config is None:
        return defaults
    try:
        override = (
            config
            if isinstance(config, DefinitionsConfig)
            else DefinitionsConfig.model_validate(dict(config))
        )
        merged = _deep_merge(defaults.model_dump(), override.model_dump(exclude_unset=True))
        return DefinitionsConfig.model_validate(merged)
    except ValidationError as e:
        raise FlagClientError(
            code=FlagClientErrorCodes.CONFIG_ERROR,
            message=f"Invalid definitions config: {e}",
            cause=e,
        ) from e
