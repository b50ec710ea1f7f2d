"""設定解決のユニットテスト"""

import pytest
from k1s0_flag_client import (
    DefinitionsConfig,
    FlagClientError,
    FlagClientErrorCodes,
    get_default_config,
    resolve_config,
)
from k1s0_flag_client.config import DEFAULT_TOKEN, DEFAULT_URL


def test_default_config_without_environment() -> None:
    """環境変数なしではフォールバック URL と開発用トークンを使うこと。"""
    config = get_default_config()
    assert config.url == DEFAULT_URL
    assert config.token == DEFAULT_TOKEN
    assert config.app_name == "k1s0"
    assert config.instance_id is None


def test_default_app_name_argument() -> None:
    """default_app_name 引数がアプリ名に使われること。"""
    assert get_default_config("my-service").app_name == "my-service"


def test_server_api_url_with_trailing_slash(monkeypatch: pytest.MonkeyPatch) -> None:
    """UNLEASH_SERVER_API_URL の末尾スラッシュが除去されること。"""
    monkeypatch.setenv("UNLEASH_SERVER_API_URL", "http://example.com/api/")
    assert get_default_config().url == "http://example.com/api/client/features"


def test_server_api_url_without_trailing_slash(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UNLEASH_SERVER_API_URL", "http://example.org/api")
    assert get_default_config().url == "http://example.org/api/client/features"


def test_no_default_token_when_instance_id_set(monkeypatch: pytest.MonkeyPatch) -> None:
    """UNLEASH_SERVER_INSTANCE_ID 設定時は開発用トークンを設定しないこと。"""
    monkeypatch.setenv("UNLEASH_SERVER_INSTANCE_ID", "instance-id-token")
    config = get_default_config()
    assert config.token is None
    assert config.instance_id == "instance-id-token"


def test_env_token_kept_with_instance_id(monkeypatch: pytest.MonkeyPatch) -> None:
    """明示トークンはインスタンス ID があっても使われること。"""
    monkeypatch.setenv("UNLEASH_SERVER_INSTANCE_ID", "instance-id-token")
    monkeypatch.setenv("UNLEASH_SERVER_API_TOKEN", "secure-token")
    assert get_default_config().token == "secure-token"


def test_app_name_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UNLEASH_APP_NAME", "my-awesome-app")
    assert get_default_config().app_name == "my-awesome-app"


def test_resolve_config_none_returns_defaults() -> None:
    assert resolve_config(None) == get_default_config()


def test_resolve_config_overrides_only_given_fields(monkeypatch: pytest.MonkeyPatch) -> None:
    """明示された項目のみ上書きし、それ以外は環境由来の値を保つこと。"""
    monkeypatch.setenv("UNLEASH_APP_NAME", "env-app")
    config = resolve_config({"url": "http://example.com/api/client/features"})
    assert config.url == "http://example.com/api/client/features"
    assert config.app_name == "env-app"
    assert config.token == DEFAULT_TOKEN


def test_resolve_config_accepts_model() -> None:
    config = resolve_config(DefinitionsConfig(token="secure-token", headers={"x-a": "1"}))
    assert config.token == "secure-token"
    assert config.url == DEFAULT_URL
    assert config.headers == {"x-a": "1"}


def test_resolve_config_explicit_none_token() -> None:
    """token=None を明示するとデフォルトトークンを打ち消すこと。"""
    assert resolve_config({"token": None}).token is None


def test_resolve_config_does_not_normalize_url() -> None:
    """呼び出し側の url はそのまま使われること。"""
    assert resolve_config({"url": "http://example.com/api/"}).url == "http://example.com/api/"


def test_resolve_config_invalid_raises_config_error() -> None:
    """不正な設定は FlagClientError(CONFIG_ERROR) になること。"""
    with pytest.raises(FlagClientError) as exc_info:
        resolve_config({"timeout_seconds": -1})
    assert exc_info.value.code == FlagClientErrorCodes.CONFIG_ERROR
    assert str(exc_info.value).startswith("CONFIG_ERROR: ")


@pytest.mark.parametrize("key", ["appName", "instanceId", "timeout"])
def test_resolve_config_rejects_unknown_keys(key: str) -> None:
    """未知のキー（camelCase など）は無視せず CONFIG_ERROR にすること。"""
    with pytest.raises(FlagClientError) as exc_info:
        resolve_config({key: "x"})
    assert exc_info.value.code == FlagClientErrorCodes.CONFIG_ERROR


def test_resolve_config_keeps_client_options_by_reference() -> None:
    transport = object()
    config = resolve_config({"client_options": {"transport": transport, "verify": False}})
    assert config.client_options["transport"] is transport
    assert config.client_options["verify"] is False
