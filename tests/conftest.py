"""flag_client テスト共通フィクスチャ"""

from collections.abc import Iterator

import pytest
from k1s0_flag_client import reset_default_caches

UNLEASH_ENV_VARS = (
    "UNLEASH_SERVER_API_URL",
    "UNLEASH_SERVER_API_TOKEN",
    "UNLEASH_SERVER_INSTANCE_ID",
    "UNLEASH_APP_NAME",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """環境変数とプロセス共有キャッシュをテストごとに初期化する。"""
    for name in UNLEASH_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_default_caches()
    yield
    reset_default_caches()
