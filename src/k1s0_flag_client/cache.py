"""定義キャッシュと評価キャッシュ"""

from __future__ import annotations

from dataclasses import dataclass

from .models import ClientFeaturesResponse, Toggle


@dataclass
class DefinitionsCacheEntry:
    """定義キャッシュの 1 エントリ。"""

    etag: str | None = None
    definitions: ClientFeaturesResponse | None = None


class DefinitionsCache:
    """取得元ごとの最新 {etag, definitions} を保持するキャッシュ。

    キーは resolve_cache_key で生成した不透明な文字列。
    読み書きはすべて同期で行い、途中で await しない。
    """

    def __init__(self, entries: dict[str, DefinitionsCacheEntry] | None = None) -> None:
        self._entries: dict[str, DefinitionsCacheEntry] = dict(entries or {})

    def get(self, key: str) -> DefinitionsCacheEntry | None:
        return self._entries.get(key)

    def set(self, key: str, entry: DefinitionsCacheEntry) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> bool:
        """エントリを削除する。削除できたら True。"""
        if key in self._entries:
            del self._entries[key]
            return True
        return False

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class EvaluationCache:
    """ハンドル単位の「直前の評価結果」を保持する単一スロット。

    複数コンテキストをメモ化したい場合は、呼び出し側がハンドルを複数持つ。
    """

    etag: str | None = None
    definitions: ClientFeaturesResponse | None = None
    context_key: str | None = None
    toggles: list[Toggle] | None = None

    def store(
        self,
        *,
        toggles: list[Toggle],
        context_key: str,
        definitions: ClientFeaturesResponse | None,
        etag: str | None,
    ) -> None:
        """スロット全体を上書きする。"""
        self.toggles = toggles
        self.context_key = context_key
        self.definitions = definitions
        self.etag = etag

    def clear(self) -> None:
        self.etag = None
        self.definitions = None
        self.context_key = None
        self.toggles = None


def create_definitions_cache(
    entries: dict[str, DefinitionsCacheEntry] | None = None,
) -> DefinitionsCache:
    return DefinitionsCache(entries)


def create_evaluation_cache(
    *,
    etag: str | None = None,
    definitions: ClientFeaturesResponse | None = None,
    context_key: str | None = None,
    toggles: list[Toggle] | None = None,
) -> EvaluationCache:
    """評価キャッシュを生成する。引数で事前に値を入れておける。"""
    return EvaluationCache(
        etag=etag,
        definitions=definitions,
        context_key=context_key,
        toggles=toggles,
    )
