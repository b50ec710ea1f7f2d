"""フラグ評価と評価結果の再利用判定"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from .cache import DefinitionsCache, EvaluationCache
from .config import DefinitionsConfig
from .definitions import (
    default_definitions_cache,
    fetch_definitions_cached,
    reset_definitions_cache,
    resolve_cache_key,
)
from .evaluator import Evaluator, evaluate_flags
from .flags_client import ClientFactory, FlagsClient, ToggleLookup
from .models import ClientFeaturesResponse, FlagResult

logger = structlog.stdlib.get_logger(__name__)

ConfigInput = DefinitionsConfig | Mapping[str, Any] | None
DefinitionsFetcher = Callable[[ConfigInput, DefinitionsCache], Awaitable[ClientFeaturesResponse]]

_default_evaluation_cache = EvaluationCache()


def default_evaluation_cache() -> EvaluationCache:
    """プロセス共有のデフォルト評価キャッシュを返す。"""
    return _default_evaluation_cache


def reset_default_caches() -> None:
    """デフォルトの定義キャッシュと評価キャッシュを両方空にする。"""
    reset_definitions_cache()
    _default_evaluation_cache.clear()


@dataclass
class FlagOptions:
    """evaluate_flag のオプション。未指定の項目はデフォルト実装を使う。

    cache / evaluation_cache を省略するとプロセス共有のキャッシュを使う。
    テナントごとに分離したい場合は別々のハンドルを渡すこと。
    """

    config: ConfigInput = None
    cache: DefinitionsCache | None = None
    evaluation_cache: EvaluationCache | None = None
    fetcher: DefinitionsFetcher | None = None
    evaluator: Evaluator | None = None
    client_factory: ClientFactory | None = None


def serialize_context(context: Mapping[str, Any]) -> str:
    # Order-sensitive: different key orders produce different cache keys.
    return json.dumps(dict(context), default=str)


async def evaluate(
    name: str,
    context: Mapping[str, Any],
    definitions_cache: DefinitionsCache,
    evaluation_cache: EvaluationCache,
    evaluator: Evaluator = evaluate_flags,
    *,
    config: ConfigInput = None,
    fetcher: DefinitionsFetcher = fetch_definitions_cached,
    client_factory: ClientFactory = FlagsClient,
) -> ToggleLookup:
    """定義を取得し、評価キャッシュが使えなければ再評価してファサードを返す。

    例外はそのまま送出する。例外を結果に変換するのは evaluate_flag の役割。
    """
    definitions = await fetcher(config, definitions_cache)

    context_key = serialize_context(context)
    entry = definitions_cache.get(resolve_cache_key(config))
    # The entry's etag describes the fetched payload only while the entry still holds it;
    # a concurrent fetch may have replaced the entry during the await above.
    current_etag = (
        entry.etag if entry is not None and entry.definitions is definitions else None
    )

    if evaluation_cache.etag and current_etag:
        definitions_match = evaluation_cache.etag == current_etag
    else:
        definitions_match = evaluation_cache.definitions is definitions

    if (
        evaluation_cache.toggles is not None
        and evaluation_cache.context_key == context_key
        and definitions_match
    ):
        logger.debug("Reusing cached evaluation", flag=name, etag=current_etag)
        toggles = evaluation_cache.toggles
    else:
        toggles = evaluator(definitions, context).toggles
        evaluation_cache.store(
            toggles=toggles,
            context_key=context_key,
            definitions=definitions,
            etag=current_etag,
        )
        logger.debug("Evaluated flags", flag=name, etag=current_etag, toggles=len(toggles))

    return client_factory(toggles)


async def evaluate_flag(
    name: str,
    context: Mapping[str, Any] | None = None,
    options: FlagOptions | None = None,
) -> FlagResult:
    """フラグを評価する。失敗しても例外は送出せず、error に格納して返す。"""
    opts = options or FlagOptions()
    try:
        client = await evaluate(
            name,
            context or {},
            opts.cache if opts.cache is not None else default_definitions_cache(),
            (
                opts.evaluation_cache
                if opts.evaluation_cache is not None
                else _default_evaluation_cache
            ),
            opts.evaluator or evaluate_flags,
            config=opts.config,
            fetcher=opts.fetcher or fetch_definitions_cached,
            client_factory=opts.client_factory or FlagsClient,
        )
        return FlagResult(enabled=client.is_enabled(name), variant=client.get_variant(name))
    except Exception as e:
        logger.warning("Flag evaluation failed", flag=name, error=str(e))
        return FlagResult(enabled=False, variant=None, error=e)
