"""フィーチャー定義とコンテキストからトグル一覧を計算するデフォルト評価器"""

from __future__ import annotations

import hashlib
import random
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from .exceptions import EvaluationError
from .models import (
    ClientFeaturesResponse,
    Constraint,
    FeatureDefinition,
    FlagEvaluation,
    StrategyDefinition,
    Toggle,
    Variant,
)


class Evaluator(Protocol):
    """評価器プロトコル。キャッシュの責務は持たない。"""

    def __call__(
        self, definitions: ClientFeaturesResponse, context: Mapping[str, Any]
    ) -> FlagEvaluation: ...


def _normalized_hash(identifier: str, group_id: str, modulus: int = 100) -> int:
    """identifier を 1..modulus の範囲に安定して割り当てる。"""
    digest = hashlib.sha256(f"{group_id}:{identifier}".encode()).digest()
    return int.from_bytes(digest[:4], "big") % modulus + 1


def _context_value(context: Mapping[str, Any], name: str) -> str | None:
    value = context.get(name)
    if value is None:
        value = (context.get("properties") or {}).get(name)
    return None if value is None else str(value)


def _split_list(value: Any) -> set[str]:
    return {part.strip() for part in str(value or "").split(",") if part.strip()}


def _constraint_holds(constraint: Constraint, context: Mapping[str, Any]) -> bool:
    value = _context_value(context, constraint.context_name)
    if constraint.operator == "IN":
        result = value is not None and value in constraint.values
    elif constraint.operator == "NOT_IN":
        result = value is None or value not in constraint.values
    else:
        result = False
    return result != constraint.inverted


def _stickiness_id(stickiness: str, context: Mapping[str, Any]) -> str | None:
    if stickiness == "default":
        return _context_value(context, "userId") or _context_value(context, "sessionId")
    if stickiness == "random":
        return None
    return _context_value(context, stickiness)


def _flexible_rollout(
    strategy: StrategyDefinition, feature_name: str, context: Mapping[str, Any]
) -> bool:
    params = strategy.parameters
    rollout = int(params.get("rollout", 100))
    stickiness = params.get("stickiness") or "default"
    group_id = params.get("groupId") or feature_name

    identifier = _stickiness_id(stickiness, context)
    if identifier is None:
        # A custom stickiness field absent from the context never matches.
        if stickiness not in ("default", "random"):
            return False
        bucket = random.randint(1, 100)
    else:
        bucket = _normalized_hash(identifier, group_id)
    return bucket <= rollout


def _user_with_id(
    strategy: StrategyDefinition, feature_name: str, context: Mapping[str, Any]
) -> bool:
    return _context_value(context, "userId") in _split_list(strategy.parameters.get("userIds"))


def _remote_address(
    strategy: StrategyDefinition, feature_name: str, context: Mapping[str, Any]
) -> bool:
    return _context_value(context, "remoteAddress") in _split_list(strategy.parameters.get("IPs"))


_STRATEGIES: dict[str, Callable[[StrategyDefinition, str, Mapping[str, Any]], bool]] = {
    "default": lambda strategy, feature_name, context: True,
    "userWithId": _user_with_id,
    "remoteAddress": _remote_address,
    "flexibleRollout": _flexible_rollout,
}


def _strategy_matches(
    strategy: StrategyDefinition, feature_name: str, context: Mapping[str, Any]
) -> bool:
    rule = _STRATEGIES.get(strategy.name)
    if rule is None:
        return False
    if not all(_constraint_holds(c, context) for c in strategy.constraints):
        return False
    return rule(strategy, feature_name, context)


def _select_variant(feature: FeatureDefinition, context: Mapping[str, Any]) -> Variant:
    total_weight = sum(v.weight for v in feature.variants)
    if total_weight <= 0:
        return Variant.disabled(feature_enabled=True)

    identifier = _stickiness_id(feature.variants[0].stickiness, context)
    if identifier is None:
        identifier = str(random.random())
    target = _normalized_hash(identifier, feature.name, total_weight)

    counter = 0
    for definition in feature.variants:
        counter += definition.weight
        if target <= counter:
            return Variant(
                name=definition.name,
                enabled=True,
                payload=definition.payload,
                feature_enabled=True,
            )
    return Variant.disabled(feature_enabled=True)


def _evaluate_feature(feature: FeatureDefinition, context: Mapping[str, Any]) -> Toggle:
    enabled = feature.enabled and (
        not feature.strategies
        or any(_strategy_matches(s, feature.name, context) for s in feature.strategies)
    )
    return Toggle(
        name=feature.name,
        enabled=enabled,
        variant=_select_variant(feature, context) if enabled else Variant.disabled(),
        impression_data=feature.impression_data,
    )


def evaluate_flags(
    definitions: ClientFeaturesResponse, context: Mapping[str, Any]
) -> FlagEvaluation:
    """定義内の全フィーチャーを評価する。

    Raises:
        EvaluationError: 定義ドキュメントの形式が不正な場合
    """
    raw_features = definitions.get("features") if isinstance(definitions, Mapping) else None
    if not isinstance(raw_features, list):
        raise EvaluationError("Definitions document has no 'features' list")
    try:
        features = [FeatureDefinition.from_dict(f) for f in raw_features]
        toggles = [_evaluate_feature(f, context) for f in features]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise EvaluationError(f"Malformed feature definition: {e}", cause=e) from e
    return FlagEvaluation(toggles=toggles)
