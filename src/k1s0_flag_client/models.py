"""flag_client データモデル"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Unleash client API のレスポンス本文（{"version": ..., "features": [...]}）。
ClientFeaturesResponse = dict[str, Any]


@dataclass
class VariantPayload:
    """バリアントのペイロード。"""

    type: str
    value: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VariantPayload:
        return cls(type=data.get("type", "string"), value=str(data.get("value", "")))


@dataclass
class Variant:
    """評価済みバリアント。"""

    name: str
    enabled: bool
    payload: VariantPayload | None = None
    feature_enabled: bool = False

    @classmethod
    def disabled(cls, feature_enabled: bool = False) -> Variant:
        """無効バリアントを返す。"""
        return cls(name="disabled", enabled=False, feature_enabled=feature_enabled)


@dataclass
class Toggle:
    """1 フラグ分の評価結果。"""

    name: str
    enabled: bool
    variant: Variant = field(default_factory=Variant.disabled)
    impression_data: bool = False


@dataclass
class FlagEvaluation:
    """評価器の出力。"""

    toggles: list[Toggle] = field(default_factory=list)


@dataclass
class FlagResult:
    """evaluate_flag の戻り値。例外は送出されず error に格納される。"""

    enabled: bool
    variant: Variant | None = None
    error: Exception | None = None


@dataclass
class Constraint:
    """ストラテジー制約。"""

    context_name: str
    operator: str
    values: list[str] = field(default_factory=list)
    inverted: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Constraint:
        return cls(
            context_name=data["contextName"],
            operator=data.get("operator", "IN"),
            values=[str(v) for v in data.get("values", [])],
            inverted=bool(data.get("inverted", False)),
        )


@dataclass
class StrategyDefinition:
    """アクティベーションストラテジー定義。"""

    name: str
    parameters: dict[str, Any] = field(default_factory=dict)
    constraints: list[Constraint] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StrategyDefinition:
        return cls(
            name=data["name"],
            parameters=data.get("parameters") or {},
            constraints=[Constraint.from_dict(c) for c in data.get("constraints") or []],
        )


@dataclass
class VariantDefinition:
    """バリアント定義。"""

    name: str
    weight: int = 0
    stickiness: str = "default"
    payload: VariantPayload | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VariantDefinition:
        payload = data.get("payload")
        return cls(
            name=data["name"],
            weight=int(data.get("weight", 0)),
            stickiness=data.get("stickiness") or "default",
            payload=VariantPayload.from_dict(payload) if payload else None,
        )


@dataclass
class FeatureDefinition:
    """フィーチャー定義。"""

    name: str
    enabled: bool = False
    strategies: list[StrategyDefinition] = field(default_factory=list)
    variants: list[VariantDefinition] = field(default_factory=list)
    impression_data: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeatureDefinition:
        """API レスポンスのフィーチャー辞書から FeatureDefinition を生成する。"""
        return cls(
            name=data["name"],
            enabled=bool(data.get("enabled", False)),
            strategies=[StrategyDefinition.from_dict(s) for s in data.get("strategies") or []],
            variants=[VariantDefinition.from_dict(v) for v in data.get("variants") or []],
            impression_data=bool(data.get("impressionData", False)),
        )
