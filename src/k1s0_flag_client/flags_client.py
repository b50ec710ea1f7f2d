"""評価済みトグル一覧に対する参照ファサード"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from .models import Toggle, Variant


class ToggleLookup(Protocol):
    """トグル参照プロトコル。"""

    def is_enabled(self, name: str) -> bool: ...

    def get_variant(self, name: str) -> Variant: ...


class FlagsClient:
    """トグル一覧をラップし、フラグ名で有効状態とバリアントを引く。"""

    def __init__(self, toggles: list[Toggle]) -> None:
        self._toggles = {toggle.name: toggle for toggle in toggles}

    def is_enabled(self, name: str) -> bool:
        toggle = self._toggles.get(name)
        return toggle is not None and toggle.enabled

    def get_variant(self, name: str) -> Variant:
        toggle = self._toggles.get(name)
        if toggle is None:
            return Variant.disabled()
        return toggle.variant


ClientFactory = Callable[[list[Toggle]], ToggleLookup]
