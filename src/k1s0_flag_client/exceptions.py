"""flag_client ライブラリの例外型定義"""

from __future__ import annotations


class FlagClientError(Exception):
    """flag_client ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class FlagClientErrorCodes:
    """FlagClientError のエラーコード定数。"""

    STALE_CACHE: str = "STALE_CACHE"
    EVALUATION_ERROR: str = "EVALUATION_ERROR"
    CONFIG_ERROR: str = "CONFIG_ERROR"


class StaleCacheError(FlagClientError):
    """304 Not Modified を受信したがキャッシュ済み定義が存在しない。"""

    def __init__(self, message: str) -> None:
        super().__init__(FlagClientErrorCodes.STALE_CACHE, message)


class EvaluationError(FlagClientError):
    """フラグ評価に失敗した。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(FlagClientErrorCodes.EVALUATION_ERROR, message, cause=cause)
