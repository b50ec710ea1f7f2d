"""定義取得・フラグ評価のログ出力設定

fetch / evaluate の各モジュールは ``structlog.stdlib.get_logger(__name__)`` で
``k1s0_flag_client.*`` 名のロガーに記録する。ここではその出力先と書式を決める。
"""

from __future__ import annotations

import logging
import sys

import structlog

PACKAGE_LOGGER_NAME = "k1s0_flag_client"


def new_logger(
    level: str = "INFO", format: str = "json", name: str = PACKAGE_LOGGER_NAME
) -> structlog.stdlib.BoundLogger:
    """フラグクライアントのログを出力できるよう structlog を設定する。

    import 時には何も設定しないため、アプリケーションの起動時に一度だけ呼ぶ。
    ルートロガーが設定済みでも、パッケージロガーには level を適用する。

    Args:
        level: ログレベル ("DEBUG" で条件付きリクエストやキャッシュ更新も出力)
        format: 出力形式 ("json" or "text")
        name: 返すロガーの名前

    Returns:
        設定済みの structlog.stdlib.BoundLogger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    logging.getLogger(PACKAGE_LOGGER_NAME).setLevel(log_level)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.stdlib.get_logger(name)
