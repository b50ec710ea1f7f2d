"""ロガー設定のユニットテスト"""

import logging
from collections.abc import Iterator

import pytest
import structlog
from k1s0_flag_client import new_logger
from k1s0_flag_client.logger import PACKAGE_LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    original_level = package_logger.level
    yield
    structlog.reset_defaults()
    package_logger.setLevel(original_level)


def test_new_logger_json_format() -> None:
    """JSON フォーマットのロガーが作成できること。"""
    logger = new_logger(level="INFO", format="json")
    assert logger is not None


def test_new_logger_text_format() -> None:
    """テキストフォーマットのロガーが作成できること。"""
    logger = new_logger(level="DEBUG", format="text")
    assert logger is not None


def test_new_logger_returns_bound_logger() -> None:
    """bind できるロガーが返ること。"""
    logger = new_logger()
    bound = logger.bind(flag="feature-a")
    assert bound is not None


@pytest.mark.parametrize(
    ("level", "expected"), [("DEBUG", logging.DEBUG), ("warning", logging.WARNING)]
)
def test_new_logger_sets_package_logger_level(level: str, expected: int) -> None:
    """定義取得モジュールのロガーにもレベルが適用されること。"""
    new_logger(level=level)
    assert logging.getLogger(PACKAGE_LOGGER_NAME).level == expected
    assert logging.getLogger("k1s0_flag_client.definitions").getEffectiveLevel() == expected


def test_new_logger_unknown_level_falls_back_to_info() -> None:
    new_logger(level="verbose")
    assert logging.getLogger(PACKAGE_LOGGER_NAME).level == logging.INFO
