"""
로깅 컨텍스트 포맷 테스트
"""

import pytest
from loguru import logger

from marketmap.monitoring.logger import format_context, get_logger, make_formatter


@pytest.fixture
def captured():
    """make_formatter 형식으로 기록되는 메시지 수집"""
    messages = []
    handler_id = logger.add(messages.append, format=make_formatter("{level} {message}"), level="DEBUG")
    yield messages
    logger.remove(handler_id)


def test_format_context_orders_known_keys():
    extra = {"generation": 3, "name": "x", "supplier": "12345", "category_id": None}

    assert format_context(extra) == " [supplier=12345 generation=3]"


def test_format_context_without_keys():
    assert format_context({"name": "x"}) == ""


def test_bound_context_rendered(captured):
    get_logger("marketmap.test").bind(supplier="12345", generation=2).info("루트 조회")

    assert captured[-1].rstrip("\n") == "INFO 루트 조회 [supplier=12345 generation=2]"


def test_plain_message(captured):
    get_logger("marketmap.test").warning("컨텍스트 없음")

    assert captured[-1].rstrip("\n") == "WARNING 컨텍스트 없음"
