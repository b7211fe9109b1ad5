import pytest
from loguru import logger

import helpers.unified_logger as unified_logger
from proxy_provider import ProxyProvider, ProxyType, configure_logging
from proxy_provider.config import create_from_environment


@pytest.fixture
def records():
    captured = []
    handler_id = logger.add(lambda message: captured.append(message.record), level="DEBUG")
    yield captured
    logger.remove(handler_id)
    logger.disable("proxy_provider")


def _build():
    return ProxyProvider.builder().type(ProxyType.HTTP).host("proxy.lan").port(3128).build()


def test_application_logs_survive_import(records):
    logger.info("application message")

    assert [record["message"] for record in records] == ["application message"]


def test_library_is_silent_by_default(records):
    _build()

    assert records == []


def test_configure_logging_enables_component_records(records):
    configure_logging(console=False)
    _build()

    built = [record for record in records if record["message"].startswith("Built ")]
    assert len(built) == 1
    assert built[0]["extra"]["component_id"] == "CORE:BUILDER"
    assert built[0]["name"] == "proxy_provider.provider"


def test_config_source_warnings_carry_component(records):
    configure_logging(console=False)
    create_from_environment({"HTTP_PROXY": "http://proxy.corp:8080", "NO_PROXY": "10.0.0.0/8"})

    warnings = [record for record in records if record["level"].name == "WARNING"]
    assert [record["extra"]["component_id"] for record in warnings] == ["CONFIG:SOURCES"]


def test_console_sink_is_added_once(records, monkeypatch):
    monkeypatch.setattr(unified_logger, "_console_handler_id", None)

    configure_logging(level="warning")
    handler_id = unified_logger._console_handler_id
    try:
        configure_logging()
        assert handler_id is not None
        assert unified_logger._console_handler_id == handler_id
    finally:
        logger.remove(handler_id)
