"""Tests for the loguru-backed logger adaptor."""

from conversion_sdk.observability.logger_adaptor import ConversionLogger, get_logger


def test_get_logger_is_cached():
    assert get_logger("conversion_sdk.tests") is get_logger("conversion_sdk.tests")
    assert get_logger("conversion_sdk.tests").name == "conversion_sdk.tests"


def test_records_carry_logger_name(log_records):
    get_logger("conversion_sdk.tests").info("hello")
    record = log_records[-1]
    assert record["message"] == "hello"
    assert record["level"].name == "INFO"
    assert record["extra"]["logger_name"] == "conversion_sdk.tests"


def test_keyword_arguments_become_extras(log_records):
    ConversionLogger("conversion_sdk.tests").warning("anomaly", version=4)
    assert log_records[-1]["extra"]["version"] == 4


def test_exception_attaches_traceback(log_records):
    logger = get_logger("conversion_sdk.tests")
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("failed")
    record = log_records[-1]
    assert record["level"].name == "ERROR"
    assert record["exception"] is not None
    assert record["exception"].type is RuntimeError
