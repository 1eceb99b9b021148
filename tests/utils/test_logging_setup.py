from loguru import logger as loguru_logger

from cartridges.config import LoggingSettings
from cartridges.utils.logging import LoggingManager, get_logger


def test_setup_logging_writes_file_sink(tmp_path):
    log_path = tmp_path / "logs" / "cartridges.log"
    settings = LoggingSettings(
        level="warning", log_to_file=True, log_file_path=str(log_path)
    )

    LoggingManager.setup_logging(settings)
    try:
        loguru_logger.warning("written to file")
        loguru_logger.info("filtered out")
    finally:
        LoggingManager.reset()

    content = log_path.read_text()
    assert "written to file" in content
    assert "filtered out" not in content


def test_reset_removes_installed_sinks():
    LoggingManager.setup_logging(LoggingSettings())
    assert LoggingManager._handler_ids

    LoggingManager.reset()

    assert LoggingManager._handler_ids == []


def test_get_logger_binds_component():
    records = []
    handler_id = loguru_logger.add(lambda message: records.append(message.record))
    try:
        get_logger("selector").info("hello")
    finally:
        loguru_logger.remove(handler_id)

    assert records[-1]["extra"]["component"] == "selector"
