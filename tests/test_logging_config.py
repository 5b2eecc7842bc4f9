import logging

from browserdriver.logging_config import get_logger, log_with_fields


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def attach(logger):
    handler = RecordingHandler()
    logger.addHandler(handler)
    return handler


class TestLogWithFields:
    def test_fields_on_message_and_record(self):
        logger = get_logger("browserdriver.tests.fields")
        logger.setLevel(logging.DEBUG)
        handler = attach(logger)
        try:
            log_with_fields(logger, logging.ERROR, "Browser driver failure", kind="timeout", debug_dir="tmp/x")
        finally:
            logger.removeHandler(handler)

        record = handler.records[0]
        assert record.levelno == logging.ERROR
        assert record.getMessage() == "Browser driver failure (kind=timeout debug_dir=tmp/x)"
        assert record.extra_fields == {"kind": "timeout", "debug_dir": "tmp/x"}

    def test_without_fields(self):
        logger = get_logger("browserdriver.tests.plain")
        logger.setLevel(logging.DEBUG)
        handler = attach(logger)
        try:
            log_with_fields(logger, logging.INFO, "hello")
        finally:
            logger.removeHandler(handler)

        assert handler.records[0].getMessage() == "hello"

    def test_disabled_level_is_skipped(self):
        logger = get_logger("browserdriver.tests.quiet")
        logger.setLevel(logging.ERROR)
        handler = attach(logger)
        try:
            log_with_fields(logger, logging.DEBUG, "ignored", field=1)
        finally:
            logger.removeHandler(handler)

        assert handler.records == []

    def test_works_with_logger_created_beforehand(self):
        existing = logging.getLogger("browserdriver.tests.existing")
        handler = attach(existing)
        try:
            log_with_fields(get_logger("browserdriver.tests.existing"), logging.ERROR, "boom", kind="timeout")
        finally:
            existing.removeHandler(handler)

        assert handler.records[0].extra_fields == {"kind": "timeout"}
