"""Tests for logging setup."""

import logging

import pytest

from flowmap.exceptions import GraphIntegrityError
from flowmap.logging_config import get_logger, log_coded_error, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    logging.basicConfig(handlers=[logging.NullHandler()], force=True)
    for name in ("flowmap", "urllib3", "requests", "diskcache"):
        logging.getLogger(name).setLevel(logging.NOTSET)


class TestGetLogger:
    def test_module_names_are_namespaced(self):
        assert get_logger("flowmap.service").name == "flowmap.service"
        assert get_logger("cli").name == "flowmap.cli"
        assert get_logger().name == "flowmap"

    def test_similar_prefix_still_namespaced(self):
        assert get_logger("flowmapper").name == "flowmap.flowmapper"


class TestSetupLogging:
    @pytest.mark.parametrize(
        "verbose, quiet, level",
        [(False, False, logging.WARNING), (True, False, logging.DEBUG), (True, True, logging.ERROR)],
    )
    def test_levels(self, verbose, quiet, level):
        assert setup_logging(verbose=verbose, quiet=quiet).level == level

    def test_http_libraries_quiet_unless_verbose(self):
        setup_logging()
        assert logging.getLogger("urllib3").level == logging.WARNING
        setup_logging(verbose=True)
        assert logging.getLogger("urllib3").level == logging.DEBUG

    def test_log_file(self, tmp_path):
        path = tmp_path / "flowmap.log"
        setup_logging(log_file=str(path))
        get_logger("service").warning("File limit reached")
        for handler in logging.getLogger().handlers:
            handler.flush()
        text = path.read_text()
        assert "flowmap.service: File limit reached" in text
        assert "[MainThread]" in text


class TestLogCodedError:
    def test_structured_extra(self, caplog):
        logger = get_logger("graph")
        error = GraphIntegrityError("Dangling call", context={"owner": "flow_a", "target": "flow_b"})
        with caplog.at_level(logging.WARNING, logger="flowmap"):
            log_coded_error(logger, error)

        record = caplog.records[-1]
        assert record.getMessage() == "[FM500] Dangling call"
        assert record.flowmap_error["context"] == {"owner": "flow_a", "target": "flow_b"}
