import logging

import pytest

from agent_acceptance.harness.settings import DEFAULT_DEV_BUILDS_URL, load_harness_settings
from agent_acceptance.logging.log import init_logging


@pytest.fixture
def logger_name():
    name = "agent_acceptance_log_setup_test"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_init_logging_writes_run_header(tmp_path, logger_name):
    logger, run_id, log_path = init_logging(base_dir=tmp_path, name=logger_name)

    logger.debug("$ puppet agent --test")
    for h in logger.handlers:
        h.flush()

    assert log_path.parent == tmp_path
    assert run_id in log_path.name
    text = log_path.read_text()
    assert f"run_id={run_id}" in text
    assert "$ puppet agent --test" in text
    assert logger.propagate is False


def test_init_logging_console_level(tmp_path, logger_name):
    logger, _, _ = init_logging(base_dir=tmp_path, name=logger_name, verbose=True)
    console = [h for h in logger.handlers if not isinstance(h, logging.FileHandler)]
    assert [h.level for h in console] == [logging.DEBUG]

    logger, _, _ = init_logging(base_dir=tmp_path, name=logger_name)
    console = [h for h in logger.handlers if not isinstance(h, logging.FileHandler)]
    assert [h.level for h in console] == [logging.INFO]
    assert len(logger.handlers) == 2


def test_settings_from_environment():
    settings = load_harness_settings({"BEAKER_provision": "no", "SHA": "deadbeef", "AGENT_ACCEPTANCE_CONFIG": "r.yaml"})

    assert settings.provision is False
    assert settings.sha == "deadbeef"
    assert settings.config_path == "r.yaml"
    assert settings.dev_builds_url == DEFAULT_DEV_BUILDS_URL


def test_settings_defaults_provision_on():
    settings = load_harness_settings({})

    assert settings.provision is True
    assert settings.sha is None
    assert settings.config_path is None
