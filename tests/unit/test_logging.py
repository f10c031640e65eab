"""Tests for logging module."""
import logging
from unittest.mock import patch

import pytest

from rawbox.core.logging import get_logger, resolve_level, setup_logging


@pytest.fixture
def clean_rawbox_logger():
    """Remove handlers installed by setup_logging."""
    logger = logging.getLogger('rawbox')
    saved = (list(logger.handlers), logger.level, logger.propagate)
    logger.handlers[:] = [h for h in saved[0] if not getattr(h, '_rawbox_handler', False)]
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


class TestGetLogger:

    def test_returns_named_logger(self):
        logger = get_logger('rawbox.test')

        assert logger.name == 'rawbox.test'
        assert logger.propagate is True


class TestResolveLevel:

    def test_names(self):
        assert resolve_level('debug') == logging.DEBUG
        assert resolve_level(' WARNING ') == logging.WARNING

    def test_numbers_pass_through(self):
        assert resolve_level(logging.ERROR) == logging.ERROR

    def test_unknown_falls_back_to_info(self):
        assert resolve_level('chatty') == logging.INFO

    def test_environment(self, monkeypatch):
        monkeypatch.setenv('RAWBOX_LOG_LEVEL', 'error')

        assert resolve_level() == logging.ERROR

    def test_default(self, monkeypatch):
        monkeypatch.delenv('RAWBOX_LOG_LEVEL', raising=False)

        assert resolve_level() == logging.INFO


class TestSetupLogging:

    def test_installs_single_handler(self, clean_rawbox_logger):
        setup_logging('debug')
        setup_logging('warning')

        installed = [h for h in clean_rawbox_logger.handlers if getattr(h, '_rawbox_handler', False)]
        assert len(installed) == 1
        assert clean_rawbox_logger.level == logging.WARNING
        assert clean_rawbox_logger.propagate is False

    def test_children_follow_configured_level(self, clean_rawbox_logger):
        """Test pipeline loggers emit DEBUG once setup_logging('DEBUG') ran."""
        with patch.object(logging.getLogger(), 'handlers', []):
            setup_logging('DEBUG')
            logger = get_logger('rawbox.dispatch_test')

        assert logger.level == logging.NOTSET
        assert logger.isEnabledFor(logging.DEBUG)

    def test_resets_loggers_created_before_setup(self, clean_rawbox_logger):
        with patch.object(logging.getLogger(), 'handlers', []):
            early = get_logger('rawbox.early_test')
        assert early.level == logging.WARNING

        setup_logging('DEBUG')

        assert early.isEnabledFor(logging.DEBUG)

    def test_unconfigured_children_default_to_warning(self, clean_rawbox_logger):
        with patch.object(logging.getLogger(), 'handlers', []):
            logger = get_logger('rawbox.quiet_test')

        assert not logger.isEnabledFor(logging.INFO)
