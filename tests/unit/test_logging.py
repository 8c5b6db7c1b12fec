"""Tests for logging module."""
import logging

from attachkit import setup_logging
from attachkit.core.logging import get_logger


class TestLogging:
    """Test suite for logging helpers."""
    
    def test_get_logger_propagates(self):
        logger = get_logger('attachkit.test')
        
        assert logger.name == 'attachkit.test'
        assert logger.propagate
    
    def test_setup_logging_sets_level(self):
        setup_logging(logging.DEBUG)
        
        assert logging.getLogger('attachkit.upload').level == logging.DEBUG
        
        setup_logging(logging.WARNING)
    
    def test_setup_logging_reaches_module_loggers(self):
        """Test loggers created at import time follow setup_logging."""
        import attachkit.core.upload.coordinator  # noqa: F401
        import attachkit.core.upload.forms  # noqa: F401
        get_logger('attachkit.upload.coordinator').setLevel(logging.WARNING)
        get_logger('attachkit.upload.forms').setLevel(logging.WARNING)
        
        setup_logging(logging.DEBUG)
        
        try:
            for name in ('attachkit.upload.coordinator', 'attachkit.upload.forms',
                         'attachkit.upload.resumable', 'attachkit.transport.cdn'):
                assert logging.getLogger(name).getEffectiveLevel() == logging.DEBUG
        finally:
            setup_logging(logging.WARNING)
