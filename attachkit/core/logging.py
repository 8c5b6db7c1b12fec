"""Logging utilities for attachkit modules."""

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger that automatically inherits from root logger.
    
    Loggers propagate to the root logger so that a plain basicConfig()
    call is enough to see attachkit output. If the root logger has no
    handlers yet, the logger defaults to WARNING.
    
    Args:
        name: Logger name (e.g. 'attachkit.upload.resumable')
        
    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logger.setLevel(logging.WARNING)
    
    return logger
