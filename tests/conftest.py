"""Test configuration for pytest."""

import logging
import os
import pytest


@pytest.fixture(autouse=True)
def configure_test_logging():
    """Configure logging for tests to be minimal."""
    os.environ['RESLIDE_LOG_LEVEL'] = 'WARNING'

    logging.getLogger().setLevel(logging.WARNING)

    # Per-region failures are logged at ERROR on purpose in some tests
    for logger_name in ['reslide.inpaint.pipeline', 'reslide.inpaint.payload']:
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)
