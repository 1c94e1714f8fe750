"""
Shared test fixtures for the whole test suite.

Provides: logger and HelperConfig fixtures; client fakes live in fakes.py
Dependencies: pytest
"""

import logging

import pytest

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger


@pytest.fixture
def logger() -> ColorLogger:
    return ColorLogger(logging.getLogger("nips_rag_bridge.tests"))


@pytest.fixture
def helper_config(logger) -> HelperConfig:
    return HelperConfig(logger=logger)
