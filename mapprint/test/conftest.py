import logging

import pytest


def pytest_configure(config):
    import sys
    sys._called_from_pytest = True


def pytest_unconfigure(config):
    import sys
    del sys._called_from_pytest


@pytest.fixture(autouse=True)
def mapprint_log_level(caplog):
    caplog.set_level(logging.INFO, logger='mapprint')
    return caplog
