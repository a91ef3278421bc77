"""Logging setup for the command line and tests."""

import logging
from logging import Logger

import coloredlogs


#: Chatty third party loggers we only want to hear warnings from
NOISY_LOGGERS = (
    "web3.RequestManager",
    "web3.providers.HTTPProvider",
    "requests",
    "urllib3",
)


def _quiet_noisy_loggers(names=NOISY_LOGGERS):
    for name in names:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(log_level: None | str | int = logging.INFO) -> Logger:
    """Setup root logger and quiet some levels.

    :param log_level:
        Log level read from command line or environment var.
        ``disabled`` leaves the loggers alone, used in unit tests.
    """
    if log_level == "disabled":
        return logging.getLogger()
    elif log_level is None:
        log_level = logging.INFO

    if isinstance(log_level, str):
        log_level = log_level.upper()

    logger = logging.getLogger()

    # Logger name is shown to tell which module is chatty
    fmt = "%(asctime)s %(name)-40s %(levelname)-8s %(message)s"
    coloredlogs.install(level=log_level, fmt=fmt, logger=logger)

    # JSON-RPC payloads and HTTP traffic
    _quiet_noisy_loggers()

    return logger


def setup_pytest_logging(request=None, mute_requests=True) -> Logger:
    """Setup logger in pytest environment.

    :param request:
        pytest.fixtures.SubRequest instance

    :param mute_requests:
        Quiet HTTP traffic logging as well

    :return:
        Test logger - though please use module specific logger
    """
    if mute_requests:
        _quiet_noisy_loggers()
    else:
        _quiet_noisy_loggers(NOISY_LOGGERS[:2])

    return logging.getLogger("test")
