"""Logger hierarchy shared by the bindgen modules; the CLI configures it."""

from __future__ import annotations

import logging
from typing import Optional

ROOT_LOGGER = "bindgen"
CONSOLE_FORMAT = "[bindgen] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def _attach(logger: logging.Logger, handler: logging.Handler, level: int, fmt: str) -> None:
	handler.setLevel(level)
	handler.setFormatter(logging.Formatter(fmt))
	logger.addHandler(handler)


def configure_logging(*, verbose: bool = False, log_file: Optional[str] = None) -> logging.Logger:
	"""Send bindgen records to stderr, and to ``log_file`` when given.

	Handlers from an earlier call are closed and replaced.
	"""
	level = logging.DEBUG if verbose else logging.INFO
	logger = get_logger()
	logger.setLevel(level)
	logger.propagate = False
	for handler in list(logger.handlers):
		logger.removeHandler(handler)
		handler.close()

	_attach(logger, logging.StreamHandler(), level, CONSOLE_FORMAT)
	if log_file is not None:
		_attach(logger, logging.FileHandler(log_file, encoding="utf-8"), level, FILE_FORMAT)
	return logger
