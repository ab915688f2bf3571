# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
import numpy as np
import diffevo.common.typing as tp
from . import base

global_logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------------------


class OptimizationLogger:
    """Logger to register as "tell" callback in an optimizer, for logging
    the progress of the population regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_tells: int
        max number of tells before performing another log
    log_interval_seconds:
        max number of seconds before performing another log

    Example
    -------
    .. code-block:: python

        optimizer.register_callback("tell", OptimizationLogger(log_interval_tells=10))
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_tells: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        assert log_interval_tells > 0
        assert log_interval_seconds > 0
        self._logger = logger
        self._log_level = log_level
        self._log_interval_tells = int(log_interval_tells)
        self._log_interval_seconds = log_interval_seconds
        self._next_tell = self._log_interval_tells
        self._next_time = time.time() + log_interval_seconds

    def __call__(self, optimizer: base.DifferentialEvolution, *args: tp.Any, **kwargs: tp.Any) -> None:
        if time.time() >= self._next_time or optimizer.num_tell >= self._next_tell:
            self._next_time = time.time() + self._log_interval_seconds
            self._next_tell = optimizer.num_tell + self._log_interval_tells
            population = optimizer.population
            self._logger.log(
                self._log_level,
                "After %s tells (%s replacements), population spread is %s",
                optimizer.num_tell,
                optimizer.num_replacements,
                np.ptp(population, axis=0),
            )


# -------------------------------------------------------------------------------------


class ReplacementRecord(tp.NamedTuple):
    num_tell: int
    index: int
    old: np.ndarray
    new: np.ndarray


class ReplacementRecorder:
    """Keeps track in memory of all population replacements.
    To be registered as "replace" callback, and optionally logging each replacement.

    Parameters
    ----------
    logger:
        logger to report replacements to, or None for no logging
    log_level:
        log level that logger will write to

    Example
    -------
    .. code-block:: python

        recorder = ReplacementRecorder()
        optimizer.register_callback("replace", recorder)
        ...
        recorder.records[-1].new  # last individual which entered the population
    """

    def __init__(self, logger: tp.Optional[logging.Logger] = None, log_level: int = logging.INFO) -> None:
        self._logger = logger
        self._log_level = log_level
        self.records: tp.List[ReplacementRecord] = []

    def __call__(
        self, optimizer: base.DifferentialEvolution, index: int, old: np.ndarray, new: np.ndarray
    ) -> None:
        self.records.append(ReplacementRecord(optimizer.num_tell, index, old, new))
        if self._logger is not None:
            self._logger.log(
                self._log_level, "Better candidate found for individual #%s: %s (was %s)", index, new, old
            )

    def replaced_indices(self) -> tp.List[int]:
        """Indices of the replaced individuals, in order of replacement"""
        return [r.index for r in self.records]

    def clear(self) -> None:
        self.records = []
