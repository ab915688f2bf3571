# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# base classes


class DiffevoError(Exception):
    """Base class for error raised by diffevo"""


class DiffevoWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class DimensionError(ValueError, DiffevoError):
    """An individual does not match the search space (wrong length or out of bounds),
    or the search space itself is malformed
    """


class PopulationIndexError(IndexError, DiffevoError):
    """Index outside of the population range"""


class LengthError(ValueError, DiffevoError):
    """Malformed batch of ranked candidates provided to tell"""


class ConfigError(ValueError, DiffevoError):
    """Missing, unknown or invalid option"""


# warnings


class DiffevoRuntimeWarning(RuntimeWarning, DiffevoWarning):
    """Runtime warning raised by diffevo"""


class InefficientSettingsWarning(DiffevoRuntimeWarning):
    """Optimization settings are not optimal for the optimizer"""
