# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .common import typing as typing
from .common import errors as errors
from .optimization import DifferentialEvolution as DifferentialEvolution
from .optimization import DEConfig as DEConfig
from .optimization import SearchSpace as SearchSpace
from .optimization import strategies as strategies
from .optimization import callbacks as callbacks


__all__ = ["DifferentialEvolution", "DEConfig", "SearchSpace", "strategies", "callbacks", "errors", "typing"]


__version__ = "0.1.0"
