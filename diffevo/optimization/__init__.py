# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .base import DifferentialEvolution
from .config import DEConfig, DEFAULT_CONFIG
from .space import SearchSpace, Population
from . import strategies
from .strategies import registry
