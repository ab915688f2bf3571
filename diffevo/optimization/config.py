# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import math
import warnings
from numbers import Real, Integral
import diffevo.common.typing as tp
from diffevo.common import errors


class DEConfig(tp.NamedTuple):
    """Immutable numerical settings of differential evolution.

    Parameters
    ----------
    F: float
        mutation scale factor (differential weight), default 0.4
    CR: float
        crossover probability, in [0, 1], default 0.9
    NumParents: int
        number of individuals sampled for the mutation, at least 3, default 3

    Note
    ----
    Instances should be created through :code:`DEConfig.from_dict` or
    :code:`DEConfig(...).validated()` so that the values are checked.
    """

    F: float = 0.4
    CR: float = 0.9
    NumParents: int = 3

    @classmethod
    def from_dict(cls, options: tp.Optional[tp.Mapping[str, tp.Any]] = None) -> "DEConfig":
        """Creates a validated configuration from a mapping of option names to values.
        Missing options take their default value.
        """
        options = {} if options is None else dict(options)
        unknown = set(options) - set(cls._fields)
        if unknown:
            raise errors.ConfigError(f"Unknown option(s) {sorted(unknown)}, available: {list(cls._fields)}")
        return cls(**options).validated()

    def validated(self) -> "DEConfig":
        """Returns a copy of the configuration with normalized types,
        or raises a ConfigError if any value is invalid
        """
        if isinstance(self.F, bool) or not isinstance(self.F, Real) or not math.isfinite(self.F):
            raise errors.ConfigError(f"F must be a finite float, got {self.F!r}")
        if isinstance(self.CR, bool) or not isinstance(self.CR, Real) or not 0 <= self.CR <= 1:
            raise errors.ConfigError(f"CR must be a float in [0, 1], got {self.CR!r}")
        if isinstance(self.NumParents, bool) or not isinstance(self.NumParents, Integral):
            raise errors.ConfigError(f"NumParents must be an integer, got {self.NumParents!r}")
        if self.NumParents < 3:
            raise errors.ConfigError(f"NumParents must be at least 3, got {self.NumParents}")
        if self.F <= 0:
            warnings.warn(
                f"Scale factor F={self.F} does not move the donor towards the parents differences",
                errors.InefficientSettingsWarning,
            )
        return DEConfig(F=float(self.F), CR=float(self.CR), NumParents=int(self.NumParents))


# DE/rand/1/bin settings
DEFAULT_CONFIG = DEConfig()


def as_config(config: tp.Union[None, DEConfig, tp.Mapping[str, tp.Any]]) -> DEConfig:
    """Converts None (defaults), a mapping of options or a DEConfig into a validated DEConfig"""
    if config is None:
        return DEFAULT_CONFIG
    if isinstance(config, DEConfig):
        return config.validated()
    if isinstance(config, tp.Mapping):
        return DEConfig.from_dict(config)
    raise errors.ConfigError(f"Configuration must be a DEConfig or a mapping of options, got {config!r}")
