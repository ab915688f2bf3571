# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Building blocks defining a differential evolution variant.
A variant is the combination of 4 capabilities:

- :code:`Sampler`: chooses the indices of the parents and of the target in the population,
- :code:`Mutator`: combines the parents into a donor vector,
- :code:`Crossover`: mixes the donor into (a copy of) the target to build the trial vector,
- :code:`BoundRepair`: brings the trial back into the search space.

The default variant is DE/rand/1/bin with "rand-bound-from-target" repair.
"""

import numpy as np
import diffevo.common.typing as tp
from diffevo.common import errors
from diffevo.common.decorators import Registry
from .space import Population, SearchSpace
from .config import DEConfig


registry: Registry[tp.Type["Strategy"]] = Registry()
S = tp.TypeVar("S", bound="Strategy")


class Strategy:
    """Base class for all strategy capabilities"""

    def __repr__(self) -> str:
        params = ", ".join(f"{x}={y!r}" for x, y in sorted(vars(self).items()) if not x.startswith("_"))
        return f"{self.__class__.__name__}({params})"

    def __eq__(self, other: tp.Any) -> bool:
        return self.__class__ == other.__class__ and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((self.__class__, repr(self)))


# # # # # samplers # # # # #


class Sampler(Strategy):
    """Chooses indices into the population"""

    def min_population_size(self, num: int) -> int:
        """Minimum size of the population for sampling num indices"""
        return 1

    def sample(self, population_size: int, num: int, random_state: np.random.RandomState) -> np.ndarray:
        """Returns num indices in [0, population_size)"""
        raise NotImplementedError


@registry.register_as("random")
@registry.register_as("random_with_replacement", distinct=False)
class RandomSampler(Sampler):
    """Uniform random sampling of indices.

    Parameters
    ----------
    distinct: bool
        if True (default), all indices of one call are mutually distinct, so that parents
        and target are different individuals. If False, indices are drawn with replacement.
    """

    def __init__(self, distinct: bool = True) -> None:
        self.distinct = distinct

    def min_population_size(self, num: int) -> int:
        return num if self.distinct else 1

    def sample(self, population_size: int, num: int, random_state: np.random.RandomState) -> np.ndarray:
        if population_size < self.min_population_size(num):
            raise errors.ConfigError(f"Cannot sample {num} distinct indices from a population of {population_size}")
        return random_state.choice(population_size, size=num, replace=not self.distinct)


# # # # # mutators # # # # #


class Mutator(Strategy):
    """Combines the sampled parents into a donor vector.
    :code:`min_parents` is the minimal number of parents the mutation requires.
    """

    min_parents = 3

    def mutate(
        self,
        population: Population,
        parent_indices: tp.Sequence[int],
        config: DEConfig,
        random_state: np.random.RandomState,
    ) -> np.ndarray:
        raise NotImplementedError


@registry.register_as("rand1")
class RandOneMutation(Mutator):
    """DE/rand/1: donor = p2 + F * (p0 - p1), using the parents in sampled order.
    Additional parents are ignored.
    """

    def mutate(
        self,
        population: Population,
        parent_indices: tp.Sequence[int],
        config: DEConfig,
        random_state: np.random.RandomState,
    ) -> np.ndarray:
        p = population.get_many(parent_indices[:3])
        return p[2] + config.F * (p[0] - p[1])


@registry.register_as("rand2")
class RandTwoMutation(Mutator):
    """DE/rand/2: donor = p4 + F * (p0 - p1) + F * (p2 - p3)"""

    min_parents = 5

    def mutate(
        self,
        population: Population,
        parent_indices: tp.Sequence[int],
        config: DEConfig,
        random_state: np.random.RandomState,
    ) -> np.ndarray:
        p = population.get_many(parent_indices[:5])
        return p[4] + config.F * (p[0] - p[1]) + config.F * (p[2] - p[3])


# # # # # crossovers # # # # #


class Crossover(Strategy):
    """Mixes the donor into the trial.
    The trial argument is owned by the crossover: it is modified in place and returned.
    """

    def crossover(
        self, trial: np.ndarray, donor: np.ndarray, config: DEConfig, random_state: np.random.RandomState
    ) -> np.ndarray:
        raise NotImplementedError


@registry.register_as("binomial")
class BinomialCrossover(Crossover):
    """DE/*/*/bin: one uniformly drawn dimension is always taken from the donor,
    all other dimensions are independently taken from the donor with probability CR.
    """

    def crossover(
        self, trial: np.ndarray, donor: np.ndarray, config: DEConfig, random_state: np.random.RandomState
    ) -> np.ndarray:
        dim = trial.size
        jrand = random_state.randint(dim)
        trial[jrand] = donor[jrand]
        switch = random_state.uniform(0, 1, size=dim) <= config.CR
        trial[switch] = donor[switch]
        return trial


@registry.register_as("exponential")
class ExponentialCrossover(Crossover):
    """DE/*/*/exp: a contiguous (circular) block of dimensions is taken from the donor.
    The block starts at a uniformly drawn dimension and is extended while
    uniform draws are below CR, so at least one dimension comes from the donor.
    """

    def crossover(
        self, trial: np.ndarray, donor: np.ndarray, config: DEConfig, random_state: np.random.RandomState
    ) -> np.ndarray:
        dim = trial.size
        start = random_state.randint(dim)
        length = 1
        while length < dim and random_state.uniform(0, 1) < config.CR:
            length += 1
        block = (start + np.arange(length)) % dim
        trial[block] = donor[block]
        return trial


# # # # # bound repairs # # # # #


class BoundRepair(Strategy):
    """Brings out-of-bounds values of the trial back into the search space.
    The trial argument is owned by the repair: it is modified in place and returned.
    """

    def repair(
        self, trial: np.ndarray, target: np.ndarray, space: SearchSpace, random_state: np.random.RandomState
    ) -> np.ndarray:
        raise NotImplementedError


@registry.register_as("rand_bound_from_target")
class RandBoundFromTarget(BoundRepair):
    """Out-of-bounds values are replaced by a value drawn uniformly between
    the violated bound and the target value (not between both bounds), so
    repaired values stay close to the target.
    NaN values (e.g. from inf - inf in the mutation) are handled as lower bound violations.
    """

    def repair(
        self, trial: np.ndarray, target: np.ndarray, space: SearchSpace, random_state: np.random.RandomState
    ) -> np.ndarray:
        for i, (low, up) in enumerate(space):
            if np.isnan(trial[i]) or trial[i] < low:
                u = random_state.uniform(0, 1)
                value = (1 - u) * low + u * target[i]
            elif trial[i] > up:
                u = random_state.uniform(0, 1)
                value = (1 - u) * target[i] + u * up
            else:
                continue
            # convex combinations cannot overflow, but may round slightly outside the bounds
            trial[i] = min(max(value, low), up)
        return trial


@registry.register_as("clip")
class ClipRepair(BoundRepair):
    """Projection onto the bounds"""

    def repair(
        self, trial: np.ndarray, target: np.ndarray, space: SearchSpace, random_state: np.random.RandomState
    ) -> np.ndarray:
        nan = np.isnan(trial)
        trial[nan] = target[nan]
        np.clip(trial, space.lower, space.upper, out=trial)
        return trial


@registry.register_as("reflect")
class ReflectRepair(BoundRepair):
    """Mirrors out-of-bounds values at the violated bound.
    Values still out of bounds after one reflection (overshoot larger than the range) are clipped,
    and NaN values are replaced by the target value.
    """

    def repair(
        self, trial: np.ndarray, target: np.ndarray, space: SearchSpace, random_state: np.random.RandomState
    ) -> np.ndarray:
        below = trial < space.lower
        above = trial > space.upper
        trial[below] = 2 * space.lower[below] - trial[below]
        trial[above] = 2 * space.upper[above] - trial[above]
        nan = np.isnan(trial)
        trial[nan] = target[nan]
        np.clip(trial, space.lower, space.upper, out=trial)
        return trial


def resolve(strategy: tp.Union[None, str, S], kind: tp.Type[S], default: str) -> S:
    """Returns a strategy instance of the expected kind from either an instance,
    a registered name, or None (in which case the default name is used)

    Raises
    ------
    ConfigError
        if the name is not registered or the strategy is not of the expected kind
    """
    if strategy is None:
        strategy = default  # type: ignore
    if isinstance(strategy, str):
        cls = registry.lookup(strategy)
        if not issubclass(cls, kind):
            raise errors.ConfigError(f'"{strategy}" is a {cls.__name__}, but a {kind.__name__} is expected')
        return cls(**registry.get_info(strategy))  # type: ignore
    if not isinstance(strategy, kind):
        raise errors.ConfigError(f"Expected a {kind.__name__} instance or name, got {strategy!r}")
    return strategy
