# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import warnings
import numpy as np
import diffevo.common.typing as tp
from diffevo.common import errors
from . import strategies as strats
from .space import Population, SearchSpace
from .config import DEConfig, as_config


logger = logging.getLogger(__name__)
X = tp.TypeVar("X", bound="DifferentialEvolution")
_CALLBACK_NAMES = ("ask", "tell", "replace")


def _as_random_state(random_state: tp.RandomStateLike) -> np.random.RandomState:
    if isinstance(random_state, np.random.RandomState):
        return random_state
    if random_state is None or isinstance(random_state, (int, np.integer)):
        return np.random.RandomState(random_state)
    raise TypeError(f"random_state must be None, an int seed or a np.random.RandomState, got {random_state!r}")


class DifferentialEvolution:  # pylint: disable=too-many-instance-attributes
    """Differential evolution with an ask/tell interface:

    - :code:`ask()` provides a trial and its target, both tagged with the target population index.
    - :code:`tell(ranked_candidates)` folds the caller's best-first ranking of a batch of
      asked candidates back into the population.

    The optimizer never evaluates the objective function and never compares candidates:
    the ranking is entirely the responsibility of the caller.

    Parameters
    ----------
    initial_population: array-like of shape (N, D)
        initial individuals, all of them within the search space
    search_space: SearchSpace or sequence of (min, max)
        bounds of each of the D dimensions
    config: DEConfig, dict or None
        F, CR and NumParents options (defaults: 0.4, 0.9 and 3)
    sampler: Sampler or str
        chooses the parents and target indices (default: "random", all distinct)
    mutator: Mutator or str
        builds the donor from the parents (default: "rand1", DE/rand/1)
    crossover: Crossover or str
        mixes donor and target into the trial (default: "binomial")
    repair: BoundRepair or str
        brings the trial back into the bounds (default: "rand_bound_from_target")
    random_state: int, np.random.RandomState or None
        seed or random state used for all random draws

    Note
    ----
    The base design is sequential: each :code:`tell` is expected to follow its matching
    :code:`ask` calls without any other modification of the population in between.
    Pipelining several ask/tell cycles concurrently (steady-state asynchronous DE) requires
    a single-writer discipline: reads for sampling and mutation may happen concurrently,
    but population replacements must be mutually exclusive with all other accesses.
    This class does not implement any locking.

    Example
    -------
    .. code-block:: python

        optim = DifferentialEvolution.from_search_space([(-5, 5)] * 2, popsize=10, random_state=12)
        for _ in range(100):
            candidates = optim.ask()
            (trial, _), (target, _) = candidates
            ranked = candidates if func(trial) <= func(target) else candidates[::-1]
            optim.tell(ranked)
    """

    def __init__(
        self,
        initial_population: tp.Any,
        search_space: tp.Union[SearchSpace, tp.Bounds],
        config: tp.Union[None, DEConfig, tp.Mapping[str, tp.Any]] = None,
        sampler: tp.Union[None, str, strats.Sampler] = None,
        mutator: tp.Union[None, str, strats.Mutator] = None,
        crossover: tp.Union[None, str, strats.Crossover] = None,
        repair: tp.Union[None, str, strats.BoundRepair] = None,
        random_state: tp.RandomStateLike = None,
    ) -> None:
        self.search_space = search_space if isinstance(search_space, SearchSpace) else SearchSpace(search_space)
        self.config = as_config(config)
        self.sampler = strats.resolve(sampler, strats.Sampler, "random")
        self.mutator = strats.resolve(mutator, strats.Mutator, "rand1")
        self.crossover = strats.resolve(crossover, strats.Crossover, "binomial")
        self.repair = strats.resolve(repair, strats.BoundRepair, "rand_bound_from_target")
        self._rng = _as_random_state(random_state)
        self._population = Population(self._checked_individuals(initial_population))
        # check compatibility of the settings
        if self.config.NumParents < self.mutator.min_parents:
            raise errors.ConfigError(
                f"{self.mutator} requires at least {self.mutator.min_parents} parents "
                f"but NumParents={self.config.NumParents}"
            )
        num_samples = self.config.NumParents + 1
        if self._population.size < self.sampler.min_population_size(num_samples):
            raise errors.ConfigError(
                f"Population of size {self._population.size} is too small for {self.sampler} "
                f"to sample {num_samples} indices"
            )
        if self._population.size < 2 * num_samples:
            warnings.warn(
                f"Population of size {self._population.size} is very small for sampling {num_samples} indices",
                errors.InefficientSettingsWarning,
            )
        self._callbacks: tp.Dict[str, tp.List[tp.Any]] = {}
        self._num_ask = 0
        self._num_tell = 0
        self._num_replacements = 0

    @classmethod
    def from_search_space(
        cls: tp.Type[X],
        search_space: tp.Union[SearchSpace, tp.Bounds],
        popsize: int,
        random_state: tp.RandomStateLike = None,
        **kwargs: tp.Any,
    ) -> X:
        """Creates an optimizer with an initial population sampled uniformly in the search space.
        Other keyword arguments are forwarded to the constructor.
        """
        space = search_space if isinstance(search_space, SearchSpace) else SearchSpace(search_space)
        rng = _as_random_state(random_state)
        return cls(space.sample(popsize, rng), space, random_state=rng, **kwargs)

    def _checked_individuals(self, individuals: tp.Any) -> np.ndarray:
        try:
            rows = list(individuals)
        except TypeError as e:
            raise errors.DimensionError("Initial population must be a sequence of individuals") from e
        if not rows:
            raise errors.DimensionError("Initial population cannot be empty")
        return np.array([self.search_space.check(x, name=f"individual #{k}") for k, x in enumerate(rows)])

    @property
    def random_state(self) -> np.random.RandomState:
        """np.random.RandomState: random state used for all draws, can be reseeded for determinism"""
        return self._rng

    @property
    def dimension(self) -> int:
        """int: Dimension of the optimization space."""
        return self.search_space.dimension

    @property
    def population(self) -> np.ndarray:
        """np.ndarray: copy of the current population, as a (N, D) array"""
        return self._population.as_array()

    @property
    def num_ask(self) -> int:
        """int: Number of time the `ask` method was called."""
        return self._num_ask

    @property
    def num_tell(self) -> int:
        """int: Number of time the `tell` method was called successfully."""
        return self._num_tell

    @property
    def num_replacements(self) -> int:
        """int: Number of population slots which changed value through `tell`."""
        return self._num_replacements

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(popsize={self._population.size}, dimension={self.dimension}, "
            f"config={self.config}, sampler={self.sampler}, mutator={self.mutator}, "
            f"crossover={self.crossover}, repair={self.repair})"
        )

    def register_callback(self, name: str, callback: tp.Union[tp.BatchCallback, tp.ReplaceCallback]) -> None:
        """Add a callback method called when `ask`, `tell` or a population replacement happens.
        This can be useful for custom logging.

        Parameters
        ----------
        name: str
            name of the event to register the callback for:
            - :code:`"ask"`: called as :code:`callback(optimizer, candidates)` with the pairs returned by ask
            - :code:`"tell"`: called as :code:`callback(optimizer, ranked_candidates)` after the population update,
              with the validated list of (candidate, index) pairs
            - :code:`"replace"`: called as :code:`callback(optimizer, index, old, new)` each time a
              population slot changes value
        callback: callable
            a callable taking the parameters described above
        """
        if name not in _CALLBACK_NAMES:
            raise errors.ConfigError(f"Only {_CALLBACK_NAMES} events can have callbacks (not {name})")
        self._callbacks.setdefault(name, []).append(callback)

    def remove_all_callbacks(self) -> None:
        """Removes all registered callables"""
        self._callbacks = {}

    def ask(self) -> tp.List[tp.Candidate]:
        """Provides a trial and its target, to be evaluated and ranked by the caller.

        Returns
        -------
        list
            :code:`[(trial, target_index), (target, target_index)]`, both tagged with the same
            population index since only one of them may eventually occupy that slot.
        """
        num_parents = self.config.NumParents
        indices = self.sampler.sample(self._population.size, num_parents + 1, self._rng)
        parent_indices, target_index = indices[:num_parents], int(indices[-1])
        target = self._population.get(target_index)
        donor = self.mutator.mutate(self._population, parent_indices, self.config, self._rng)
        trial = self.crossover.crossover(target.copy(), donor, self.config, self._rng)
        trial = self.repair.repair(trial, target, self.search_space, self._rng)
        candidates = [(trial, target_index), (target, target_index)]
        self._num_ask += 1
        for callback in self._callbacks.get("ask", []):
            callback(self, candidates)
        return candidates

    def _validated_batch(self, ranked_candidates: tp.Any) -> tp.List[tp.Candidate]:
        """Checks the whole batch before any modification of the population"""
        try:
            batch = list(ranked_candidates)
        except TypeError as e:
            raise errors.LengthError("Ranked candidates must be a sequence of (candidate, index) pairs") from e
        if len(batch) % 2:
            raise errors.LengthError(
                f"Ranked candidates must come as trial/target pairs, got an odd number ({len(batch)})"
            )
        checked: tp.List[tp.Candidate] = []
        num_winners = len(batch) // 2
        for position, item in enumerate(batch):
            try:
                candidate, index = item
            except (TypeError, ValueError) as e:
                raise errors.LengthError(f"Element #{position} is not a (candidate, index) pair: {item!r}") from e
            self._population.check_index(index)
            name = f"ranked candidate #{position}"
            if position < num_winners:
                value = self.search_space.check(candidate, name=name)
            else:
                try:
                    value = np.asarray(candidate, dtype=float)
                except (TypeError, ValueError) as e:
                    raise errors.DimensionError(f"Could not convert {name} to a float array") from e
                if value.shape != (self.dimension,):
                    raise errors.DimensionError(
                        f"Expected {name} of length {self.dimension} but got shape {value.shape}"
                    )
            checked.append((value, int(index)))
        return checked

    def tell(self, ranked_candidates: tp.Sequence[tp.Candidate]) -> None:
        """Folds a best-first ranking of asked candidates into the population.

        Parameters
        ----------
        ranked_candidates: sequence of (candidate, index)
            the candidates of one or several :code:`ask` calls, best first. The first half
            holds the winners: each of them takes the population slot it is tagged with.

        Raises
        ------
        LengthError
            if the number of elements is odd, or an element is not a (candidate, index) pair
        PopulationIndexError
            if an index is out of the population range
        DimensionError
            if a candidate has a wrong length, or a winner violates the bounds

        Note
        ----
        - The whole batch is validated before applying any replacement.
        - Replacement is driven by the ranking position and not by value inequality. If the
          same index appears several times among the winners, the best ranked one is used.
        """
        batch = self._validated_batch(ranked_candidates)
        updated: tp.Set[int] = set()
        replacements: tp.List[tp.Tuple[int, np.ndarray, np.ndarray]] = []
        for candidate, index in batch[: len(batch) // 2]:
            if index in updated:
                continue
            updated.add(index)
            old = self._population.get(index)
            self._population.replace(index, candidate)
            if not np.array_equal(old, candidate):
                replacements.append((index, old, candidate))
                logger.debug("Replacing individual #%s: %s -> %s", index, old, candidate)
        self._num_replacements += len(replacements)
        self._num_tell += 1
        # callbacks only run once the population update is complete
        for index, old, new in replacements:
            for callback in self._callbacks.get("replace", []):
                callback(self, index, old, new.copy())
        for callback in self._callbacks.get("tell", []):
            callback(self, batch)
