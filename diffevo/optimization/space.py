# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import diffevo.common.typing as tp
from diffevo.common import errors


class SearchSpace:
    """Box constraints of the optimization, as one (min, max) pair per dimension.
    The bounds are stored in read-only arrays and never change after creation.

    Parameters
    ----------
    bounds: sequence of (float, float)
        lower and upper bound of each dimension, with min <= max

    Example
    -------
    .. code-block:: python

        space = SearchSpace([(-5, 5), (0, 1)])
        space.dimension  # 2
    """

    def __init__(self, bounds: tp.Bounds) -> None:
        try:
            array = np.array([tuple(b) for b in bounds], dtype=float)
        except (TypeError, ValueError) as e:
            raise errors.DimensionError(f"Bounds must be a sequence of (min, max) pairs, got {bounds}") from e
        if array.ndim != 2 or array.shape[1] != 2 or not array.shape[0]:
            raise errors.DimensionError(f"Bounds must be a non-empty sequence of (min, max) pairs, got {bounds}")
        if np.any(np.isnan(array)):
            raise errors.DimensionError(f"Bounds cannot contain NaN, got {bounds}")
        wrong = np.where(array[:, 0] > array[:, 1])[0]
        if wrong.size:
            raise errors.DimensionError(f"Lower bound is greater than upper bound for dimension(s) {wrong.tolist()}")
        self._lower = array[:, 0].copy()
        self._upper = array[:, 1].copy()
        self._lower.flags.writeable = False
        self._upper.flags.writeable = False

    @property
    def dimension(self) -> int:
        return self._lower.size

    @property
    def lower(self) -> np.ndarray:
        """np.ndarray: read-only lower bounds"""
        return self._lower

    @property
    def upper(self) -> np.ndarray:
        """np.ndarray: read-only upper bounds"""
        return self._upper

    def __len__(self) -> int:
        return self.dimension

    def __getitem__(self, index: int) -> tp.Tuple[float, float]:
        return float(self._lower[index]), float(self._upper[index])

    def __iter__(self) -> tp.Iterator[tp.Tuple[float, float]]:
        return (self[k] for k in range(self.dimension))

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, SearchSpace):
            return False
        return bool(np.array_equal(self._lower, other._lower) and np.array_equal(self._upper, other._upper))

    def __repr__(self) -> str:
        return f"SearchSpace({list(self)})"

    def contains(self, individual: tp.ArrayLike) -> bool:
        """Returns True if the individual has the correct dimension and lies within the bounds"""
        x = np.asarray(individual, dtype=float)
        if x.shape != (self.dimension,):
            return False
        return bool(np.all(x >= self._lower) and np.all(x <= self._upper))

    def check(self, individual: tp.ArrayLike, name: str = "individual") -> np.ndarray:
        """Converts the individual to a float array and checks it against the space

        Returns
        -------
        np.ndarray
            a fresh copy of the individual

        Raises
        ------
        DimensionError
            if the individual has a wrong length or violates its bounds
        """
        try:
            x = np.array(individual, dtype=float, copy=True)
        except (TypeError, ValueError) as e:
            raise errors.DimensionError(f"Could not convert {name} to a float array") from e
        if x.shape != (self.dimension,):
            raise errors.DimensionError(
                f"Expected {name} of length {self.dimension} but got shape {x.shape} ({individual})"
            )
        out = np.where((x < self._lower) | (x > self._upper) | np.isnan(x))[0]
        if out.size:
            raise errors.DimensionError(f"{name} {x.tolist()} violates bounds in dimension(s) {out.tolist()}")
        return x

    def sample(self, num: int, random_state: np.random.RandomState) -> np.ndarray:
        """Uniformly samples num individuals within the bounds, as a (num, dimension) array"""
        if num < 1:
            raise ValueError(f"Number of samples must be strictly positive (got {num})")
        return random_state.uniform(self._lower, self._upper, size=(num, self.dimension))


class Population:
    """Current generation of individuals, stored as a (size, dimension) array.
    Individuals are handed out as copies so that the stored rows are never aliased.

    Note
    ----
    :code:`replace` does not check the bounds, this is the responsibility of the caller.
    """

    def __init__(self, individuals: tp.Any) -> None:
        data = np.array(individuals, dtype=float, copy=True)
        if data.ndim != 2 or not data.shape[0] or not data.shape[1]:
            raise errors.DimensionError(f"Population must be a non-empty 2D array, got shape {data.shape}")
        self._data = data

    @property
    def size(self) -> int:
        return self._data.shape[0]

    @property
    def dimension(self) -> int:
        return self._data.shape[1]

    def __len__(self) -> int:
        return self.size

    def check_index(self, index: tp.Any) -> int:
        if isinstance(index, (bool, np.bool_)) or not isinstance(index, (int, np.integer)):
            raise errors.PopulationIndexError(f"Population index must be an integer, got {index!r}")
        if not 0 <= index < self.size:
            raise errors.PopulationIndexError(f"Index {index} is out of population range [0, {self.size})")
        return int(index)

    def get(self, index: int) -> np.ndarray:
        """Returns a copy of the individual at the provided index"""
        return self._data[self.check_index(index)].copy()

    def get_many(self, indices: tp.Sequence[int]) -> np.ndarray:
        """Returns a copy of the individuals at the provided indices, as a (len(indices), dimension) array"""
        return self._data[[self.check_index(i) for i in indices]]

    def replace(self, index: int, individual: tp.ArrayLike) -> None:
        self._data[self.check_index(index)] = individual

    def as_array(self) -> np.ndarray:
        return self._data.copy()

    def __repr__(self) -> str:
        return f"Population(size={self.size}, dimension={self.dimension})"
