# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import pytest
import numpy as np
from diffevo.common import errors
from diffevo.common import testing
from . import strategies as strats
from .config import DEConfig
from .space import Population, SearchSpace


class ScriptedRandom:
    """Replays predefined random draws, for testing strategies step by step"""

    def __init__(self, randints: tp.Sequence[int] = (), uniforms: tp.Sequence[tp.Any] = ()) -> None:
        self.randints = list(randints)
        self.uniforms = list(uniforms)

    def randint(self, *args: tp.Any, **kwargs: tp.Any) -> int:
        return self.randints.pop(0)

    def uniform(self, *args: tp.Any, **kwargs: tp.Any) -> tp.Any:
        return self.uniforms.pop(0)


@testing.parametrized(
    distinct=(True, 10, 4),
    distinct_full=(True, 4, 4),
    with_replacement=(False, 10, 4),
    with_replacement_small=(False, 2, 6),
)
def test_random_sampler(distinct: bool, size: int, num: int) -> None:
    sampler = strats.RandomSampler(distinct=distinct)
    rng = np.random.RandomState(12)
    for _ in range(50):
        indices = sampler.sample(size, num, rng)
        assert len(indices) == num
        assert all(0 <= i < size for i in indices)
        if distinct:
            assert len(set(indices.tolist())) == num


def test_random_sampler_too_small() -> None:
    sampler = strats.RandomSampler()
    assert sampler.min_population_size(4) == 4
    assert strats.RandomSampler(distinct=False).min_population_size(4) == 1
    with pytest.raises(errors.ConfigError):
        sampler.sample(3, 4, np.random.RandomState(12))


def test_random_sampler_covers_population() -> None:
    sampler = strats.RandomSampler()
    rng = np.random.RandomState(12)
    seen = {i for _ in range(100) for i in sampler.sample(6, 4, rng).tolist()}
    assert seen == set(range(6))


def test_rand_one_mutation() -> None:
    pop = Population([[1.0, 1.0], [2.0, 2.0], [-3.0, -3.0], [4.0, 4.0]])
    donor = strats.RandOneMutation().mutate(pop, [0, 1, 2], DEConfig(), np.random.RandomState(12))
    np.testing.assert_almost_equal(donor, [-3.4, -3.4])
    # order of parents matters, extra parents are ignored
    donor = strats.RandOneMutation().mutate(pop, [3, 0, 1, 2], DEConfig(F=1.0), np.random.RandomState(12))
    np.testing.assert_almost_equal(donor, [5.0, 5.0])
    np.testing.assert_array_equal(pop.get(1), [2, 2])


def test_rand_two_mutation() -> None:
    pop = Population([[1.0], [2.0], [3.0], [5.0], [10.0]])
    mutator = strats.RandTwoMutation()
    assert mutator.min_parents == 5
    donor = mutator.mutate(pop, [0, 1, 3, 2, 4], DEConfig(F=0.5, NumParents=5), np.random.RandomState(12))
    np.testing.assert_almost_equal(donor, [10.0 + 0.5 * (1 - 2) + 0.5 * (5 - 3)])


def test_binomial_crossover_scripted() -> None:
    target = np.array([4.0, 4.0, 4.0])
    donor = np.array([-3.4, -3.4, -3.4])
    rng = ScriptedRandom(randints=[0], uniforms=[np.array([0.95, 0.95, 0.3])])
    trial = strats.BinomialCrossover().crossover(target, donor, DEConfig(CR=0.9), rng)  # type: ignore
    assert trial is target  # modified in place
    np.testing.assert_array_equal(trial, [-3.4, 4.0, -3.4])


@testing.parametrized(
    cr0=(0.0,),
    cr05=(0.5,),
    cr09=(0.9,),
    cr1=(1.0,),
)
def test_binomial_crossover_guarantee(cr: float) -> None:
    rng = np.random.RandomState(12)
    conf = DEConfig(CR=cr)
    for _ in range(100):
        target = rng.uniform(-1, 1, size=5)
        donor = target + 1
        trial = strats.BinomialCrossover().crossover(target.copy(), donor, conf, rng)
        changed = np.sum(trial != target)
        assert changed >= 1
        assert np.all((trial == target) | (trial == donor))
        if cr == 0:
            assert changed == 1
        if cr == 1:
            assert changed == 5


def test_binomial_crossover_single_dimension() -> None:
    trial = strats.BinomialCrossover().crossover(
        np.array([1.0]), np.array([2.0]), DEConfig(CR=0.0), np.random.RandomState(12)
    )
    np.testing.assert_array_equal(trial, [2.0])


@testing.parametrized(
    block=(0.9, [3], [0.1, 0.5, 0.95], [0, 0, 0, 1, 1, 1]),
    wrapping=(0.9, [4], [0.1, 0.1, 0.1, 0.1, 0.1], [1, 1, 1, 1, 1, 1]),
    single=(0.0, [5], [0.0], [0, 0, 0, 0, 0, 1]),
    wrapped_block=(0.5, [5], [0.2, 0.7], [1, 0, 0, 0, 0, 1]),
)
def test_exponential_crossover_scripted(
    cr: float, randints: tp.List[int], uniforms: tp.List[float], expected: tp.List[int]
) -> None:
    rng = ScriptedRandom(randints=randints, uniforms=uniforms)
    trial = strats.ExponentialCrossover().crossover(np.zeros(6), np.ones(6), DEConfig(CR=cr), rng)  # type: ignore
    np.testing.assert_array_equal(trial, expected)


def test_exponential_crossover_guarantee() -> None:
    rng = np.random.RandomState(12)
    for cr in [0.0, 0.5, 1.0]:
        for _ in range(50):
            target = rng.uniform(-1, 1, size=4)
            trial = strats.ExponentialCrossover().crossover(target.copy(), target + 1, DEConfig(CR=cr), rng)
            changed = int(np.sum(trial != target))
            assert changed >= 1
            if cr == 0:
                assert changed == 1
            if cr == 1:
                assert changed == 4


def test_rand_bound_from_target_scenario() -> None:
    space = SearchSpace([(-5, 5)])
    rng = np.random.RandomState(12)
    for _ in range(200):
        repaired = strats.RandBoundFromTarget().repair(np.array([7.2]), np.array([2.0]), space, rng)
        assert 2.0 <= repaired[0] <= 5.0


def test_rand_bound_from_target_scripted() -> None:
    space = SearchSpace([(-5, 5), (-5, 5), (0, 10)])
    rng = ScriptedRandom(uniforms=[0.5, 0.25])
    trial = np.array([-7.0, 3.0, 12.0])
    out = strats.RandBoundFromTarget().repair(trial, np.array([1.0, 0.0, 2.0]), space, rng)  # type: ignore
    assert out is trial
    # -5 + 0.5 * (1 - -5) and 2 + 0.25 * (10 - 2)
    np.testing.assert_almost_equal(out, [-2.0, 3.0, 4.0])
    assert not rng.uniforms


@testing.parametrized(
    clip=("clip", [-5.0, 3.0, 5.0, 1.0]),
    reflect=("reflect", [-3.0, 3.0, 4.0, 0.0]),
)
def test_deterministic_repairs(name: str, expected: tp.List[float]) -> None:
    space = SearchSpace([(-5, 5), (-5, 5), (-5, 5), (0, 1)])
    repair = strats.resolve(name, strats.BoundRepair, "clip")
    out = repair.repair(np.array([-7.0, 3.0, 6.0, 4.5]), np.zeros(4), space, np.random.RandomState(12))
    np.testing.assert_almost_equal(out, expected)


@testing.parametrized(
    rand_bound=("rand_bound_from_target",),
    clip=("clip",),
    reflect=("reflect",),
)
def test_repairs_within_bounds(name: str) -> None:
    space = SearchSpace([(-1, 1), (0, 10), (-3, -2)])
    repair = strats.resolve(name, strats.BoundRepair, "clip")
    rng = np.random.RandomState(12)
    for _ in range(100):
        target = space.sample(1, rng)[0]
        trial = rng.uniform(-30, 30, size=3)
        out = repair.repair(trial, target, space, rng)
        testing.assert_within_bounds(out, list(space))


@testing.parametrized(
    default=(None, strats.Sampler, strats.RandomSampler(distinct=True)),
    random=("random", strats.Sampler, strats.RandomSampler(distinct=True)),
    with_replacement=("random_with_replacement", strats.Sampler, strats.RandomSampler(distinct=False)),
    rand1=("rand1", strats.Mutator, strats.RandOneMutation()),
    rand2=("rand2", strats.Mutator, strats.RandTwoMutation()),
    binomial=("binomial", strats.Crossover, strats.BinomialCrossover()),
    exponential=("exponential", strats.Crossover, strats.ExponentialCrossover()),
    clip=("clip", strats.BoundRepair, strats.ClipRepair()),
)
def test_resolve(name: tp.Optional[str], kind: tp.Type[strats.Strategy], expected: strats.Strategy) -> None:
    out = strats.resolve(name, kind, "random")
    assert isinstance(out, kind)
    assert out == expected


def test_resolve_instance() -> None:
    sampler = strats.RandomSampler(distinct=False)
    assert strats.resolve(sampler, strats.Sampler, "random") is sampler
    assert repr(sampler) == "RandomSampler(distinct=False)"


@testing.parametrized(
    unknown_name=("blublu", strats.Mutator),
    wrong_kind_name=("binomial", strats.Mutator),
    wrong_kind_instance=(strats.ClipRepair(), strats.Crossover),
    function=(lambda x: x, strats.Crossover),
)
def test_resolve_errors(strategy: tp.Any, kind: tp.Type[strats.Strategy]) -> None:
    with pytest.raises(errors.ConfigError):
        strats.resolve(strategy, kind, "random")


def test_registry_names() -> None:
    testing.printed_assert_equal(
        sorted(strats.registry),
        [
            "binomial",
            "clip",
            "exponential",
            "rand1",
            "rand2",
            "rand_bound_from_target",
            "random",
            "random_with_replacement",
            "reflect",
        ],
    )


@testing.parametrized(
    rand_bound=("rand_bound_from_target",),
    clip=("clip",),
    reflect=("reflect",),
)
def test_repairs_non_finite_values(name: str) -> None:
    space = SearchSpace([(-1e308, 1e308), (-1, 1), (-1, 1)])
    repair = strats.resolve(name, strats.BoundRepair, "clip")
    trial = np.array([np.nan, np.inf, -np.inf])
    with np.errstate(over="ignore", invalid="ignore"):
        out = repair.repair(trial, np.array([1e308, 0.5, -0.5]), space, np.random.RandomState(12))
    assert not np.isnan(out).any()
    testing.assert_within_bounds(out, list(space))


def test_strategies_are_hashable() -> None:
    instances = [strats.resolve(name, strats.Strategy, "random") for name in strats.registry]
    assert len(set(instances)) == len(instances)
    assert hash(strats.RandomSampler(distinct=False)) == hash(strats.RandomSampler(distinct=False))
    assert {strats.ClipRepair(): "clip"}[strats.ClipRepair()] == "clip"
    assert len({strats.RandomSampler(), strats.RandomSampler(distinct=True)}) == 1
