from __future__ import annotations

import random
from collections import Counter

import pytest

from trait_lab.engine.sampler import WeightedSampler
from trait_lab.registry.model import TraitVariant


class _FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


def _variants(*weights: int) -> list[TraitVariant]:
    return [TraitVariant(name=f"v{i}", image=b"", rarity=w, id=f"v{i}") for i, w in enumerate(weights)]


def test_empty_pool_returns_none(caplog: pytest.LogCaptureFixture) -> None:
    sampler = WeightedSampler(random.Random(1))
    with caplog.at_level("DEBUG", logger="traitlab.sampler"):
        assert sampler.pick([], "hat") is None
    assert "hat" in caplog.text


def test_single_candidate_always_chosen() -> None:
    sampler = WeightedSampler(random.Random(3))
    only = _variants(1)
    assert all(sampler.pick(only) is only[0] for _ in range(50))


def test_frequencies_follow_rarity_weights() -> None:
    sampler = WeightedSampler(random.Random(1234))
    variants = _variants(10, 30, 60)
    trials = 20000
    counts = Counter(sampler.pick(variants).id for _ in range(trials))
    assert counts["v0"] / trials == pytest.approx(0.10, abs=0.02)
    assert counts["v1"] / trials == pytest.approx(0.30, abs=0.02)
    assert counts["v2"] / trials == pytest.approx(0.60, abs=0.02)


def test_walk_uses_cumulative_weights() -> None:
    variants = _variants(50, 50)
    assert WeightedSampler(_FixedRandom(0.25)).pick(variants).id == "v0"
    assert WeightedSampler(_FixedRandom(0.5)).pick(variants).id == "v0"
    assert WeightedSampler(_FixedRandom(0.75)).pick(variants).id == "v1"


def test_positive_remainder_falls_back_to_last() -> None:
    variants = _variants(1, 1, 1)
    assert WeightedSampler(_FixedRandom(1.5)).pick(variants).id == "v2"
