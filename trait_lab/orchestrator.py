"""Collection generation loop.

Each item walks the same phases: select one trait per category (quota-bound
traits first), expand forced pairings, render the layers in z-order, then
record the item and update the run's appearance counters. Items are produced
strictly one after another; between items the loop sleeps briefly so a host
event loop stays responsive and can display finished items incrementally.
"""
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Callable, List, Optional

from .engine.propagation import propagate
from .engine.quota import QuotaState
from .engine.sampler import WeightedSampler
from .engine.selector import TraitSelector
from .items import GeneratedItem, build_triples
from .registry.model import TraitRegistry
from .render.compositor import Compositor

LOGGER = logging.getLogger("traitlab.orchestrator")

DEFAULT_CANVAS = 512
DEFAULT_YIELD_DELAY_S = 0.05


class Phase(str, Enum):
    SELECTING = "selecting"
    PROPAGATING = "propagating"
    RENDERING = "rendering"
    RECORDING = "recording"
    DONE = "done"


@dataclass(frozen=True)
class RunProgress:
    phase: Phase
    completed: int
    total: int
    item: GeneratedItem | None = None


ProgressCallback = Callable[[RunProgress], None]


@dataclass
class CollectionRun:
    """Items and counters of one finished (or abandoned) run."""

    items: List[GeneratedItem] = field(default_factory=list)
    quotas: QuotaState = field(default_factory=QuotaState)

    def __len__(self) -> int:
        return len(self.items)


class CollectionOrchestrator:
    """Drive the per-item loop for a registry snapshot."""

    def __init__(
        self,
        registry: TraitRegistry,
        *,
        width: int = DEFAULT_CANVAS,
        height: int = DEFAULT_CANVAS,
        compositor: Compositor | None = None,
        rng: random.Random | None = None,
        yield_delay_s: float = DEFAULT_YIELD_DELAY_S,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.registry = registry
        self.width = int(width)
        self.height = int(height)
        self.compositor = compositor or Compositor()
        self.sampler = WeightedSampler(rng or random.Random())
        self.yield_delay_s = max(0.0, float(yield_delay_s))
        self.on_progress = on_progress

    def _emit(self, phase: Phase, completed: int, total: int, item: GeneratedItem | None = None) -> None:
        if self.on_progress is not None:
            self.on_progress(RunProgress(phase, completed, total, item))

    async def iter_items(self, size: int, quotas: QuotaState | None = None) -> AsyncIterator[GeneratedItem]:
        """Yield *size* items one at a time.

        *quotas* is reset before the first item. Abandoning the iterator between
        items stops the run; an item is only yielded once it is rendered and
        counted.
        """

        quotas = quotas if quotas is not None else QuotaState()
        quotas.reset()
        total = max(0, int(size))
        if total == 0 or not self.registry.categories or self.registry.is_empty():
            LOGGER.info("nothing to generate: %d categories, size=%d", len(self.registry), total)
            self._emit(Phase.DONE, 0, total)
            return

        categories = self.registry.ordered_categories()
        index = self.registry.build_index()
        selector = TraitSelector(self.sampler, index)

        for position in range(total):
            self._emit(Phase.SELECTING, position, total)
            selected = selector.select(categories, quotas.counts)

            self._emit(Phase.PROPAGATING, position, total)
            final = propagate(selected, index)

            self._emit(Phase.RENDERING, position, total)
            image = await self.compositor.render(final, categories, self.width, self.height)

            item = GeneratedItem(image=image, traits=build_triples(final, categories))
            quotas.record(item.trait_ids)
            LOGGER.debug("item %d/%d: %s", position + 1, total, ", ".join(t.trait for t in item.traits))
            self._emit(Phase.RECORDING, position + 1, total, item)
            yield item

            if position + 1 < total:
                await asyncio.sleep(self.yield_delay_s)

        self._emit(Phase.DONE, total, total)

    async def generate(self, size: int) -> CollectionRun:
        run = CollectionRun()
        async for item in self.iter_items(size, run.quotas):
            run.items.append(item)
        for shortfall in run.quotas.unmet(self.registry):
            LOGGER.warning(
                "minimum appearance not reached for %s: %d of %d",
                shortfall.trait_id,
                shortfall.seen,
                shortfall.required,
            )
        LOGGER.info("generated %d items", len(run.items))
        return run

    def run(self, size: int) -> CollectionRun:
        return asyncio.run(self.generate(size))


__all__ = [
    "CollectionOrchestrator",
    "CollectionRun",
    "DEFAULT_CANVAS",
    "DEFAULT_YIELD_DELAY_S",
    "Phase",
    "ProgressCallback",
    "RunProgress",
]
