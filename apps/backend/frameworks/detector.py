"""
Framework Detector
==================

Runs every registered adapter's ``detect()`` in a fixed specificity order.

Remix is probed before React Router (whose conventions are a subset of
Remix's), and the specific Next.js router variants before the hybrid one.
"""

from __future__ import annotations

import logging

from .registry import FrameworkRegistry
from .types import AdapterContext, Confidence, FrameworkDetectionResult, FrameworkType

logger = logging.getLogger(__name__)

DETECTION_ORDER = [
    FrameworkType.SVELTEKIT.value,
    FrameworkType.REMIX.value,
    FrameworkType.REACT_ROUTER.value,
    FrameworkType.NEXTJS_APP.value,
    FrameworkType.NEXTJS_PAGES.value,
    FrameworkType.NEXTJS.value,
    FrameworkType.NUXT.value,
]


class FrameworkDetector:
    """Best-match and all-matches framework detection over one registry."""

    def __init__(self, registry: FrameworkRegistry):
        self.registry = registry

    def _ordered_names(self) -> list[str]:
        registered = self.registry.registered_frameworks()
        ordered = [name for name in DETECTION_ORDER if name in registered]
        # Custom adapters run after the built-ins
        ordered.extend(name for name in registered if name not in DETECTION_ORDER)
        return ordered

    async def _run(self, name: str, ctx: AdapterContext) -> FrameworkDetectionResult | None:
        try:
            adapter = self.registry.get(name)
            return await adapter.detect(ctx)
        except Exception as e:
            logger.warning(f"Framework detection for '{name}' failed: {e}")
            return None

    async def detect(self, ctx: AdapterContext) -> FrameworkDetectionResult:
        """
        Detect the project's framework.

        Returns the first high-confidence result, otherwise the highest
        ranked non-none result (detection order breaks ties), otherwise a
        none result.
        """
        candidates: list[FrameworkDetectionResult] = []
        for name in self._ordered_names():
            result = await self._run(name, ctx)
            if result is None or result.confidence == Confidence.NONE:
                continue
            logger.debug(f"{name}: {result.confidence.value} ({result.reason})")
            if result.confidence == Confidence.HIGH:
                logger.info(f"Detected {result.framework} with high confidence")
                return result
            candidates.append(result)

        if not candidates:
            return FrameworkDetectionResult(
                framework=None,
                confidence=Confidence.NONE,
                reason="No supported framework detected",
            )

        best = sorted(candidates, key=lambda r: r.confidence.rank, reverse=True)[0]
        logger.info(f"Detected {best.framework} with {best.confidence.value} confidence")
        return best

    async def detect_all(self, ctx: AdapterContext) -> list[FrameworkDetectionResult]:
        """
        Every non-none result, one per framework id.

        The Next.js variants can report the same id; the highest confidence
        report for an id is kept, in first-seen order.
        """
        by_framework: dict[str, FrameworkDetectionResult] = {}
        for name in self._ordered_names():
            result = await self._run(name, ctx)
            if result is None or result.confidence == Confidence.NONE:
                continue
            key = result.framework or name
            existing = by_framework.get(key)
            if existing is None or result.confidence.rank > existing.confidence.rank:
                by_framework[key] = result
        return list(by_framework.values())
