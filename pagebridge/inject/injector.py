"""Cascading injector: tries each strategy until one succeeds.

State flow per paste:
    IDLE -> PROBING -> <strategy> -> <strategy> ... -> SUCCEEDED | EXHAUSTED_FALLBACK

The readiness probe is bounded and never blocks injection. Each strategy runs
behind its own timeout and exception boundary, so a failing strategy only
moves the cascade on. The cascade as a whole is never retried; when every
strategy fails the trees are preserved in a ManualExport.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pagebridge.config.schema import InjectorConfig
from pagebridge.core.errors import InjectionError, InjectionErrorCode
from pagebridge.core.retry import backoff_delay
from pagebridge.inject.fallback import SUGGESTED_ACTIONS, ManualExport, as_injection_error
from pagebridge.inject.runtime import TargetRuntime
from pagebridge.inject.strategies import (
    InjectionResult,
    InjectionStrategy,
    InsertionTracker,
    build_strategies,
)
from pagebridge.model.node import ElementNode

logger = logging.getLogger(__name__)

RETRYABLE_CODES = frozenset({InjectionErrorCode.TIMEOUT, InjectionErrorCode.BRIDGE_FAILURE})


class InjectorState(Enum):
    """Fixed states of the cascade. Strategy steps are recorded by name."""

    IDLE = "idle"
    PROBING = "probing"
    SUCCEEDED = "succeeded"
    EXHAUSTED_FALLBACK = "exhausted-fallback"


@dataclass
class InjectionOutcome:
    """Result of one cascade run.

    Attributes:
        trees: The trees that were (or should have been) injected.
        result: The winning strategy's result, None on exhaustion.
        history: Visited states; strategy steps appear as strategy names.
        target_ready: Whether the readiness probe succeeded before the timeout.
        failures: (strategy name, error) for every strategy that failed.
        error: Classified error on exhaustion.
        export: Manual-recovery export on exhaustion.
    """

    trees: list[ElementNode]
    result: InjectionResult | None = None
    history: list[str] = field(default_factory=list)
    target_ready: bool = False
    failures: list[tuple[str, InjectionError]] = field(default_factory=list)
    error: InjectionError | None = None
    export: ManualExport | None = None

    @property
    def success(self) -> bool:
        return self.result is not None and self.result.success

    @property
    def suggested_actions(self) -> list[str]:
        if self.error is None:
            return []
        return SUGGESTED_ACTIONS[self.error.code]


class CascadingInjector:
    """Replays trees into a TargetRuntime with ordered fallbacks."""

    def __init__(
        self,
        runtime: TargetRuntime,
        config: InjectorConfig | None = None,
        strategies: Sequence[InjectionStrategy] | None = None,
        tracker: InsertionTracker | None = None,
    ) -> None:
        self._runtime = runtime
        self._config = config or InjectorConfig()
        self._strategies = (
            list(strategies)
            if strategies is not None
            else build_strategies(self._config.strategies)
        )
        self._tracker = tracker or InsertionTracker()

    @property
    def strategies(self) -> list[InjectionStrategy]:
        return list(self._strategies)

    async def inject(self, trees: ElementNode | Sequence[ElementNode]) -> InjectionOutcome:
        """Run the cascade once. Never raises for strategy failures."""
        tree_list = [trees] if isinstance(trees, ElementNode) else list(trees)
        outcome = InjectionOutcome(trees=tree_list, history=[InjectorState.IDLE.value])

        outcome.history.append(InjectorState.PROBING.value)
        outcome.target_ready = await self._wait_until_ready()
        if not outcome.target_ready:
            logger.warning(
                "Target not ready after %.1fs, attempting injection anyway",
                self._config.ready_timeout,
            )

        for strategy in self._strategies:
            outcome.history.append(strategy.name)
            try:
                result = await self._run_strategy(strategy, tree_list)
            except InjectionError as e:
                logger.warning("Strategy %s failed (%s): %s", strategy.name, e.code.value, e.message)
                outcome.failures.append((strategy.name, e))
                continue

            if result.success:
                outcome.result = result
                outcome.history.append(InjectorState.SUCCEEDED.value)
                logger.info("Injected %d element(s) via %s", result.count, result.method)
                return outcome

            failure = InjectionError(
                InjectionErrorCode.UNKNOWN,
                f"Strategy {strategy.name} reported failure",
            )
            logger.warning(failure.message)
            outcome.failures.append((strategy.name, failure))

        outcome.history.append(InjectorState.EXHAUSTED_FALLBACK.value)
        outcome.error = self._summarize(outcome)
        outcome.export = self._export(tree_list, outcome.error)
        logger.error(
            "All injection strategies failed (%s): %s",
            outcome.error.code.value,
            outcome.error.message,
        )
        return outcome

    async def _wait_until_ready(self) -> bool:
        """Poll is_ready() until it is True or ready_timeout elapses."""

        async def _poll() -> None:
            while True:
                try:
                    if await self._runtime.is_ready():
                        return
                except Exception as e:
                    logger.debug("Readiness check failed: %s", e)
                await asyncio.sleep(self._config.ready_poll_interval)

        try:
            await asyncio.wait_for(_poll(), timeout=self._config.ready_timeout)
        except TimeoutError:
            return False
        return True

    async def _run_strategy(
        self, strategy: InjectionStrategy, trees: list[ElementNode]
    ) -> InjectionResult:
        """Run one strategy with its own timeout and retry budget.

        Only TIMEOUT and BRIDGE_FAILURE are retried.
        """
        attempts = 1 + self._config.strategy_retries
        for attempt in range(attempts):
            try:
                return await asyncio.wait_for(
                    strategy.attempt(self._runtime, trees, self._tracker),
                    timeout=self._config.strategy_timeout,
                )
            except TimeoutError:
                error = InjectionError(
                    InjectionErrorCode.TIMEOUT,
                    f"Strategy {strategy.name} timed out after {self._config.strategy_timeout}s",
                )
            except Exception as e:
                error = as_injection_error(e)

            if error.code not in RETRYABLE_CODES or attempt == attempts - 1:
                raise error

            delay = backoff_delay(attempt, self._config.retry_base_delay)
            logger.info(
                "Strategy %s hit %s, retrying in %.1fs (%d/%d)",
                strategy.name, error.code.value, delay, attempt + 1, attempts - 1,
            )
            await asyncio.sleep(delay)

        # attempts >= 1, so the loop always returns or raises
        raise InjectionError(InjectionErrorCode.UNKNOWN, f"Strategy {strategy.name} did not run")

    @staticmethod
    def _summarize(outcome: InjectionOutcome) -> InjectionError:
        """Pick the error that best explains an exhausted cascade.

        An unready target explains everything. Otherwise the first failure
        that is not a missing capability wins, since API_UNAVAILABLE only says
        a fallback could not run.
        """
        count = len(outcome.failures)
        if not outcome.target_ready:
            return InjectionError(
                InjectionErrorCode.TARGET_NOT_READY,
                f"Target was not ready and all {count} strategies failed",
            )
        if not outcome.failures:
            return InjectionError(InjectionErrorCode.UNKNOWN, "No injection strategy configured")

        chosen = outcome.failures[-1][1]
        for _name, error in outcome.failures:
            if error.code is not InjectionErrorCode.API_UNAVAILABLE:
                chosen = error
                break
        return InjectionError(
            chosen.code,
            f"All {count} injection strategies failed. {chosen.message}",
        )

    def _export(self, trees: list[ElementNode], error: InjectionError) -> ManualExport:
        export = ManualExport.build(trees, error)
        if self._config.write_export_file:
            export_dir = Path(self._config.export_dir).expanduser() if self._config.export_dir else None
            try:
                export.write(export_dir)
            except OSError as e:
                logger.error("Could not write manual export: %s", e)
        return export
