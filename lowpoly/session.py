"""Supersedable generation runs where the latest request wins."""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from lowpoly.types import PixelBuffer, LowPolyConfig, LowPolyResult, GenerationCancelled
from lowpoly.pipeline import LowPolyPipeline

logger = logging.getLogger(__name__)


class GenerationSession:
    """
    Runs generations in the background and keeps only the newest result.

    Every submit() takes a ticket. A run checks its ticket between pipeline
    stages and stops with GenerationCancelled as soon as a newer request
    exists, so a stale result can never replace a newer one.
    """

    def __init__(self, config: Optional[LowPolyConfig] = None, max_workers: int = 1):
        self.config = config or LowPolyConfig()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="lowpoly"
        )
        self._lock = threading.Lock()
        self._ticket = 0
        self._latest: Optional[LowPolyResult] = None

    def submit(
        self,
        source: PixelBuffer,
        config: Optional[LowPolyConfig] = None
    ) -> Future:
        """
        Start generating from a source image, superseding any run in flight.

        Args:
            source: RGBA source image
            config: Overrides the session config for this run only

        Returns:
            Future resolving to a LowPolyResult, or raising
            GenerationCancelled if a newer request supersedes it
        """
        config = config or self.config
        with self._lock:
            self._ticket += 1
            ticket = self._ticket
        logger.debug(f"Submitted generation #{ticket}")
        return self._executor.submit(self._run, ticket, source, config)

    def cancel(self) -> None:
        """Invalidate every run currently queued or in flight."""
        with self._lock:
            self._ticket += 1

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._ticket

    @property
    def latest_result(self) -> Optional[LowPolyResult]:
        """Result of the most recent run that finished without being superseded."""
        with self._lock:
            return self._latest

    def _run(self, ticket: int, source: PixelBuffer, config: LowPolyConfig) -> LowPolyResult:
        def checkpoint():
            if not self.is_current(ticket):
                raise GenerationCancelled(f"Generation #{ticket} was superseded")

        checkpoint()
        result = LowPolyPipeline(config).generate(source, checkpoint=checkpoint)

        with self._lock:
            if ticket != self._ticket:
                raise GenerationCancelled(f"Generation #{ticket} was superseded")
            self._latest = result

        logger.debug(f"Generation #{ticket} finished")
        return result

    def shutdown(self, wait: bool = True) -> None:
        self.cancel()
        self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
        return False
