"""
Batch processor for LLM requests
Splits items into fixed-size batches, reconciles results by index and
substitutes fallback values for missing or failed items
"""
import logging
import time
from typing import Callable, Dict, List, Optional, TypeVar

from models import BatchItem
from utils.helpers import chunk_list

logger = logging.getLogger(__name__)

T = TypeVar('T')

ProgressCallback = Callable[[int, int], None]


class BatchProcessor:
    """Sequential batch runner with throttling between batches"""

    def __init__(self, batch_size=150, delay_seconds=3.0, sleep=time.sleep, label='batch'):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self.delay_seconds = delay_seconds
        self.label = label
        self._sleep = sleep

    def run(self,
            items: List[BatchItem],
            handler: Callable[[List[BatchItem]], Dict[int, T]],
            fallback: Callable[[BatchItem], T],
            error_fallback: Optional[Callable[[BatchItem], T]] = None,
            on_progress: Optional[ProgressCallback] = None) -> List[T]:
        """Run ``handler`` over every batch and return one result per item.

        ``handler`` returns a mapping of item index to result. Items whose
        index is missing from that mapping get ``fallback(item)``; when the
        handler raises, the whole batch gets ``error_fallback(item)``
        (defaulting to ``fallback``). The result list matches ``items`` in
        length and order.
        """
        error_fallback = error_fallback or fallback
        batches = chunk_list(list(items), self.batch_size)
        total = len(items)
        results: List[T] = []

        logger.info("Processing %d items in %d %s batches", total, len(batches), self.label)

        for batch_number, batch in enumerate(batches, 1):
            logger.info("%s %d/%d (%d items)", self.label.capitalize(), batch_number, len(batches), len(batch))

            try:
                batch_results = handler(batch) or {}
            except Exception as e:
                logger.error("%s %d/%d failed, using fallback values: %s",
                             self.label.capitalize(), batch_number, len(batches), e)
                results.extend(error_fallback(item) for item in batch)
            else:
                missing = [item.index for item in batch if item.index not in batch_results]
                if missing:
                    logger.warning("%s %d/%d: no result for %d items (e.g. %s)",
                                   self.label.capitalize(), batch_number, len(batches),
                                   len(missing), missing[:3])
                for item in batch:
                    if item.index in batch_results:
                        results.append(batch_results[item.index])
                    else:
                        results.append(fallback(item))

            if on_progress:
                on_progress(len(results), total)

            if batch_number < len(batches) and self.delay_seconds > 0:
                self._sleep(self.delay_seconds)

        return results
