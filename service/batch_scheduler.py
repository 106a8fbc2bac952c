import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from models import DEFAULT_WINDOW, PairRecord, Player, RecencyWindow, RecordMap
from service.head_to_head_service import HeadToHeadService

logger = logging.getLogger(__name__)

RecordPair = Tuple[PairRecord, PairRecord]
UpdateCallback = Callable[[RecordPair], None]


def roster_pairs(roster: Sequence[Player]) -> List[Tuple[Player, Player]]:
    """Every unordered pair once, in roster order."""
    return [
        (roster[i], roster[j])
        for i in range(len(roster))
        for j in range(i + 1, len(roster))
    ]


class BatchScheduler:
    """Runs head-to-head reconciliation over a whole roster without tripping the rate limit.

    Pairs go out `batch_size` at a time; each batch must settle before the next
    starts, with `batch_delay` seconds between batches. Every run gets a new
    epoch and results from an older epoch are dropped instead of overwriting
    fresher records.
    """

    def __init__(
        self,
        service: HeadToHeadService,
        batch_size: int = 3,
        batch_delay: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._service = service
        self._batch_size = max(1, batch_size)
        self._batch_delay = max(0.0, batch_delay)
        self._sleep = sleep
        self._epoch = 0
        self._records: RecordMap = {}

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def records(self) -> RecordMap:
        return dict(self._records)

    def invalidate(self) -> int:
        self._epoch += 1
        return self._epoch

    def forget(self, player_id: str) -> None:
        """Drop both directions of every record involving `player_id`."""
        self._records = {
            key: record for key, record in self._records.items()
            if player_id not in key
        }

    async def schedule_all(
        self,
        roster: Sequence[Player],
        window: RecencyWindow = DEFAULT_WINDOW,
        on_update: Optional[UpdateCallback] = None,
    ) -> RecordMap:
        epoch = self.invalidate()
        pairs = roster_pairs(roster)
        for a, b in pairs:
            self._publish(epoch, (PairRecord.loading(a.id, b.id), PairRecord.loading(b.id, a.id)), on_update)

        total_batches = (len(pairs) + self._batch_size - 1) // self._batch_size
        for start in range(0, len(pairs), self._batch_size):
            if epoch != self._epoch:
                logger.info("Run %s superseded by run %s; stopping", epoch, self._epoch)
                break
            batch = pairs[start:start + self._batch_size]
            logger.info("Processing batch %s of %s (%s pairs)", start // self._batch_size + 1, total_batches, len(batch))
            await asyncio.gather(*(self._run_pair(epoch, a, b, window, on_update) for a, b in batch))
            if start + self._batch_size < len(pairs):
                await self._sleep(self._batch_delay)

        return self.records

    async def _run_pair(
        self,
        epoch: int,
        player_a: Player,
        player_b: Player,
        window: RecencyWindow,
        on_update: Optional[UpdateCallback],
    ) -> None:
        records = await self._service.reconcile(player_a, player_b, window)
        self._publish(epoch, records, on_update)

    def _publish(self, epoch: int, records: RecordPair, on_update: Optional[UpdateCallback]) -> bool:
        if epoch != self._epoch:
            logger.debug("Discarding stale result %s from run %s (current %s)", records[0].key, epoch, self._epoch)
            return False
        for record in records:
            self._records[record.key] = record
        if on_update is not None:
            try:
                on_update(records)
            except Exception:
                logger.exception("Update callback failed for %s", records[0].key)
        return True
