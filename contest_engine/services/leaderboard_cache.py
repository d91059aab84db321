"""
Leaderboard cache with coalesced asynchronous recomputation.

Holds the last published LeaderboardSnapshot per contest and serves it
without ever waiting on a computation. Invalidations schedule a recompute;
per contest at most one recompute is in flight, and any invalidations that
arrive meanwhile collapse into a single follow-up run. Snapshots are
published by one reference swap, so readers never see a partial list.

Per-contest lifecycle:
    Empty -> Computing -> Ready -> Stale -> Computing -> Ready -> ...
"""

import asyncio
import time
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Dict, Optional

from contest_engine.constants import CacheConstants
from contest_engine.data_models.leaderboard import LeaderboardRead, LeaderboardSnapshot, ReadStatus
from contest_engine.utils.exceptions import RecomputeFailedError
from contest_engine.utils.logger import setup_logger

logger = setup_logger(__name__)

ComputeFn = Callable[[int], Awaitable[LeaderboardSnapshot]]


@dataclass
class _ContestState:
    """Mutable bookkeeping of one contest; only ever touched from the event loop."""
    snapshot: Optional[LeaderboardSnapshot] = None
    data_version: int = 0
    task: Optional[asyncio.Task] = None
    rerun: bool = False
    runs: int = 0
    last_error: Optional[BaseException] = None

    @property
    def in_flight(self) -> bool:
        return self.task is not None and not self.task.done()


class LeaderboardCache:
    """Per-contest snapshot cache with at-most-one-in-flight recomputation."""
    
    def __init__(
        self,
        compute: ComputeFn,
        snapshot_store=None,
        on_recompute_start: Optional[Callable[[int], None]] = None,
        on_recompute_complete: Optional[Callable[[int, float, bool], None]] = None,
    ):
        self._compute = compute
        self.snapshot_store = snapshot_store  # Optional RedisSnapshotStore mirror
        # Optional monitoring callbacks; an external dispatcher can retry on success=False
        self.on_recompute_start = on_recompute_start
        self.on_recompute_complete = on_recompute_complete
        self._states: Dict[int, _ContestState] = {}
        # Background task tracking for proper lifecycle management
        self._background_tasks: set = set()
    
    def _state(self, contest_id: int) -> _ContestState:
        state = self._states.get(contest_id)
        if state is None:
            state = self._states[contest_id] = _ContestState()
        return state
    
    def cache_key(self, contest_id: int) -> str:
        """Key carrying the current data-version marker of the contest."""
        return CacheConstants.VERSIONED_KEY_TEMPLATE.format(
            contest_id=contest_id, data_version=self._state(contest_id).data_version
        )
    
    def data_version(self, contest_id: int) -> int:
        return self._state(contest_id).data_version
    
    def run_count(self, contest_id: int) -> int:
        """Number of recompute runs finished for the contest (successful or not)."""
        return self._state(contest_id).runs
    
    def is_recomputing(self, contest_id: int) -> bool:
        state = self._states.get(contest_id)
        return bool(state and state.in_flight)
    
    def get(self, contest_id: int) -> LeaderboardRead:
        """Best available snapshot, explicitly marked; never blocks and never raises."""
        state = self._states.get(contest_id)
        if state is None:
            return LeaderboardRead(status=ReadStatus.UNAVAILABLE)
        
        snapshot = state.snapshot
        recomputing = state.in_flight
        if snapshot is None:
            return LeaderboardRead(status=ReadStatus.UNAVAILABLE, recomputing=recomputing)
        if not snapshot.leaderboard_enabled:
            return LeaderboardRead(status=ReadStatus.DISABLED, snapshot=snapshot, recomputing=recomputing)
        if snapshot.data_version < state.data_version:
            return LeaderboardRead(status=ReadStatus.STALE, snapshot=snapshot, recomputing=recomputing)
        return LeaderboardRead(status=ReadStatus.READY, snapshot=snapshot, recomputing=recomputing)
    
    def invalidate(self, contest_id: int) -> None:
        """
        Mark the contest stale and schedule a recompute.
        
        Idempotent while a recompute is in flight: further calls only set the
        rerun flag, consumed once when the current run finishes.
        
        Raises:
            RuntimeError: when called outside the running event loop; the
                contest is left untouched
        """
        loop = asyncio.get_running_loop()
        state = self._state(contest_id)
        state.data_version += 1
        
        if state.in_flight:
            if not state.rerun:
                logger.debug(f"Contest {contest_id}: recompute in flight, queued one follow-up run")
            state.rerun = True
            return
        
        self._start(contest_id, state, loop)
    
    def invalidate_threadsafe(self, contest_id: int, loop: asyncio.AbstractEventLoop) -> None:
        """Schedule `invalidate` on the engine's event loop from another thread."""
        loop.call_soon_threadsafe(self.invalidate, contest_id)
    
    def _start(
        self, contest_id: int, state: _ContestState, loop: Optional[asyncio.AbstractEventLoop] = None
    ) -> asyncio.Task:
        task = (loop or asyncio.get_running_loop()).create_task(self._run(contest_id, state))
        state.task = task
        self._background_tasks.add(task)
        # Remove task from set when it completes to prevent memory leaks
        task.add_done_callback(self._background_tasks.discard)
        return task
    
    async def _run(self, contest_id: int, state: _ContestState) -> None:
        try:
            while True:
                state.rerun = False
                await self._recompute_once(contest_id, state)
                if not state.rerun:
                    break
                logger.info(f"Contest {contest_id}: running coalesced follow-up recompute")
        finally:
            state.task = None
    
    async def _recompute_once(self, contest_id: int, state: _ContestState) -> None:
        version = state.data_version
        
        # Optional monitoring hook - recompute start
        if self.on_recompute_start:
            try:
                self.on_recompute_start(contest_id)
            except Exception as e:
                logger.warning(f"Monitoring callback on_recompute_start failed: {e}")
        
        start_time = time.monotonic()
        published = None
        try:
            snapshot = await self._compute(contest_id)
            published = replace(snapshot, data_version=version)
            state.snapshot = published  # Single atomic publish
            state.last_error = None
            logger.info(
                f"Published leaderboard for contest {contest_id} "
                f"({len(published.entries)} entries, version {version})"
            )
        except Exception as e:
            # Keep serving the previous snapshot; retries belong to the caller's dispatcher
            state.last_error = e
            logger.error(f"Leaderboard recompute failed for contest {contest_id}: {e}", exc_info=True)
        finally:
            state.runs += 1
        
        duration = time.monotonic() - start_time
        
        # Optional monitoring hook - recompute complete
        if self.on_recompute_complete:
            try:
                self.on_recompute_complete(contest_id, duration, published is not None)
            except Exception as e:
                logger.warning(f"Monitoring callback on_recompute_complete failed: {e}")
        
        if published is not None and self.snapshot_store is not None:
            await self.snapshot_store.save(published)
    
    async def recompute(self, contest_id: int) -> LeaderboardSnapshot:
        """
        Run (or join) the contest's recompute and return the published snapshot.
        
        Joins the in-flight run instead of starting a second one. The run is
        shielded, so cancelling the caller does not cancel the computation.
        
        Raises:
            RecomputeFailedError: if the run could not publish a snapshot
        """
        state = self._state(contest_id)
        task = state.task if state.in_flight else self._start(contest_id, state)
        await asyncio.shield(task)
        
        error = state.last_error
        if error is not None:
            if isinstance(error, RecomputeFailedError):
                raise error
            raise RecomputeFailedError(contest_id) from error
        return state.snapshot
    
    async def wait_idle(self, contest_id: int) -> None:
        """Wait until no recompute is in flight for the contest."""
        state = self._states.get(contest_id)
        while state is not None and state.in_flight:
            await asyncio.shield(state.task)
    
    async def warm(self, contest_id: int) -> bool:
        """Load a mirrored snapshot from the store when nothing is cached yet."""
        if self.snapshot_store is None:
            return False
        state = self._state(contest_id)
        if state.snapshot is not None:
            return False
        snapshot = await self.snapshot_store.load(contest_id)
        if snapshot is None or state.snapshot is not None:
            return False
        state.snapshot = replace(snapshot, data_version=state.data_version)
        logger.info(f"Warmed leaderboard cache for contest {contest_id} from store")
        return True
    
    def evict(self, contest_id: int) -> None:
        """Drop the cached snapshot; an in-flight recompute still publishes."""
        state = self._states.get(contest_id)
        if state is not None:
            state.snapshot = None
    
    def clear(self) -> None:
        """Drop every cached snapshot."""
        for state in self._states.values():
            state.snapshot = None
        logger.info("Leaderboard cache cleared.")
    
    async def cleanup(self):
        """Cancel background recomputes for graceful shutdown."""
        if self._background_tasks:
            logger.info(f"Waiting for {len(self._background_tasks)} background recomputes to complete...")
            for task in self._background_tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
            self._background_tasks.clear()
            logger.info("All background recomputes cleaned up.")
