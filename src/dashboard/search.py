"""
Debounced fund search.

Each keystroke cancels the pending search and restarts the delay, so only
the last query typed inside the window reaches the resolver.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from config import settings
from app.models.funds import FundBasic

logger = logging.getLogger(__name__)

SearchFunc = Callable[[str], Awaitable[List[FundBasic]]]


class SearchDebouncer:
    def __init__(
        self,
        search_func: SearchFunc,
        delay_s: float = settings.SEARCH_DEBOUNCE_SECONDS,
        on_results: Optional[Callable[[str, List[FundBasic]], None]] = None,
    ):
        self.search_func = search_func
        self.delay_s = delay_s
        self.on_results = on_results
        self.results: List[FundBasic] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def is_searching(self) -> bool:
        return self._task is not None and not self._task.done()

    def submit(self, query: str) -> Optional[asyncio.Task]:
        """Schedule a search for query, replacing any pending one. Must run inside an event loop."""
        self.cancel()

        if not query or not query.strip():
            self.results = []
            return None

        self._task = asyncio.get_running_loop().create_task(self._run(query))
        return self._task

    async def wait(self) -> List[FundBasic]:
        """Wait for the pending search, if any; returns the latest results."""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.results

    def cancel(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, query: str) -> List[FundBasic]:
        await asyncio.sleep(self.delay_s)
        try:
            results = await self.search_func(query)
        except Exception as e:
            logger.error(f"[Search] Search failed for '{query}': {e}")
            results = []

        self.results = results
        if self.on_results is not None:
            self.on_results(query, results)
        return results
