"""State persistence - two wholesale records in a MongoDB collection."""
import asyncio
import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from app.config import settings
from app.models.goal import Goal
from app.models.task import Task
from app.services.entity_store import GOALS_RECORD, TASKS_RECORD

logger = logging.getLogger(__name__)


class StatePersistence:
    """
    Load and save the task and goal collections.

    Each collection lives in one document that is replaced on every save.
    Saves scheduled from the entity store's change hook run in the
    background; a failed save is logged and never reaches the caller.
    """

    def __init__(
        self,
        db,
        collection: str = settings.state_collection,
        tasks_key: str = settings.tasks_record_key,
        goals_key: str = settings.goals_record_key,
    ):
        """Initialize persistence with database connection."""
        self.db = db
        self.state = db[collection]
        self.keys = {TASKS_RECORD: tasks_key, GOALS_RECORD: goals_key}
        self._locks = {record: asyncio.Lock() for record in self.keys}
        self._pending: set[asyncio.Task] = set()

    async def _load_items(self, record: str) -> list[dict]:
        doc = await self.state.find_one({"_id": self.keys[record]})
        if not doc:
            return []
        return doc.get("items", [])

    async def load(self) -> tuple[list[Goal], list[Task]]:
        """
        Load both collections.

        Items that no longer validate are skipped with a warning.

        Returns:
            Tuple of (goals, tasks)
        """
        goals = []
        for item in await self._load_items(GOALS_RECORD):
            try:
                goals.append(Goal.model_validate(item))
            except ValidationError:
                logger.warning("Skipping invalid stored goal %r", item.get("id"), exc_info=True)

        tasks = []
        for item in await self._load_items(TASKS_RECORD):
            try:
                tasks.append(Task.model_validate(item))
            except ValidationError:
                logger.warning("Skipping invalid stored task %r", item.get("id"), exc_info=True)

        logger.info("Loaded %d goals and %d tasks", len(goals), len(tasks))
        return goals, tasks

    async def save(self, record: str, items: list[dict]) -> None:
        """Replace one record with the given documents."""
        await self.state.replace_one(
            {"_id": self.keys[record]},
            {
                "_id": self.keys[record],
                "items": items,
                "updated_at": datetime.now(timezone.utc),
            },
            upsert=True,
        )

    def schedule(self, record: str, items: list[dict]) -> None:
        """
        Save a record in the background.

        Intended as the entity store's change hook. Writes to the same
        record are applied in scheduling order.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, %s not persisted", record)
            return

        task = loop.create_task(self._write(record, items))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, record: str, items: list[dict]) -> None:
        async with self._locks[record]:
            try:
                await self.save(record, items)
            except Exception:
                logger.warning("Failed to persist %s", record, exc_info=True)

    async def flush(self) -> None:
        """Wait for every scheduled save to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
