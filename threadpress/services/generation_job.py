"""Draft generation job: sync -> detect threads -> summarize -> store drafts."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Sequence

from threadpress.db.connection import get_session_context
from threadpress.db.repositories.messages import MessageRepository
from threadpress.db.repositories.posts import PostRepository
from threadpress.threads import Thread, detect_threads

logger = logging.getLogger(__name__)

ALREADY_RUNNING = "Job already running"


@dataclass
class JobResult:
    """Summary of one generation run."""

    threads_processed: int = 0
    drafts_created: int = 0
    errors: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "threads_processed": self.threads_processed,
            "drafts_created": self.drafts_created,
            "errors": list(self.errors),
            "timestamp": self.timestamp.isoformat(),
        }


class GenerationJob:
    """
    Single-flight orchestrator for draft generation.

    The instance owns an asyncio.Lock that is the Idle/Running state. A call
    to run() while another run holds it returns at once with an
    "already running" result instead of waiting. The scheduler and the
    manual API trigger share one instance and therefore one lock.
    """

    def __init__(
        self,
        sync_service,
        summarize: Callable[[Sequence], Awaitable],
        session_factory=get_session_context,
        detector: Callable[..., List[Thread]] = detect_threads,
        gap_hours: float = 2,
        max_threads_per_run: int = 10,
        newest_first: bool = True,
    ):
        self.sync_service = sync_service
        self.summarize = summarize
        self.session_factory = session_factory
        self.detector = detector
        self.gap_hours = gap_hours
        self.max_threads_per_run = max_threads_per_run
        self.newest_first = newest_first
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run(self) -> JobResult:
        """
        Run the full pipeline once.

        Never raises. Sync errors are collected and the run continues; a
        failure while detecting threads ends the run early; a failure on
        one thread is recorded and the next thread is processed.
        """
        # No await between the check and the acquire, so the check is atomic
        if self._lock.locked():
            logger.info("Generation job already running, skipping")
            return JobResult(errors=[ALREADY_RUNNING])

        async with self._lock:
            result = JobResult()
            try:
                await self._run_pipeline(result)
            except Exception as e:
                logger.exception("Generation job failed")
                result.errors.append(f"Job failed: {e}")
            return result

    async def _run_pipeline(self, result: JobResult) -> None:
        logger.info("Starting message sync...")
        sync_result = await self.sync_service.sync_new_messages()
        result.errors.extend(sync_result.errors)
        logger.info(f"Synced {sync_result.messages_added} new messages")

        threads = await self._detect_threads()
        logger.info(f"Detected {len(threads)} threads")

        to_process = threads[:self.max_threads_per_run]
        if len(threads) > len(to_process):
            logger.info(
                f"Processing {len(to_process)} threads, "
                f"{len(threads) - len(to_process)} left for the next run"
            )

        for thread in to_process:
            try:
                title = await self._process_thread(thread)
            except Exception as e:
                logger.exception(f"Thread processing failed ({thread.chat_id})")
                result.errors.append(f"Thread processing failed: {e}")
                continue

            result.threads_processed += 1
            result.drafts_created += 1
            logger.info(f"Created draft: {title}")

        logger.info(f"Job complete: {result.drafts_created} drafts created")

    async def _detect_threads(self) -> List[Thread]:
        async with self.session_factory() as session:
            messages = await MessageRepository(session).find_unclaimed()
        return self.detector(
            messages,
            timedelta(hours=self.gap_hours),
            newest_first=self.newest_first,
        )

    async def _process_thread(self, thread: Thread) -> str:
        """Summarize one thread and store its draft.

        The model call runs outside any session. Claiming, the post and its
        links are written in one transaction afterwards; a message claimed
        in the meantime makes that transaction fail with ConflictError.
        """
        async with self.session_factory() as session:
            messages = await MessageRepository(session).get_many(thread.message_ids)

        content = await self.summarize(messages)

        async with self.session_factory() as session:
            post = await PostRepository(session).create_draft_post(thread, content)
            return post.title
