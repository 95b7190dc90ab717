"""
Outbox processor for delivering guest notifications from the outbox table.

Reads PENDING events and hands them to the WhatsApp notifier:
- Batch processing, oldest first
- PROCESSING status claims a batch so two workers never send twice
- Failed sends go back to PENDING until `outbox_max_retries`, then FAILED
- Skipped sends (no phone, no template) count as PUBLISHED

Runs as a FastAPI background task started in the lifespan, or once on
demand through process_pending_events_once().
"""

import asyncio
import json
from typing import Callable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from rest_api.models import OutboxEvent, OutboxStatus
from rest_api.models.base import utcnow
from rest_api.services.messaging import DeliveryResult, WhatsAppNotifier, get_notifier
from shared.config.constants import EventType
from shared.config.logging import outbox_logger as logger
from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal


class OutboxProcessor:
    """
    Processes outbox events and delivers them through the notifier.

    Status transitions: PENDING → PROCESSING → PUBLISHED, or back to
    PENDING on failure, or FAILED once retries are exhausted.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        notifier: WhatsAppNotifier | None = None,
        batch_size: int | None = None,
        max_retries: int | None = None,
        poll_interval: float | None = None,
    ):
        self._session_factory = session_factory
        self._notifier = notifier
        self._batch_size = batch_size or settings.outbox_batch_size
        self._max_retries = max_retries or settings.outbox_max_retries
        self._poll_interval = poll_interval or settings.outbox_poll_interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def notifier(self) -> WhatsAppNotifier:
        if self._notifier is None:
            self._notifier = get_notifier()
        return self._notifier

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the processor loop."""
        if self._running:
            logger.warning("Outbox processor already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Outbox processor started", poll_interval=self._poll_interval)

    async def stop(self) -> None:
        """Stop the processor gracefully."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Outbox processor stopped")

    async def _run_loop(self) -> None:
        while self._running:
            try:
                handled = await self._process_batch()
                if handled == 0:
                    await asyncio.sleep(self._poll_interval)
            except Exception as e:
                logger.error("Outbox processor error", error=str(e))
                await asyncio.sleep(self._poll_interval)

    async def _process_batch(self) -> int:
        """
        Process one batch of PENDING events.

        Returns:
            Number of events handled (published or skipped)
        """
        db = self._session_factory()
        try:
            events = db.execute(
                select(OutboxEvent)
                .where(OutboxEvent.status == OutboxStatus.PENDING)
                .order_by(OutboxEvent.created_at.asc(), OutboxEvent.id.asc())
                .limit(self._batch_size)
                .with_for_update(skip_locked=True)
            ).scalars().all()

            if not events:
                return 0

            db.execute(
                update(OutboxEvent)
                .where(OutboxEvent.id.in_([event.id for event in events]))
                .values(status=OutboxStatus.PROCESSING)
            )
            db.commit()

            handled = 0
            for event in events:
                if await self._deliver_event(event):
                    event.status = OutboxStatus.PUBLISHED
                    event.processed_at = utcnow()
                    handled += 1
                    continue

                event.retry_count += 1
                if event.retry_count >= self._max_retries:
                    event.status = OutboxStatus.FAILED
                    logger.error(
                        "Outbox event failed after max retries",
                        event_id=event.id,
                        event_type=event.event_type,
                        aggregate_id=event.aggregate_id,
                        last_error=event.last_error,
                    )
                else:
                    event.status = OutboxStatus.PENDING

            db.commit()
            logger.info("Outbox batch processed", total=len(events), published=handled)
            return handled

        except Exception as e:
            db.rollback()
            logger.error("Outbox batch processing failed", error=str(e))
            return 0
        finally:
            db.close()

    async def _deliver_event(self, event: OutboxEvent) -> bool:
        """True when the event needs no further attempts."""
        if event.event_type not in EventType.ALL:
            event.last_error = f"Unknown event type {event.event_type}"
            logger.warning("Unknown outbox event type", event_id=event.id, event_type=event.event_type)
            return False

        try:
            payload = json.loads(event.payload)
            result = await self.notifier.deliver(
                event_type=event.event_type,
                order_number=payload.get("order_number"),
                room_number=payload.get("room_number"),
                guest_phone=payload.get("guest_phone"),
            )
        except Exception as e:
            event.last_error = str(e)
            logger.error(
                "Failed to deliver outbox event",
                event_id=event.id,
                event_type=event.event_type,
                retry_count=event.retry_count,
                error=str(e),
            )
            return False

        if result is DeliveryResult.SKIPPED:
            logger.info("Outbox event skipped", event_id=event.id, event_type=event.event_type)
        return True


# Singleton instance
_processor: OutboxProcessor | None = None


def get_outbox_processor() -> OutboxProcessor:
    """Get the singleton outbox processor instance."""
    global _processor
    if _processor is None:
        _processor = OutboxProcessor()
    return _processor


async def start_outbox_processor() -> None:
    """Start the outbox processor (call in FastAPI lifespan startup)."""
    await get_outbox_processor().start()


async def stop_outbox_processor() -> None:
    """Stop the outbox processor (call in FastAPI lifespan shutdown)."""
    await get_outbox_processor().stop()


async def process_pending_events_once(
    session_factory: Callable[[], Session] | None = None,
    notifier: WhatsAppNotifier | None = None,
) -> int:
    """
    Process pending outbox events once (for testing or manual triggering).

    Returns:
        Number of events handled
    """
    if session_factory is None and notifier is None:
        return await get_outbox_processor()._process_batch()
    processor = OutboxProcessor(
        session_factory=session_factory or SessionLocal,
        notifier=notifier,
    )
    return await processor._process_batch()
