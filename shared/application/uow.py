"""
Unit of Work Pattern

Wraps one atomic store transaction and makes sure that domain events
are published only after that transaction has committed.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from threading import RLock
from typing import List
import logging

from django.db import InterfaceError, OperationalError, transaction

from shared.domain.base import DomainEvent
from shared.domain.errors import StorageUnavailable

logger = logging.getLogger(__name__)

TRANSIENT_DB_ERRORS = (OperationalError, InterfaceError)


@contextmanager
def storage_errors_as_unavailable():
    """Surface transient database failures of a read as StorageUnavailable"""
    try:
        yield
    except TRANSIENT_DB_ERRORS as exc:
        logger.error(f"Read aborted by the database: {exc}")
        raise StorageUnavailable() from exc


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __init__(self):
        self._events: List[DomainEvent] = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False

    @abstractmethod
    def commit(self):
        """Commit the transaction"""

    def rollback(self):
        """Rollback changes and discard events"""
        if self._events:
            logger.warning(f"Rolling back transaction, discarding {len(self._events)} events")
        self._events.clear()

    def collect_events(self, aggregate):
        """
        Collect events from aggregate root

        Extracts all domain events from the aggregate and
        clears them from the aggregate.
        """
        new_events = aggregate.events
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                f"Collected {len(new_events)} events from "
                f"{aggregate.__class__.__name__} (ID: {getattr(aggregate, 'id', None)})"
            )

    def _drain_events(self) -> List[DomainEvent]:
        events = self._events.copy()
        self._events.clear()
        return events

    @staticmethod
    def _publish_events(events: List[DomainEvent]):
        """Publish collected events to the message bus once committed"""
        from shared.application.message_bus import message_bus

        logger.info(f"Publishing {len(events)} domain events after commit")
        message_bus.publish_events(events)


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Runs the block inside ``transaction.atomic()``. Transient database
    failures (lost connection, lock or statement timeout, serialization
    failure) abort the whole transaction and surface as StorageUnavailable.

    Usage:
        with DjangoUnitOfWork() as uow:
            reservation = store.get(reservation_id, lock=True)
            reservation.cancel()
            uow.collect_events(reservation)
            store.save(reservation)
        # Events are published after commit
    """

    def __init__(self, using: str | None = None):
        super().__init__()
        self._using = using
        self._transaction = None

    def __enter__(self):
        self._transaction = transaction.atomic(using=self._using)
        try:
            self._transaction.__enter__()
        except TRANSIENT_DB_ERRORS as exc:
            raise StorageUnavailable() from exc
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

        try:
            self._transaction.__exit__(exc_type, exc_val, exc_tb)
        except TRANSIENT_DB_ERRORS as exc:
            logger.error(f"Transaction commit failed: {exc}")
            raise StorageUnavailable() from exc

        if exc_type is not None and issubclass(exc_type, TRANSIENT_DB_ERRORS):
            logger.error(f"Transaction aborted by the database: {exc_val}")
            raise StorageUnavailable() from exc_val
        return False

    def commit(self):
        """
        Schedule event publishing

        Django's transaction.on_commit() runs the callback only after the
        outermost transaction commits, and drops it on rollback.
        """
        events = self._drain_events()
        logger.debug(f"Committing transaction with {len(events)} events")
        if events:
            transaction.on_commit(lambda: self._publish_events(events), using=self._using)


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """
    Unit of Work for in-memory stores

    Holds the store lock for the whole block, which gives the same
    one-writer-at-a-time isolation as a serializable transaction.
    """

    def __init__(self, lock: RLock):
        super().__init__()
        self._lock = lock

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            return super().__exit__(exc_type, exc_val, exc_tb)
        finally:
            self._lock.release()

    def commit(self):
        events = self._drain_events()
        if events:
            self._publish_events(events)
