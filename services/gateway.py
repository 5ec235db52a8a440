"""
Persistence gateway for sellers, offers and ingestion tasks.

Every write operation runs in its own transaction: either all of its
effects become visible or none do. The ingestion worker and the task
lifecycle manager depend only on the PersistenceGateway interface, so a
different store (or a fake in tests) can be swapped in.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from backend.models.schema import Seller, Offer
from backend.models.task import Task, TaskStatus
from services.exceptions import (
    PersistenceError, SellerNameTakenError, SellerNotFoundError,
    TaskNotFoundError, TaskStateError
)
from services.offer_row_service import CandidateOffer

logger = logging.getLogger(__name__)

ApplyCounts = Tuple[int, int, int]


class PersistenceGateway(ABC):
    """Atomic store operations the ingestion core relies on."""

    @abstractmethod
    def seller_exists(self, seller_id: int) -> bool:
        ...

    @abstractmethod
    def create_task(self, seller_id: int) -> int:
        """
        Create a Running task for a seller.

        Raises:
            SellerNotFoundError: If the seller does not exist
        """

    @abstractmethod
    def bulk_apply(self, task_id: int, error_count: int,
                   batch: Sequence[CandidateOffer]) -> ApplyCounts:
        """
        Apply a validated batch to the seller's catalog and complete the task.

        Returns:
            (num_created, num_updated, num_deleted)

        Raises:
            TaskNotFoundError: If the task does not exist
            TaskStateError: If the task is already finished
            PersistenceError: If the batch could not be stored; the task
                is left untouched
        """

    @abstractmethod
    def force_error(self, task_id: int) -> bool:
        """
        Move a task to Error.

        Returns False without touching the task if it is already in
        Error. Raises TaskStateError for a Completed task.
        """

    @abstractmethod
    def sweep_abandoned(self) -> int:
        """Force every Running task to Error; returns how many were changed."""

    @abstractmethod
    def get_task(self, task_id: int) -> Optional[dict]:
        ...


class SqlAlchemyGateway(PersistenceGateway):
    """PersistenceGateway backed by SQLAlchemy ORM sessions."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        """Yield a session, commit on success, roll back on any error."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database operation failed: {e}")
            raise PersistenceError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _load_task(session: Session, task_id: int) -> Task:
        task = session.query(Task).filter_by(task_id=task_id).with_for_update().first()
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def ping(self) -> None:
        """Round-trip to the database; raises PersistenceError if unreachable."""
        with self._transaction() as session:
            session.execute(text('SELECT 1'))

    # ------------------------------------------------------------------
    # Sellers
    # ------------------------------------------------------------------

    def seller_exists(self, seller_id: int) -> bool:
        with self._transaction() as session:
            return session.get(Seller, seller_id) is not None

    def create_seller(self, seller_name: str) -> int:
        with self._transaction() as session:
            if session.query(Seller).filter_by(seller_name=seller_name).first():
                raise SellerNameTakenError(seller_name)
            seller = Seller(seller_name=seller_name, created_at=datetime.utcnow())
            session.add(seller)
            session.flush()
            logger.info(f"Created seller {seller.seller_id} '{seller_name}'")
            return seller.seller_id

    def get_seller(self, seller_id: int) -> Optional[dict]:
        with self._transaction() as session:
            seller = session.get(Seller, seller_id)
            return seller.to_dict() if seller else None

    def list_sellers(self) -> List[dict]:
        with self._transaction() as session:
            sellers = session.query(Seller).order_by(Seller.created_at, Seller.seller_id).all()
            return [seller.to_dict() for seller in sellers]

    # ------------------------------------------------------------------
    # Offers
    # ------------------------------------------------------------------

    def search_offers(self, seller_id: Optional[int] = None, offer_id: Optional[int] = None,
                      offer_name: Optional[str] = None, ignore_case: bool = False) -> List[dict]:
        """Find offers by seller, offer id and name substring."""
        with self._transaction() as session:
            query = session.query(Offer).options(joinedload(Offer.seller))
            if seller_id is not None:
                query = query.filter(Offer.seller_id == seller_id)
            if offer_id is not None:
                query = query.filter(Offer.offer_id == offer_id)
            if offer_name:
                if ignore_case:
                    query = query.filter(func.lower(Offer.offer_name).contains(offer_name.lower()))
                else:
                    query = query.filter(Offer.offer_name.contains(offer_name))
            offers = query.order_by(Offer.seller_id, Offer.offer_id).all()
            return [offer.to_dict() for offer in offers]

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def create_task(self, seller_id: int) -> int:
        with self._transaction() as session:
            if session.get(Seller, seller_id) is None:
                raise SellerNotFoundError(seller_id)
            task = Task(
                seller_id=seller_id,
                status=TaskStatus.RUNNING.value,
                start_time=datetime.utcnow()
            )
            session.add(task)
            session.flush()
            logger.info(f"Created task {task.task_id} for seller {seller_id}")
            return task.task_id

    def bulk_apply(self, task_id: int, error_count: int,
                   batch: Sequence[CandidateOffer]) -> ApplyCounts:
        with self._transaction() as session:
            task = self._load_task(session, task_id)
            if not task.task_status.can_transition_to(TaskStatus.COMPLETED):
                raise TaskStateError(task_id, task.status, TaskStatus.COMPLETED.value)

            existing: Dict[int, Offer] = {
                offer.offer_id: offer
                for offer in session.query(Offer).filter_by(seller_id=task.seller_id)
            }
            now = datetime.utcnow()
            created = updated = deleted = 0

            for candidate in batch:
                offer = existing.get(candidate.offer_id)
                if offer is not None:
                    if candidate.available:
                        offer.offer_name = candidate.offer_name
                        offer.price = candidate.price
                        offer.quantity = candidate.quantity
                        offer.updated_at = now
                        updated += 1
                    else:
                        session.delete(offer)
                        # flush so a later row may re-create the same key
                        session.flush()
                        del existing[candidate.offer_id]
                        deleted += 1
                elif candidate.available:
                    offer = Offer(
                        seller_id=task.seller_id,
                        offer_id=candidate.offer_id,
                        offer_name=candidate.offer_name,
                        price=candidate.price,
                        quantity=candidate.quantity,
                        created_at=now,
                        updated_at=now
                    )
                    session.add(offer)
                    existing[candidate.offer_id] = offer
                    created += 1

            task.status = TaskStatus.COMPLETED.value
            task.finish_time = now
            task.num_errors = error_count
            task.num_created = created
            task.num_updated = updated
            task.num_deleted = deleted

        logger.info(
            f"Task {task_id} completed: created={created}, updated={updated}, "
            f"deleted={deleted}, errors={error_count}"
        )
        return created, updated, deleted

    def force_error(self, task_id: int) -> bool:
        with self._transaction() as session:
            task = self._load_task(session, task_id)
            current = task.task_status
            if current is TaskStatus.ERROR:
                logger.debug(f"Task {task_id} already in Error")
                return False
            if not current.can_transition_to(TaskStatus.ERROR):
                raise TaskStateError(task_id, task.status, TaskStatus.ERROR.value)

            task.status = TaskStatus.ERROR.value
            task.finish_time = datetime.utcnow()
            task.num_errors = None
            task.num_created = None
            task.num_updated = None
            task.num_deleted = None

        logger.warning(f"Task {task_id} marked as Error")
        return True

    def sweep_abandoned(self) -> int:
        with self._transaction() as session:
            count = session.query(Task).filter(
                Task.status == TaskStatus.RUNNING.value
            ).update(
                {
                    Task.status: TaskStatus.ERROR.value,
                    Task.finish_time: datetime.utcnow()
                },
                synchronize_session=False
            )
        return count

    def get_task(self, task_id: int) -> Optional[dict]:
        with self._transaction() as session:
            task = session.query(Task).options(joinedload(Task.seller)).filter_by(task_id=task_id).first()
            return task.to_dict() if task else None

    def list_tasks(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[dict]:
        with self._transaction() as session:
            query = session.query(Task).options(joinedload(Task.seller)).order_by(Task.task_id)
            if offset:
                query = query.offset(offset)
            if limit is not None:
                query = query.limit(limit)
            return [task.to_dict() for task in query.all()]
