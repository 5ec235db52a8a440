"""
Task tracking model for offer ingestion.

This module defines the SQLAlchemy model for ingestion tasks and the
status state machine every finalization goes through.
"""

from enum import Enum
from sqlalchemy import (
    Column, Integer, String, TIMESTAMP, ForeignKey, CheckConstraint, Index, text
)
from sqlalchemy.orm import relationship

from backend.models.schema import Base


class TaskStatus(str, Enum):
    """Ingestion task status."""
    RUNNING = 'Running'
    COMPLETED = 'Completed'
    ERROR = 'Error'

    def is_terminal(self) -> bool:
        return self is not TaskStatus.RUNNING

    def can_transition_to(self, target: 'TaskStatus') -> bool:
        """Only Running may move, and only to a terminal status."""
        return self is TaskStatus.RUNNING and target.is_terminal()


class Task(Base):
    """
    Represents one ingestion attempt of an uploaded offers file.

    The summary counters are NULL unless the task is Completed: a NULL
    counter means no summary is meaningful, which is different from zero
    rows affected.
    """

    __tablename__ = 'tasks'
    __table_args__ = (
        CheckConstraint(
            "status IN ('Running', 'Completed', 'Error')",
            name='tasks_status_check'
        ),
        Index('idx_tasks_status', 'status'),
        Index('idx_tasks_start_time', 'start_time'),
        Index('idx_tasks_seller_id', 'seller_id'),
        {'comment': 'Tracks offer ingestion attempts'}
    )

    task_id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    seller_id = Column(
        Integer,
        ForeignKey('sellers.seller_id', ondelete='CASCADE'),
        nullable=False,
        comment='Seller the uploaded file belongs to'
    )
    status = Column(
        String(20),
        nullable=False,
        server_default=TaskStatus.RUNNING.value,
        comment='Current task status'
    )
    start_time = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False,
        comment='Task creation timestamp'
    )
    finish_time = Column(
        TIMESTAMP,
        nullable=True,
        comment='Set once, when the task reaches a terminal status'
    )

    # Summary, only for Completed tasks
    num_errors = Column(Integer, nullable=True, comment='Rows rejected during validation')
    num_created = Column(Integer, nullable=True)
    num_updated = Column(Integer, nullable=True)
    num_deleted = Column(Integer, nullable=True)

    seller = relationship('Seller', back_populates='tasks')

    def __repr__(self):
        return f"<Task(task_id={self.task_id}, seller_id={self.seller_id}, status='{self.status}')>"

    @property
    def task_status(self) -> TaskStatus:
        return TaskStatus(self.status)

    def to_dict(self) -> dict:
        """Convert task to dictionary representation."""
        return {
            'task_id': self.task_id,
            'start_date': self.start_time.isoformat() if self.start_time else None,
            'finish_date': self.finish_time.isoformat() if self.finish_time else None,
            'status': self.status,
            'num_errors': self.num_errors,
            'num_created': self.num_created,
            'num_updated': self.num_updated,
            'num_deleted': self.num_deleted,
            'seller': self.seller.to_dict() if self.seller else None
        }
