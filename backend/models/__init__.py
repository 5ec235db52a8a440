"""Models package for the offers loader."""
from backend.models.schema import Base, Seller, Offer
from backend.models.task import Task, TaskStatus

__all__ = ['Base', 'Seller', 'Offer', 'Task', 'TaskStatus']
