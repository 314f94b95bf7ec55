from contextlib import contextmanager
import logging
from typing import List, Optional, Sequence

from fastapi import Depends
from sqlalchemy import String, cast
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from config import Settings, get_settings
from database import get_session
from errors import InternalError
from models import Task
from schemas import TaskFilter
from utils.patch import ATTRIBUTE_BY_PATH, PatchOperation

logger = logging.getLogger(__name__)


class TaskRepository:
    """
    Task store partitioned by owner email.

    Reads that take an owner only ever see that owner's rows. The cross-partition
    lookup (find_by_id) exists for update and delete, which must resolve a task
    before they know whether the caller owns it.
    """

    def __init__(self, session: Session, page_size: int = 100):
        self.session = session
        self.page_size = page_size

    @contextmanager
    def _store_errors(self, action: str):
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Store failure while trying to %s", action)
            raise InternalError() from exc

    def insert(self, task: Task) -> Task:
        with self._store_errors("insert task"):
            self.session.add(task)
            self.session.commit()
            self.session.refresh(task)
        return task

    def get(self, task_id: str, owner: str) -> Optional[Task]:
        """Point lookup inside the owner's partition; a task owned by someone else is a miss"""
        statement = select(Task).where(Task.id == task_id, Task.user_email == owner)
        with self._store_errors("read task"):
            return self.session.exec(statement).first()

    def find_by_id(self, task_id: str) -> Optional[Task]:
        """Lookup by id across all partitions"""
        with self._store_errors("read task"):
            return self.session.get(Task, task_id)

    def list_for_owner(self, owner: str) -> List[Task]:
        return self.query(owner, TaskFilter())

    def query(self, owner: str, filters: TaskFilter) -> List[Task]:
        """
        Run a filtered scan of the owner's partition

        Results come back from the store in pages and are flattened here.
        Ordering is whatever the store produces.
        """
        statement = build_query(owner, filters)
        results = []
        with self._store_errors("query tasks"):
            for page in self.session.exec(statement).partitions(self.page_size):
                results.extend(page)
        return results

    def patch(self, task_id: str, owner: str, operations: Sequence[PatchOperation]) -> Optional[Task]:
        """
        Apply replace operations to a task in the owner's partition

        Returns:
            The updated task, or None if the partition has no such task
        """
        task = self.get(task_id, owner)
        if task is None:
            return None

        with self._store_errors("patch task"):
            for operation in operations:
                setattr(task, ATTRIBUTE_BY_PATH[operation.path], operation.value)
            self.session.add(task)
            self.session.commit()
            self.session.refresh(task)
        return task

    def delete(self, task_id: str, owner: str) -> bool:
        task = self.get(task_id, owner)
        if task is None:
            return False

        with self._store_errors("delete task"):
            self.session.delete(task)
            self.session.commit()
        return True


def build_query(owner: str, filters: TaskFilter):
    """Owner clause plus one clause per filter that is set"""
    query = select(Task).where(Task.user_email == owner)

    if filters.priority_level is not None:
        query = query.where(Task.priority_level == filters.priority_level)
    if filters.is_completed is not None:
        query = query.where(Task.is_completed == filters.is_completed)
    if filters.due_on is not None:
        # Date portion only: any time of day on the target date matches
        query = query.where(
            cast(Task.due_date, String).startswith(filters.due_on.isoformat())
        )

    return query


def get_task_repository(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> TaskRepository:
    """Task repository bound to the request session - used as FastAPI dependency"""
    return TaskRepository(session, page_size=settings.page_size)
