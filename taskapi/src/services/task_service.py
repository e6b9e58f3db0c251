"""
Purpose: Business logic for task operations (CRUD)
Depends on: Task model, validators, authorization guard, a SQLAlchemy session
Used by: API routes
Task Service Layer - Contains all business logic for task operations.
Every operation takes the acting user explicitly; nothing is read from
request globals, so the service is testable without a request context.
"""

import logging
from typing import Any, Dict

from taskapi.src.errors import NotFoundError
from taskapi.src.models.task import Task, DEFAULT_TASK_STATE
from taskapi.src.models.user import User
from taskapi.src.services.authorization import ensure_can_act
from taskapi.src.utils.pagination import Page, paginate
from taskapi.src.utils.validators import CREATE_TASK_RULES, UPDATE_TASK_RULES, validate

logger = logging.getLogger(__name__)


class TaskService:
    """Service class for task-related business operations"""

    def __init__(self, session):
        self.session = session

    def list(self, user: User, page: int = 1, per_page: int = 10) -> Page:
        """
        Get one page of the user's own tasks, oldest first.

        Args:
            user: Acting user
            page: Page number (1-indexed)
            per_page: Items per page

        Returns:
            Page: Possibly empty page of Task objects
        """
        query = (
            self.session.query(Task)
            .filter(Task.owner_id == user.id)
            .order_by(Task.id.asc())
        )
        return paginate(query, page, per_page)

    def create(self, user: User, data: Dict[str, Any]) -> Task:
        """
        Create a new task owned by `user`.

        Only `name` is taken from the payload; owner and state are set here.

        Raises:
            ValidationError: If name is missing or invalid
        """
        validated = validate(data, CREATE_TASK_RULES)

        task = Task(
            name=validated['name'],
            state=DEFAULT_TASK_STATE,
            owner_id=user.id
        )

        # Save to database
        self.session.add(task)
        self.session.commit()

        logger.info('User %s created task %s', user.id, task.id)
        return task

    def _find(self, task_id: int) -> Task:
        task = self.session.get(Task, task_id)
        if task is None:
            raise NotFoundError(f'Task with ID {task_id} not found')
        return task

    def get(self, user: User, task_id: int) -> Task:
        """
        Retrieve a single task the user owns.

        Raises:
            NotFoundError: If no task has this id
            AuthorizationError: If the task belongs to someone else
        """
        task = self._find(task_id)
        ensure_can_act(user, task)
        return task

    def update_state(self, user: User, task_id: int, data: Dict[str, Any]) -> Task:
        """
        Set the state of a task the user owns.

        Raises:
            NotFoundError: If no task has this id
            AuthorizationError: If the task belongs to someone else
            ValidationError: If state is missing or invalid
        """
        validated = validate(data, UPDATE_TASK_RULES)

        task = self._find(task_id)
        ensure_can_act(user, task)

        task.state = validated['state']
        self.session.commit()

        logger.info('User %s set task %s state to %r', user.id, task.id, task.state)
        return task

    def delete(self, user: User, task_id: int) -> None:
        """
        Permanently delete a task the user owns (no soft delete).

        Raises:
            NotFoundError: If no task has this id
            AuthorizationError: If the task belongs to someone else
        """
        task = self._find(task_id)
        ensure_can_act(user, task)

        self.session.delete(task)
        self.session.commit()

        logger.info('User %s deleted task %s', user.id, task_id)
