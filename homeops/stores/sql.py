"""
SQLModel-backed stores.

Each call opens its own Session and runs in a worker thread via
``asyncio.to_thread``, so independent sources can be read concurrently
without sharing a connection.
"""
import asyncio
from datetime import date, time
from typing import Callable, List, Optional, Sequence, TypeVar
import logging

from sqlalchemy import or_
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from homeops.errors import SourceFetchError
from homeops.models.child_log import ChildLog
from homeops.models.important_date import ImportantDate
from homeops.models.leave import LeaveRequest
from homeops.models.schedule import EmployeeSchedule, ScheduleOneOff, ScheduleOverride
from homeops.models.task import (
    Task,
    TaskCompletion,
    TaskInstanceOverride,
    TaskSkippedInstance,
)
from homeops.models.user import utcnow
from homeops.schemas.calendar import DateWindow
from homeops.stores.base import CalendarStores

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _SqlStore:
    source = "database"

    def __init__(self, engine: Engine):
        self.engine = engine

    async def _run(self, fn: Callable[[Session], T]) -> T:
        def work() -> T:
            with Session(self.engine) as session:
                return fn(session)
        try:
            return await asyncio.to_thread(work)
        except SQLAlchemyError as e:
            logger.error(f"{self.source} query failed: {e}")
            raise SourceFetchError(self.source, f"{self.source} store unavailable: {type(e).__name__}") from e

    @staticmethod
    def _keyed_upsert(session: Session, find: Callable[[], Optional[T]], create: Callable[[], T], apply: Callable[[T], None]) -> T:
        """Update the row ``find`` returns, or insert a new one; last write wins."""
        row = find()
        if row is None:
            row = create()
            apply(row)
            session.add(row)
            try:
                session.commit()
            except IntegrityError:
                # Another writer inserted the same key first; update theirs
                session.rollback()
                row = find()
                apply(row)
                session.add(row)
                session.commit()
        else:
            apply(row)
            session.add(row)
            session.commit()
        session.refresh(row)
        return row


class SqlTaskStore(_SqlStore):
    """Task, completion, skip and instance override tables."""
    source = "tasks"

    @staticmethod
    def _scoped(statement, user_id: Optional[str]):
        if user_id:
            statement = statement.where(or_(Task.assigned_to.is_(None), Task.assigned_to == user_id))
        return statement

    async def fetch_calendar_tasks(self, window: DateWindow, user_id: Optional[str] = None) -> List[Task]:
        def query(session: Session) -> List[Task]:
            statement = (
                select(Task)
                .options(selectinload(Task.category))
                .where(Task.due_date.is_not(None))
                .where(Task.due_date <= window.end)
                .where(or_(Task.is_recurring == True, Task.due_date >= window.start))  # noqa: E712
            )
            return list(session.exec(self._scoped(statement, user_id)).all())
        return await self._run(query)

    async def list_tasks(self, statuses: Optional[Sequence[str]] = None, user_id: Optional[str] = None) -> List[Task]:
        def query(session: Session) -> List[Task]:
            statement = select(Task).options(selectinload(Task.category))
            if statuses:
                statement = statement.where(Task.status.in_(list(statuses)))
            statement = self._scoped(statement, user_id).order_by(Task.due_date.asc().nullslast())
            return list(session.exec(statement).all())
        return await self._run(query)

    async def get_task(self, task_id: str) -> Optional[Task]:
        def query(session: Session) -> Optional[Task]:
            statement = select(Task).options(selectinload(Task.category)).where(Task.id == task_id)
            return session.exec(statement).first()
        return await self._run(query)

    async def fetch_completions(self, window: DateWindow) -> List[TaskCompletion]:
        def query(session: Session) -> List[TaskCompletion]:
            statement = (
                select(TaskCompletion)
                .where(TaskCompletion.completion_date >= window.start)
                .where(TaskCompletion.completion_date <= window.end)
            )
            return list(session.exec(statement).all())
        return await self._run(query)

    async def fetch_skipped(self, window: DateWindow) -> List[TaskSkippedInstance]:
        def query(session: Session) -> List[TaskSkippedInstance]:
            statement = (
                select(TaskSkippedInstance)
                .where(TaskSkippedInstance.skipped_date >= window.start)
                .where(TaskSkippedInstance.skipped_date <= window.end)
            )
            return list(session.exec(statement).all())
        return await self._run(query)

    async def fetch_instance_overrides(self, window: DateWindow) -> List[TaskInstanceOverride]:
        def query(session: Session) -> List[TaskInstanceOverride]:
            statement = (
                select(TaskInstanceOverride)
                .where(TaskInstanceOverride.instance_date >= window.start)
                .where(TaskInstanceOverride.instance_date <= window.end)
            )
            return list(session.exec(statement).all())
        return await self._run(query)

    async def upsert_completion(self, task_id: str, completion_date: date, completed_by: Optional[str] = None) -> TaskCompletion:
        def write(session: Session) -> TaskCompletion:
            def find():
                return session.exec(
                    select(TaskCompletion)
                    .where(TaskCompletion.task_id == task_id)
                    .where(TaskCompletion.completion_date == completion_date)
                ).first()

            def apply(row: TaskCompletion):
                row.completed_by = completed_by
                row.completed_at = utcnow()

            return self._keyed_upsert(
                session, find,
                lambda: TaskCompletion(task_id=task_id, completion_date=completion_date),
                apply,
            )
        return await self._run(write)

    async def delete_completion(self, task_id: str, completion_date: date) -> bool:
        def write(session: Session) -> bool:
            row = session.exec(
                select(TaskCompletion)
                .where(TaskCompletion.task_id == task_id)
                .where(TaskCompletion.completion_date == completion_date)
            ).first()
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True
        return await self._run(write)

    async def upsert_skip(self, task_id: str, skipped_date: date, skipped_by: Optional[str] = None) -> TaskSkippedInstance:
        def write(session: Session) -> TaskSkippedInstance:
            def find():
                return session.exec(
                    select(TaskSkippedInstance)
                    .where(TaskSkippedInstance.task_id == task_id)
                    .where(TaskSkippedInstance.skipped_date == skipped_date)
                ).first()

            def apply(row: TaskSkippedInstance):
                row.skipped_by = skipped_by
                row.skipped_at = utcnow()

            return self._keyed_upsert(
                session, find,
                lambda: TaskSkippedInstance(task_id=task_id, skipped_date=skipped_date),
                apply,
            )
        return await self._run(write)

    async def upsert_instance_override(
        self,
        task_id: str,
        instance_date: date,
        override_time: Optional[time] = None,
        override_start_time: Optional[time] = None,
        override_end_time: Optional[time] = None,
        created_by: Optional[str] = None,
    ) -> TaskInstanceOverride:
        def write(session: Session) -> TaskInstanceOverride:
            def find():
                return session.exec(
                    select(TaskInstanceOverride)
                    .where(TaskInstanceOverride.task_id == task_id)
                    .where(TaskInstanceOverride.instance_date == instance_date)
                ).first()

            def apply(row: TaskInstanceOverride):
                row.override_time = override_time
                row.override_start_time = override_start_time
                row.override_end_time = override_end_time
                row.created_by = created_by

            return self._keyed_upsert(
                session, find,
                lambda: TaskInstanceOverride(task_id=task_id, instance_date=instance_date),
                apply,
            )
        return await self._run(write)


class SqlLeaveStore(_SqlStore):
    source = "leave"

    async def fetch_leave(
        self,
        window: DateWindow,
        user_id: Optional[str] = None,
        statuses: Sequence[str] = ("approved",),
    ) -> List[LeaveRequest]:
        def query(session: Session) -> List[LeaveRequest]:
            statement = (
                select(LeaveRequest)
                .options(selectinload(LeaveRequest.user))
                .where(LeaveRequest.status.in_(list(statuses)))
                .where(LeaveRequest.start_date <= window.end)
                .where(LeaveRequest.end_date >= window.start)
            )
            if user_id:
                statement = statement.where(LeaveRequest.user_id == user_id)
            return list(session.exec(statement).all())
        return await self._run(query)


class SqlChildLogStore(_SqlStore):
    source = "logs"

    async def fetch_logs(self, window: DateWindow, categories: Sequence[str], child: Optional[str] = None) -> List[ChildLog]:
        def query(session: Session) -> List[ChildLog]:
            statement = (
                select(ChildLog)
                .options(selectinload(ChildLog.logged_by_user))
                .where(ChildLog.log_date >= window.start)
                .where(ChildLog.log_date <= window.end)
                .where(ChildLog.category.in_(list(categories)))
            )
            if child:
                statement = statement.where(ChildLog.child == child)
            return list(session.exec(statement).all())
        return await self._run(query)


class SqlImportantDateStore(_SqlStore):
    source = "important_dates"

    async def fetch_important_dates(self) -> List[ImportantDate]:
        def query(session: Session) -> List[ImportantDate]:
            statement = select(ImportantDate).options(selectinload(ImportantDate.user))
            return list(session.exec(statement).all())
        return await self._run(query)


class SqlScheduleStore(_SqlStore):
    source = "schedules"

    async def fetch_templates(self, user_id: Optional[str] = None) -> List[EmployeeSchedule]:
        def query(session: Session) -> List[EmployeeSchedule]:
            statement = (
                select(EmployeeSchedule)
                .options(selectinload(EmployeeSchedule.user))
                .where(EmployeeSchedule.is_active == True)  # noqa: E712
            )
            if user_id:
                statement = statement.where(EmployeeSchedule.user_id == user_id)
            return list(session.exec(statement).all())
        return await self._run(query)

    async def fetch_overrides(self, window: DateWindow) -> List[ScheduleOverride]:
        def query(session: Session) -> List[ScheduleOverride]:
            statement = (
                select(ScheduleOverride)
                .where(ScheduleOverride.override_date >= window.start)
                .where(ScheduleOverride.override_date <= window.end)
            )
            return list(session.exec(statement).all())
        return await self._run(query)

    async def fetch_one_offs(self, window: DateWindow, user_id: Optional[str] = None) -> List[ScheduleOneOff]:
        def query(session: Session) -> List[ScheduleOneOff]:
            statement = (
                select(ScheduleOneOff)
                .options(selectinload(ScheduleOneOff.user))
                .where(ScheduleOneOff.schedule_date >= window.start)
                .where(ScheduleOneOff.schedule_date <= window.end)
            )
            if user_id:
                statement = statement.where(ScheduleOneOff.user_id == user_id)
            return list(session.exec(statement).all())
        return await self._run(query)

    async def upsert_override(
        self,
        schedule_id: str,
        override_date: date,
        start_time: Optional[time],
        end_time: Optional[time],
        is_cancelled: bool,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> ScheduleOverride:
        def write(session: Session) -> ScheduleOverride:
            def find():
                return session.exec(
                    select(ScheduleOverride)
                    .where(ScheduleOverride.schedule_id == schedule_id)
                    .where(ScheduleOverride.override_date == override_date)
                ).first()

            def apply(row: ScheduleOverride):
                row.start_time = start_time
                row.end_time = end_time
                row.is_cancelled = is_cancelled
                row.notes = notes
                row.updated_at = utcnow()
                if row.created_by is None:
                    row.created_by = created_by

            return self._keyed_upsert(
                session, find,
                lambda: ScheduleOverride(schedule_id=schedule_id, override_date=override_date),
                apply,
            )
        return await self._run(write)

    async def delete_override(self, schedule_id: str, override_date: date) -> bool:
        def write(session: Session) -> bool:
            row = session.exec(
                select(ScheduleOverride)
                .where(ScheduleOverride.schedule_id == schedule_id)
                .where(ScheduleOverride.override_date == override_date)
            ).first()
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True
        return await self._run(write)


def sql_stores(engine: Engine) -> CalendarStores:
    """Bundle SQL-backed stores sharing one engine."""
    return CalendarStores(
        tasks=SqlTaskStore(engine),
        leave=SqlLeaveStore(engine),
        logs=SqlChildLogStore(engine),
        important_dates=SqlImportantDateStore(engine),
        schedules=SqlScheduleStore(engine),
    )
