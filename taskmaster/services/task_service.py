"""
Task Mutation Engine

작업 필드/담당자/상태 변경의 유일한 진입점. 모든 불변식은 여기서 검증한다.
- 변경 1건 = 트랜잭션 1개 (commit / 오류 시 rollback)
- 커밋 이후 알림 fan-out 과 task 룸 broadcast (실패해도 변경은 유지)
- 동시 수정은 last-writer-wins: 요청에 포함된 컬럼만 UPDATE 된다
- 수정은 작업 행을 FOR UPDATE 로 잠근 뒤 읽고 쓴다
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.core.exceptions import BusinessException, InternalError, NotFoundError, ValidationError
from taskmaster.models.enums import NotificationType, RealtimeEvent, ReminderPreset, TaskPriority, TaskStatus
from taskmaster.models.task import Task, TaskAssignee, TaskReminder, TaskTag
from taskmaster.repositories.task_repository import TaskRepository
from taskmaster.repositories.user_repository import UserRepository
from taskmaster.schemas.task import TaskCreate, TaskUpdate, to_task_response
from taskmaster.services.notification_service import DomainEvent, NotificationService
from taskmaster.utils.timezone import next_timestamp, to_naive_utc, utcnow

logger = logging.getLogger(__name__)

# 같은 담당자/태그를 동시에 추가해 PK 충돌이 나면 한 번 다시 읽고 재적용
UPDATE_ATTEMPTS = 2


# =========================================================
# 입력 정규화 / 검증 헬퍼
# =========================================================
def clean_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise ValidationError("title: must not be empty")
    return title.strip()


def coerce_priority(value: Optional[str]) -> TaskPriority:
    """생성 시: 없거나 잘못된 값이면 Medium"""
    try:
        return TaskPriority(value)
    except ValueError:
        return TaskPriority.MEDIUM


def parse_priority(value: Optional[str]) -> TaskPriority:
    try:
        return TaskPriority(value)
    except ValueError:
        raise ValidationError(f"priority: must be one of {[p.value for p in TaskPriority]}")


def parse_status(value: Optional[str]) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise ValidationError(f"status: must be one of {[s.value for s in TaskStatus]}")


def clean_tags(tags: Optional[Iterable[str]]) -> List[str]:
    cleaned: List[str] = []
    for tag in tags or []:
        tag = (tag or "").strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def dedupe_ids(ids: Optional[Iterable[int]]) -> List[int]:
    result: List[int] = []
    for i in ids or []:
        if i not in result:
            result.append(i)
    return result


def build_reminder(preset_value: str, due_date: Optional[datetime]) -> TaskReminder:
    """due_date 기준 스냅샷. 이후 due_date 가 바뀌어도 재계산하지 않는다."""
    try:
        preset = ReminderPreset.parse(preset_value)
    except ValueError:
        raise ValidationError(f"reminder_preset: must be one of {[p.value for p in ReminderPreset]}")
    if due_date is None:
        raise ValidationError("reminder_preset: requires a due_date")
    return TaskReminder(preset=preset, remind_at=due_date - preset.offset, created_at=utcnow())


class TaskService:
    def __init__(self, session: AsyncSession, notifier: NotificationService):
        self.session = session
        self.notifier = notifier
        self.registry = notifier.registry
        self.tasks = TaskRepository(session)
        self.users = UserRepository(session)

    async def get_task(self, task_id: int, with_comments: bool = False) -> Task:
        task = await self.tasks.get(task_id, with_comments=with_comments)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    async def _ensure_users_exist(self, user_ids: List[int]) -> None:
        if not user_ids:
            return
        existing = await self.users.existing_ids(user_ids)
        unknown = [uid for uid in user_ids if uid not in existing]
        if unknown:
            raise ValidationError(f"assignee_ids: unknown users {unknown}")

    # =========================================================
    # Create
    # =========================================================
    async def create_task(self, creator_id: int, data: TaskCreate) -> Task:
        title = clean_title(data.title)
        priority = coerce_priority(data.priority)
        tags = clean_tags(data.tags)
        assignee_ids = dedupe_ids(data.assignee_ids)
        due_date = to_naive_utc(data.due_date)
        reminders = [build_reminder(data.reminder_preset, due_date)] if data.reminder_preset else []
        await self._ensure_users_exist(assignee_ids)

        now = utcnow()
        task = Task(
            creator_user_id=creator_id,
            title=title,
            description=data.description,
            due_date=due_date,
            priority=priority,
            # 생성 시 상태는 입력과 무관하게 항상 To Do
            status=TaskStatus.TODO,
            created_at=now,
            updated_at=now,
            assignments=[TaskAssignee(user_id=uid, assigned_at=now) for uid in assignee_ids],
            tag_rows=[TaskTag(tag=tag) for tag in tags],
            reminders=reminders,
        )

        try:
            await self.tasks.add(task)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Task create failed: creator_id={creator_id}, error={e}")
            raise InternalError("Failed to create task")

        task_id = task.task_id
        logger.info(f"Task created: task_id={task_id}, creator_id={creator_id}, assignees={assignee_ids}")

        await self.notifier.publish(
            DomainEvent(NotificationType.TASK_ASSIGNMENT, task, actor_id=creator_id, recipient_ids=assignee_ids)
        )
        return await self.get_task(task_id)

    # =========================================================
    # Update (부분 수정)
    # =========================================================
    async def _apply_changes(self, task: Task, changes: dict) -> Tuple[bool, List[int]]:
        """요청에 포함된 필드만 반영. (상태 변경 여부, 새로 추가된 담당자) 반환"""
        if "title" in changes:
            task.title = clean_title(changes["title"])
        if "description" in changes:
            task.description = changes["description"]
        if "due_date" in changes:
            task.due_date = to_naive_utc(changes["due_date"])
        if "priority" in changes:
            task.priority = parse_priority(changes["priority"])

        status_changed = False
        if "status" in changes:
            new_status = parse_status(changes["status"])
            status_changed = new_status != task.status
            task.status = new_status

        if "tags" in changes:
            wanted_tags = clean_tags(changes["tags"])
            for row in list(task.tag_rows):
                if row.tag not in wanted_tags:
                    task.tag_rows.remove(row)
            current_tags = {row.tag for row in task.tag_rows}
            for tag in wanted_tags:
                if tag not in current_tags:
                    task.tag_rows.append(TaskTag(tag=tag))

        added: List[int] = []
        if "assignee_ids" in changes:
            wanted = dedupe_ids(changes["assignee_ids"])
            await self._ensure_users_exist(wanted)
            current = {a.user_id: a for a in task.assignments}
            for uid, assignment in current.items():
                if uid not in wanted:
                    task.assignments.remove(assignment)
            # 유지되는 담당자의 assigned_at 은 건드리지 않음
            added = [uid for uid in wanted if uid not in current]
            now = utcnow()
            for uid in added:
                task.assignments.append(TaskAssignee(user_id=uid, assigned_at=now))

        if changes.get("reminder_preset"):
            task.reminders.append(build_reminder(changes["reminder_preset"], task.due_date))

        task.updated_at = next_timestamp(task.updated_at)
        return status_changed, added

    async def update_task(self, task_id: int, actor_id: int, data: TaskUpdate) -> Task:
        changes = data.model_dump(exclude_unset=True)

        for attempt in range(1, UPDATE_ATTEMPTS + 1):
            task = await self.tasks.get_for_update(task_id)
            if task is None:
                raise NotFoundError(f"Task {task_id} not found")
            try:
                status_changed, added = await self._apply_changes(task, changes)
                current_assignees = [a.user_id for a in task.assignments]
                await self.session.commit()
                break
            except BusinessException:
                await self.session.rollback()
                raise
            except IntegrityError as e:
                # 동시 요청이 같은 담당자/태그를 먼저 커밋함: 다시 읽고 재적용하면 이미 있는 행이 된다
                await self.session.rollback()
                if attempt == UPDATE_ATTEMPTS:
                    logger.error(f"Task update failed: task_id={task_id}, error={e}")
                    raise InternalError("Failed to update task")
                logger.warning(f"Task update conflict, retrying: task_id={task_id}, attempt={attempt}")
            except Exception as e:
                await self.session.rollback()
                logger.error(f"Task update failed: task_id={task_id}, error={e}")
                raise InternalError("Failed to update task")

        logger.info(f"Task updated: task_id={task_id}, actor_id={actor_id}, fields={sorted(changes)}")

        events: List[DomainEvent] = []
        if added:
            events.append(DomainEvent(NotificationType.TASK_ASSIGNMENT, task, actor_id=actor_id, recipient_ids=added))
        if status_changed:
            events.append(
                DomainEvent(NotificationType.TASK_UPDATE, task, actor_id=actor_id, recipient_ids=current_assignees)
            )
        for event in events:
            await self.notifier.publish(event)

        updated = await self.get_task(task_id)
        await self.registry.broadcast_task(
            task_id, RealtimeEvent.TASK_UPDATED.value, to_task_response(updated).model_dump(mode="json")
        )
        return updated

    # =========================================================
    # Delete
    # =========================================================
    async def delete_task(self, task_id: int) -> None:
        try:
            deleted = await self.tasks.delete_cascade(task_id)
            if deleted:
                await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Task delete failed: task_id={task_id}, error={e}")
            raise InternalError("Failed to delete task")
        if not deleted:
            raise NotFoundError(f"Task {task_id} not found")

        logger.info(f"Task deleted: task_id={task_id}")
        await self.registry.broadcast_task(task_id, RealtimeEvent.TASK_DELETED.value, {"task_id": task_id})

    async def bulk_delete(self, task_ids: List[int]) -> Tuple[int, List[int]]:
        """id 별 best-effort: 없는 id 는 건너뛰고 not_found 로 보고"""
        ids = dedupe_ids(task_ids)
        if not ids:
            raise ValidationError("task_ids: must not be empty")

        count = 0
        not_found: List[int] = []
        for task_id in ids:
            try:
                await self.delete_task(task_id)
                count += 1
            except NotFoundError:
                not_found.append(task_id)

        logger.info(f"Bulk delete: requested={len(ids)}, deleted={count}, not_found={not_found}")
        return count, not_found
