"""Task store."""

from protean.exceptions import ValidationError

from storefront.domain import storefront
from storefront.task.task import Task, step_key_for

_MAX_TASKS = 10_000


@storefront.repository(part_of=Task)
class TaskRepository:
    def for_order(self, order_id: str) -> list[Task]:
        return self._dao.query.filter(order_id=str(order_id)).limit(_MAX_TASKS).all().items

    def find_step(self, order_id: str, task_type: str) -> Task | None:
        results = self._dao.query.filter(step_key=step_key_for(str(order_id), task_type)).all().items
        return results[0] if results else None

    def search(
        self,
        order_id: str | None = None,
        assigned_to: str | None = None,
        status: str | None = None,
    ) -> list[Task]:
        """Tasks matching every given criterion, newest first."""
        criteria = {
            key: value
            for key, value in (("order_id", order_id), ("assigned_to", assigned_to), ("status", status))
            if value is not None
        }
        query = self._dao.query
        if criteria:
            query = query.filter(**criteria)
        tasks = query.limit(_MAX_TASKS).all().items
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)

    def add_if_absent(self, task: Task) -> tuple[Task, bool]:
        """Insert ``task`` unless its ``(order_id, type)`` already exists.

        Returns the stored task and whether this call created it. A uniqueness
        rejection from the store resolves to the task that won the race.
        """
        existing = self.find_step(task.order_id, task.task_type)
        if existing is not None:
            return existing, False
        try:
            self.add(task)
        except ValidationError as exc:
            if "step_key" not in exc.messages:
                raise
            existing = self.find_step(task.order_id, task.task_type)
            if existing is None:
                raise
            return existing, False
        return task, True

    def delete_task(self, task: Task) -> None:
        self._dao.delete(task)
