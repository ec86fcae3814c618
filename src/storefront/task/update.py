"""UpdateTask: status, priority, notes and (superuser-only) reassignment.

The crossing into ``completed`` hands the task to the workflow engine. The
engine's side effects are best-effort, so the update itself always succeeds
once the task is stored.
"""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.auth import Principal, ensure_can_update_task
from storefront.domain import storefront
from storefront.task.task import Task
from storefront.workflow import build_engine


@storefront.command(part_of="Task")
class UpdateTask:
    task_id = Identifier(required=True)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=20)
    status = String(max_length=20)
    assigned_to = String(max_length=100)
    priority = String(max_length=20)
    notes = Text()


@storefront.command_handler(part_of=Task)
class UpdateTaskHandler:
    @handle(UpdateTask)
    def update_task(self, command):
        principal = Principal.of(command.actor_id, command.actor_role)
        repo = current_domain.repository_for(Task)
        task = repo.get(command.task_id)

        reassigning = command.assigned_to is not None and command.assigned_to.strip() != task.assigned_to
        ensure_can_update_task(principal, task, reassigning=reassigning)

        if reassigning:
            task.reassign(command.assigned_to, reassigned_by=principal.id)
        if command.priority:
            task.reprioritize(command.priority)
        if command.notes is not None:
            task.annotate(command.notes)

        completed_now = False
        if command.status:
            completed_now = task.change_status(command.status, actor_id=principal.id)
        repo.add(task)

        result = task.to_dict()
        if completed_now:
            outcome = build_engine().on_task_completed(task, principal)
            result["workflow"] = outcome.to_dict()
        return result
