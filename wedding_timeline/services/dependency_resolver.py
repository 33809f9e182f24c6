"""
Prerequisite graph over a wedding's tasks.

Tasks reference the tasks they wait on through ``prerequisite_task_ids``.
Everything here works on an in-memory snapshot of one wedding's task list and
performs no I/O; callers persist the returned status changes.

A prerequisite counts as satisfied only when it exists in the snapshot and is
``completed``. Unknown IDs (deleted, mistyped, or belonging to another
wedding) keep the dependent task blocked.
"""
from collections import deque
from typing import Dict, Iterable, List, Optional, Set, Tuple

from wedding_timeline.models.task import TaskStatus
from wedding_timeline.schemas import DependencyViolation, StatusChange

# Statuses the resolver is allowed to flip between. Anything a human has
# moved past (started, put on hold, cancelled, completed) is left alone.
_GATED_STATUSES = (TaskStatus.PENDING, TaskStatus.BLOCKED)


def task_status(task) -> TaskStatus:
    return TaskStatus(task.status or TaskStatus.PENDING)


def prerequisite_ids(task) -> List[int]:
    return list(task.prerequisite_task_ids or [])


def build_task_index(tasks: Iterable) -> Dict[int, object]:
    return {t.id: t for t in tasks}


def build_dependents_index(tasks: Iterable) -> Dict[int, List[int]]:
    """prerequisite id -> ids of the tasks waiting on it"""
    dependents: Dict[int, List[int]] = {}
    for task in tasks:
        for pid in prerequisite_ids(task):
            dependents.setdefault(pid, []).append(task.id)
    return dependents


def prerequisites_satisfied(
    prereq_ids: Iterable[int],
    statuses: Dict[int, TaskStatus],
) -> bool:
    return all(statuses.get(pid) == TaskStatus.COMPLETED for pid in prereq_ids)


def initial_status(prereq_ids: Iterable[int], tasks: Iterable) -> TaskStatus:
    """Status a new task should start in given the wedding's current tasks"""
    statuses = {t.id: task_status(t) for t in tasks}
    if prerequisites_satisfied(prereq_ids, statuses):
        return TaskStatus.PENDING
    return TaskStatus.BLOCKED


def propagate(tasks: Iterable, seed_ids: Iterable[int]) -> List[StatusChange]:
    """
    Re-evaluate gated tasks until no status changes any more.

    Starting from ``seed_ids``, each pending/blocked task is set to
    ``pending`` when all its prerequisites are completed and ``blocked``
    otherwise. Whenever a task changes, the tasks waiting on it are queued
    again, so the result is a fixed point regardless of seed order.

    Returns one change per task whose status differs from the snapshot.
    """
    tasks = list(tasks)
    index = build_task_index(tasks)
    dependents = build_dependents_index(tasks)
    statuses = {t.id: task_status(t) for t in tasks}
    original = dict(statuses)

    queue = deque()
    queued: Set[int] = set()
    for tid in seed_ids:
        if tid not in queued:
            queue.append(tid)
            queued.add(tid)

    while queue:
        tid = queue.popleft()
        queued.discard(tid)
        task = index.get(tid)
        if task is None or statuses[tid] not in _GATED_STATUSES:
            continue

        if prerequisites_satisfied(prerequisite_ids(task), statuses):
            target = TaskStatus.PENDING
        else:
            target = TaskStatus.BLOCKED
        if target == statuses[tid]:
            continue

        statuses[tid] = target
        for dep_id in dependents.get(tid, []):
            if dep_id not in queued:
                queue.append(dep_id)
                queued.add(dep_id)

    return [
        StatusChange(task_id=tid, previous_status=original[tid], new_status=statuses[tid])
        for tid in index
        if statuses[tid] != original[tid]
    ]


def propagate_completion(tasks: Iterable, completed_task_id: int) -> List[StatusChange]:
    """Changes caused by ``completed_task_id`` reaching ``completed``"""
    tasks = list(tasks)
    seeds = build_dependents_index(tasks).get(completed_task_id, [])
    return propagate(tasks, seeds)


def reconcile(tasks: Iterable) -> List[StatusChange]:
    """Fixed-point pass over every task, repairing any drift"""
    tasks = list(tasks)
    return propagate(tasks, [t.id for t in tasks])


def creates_cycle(task_id: int, new_prereq_ids: Iterable[int], tasks: Iterable) -> bool:
    """True if making ``task_id`` wait on ``new_prereq_ids`` closes a loop"""
    index = build_task_index(tasks)
    stack = list(new_prereq_ids)
    seen: Set[int] = set()
    while stack:
        current = stack.pop()
        if current == task_id:
            return True
        if current in seen:
            continue
        seen.add(current)
        node = index.get(current)
        if node is not None:
            stack.extend(prerequisite_ids(node))
    return False


def topological_order(tasks: Iterable) -> Tuple[List[int], List[int]]:
    """
    Kahn's algorithm over the prerequisite edges.

    Edges to IDs outside the snapshot are dropped. Returns the ordered IDs
    and, separately, the IDs that sit on or behind a cycle.
    """
    tasks = list(tasks)
    index = build_task_index(tasks)
    in_degree = {t.id: 0 for t in tasks}
    children: Dict[int, List[int]] = {t.id: [] for t in tasks}
    for task in tasks:
        for pid in set(prerequisite_ids(task)):
            if pid in index and pid != task.id:
                in_degree[task.id] += 1
                children[pid].append(task.id)
            elif pid == task.id:
                in_degree[task.id] += 1

    queue = deque(sorted(tid for tid, deg in in_degree.items() if deg == 0))
    order: List[int] = []
    while queue:
        tid = queue.popleft()
        order.append(tid)
        for child in children[tid]:
            in_degree[child] -= 1
            if in_degree[child] == 0:
                queue.append(child)

    placed = set(order)
    cyclic = sorted(tid for tid in index if tid not in placed)
    return order, cyclic


def longest_path(
    tasks: Iterable,
    default_hours: float,
) -> Tuple[List[int], float, List[int]]:
    """
    Forward pass of the critical path method.

    Each task finishes ``estimated_duration_hours`` after the latest of its
    prerequisites. Returns the chain ending at the latest finish, its total
    hours, and the IDs excluded because of cycles. Cancelled tasks are
    skipped entirely.
    """
    tasks = [t for t in tasks if task_status(t) != TaskStatus.CANCELLED]
    index = build_task_index(tasks)
    order, cyclic = topological_order(tasks)

    finish: Dict[int, float] = {}
    previous: Dict[int, Optional[int]] = {}
    for tid in order:
        task = index[tid]
        hours = task.estimated_duration_hours
        duration = float(hours) if hours is not None else default_hours
        best_prev, best_finish = None, 0.0
        for pid in prerequisite_ids(task):
            if pid in finish and finish[pid] > best_finish:
                best_prev, best_finish = pid, finish[pid]
        finish[tid] = best_finish + duration
        previous[tid] = best_prev

    if not finish:
        return [], 0.0, cyclic

    end = max(finish, key=lambda tid: (finish[tid], -tid))
    path = []
    cursor: Optional[int] = end
    while cursor is not None:
        path.append(cursor)
        cursor = previous[cursor]
    path.reverse()
    return path, finish[end], cyclic


def detect_dependency_violations(tasks: Iterable) -> List[DependencyViolation]:
    """Data-quality problems in the prerequisite graph"""
    tasks = list(tasks)
    index = build_task_index(tasks)
    violations: List[DependencyViolation] = []

    for task in tasks:
        for pid in prerequisite_ids(task):
            if pid == task.id:
                violations.append(DependencyViolation(
                    type="self_reference",
                    task_id=task.id,
                    task_name=task.task_name,
                    prerequisite_id=pid,
                    detail="Task lists itself as a prerequisite",
                ))
                continue
            prereq = index.get(pid)
            if prereq is None:
                violations.append(DependencyViolation(
                    type="missing_prerequisite",
                    task_id=task.id,
                    task_name=task.task_name,
                    prerequisite_id=pid,
                    detail=f"Prerequisite {pid} does not exist in this wedding",
                ))
            elif task.due_date and prereq.due_date and task.due_date < prereq.due_date:
                violations.append(DependencyViolation(
                    type="due_before_prerequisite",
                    task_id=task.id,
                    task_name=task.task_name,
                    prerequisite_id=pid,
                    detail=(
                        f"Due {task.due_date.isoformat()} but prerequisite "
                        f"'{prereq.task_name}' is due {prereq.due_date.isoformat()}"
                    ),
                ))

    _, cyclic = topological_order(tasks)
    on_cycle = [tid for tid in cyclic if creates_cycle(tid, prerequisite_ids(index[tid]), tasks)]
    for tid in on_cycle:
        task = index[tid]
        if tid in prerequisite_ids(task):
            continue  # already reported as self_reference
        violations.append(DependencyViolation(
            type="cycle",
            task_id=tid,
            task_name=task.task_name,
            detail="Task is part of a prerequisite cycle",
        ))

    return violations
