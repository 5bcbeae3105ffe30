"""
Studio Projects Engine - Task Generator
=========================================
Turns a project's sold services into starter tasks when the project
starts: one task per (ProjectService × TaskTemplate of its catalog
service).

RULES (NON-NEGOTIABLE):
- Order: phase in TaskPhase declaration order (templates without a
  phase last), then template position, then service position
- due_date = now + template.default_due_offset_days when set
- A (project_service_id, title, phase) key already present on the
  project is skipped, so regenerating never duplicates tasks
- Zero matching templates is not an error
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, List

from core.primitives.project import (
    Project,
    ProjectService,
    Task,
    TaskPhase,
    TaskTemplate,
)
from core.time.temporal import add_days

PHASE_ORDER = {phase: index for index, phase in enumerate(TaskPhase)}


def _phase_rank(phase) -> int:
    return PHASE_ORDER.get(phase, len(PHASE_ORDER))


def generate_tasks(
    project: Project,
    project_services: Iterable[ProjectService],
    templates: Iterable[TaskTemplate],
    existing_tasks: Iterable[Task],
    *,
    now: datetime,
    id_factory: Callable[[], str],
) -> List[Task]:
    by_service: dict[str, List[TaskTemplate]] = {}
    for template in templates:
        by_service.setdefault(template.service_id, []).append(template)

    pairs = []
    for ps in project_services:
        if ps.project_id != project.project_id:
            continue
        for template in by_service.get(ps.service_id, ()):
            pairs.append((ps, template))

    pairs.sort(key=lambda pair: (
        _phase_rank(pair[1].phase),
        pair[1].position,
        pair[0].position,
        pair[0].project_service_id,
        pair[1].template_id,
    ))

    seen = {task.dedup_key() for task in existing_tasks}
    created: List[Task] = []
    for ps, template in pairs:
        key = (ps.project_service_id, template.title, template.phase)
        if key in seen:
            continue
        seen.add(key)
        offset = template.default_due_offset_days
        created.append(Task(
            task_id=id_factory(),
            business_id=project.business_id,
            project_id=project.project_id,
            project_service_id=ps.project_service_id,
            title=template.title,
            phase=template.phase,
            due_date=add_days(now, offset) if offset is not None else None,
            created_at=now,
        ))
    return created
