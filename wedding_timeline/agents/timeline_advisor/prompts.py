"""
Prompts for the timeline advisor
"""

SYSTEM_PROMPT = (
    "You are a wedding coordination assistant for a formalwear rental and "
    "tailoring business.\n\n"
    "You review a wedding party's preparation timeline: measurements, outfit "
    "selection, orders, fittings, payment and delivery.\n\n"
    "Be concrete. Name the tasks that need attention and say what to do next. "
    "Never invent tasks that are not in the data."
)

RESPONSE_FORMAT = {
    "summary": "one or two sentences on the state of the timeline",
    "risk_level": "low|medium|high",
    "recommendations": ["short actionable step", "..."],
}


def build_analysis_prompt(wedding, timeline, critical_path, today) -> str:
    overdue = "\n".join(
        f"- {t.task_name} (due {t.due_date}, {t.priority.value})" for t in timeline.overdue_tasks
    ) or "- none"
    upcoming = "\n".join(
        f"- {t.task_name} (due {t.due_date}, {t.status.value})" for t in timeline.upcoming_tasks
    ) or "- none"
    bottlenecks = "\n".join(
        f"- {b.task_name}: {b.reason}, blocking {b.blocking_count} task(s)" for b in critical_path.bottlenecks
    ) or "- none"
    phases = "\n".join(
        f"- {bucket.name}: {bucket.completed}/{bucket.total} done"
        for bucket in timeline.phases.values() if bucket.total
    ) or "- no tasks yet"

    return f"""
    Review this wedding timeline and recommend next steps.

    WEDDING: {wedding.name}
    WEDDING DATE: {wedding.wedding_date.isoformat()}
    TODAY: {today.isoformat()}
    DAYS UNTIL WEDDING: {(wedding.wedding_date - today).days}
    OVERALL PROGRESS: {timeline.overall_progress}%

    PHASES:
    {phases}

    OVERDUE TASKS:
    {overdue}

    DUE IN THE NEXT WEEK:
    {upcoming}

    BOTTLENECKS:
    {bottlenecks}

    CRITICAL PATH ESTIMATE: {critical_path.estimated_total_hours} hours of critical work
    """
