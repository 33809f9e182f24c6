"""
Timeline Advisor Agent
Reviews a wedding's timeline and recommends next steps. When the model is
unavailable or answers with something unusable, a rule-based recommendation
built from the same timeline data is returned instead.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional
import logging

from pydantic import ValidationError

from wedding_timeline.agents.base_agent import BaseAgent
from wedding_timeline.agents.timeline_advisor.prompts import (
    RESPONSE_FORMAT, SYSTEM_PROMPT, build_analysis_prompt,
)
from wedding_timeline.errors import AIServiceError
from wedding_timeline.models.wedding import Wedding
from wedding_timeline.schemas import CriticalPathReport, Recommendation, TimelineView
from wedding_timeline.services.critical_path import estimate_critical_path
from wedding_timeline.services.timeline_health import assess_risk_level, next_steps
from wedding_timeline.services.timeline_view import build_timeline_view
from wedding_timeline.utils.helpers import days_until

logger = logging.getLogger(__name__)


class TimelineAdvisorAgent(BaseAgent):
    """Explains where a wedding timeline stands and what to do next"""

    def __init__(self):
        super().__init__(name="TimelineAdvisorAgent")

    async def process(self, context: Dict[str, Any]) -> Dict[str, Any]:
        action = context.get("action", "recommend")

        if action == "recommend":
            recommendation = await self.recommend(
                context["wedding"], context["tasks"], context.get("today")
            )
            return {"recommendation": recommendation}

        return {"error": f"Unknown action: {action}"}

    async def recommend(
        self,
        wedding: Wedding,
        tasks: List,
        today: Optional[date] = None,
    ) -> Recommendation:
        today = today or date.today()
        timeline = build_timeline_view(tasks, today=today, wedding_id=wedding.id)
        critical_path = estimate_critical_path(tasks, today=today)

        try:
            response = await self.generate_structured_response(
                prompt=build_analysis_prompt(wedding, timeline, critical_path, today),
                system_prompt=SYSTEM_PROMPT,
                response_format=RESPONSE_FORMAT,
            )
            return Recommendation(
                source="model",
                summary=response["summary"],
                risk_level=response["risk_level"],
                recommendations=list(response.get("recommendations") or []),
                generated_at=datetime.utcnow(),
            )
        except (AIServiceError, KeyError, TypeError, ValidationError) as e:
            logger.warning(f"Timeline advice for wedding {wedding.id} fell back to rules: {e}")
            return self.fallback(wedding, timeline, critical_path, today)

    def fallback(
        self,
        wedding: Wedding,
        timeline: TimelineView,
        critical_path: CriticalPathReport,
        today: date,
    ) -> Recommendation:
        """Deterministic recommendation from the structured timeline data"""
        days_left = days_until(wedding.wedding_date, today)
        total = sum(bucket.total for bucket in timeline.phases.values())
        overdue = timeline.overdue_tasks

        summary = (
            f"{timeline.overall_progress}% of {total} tasks complete, "
            f"{len(overdue)} overdue, {days_left} days until the wedding."
        )
        return Recommendation(
            source="fallback",
            summary=summary,
            risk_level=assess_risk_level(timeline, critical_path, days_left),
            recommendations=next_steps(timeline, critical_path),
            generated_at=datetime.utcnow(),
        )
