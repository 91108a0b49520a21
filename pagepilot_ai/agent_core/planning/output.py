"""Planner output schema."""

from __future__ import annotations

from ..schemas.base import ModelOutputSchema
from ..schemas.coercion import LenientBool


class PlannerOutput(ModelOutputSchema):
    """
    Periodic progress assessment produced by the planner.

    ``done`` and ``web_task`` accept textual booleans (``"True"``, ``" false "``)
    because several models emit them as strings.
    """

    observation: str
    challenges: str
    done: LenientBool
    next_steps: str
    final_answer: str
    reasoning: str
    web_task: LenientBool

    def guidance(self) -> str:
        """Condensed form handed to the navigator as planner guidance."""
        parts = [f"Observation: {self.observation}"]
        if self.challenges:
            parts.append(f"Challenges: {self.challenges}")
        if self.next_steps:
            parts.append(f"Next steps: {self.next_steps}")
        return "\n".join(parts)
