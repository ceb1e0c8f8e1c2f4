"""
SessionGraph Question Scoring
Composite score combining urgency, diagnosis relevance and explicit priority
"""

import logging
from typing import List, Optional, Sequence

from sessiongraph.schemas import ActionNode, SessionAnalysis
from sessiongraph.config import settings, ScoringSettings

logger = logging.getLogger(__name__)


def urgency_score(question: ActionNode, scoring: ScoringSettings) -> float:
    """Category urgency on a 0-10 scale; unmapped (or zero) categories get the default"""
    return scoring.urgency_scores.get(question.category) or scoring.default_urgency


def max_diagnosis_probability(question: ActionNode, session: SessionAnalysis) -> float:
    """Highest probability among the diagnoses a question's impact references"""
    if not question.impact or not question.impact.diagnoses:
        return 0.0

    probabilities = {d.id: d.probability for d in session.nodes.diagnoses or []}
    return max(
        (probabilities.get(diagnosis_id, 0.0) for diagnosis_id in question.impact.diagnoses),
        default=0.0
    )


def calculate_composite_score(
    question: ActionNode,
    session: SessionAnalysis,
    scoring: Optional[ScoringSettings] = None
) -> float:
    """
    Calculate composite score for question prioritization

    score = urgency_weight * urgency
          + relevance_weight * max_probability * probability_multiplier
          + priority_weight * (priority_inversion - priority)

    A priority of 1 is the most urgent and contributes the most.
    """
    scoring = scoring or settings.scoring

    urgency = urgency_score(question, scoring)
    relevance = max_diagnosis_probability(question, session)
    priority = scoring.priority_inversion - (question.priority or scoring.default_priority)

    return (
        scoring.urgency_weight * urgency
        + scoring.relevance_weight * relevance * scoring.probability_multiplier
        + scoring.priority_weight * priority
    )


def sort_questions_by_score(
    questions: Sequence[ActionNode],
    session: SessionAnalysis,
    scoring: Optional[ScoringSettings] = None
) -> List[ActionNode]:
    """Highest composite score first; ties keep document order"""
    return sorted(
        questions,
        key=lambda q: calculate_composite_score(q, session, scoring),
        reverse=True
    )
