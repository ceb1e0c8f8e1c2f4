"""
SessionGraph - In-Memory Session Store
Holds the computed relationship data of each loaded session analysis and
applies clinician actions by rebuilding it from an updated document
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Dict, List, Optional

from sessiongraph.config import settings
from sessiongraph.schemas import (
    SessionAnalysis, SessionLink, SessionNode, ActionNode, ActionStatus,
    UserAction, UserActionKind, PathCalculation
)
from sessiongraph.modules.registry import build_node_and_link_maps, node_display_text
from sessiongraph.modules.relationship_index import RelationshipIndex, build_relationship_index
from sessiongraph.modules.path_calculator import calculate_path_from_node
from sessiongraph.modules.scoring import sort_questions_by_score

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when a session id has not been loaded"""

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session {self.session_id} not found"


# =============================================================================
# Computed Session Data
# =============================================================================

@dataclass(frozen=True)
class SessionComputedData:
    """A session analysis together with everything derived from it"""
    session_data: SessionAnalysis
    relationship_index: RelationshipIndex
    node_map: Dict[str, SessionNode]
    link_map: Dict[str, SessionLink]

    @property
    def actions(self) -> List[ActionNode]:
        return list(self.session_data.nodes.actions or [])

    @property
    def questions(self) -> List[ActionNode]:
        return [a for a in self.actions if a.is_question]

    @property
    def alerts(self) -> List[ActionNode]:
        return [a for a in self.actions if a.is_alert]


def compute_session_data(session: SessionAnalysis) -> SessionComputedData:
    """Build all derived structures for a session analysis"""
    relationship_index = build_relationship_index(session)
    node_map, link_map = build_node_and_link_maps(session)
    return SessionComputedData(
        session_data=session,
        relationship_index=relationship_index,
        node_map=node_map,
        link_map=link_map
    )


# =============================================================================
# Session Store
# =============================================================================

class SessionDataStore:
    """
    Computed session data keyed by session id.

    Entries are never patched in place: every load or clinician action
    builds a complete SessionComputedData and swaps it in under the lock,
    so readers always see a fully built index.
    """

    def __init__(self, max_sessions: Optional[int] = None):
        self.max_sessions = max_sessions or settings.max_sessions
        self._sessions: "OrderedDict[str, SessionComputedData]" = OrderedDict()
        self._lock = threading.RLock()

    # =========================================================================
    # Loading
    # =========================================================================

    def load_session(self, session: SessionAnalysis) -> SessionComputedData:
        """Load (or replace) a session and compute all derived data"""
        computed = compute_session_data(session)
        with self._lock:
            self._sessions[session.session_id] = computed
            self._sessions.move_to_end(session.session_id)
            self._evict()

        logger.info(
            f"Loaded session {session.session_id} (v{session.analysis_version}): "
            f"{len(computed.node_map)} nodes, {computed.relationship_index.edge_count()} edges"
        )
        return computed

    def _evict(self) -> None:
        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.info(f"Evicted session {evicted_id} (store capacity {self.max_sessions})")

    def get(self, session_id: str) -> SessionComputedData:
        """Current computed data for a session"""
        data = self._sessions.get(session_id)
        if data is None:
            raise SessionNotFoundError(session_id)
        return data

    def clear_session(self, session_id: str) -> None:
        """Drop a session"""
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)
        logger.info(f"Cleared session {session_id}")

    def list_sessions(self) -> List[str]:
        return list(self._sessions.keys())

    def _replace(self, session_id: str, session: SessionAnalysis) -> SessionComputedData:
        computed = compute_session_data(session)
        self._sessions[session_id] = computed
        self._sessions.move_to_end(session_id)
        return computed

    # =========================================================================
    # Queries
    # =========================================================================

    def calculate_path(self, session_id: str, node_id: str) -> PathCalculation:
        """Reasoning path from a node; never mutates the stored data"""
        return calculate_path_from_node(node_id, self.get(session_id))

    def find_node_by_id(self, session_id: str, node_id: str) -> Optional[SessionNode]:
        return self.get(session_id).node_map.get(node_id)

    def get_node_display_text(self, session_id: str, node_id: str) -> str:
        return node_display_text(self.find_node_by_id(session_id, node_id), node_id)

    def questions(self, session_id: str) -> List[ActionNode]:
        return self.get(session_id).questions

    def alerts(self, session_id: str) -> List[ActionNode]:
        return self.get(session_id).alerts

    def pending_questions(self, session_id: str) -> List[ActionNode]:
        return [q for q in self.questions(session_id) if q.is_pending]

    def pending_alerts(self, session_id: str) -> List[ActionNode]:
        return [a for a in self.alerts(session_id) if a.is_pending]

    def sorted_questions(self, session_id: str) -> List[ActionNode]:
        """Questions ordered by composite score, highest first"""
        data = self.get(session_id)
        return sort_questions_by_score(data.questions, data.session_data)

    def sorted_pending_questions(self, session_id: str) -> List[ActionNode]:
        return [q for q in self.sorted_questions(session_id) if q.is_pending]

    def questions_for_node(self, session_id: str, node_id: str) -> List[ActionNode]:
        return [q for q in self.questions(session_id) if q.references(node_id)]

    def alerts_for_node(self, session_id: str, node_id: str) -> List[ActionNode]:
        return [a for a in self.alerts(session_id) if a.references(node_id)]

    def questions_for_link(self, session_id: str, source_id: str, target_id: str) -> List[ActionNode]:
        return [q for q in self.questions(session_id) if q.references(source_id, target_id)]

    def alerts_for_link(self, session_id: str, source_id: str, target_id: str) -> List[ActionNode]:
        return [a for a in self.alerts(session_id) if a.references(source_id, target_id)]

    # =========================================================================
    # Clinician Actions
    # =========================================================================

    def _update_actions(self, session_id: str, action_id: str, is_target, update: Dict) -> SessionComputedData:
        with self._lock:
            session = self.get(session_id).session_data
            matched = False
            actions = []
            for action in session.nodes.actions or []:
                if action.id == action_id and is_target(action):
                    action = action.model_copy(update=update)
                    matched = True
                actions.append(action)

            if not matched:
                logger.warning(f"Session {session_id}: no matching action {action_id}, nothing updated")

            updated = session.model_copy(update={
                "nodes": session.nodes.model_copy(update={"actions": actions})
            })
            return self._replace(session_id, updated)

    def answer_question(
        self,
        session_id: str,
        question_id: str,
        answer: str,
        confidence: Optional[float] = None
    ) -> SessionComputedData:
        """Mark a question answered"""
        return self._update_actions(
            session_id,
            question_id,
            lambda a: a.is_question,
            {"status": ActionStatus.ANSWERED.value, "answer": answer, "answer_confidence": confidence}
        )

    def acknowledge_alert(self, session_id: str, alert_id: str) -> SessionComputedData:
        """Mark an alert acknowledged"""
        return self._update_actions(
            session_id,
            alert_id,
            lambda a: a.is_alert,
            {"status": ActionStatus.ACKNOWLEDGED.value}
        )

    def handle_node_action(
        self,
        session_id: str,
        action: str,
        target_id: str,
        reason: Optional[str] = None
    ) -> SessionComputedData:
        """
        Apply a clinician action to a node

        "suppress" marks the target diagnosis suppressed. Every action is
        appended to the session's user action history when the document
        keeps one.
        """
        action = UserActionKind(action).value

        with self._lock:
            session = self.get(session_id).session_data
            update = {}

            if action == UserActionKind.SUPPRESS.value:
                diagnoses = [
                    d.model_copy(update={
                        "suppressed": True,
                        "suppression_reason": reason or "User suppressed"
                    }) if d.id == target_id else d
                    for d in session.nodes.diagnoses or []
                ]
                update["nodes"] = session.nodes.model_copy(update={"diagnoses": diagnoses})

            if session.user_actions is not None:
                update["user_actions"] = [
                    *session.user_actions,
                    UserAction(
                        timestamp=datetime.now(timezone.utc).isoformat(),
                        action=action,
                        target_id=target_id,
                        reason=reason
                    )
                ]

            logger.info(f"Session {session_id}: {action} on {target_id}")
            return self._replace(session_id, session.model_copy(update=update))


@lru_cache
def get_session_store() -> SessionDataStore:
    """Get the singleton session store"""
    return SessionDataStore()
