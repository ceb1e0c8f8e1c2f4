"""
SessionGraph - Session Analysis API Routes
Endpoints for loading session analyses and querying their relationship graph
"""

import logging
from typing import Dict, Any, List
from fastapi import APIRouter, Depends, HTTPException, Query, status

from sessiongraph.schemas import (
    SessionAnalysis, SessionSummary, NodeDetail, ScoredQuestion,
    AnswerRequest, NodeActionRequest, PathCalculation
)
from sessiongraph.modules.scoring import calculate_composite_score
from sessiongraph.services.session_store import (
    SessionDataStore, SessionComputedData, SessionNotFoundError, get_session_store
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/sessions", tags=["Sessions"])


def _summarize(data: SessionComputedData) -> SessionSummary:
    nodes = data.session_data.nodes
    return SessionSummary(
        session_id=data.session_data.session_id,
        analysis_version=data.session_data.analysis_version,
        symptom_count=len(nodes.symptoms),
        diagnosis_count=len(nodes.diagnoses),
        treatment_count=len(nodes.treatments),
        action_count=len(nodes.actions),
        indexed_node_count=len(data.relationship_index.node_types),
        link_count=len(data.link_map)
    )


def _not_found(e: SessionNotFoundError) -> HTTPException:
    logger.warning(str(e))
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _path_response(calculation: PathCalculation) -> Dict[str, Any]:
    item = calculation.trigger.item
    return {
        "trigger": {
            "type": calculation.trigger.type,
            "id": calculation.trigger.id,
            "item": item.model_dump(by_alias=True) if item is not None else None
        },
        "path": {
            "nodes": sorted(calculation.path.nodes),
            "links": sorted(calculation.path.links)
        }
    }


# =============================================================================
# Session Lifecycle
# =============================================================================

@router.post("", response_model=SessionSummary, status_code=status.HTTP_201_CREATED)
async def load_session(
    session: SessionAnalysis,
    store: SessionDataStore = Depends(get_session_store)
):
    """Load a session analysis (replacing any previous version) and build its index"""
    data = store.load_session(session)
    return _summarize(data)


@router.get("")
async def list_sessions(store: SessionDataStore = Depends(get_session_store)):
    """List loaded session ids"""
    sessions = store.list_sessions()
    return {"sessions": sessions, "count": len(sessions)}


@router.get("/{session_id}")
async def get_session(session_id: str, store: SessionDataStore = Depends(get_session_store)):
    """Get the current session analysis document"""
    try:
        return store.get(session_id).session_data.model_dump(by_alias=True)
    except SessionNotFoundError as e:
        raise _not_found(e)


@router.get("/{session_id}/summary", response_model=SessionSummary)
async def get_session_summary(session_id: str, store: SessionDataStore = Depends(get_session_store)):
    """Node and link counts for a loaded session"""
    try:
        return _summarize(store.get(session_id))
    except SessionNotFoundError as e:
        raise _not_found(e)


@router.delete("/{session_id}")
async def clear_session(session_id: str, store: SessionDataStore = Depends(get_session_store)):
    """Drop a loaded session"""
    try:
        store.clear_session(session_id)
        return {"status": "success", "session_id": session_id}
    except SessionNotFoundError as e:
        raise _not_found(e)


# =============================================================================
# Graph Queries
# =============================================================================

@router.get("/{session_id}/index")
async def get_relationship_index(session_id: str, store: SessionDataStore = Depends(get_session_store)):
    """Forward, reverse and node-type maps of the relationship index"""
    try:
        return store.get(session_id).relationship_index.to_dict()
    except SessionNotFoundError as e:
        raise _not_found(e)


@router.get("/{session_id}/nodes/{node_id}", response_model=NodeDetail)
async def get_node(session_id: str, node_id: str, store: SessionDataStore = Depends(get_session_store)):
    """Look up a node by id"""
    try:
        node = store.find_node_by_id(session_id, node_id)
    except SessionNotFoundError as e:
        raise _not_found(e)

    if node is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Node {node_id} not found in session {session_id}"
        )
    return NodeDetail(
        node_type=node.node_type,
        display_text=store.get_node_display_text(session_id, node_id),
        node=node
    )


@router.get("/{session_id}/path/{node_id}")
async def get_reasoning_path(session_id: str, node_id: str, store: SessionDataStore = Depends(get_session_store)):
    """Reasoning path (nodes and link ids to highlight) from a selected node"""
    try:
        return _path_response(store.calculate_path(session_id, node_id))
    except SessionNotFoundError as e:
        raise _not_found(e)


@router.get("/{session_id}/nodes/{node_id}/actions")
async def get_node_actions(session_id: str, node_id: str, store: SessionDataStore = Depends(get_session_store)):
    """Questions and alerts attached to a node"""
    try:
        questions = store.questions_for_node(session_id, node_id)
        alerts = store.alerts_for_node(session_id, node_id)
    except SessionNotFoundError as e:
        raise _not_found(e)

    return {
        "node_id": node_id,
        "questions": [q.model_dump(by_alias=True) for q in questions],
        "alerts": [a.model_dump(by_alias=True) for a in alerts]
    }


@router.get("/{session_id}/questions", response_model=List[ScoredQuestion])
async def get_questions(
    session_id: str,
    pending_only: bool = Query(False, description="Only questions awaiting an answer"),
    sort_by_score: bool = Query(True, alias="sorted", description="Order by composite score, highest first"),
    store: SessionDataStore = Depends(get_session_store)
):
    """Questions with their composite scores"""
    try:
        data = store.get(session_id)
        if sort_by_score:
            questions = store.sorted_pending_questions(session_id) if pending_only else store.sorted_questions(session_id)
        else:
            questions = store.pending_questions(session_id) if pending_only else store.questions(session_id)
    except SessionNotFoundError as e:
        raise _not_found(e)

    return [
        ScoredQuestion(score=calculate_composite_score(q, data.session_data), question=q)
        for q in questions
    ]


@router.get("/{session_id}/alerts")
async def get_alerts(
    session_id: str,
    pending_only: bool = Query(False, description="Only alerts not yet acknowledged"),
    store: SessionDataStore = Depends(get_session_store)
):
    """Alerts of a session"""
    try:
        alerts = store.pending_alerts(session_id) if pending_only else store.alerts(session_id)
    except SessionNotFoundError as e:
        raise _not_found(e)
    return {"alerts": [a.model_dump(by_alias=True) for a in alerts], "count": len(alerts)}


# =============================================================================
# Clinician Actions
# =============================================================================

@router.post("/{session_id}/questions/{question_id}/answer", response_model=SessionSummary)
async def answer_question(
    session_id: str,
    question_id: str,
    request: AnswerRequest,
    store: SessionDataStore = Depends(get_session_store)
):
    """Record an answer to a question"""
    try:
        data = store.answer_question(session_id, question_id, request.answer, request.confidence)
        return _summarize(data)
    except SessionNotFoundError as e:
        raise _not_found(e)


@router.post("/{session_id}/alerts/{alert_id}/acknowledge", response_model=SessionSummary)
async def acknowledge_alert(
    session_id: str,
    alert_id: str,
    store: SessionDataStore = Depends(get_session_store)
):
    """Acknowledge an alert"""
    try:
        return _summarize(store.acknowledge_alert(session_id, alert_id))
    except SessionNotFoundError as e:
        raise _not_found(e)


@router.post("/{session_id}/nodes/{node_id}/actions", response_model=SessionSummary)
async def apply_node_action(
    session_id: str,
    node_id: str,
    request: NodeActionRequest,
    store: SessionDataStore = Depends(get_session_store)
):
    """Apply a clinician action (suppress, accept, ...) to a node"""
    try:
        return _summarize(store.handle_node_action(session_id, request.action, node_id, request.reason))
    except SessionNotFoundError as e:
        raise _not_found(e)
