"""
Shared fixtures: a small chest-pain encounter
"""

import copy

import pytest

from sessiongraph.schemas import SessionAnalysis
from sessiongraph.services.session_store import SessionDataStore, compute_session_data


def rel(node_id, relationship="supports", direction="outgoing", strength=0.8, **extra):
    """Relationship entry as it appears in an analysis document"""
    return {
        "nodeId": node_id,
        "relationship": relationship,
        "direction": direction,
        "strength": strength,
        **extra
    }


SAMPLE_DOCUMENT = {
    "sessionId": "session-001",
    "timestamp": "2024-05-01T10:00:00Z",
    "analysisVersion": 2,
    "nodes": {
        "symptoms": [
            {
                "id": "s1", "text": "Chest pain", "severity": 8, "confidence": 0.9,
                "source": "transcript",
                "relationships": [rel("d1", confidence=0.9)]
            },
            {
                "id": "s2", "text": "Shortness of breath", "severity": 6, "confidence": 0.8,
                "source": "transcript",
                "relationships": [rel("d1"), rel("d2", relationship="suggests", strength=0.5)]
            },
            {
                "id": "s3", "text": "Recent long-haul flight", "severity": 2, "confidence": 0.7,
                "source": "social_history"
            },
        ],
        "diagnoses": [
            {
                "id": "d1", "name": "Acute coronary syndrome", "probability": 0.6,
                "priority": 1, "confidence": 0.7,
                "relationships": [rel("t1", relationship="requires")]
            },
            {
                "id": "d2", "name": "Pulmonary embolism", "probability": 0.3,
                "priority": 2, "confidence": 0.5,
                "relationships": [rel("s3", direction="incoming", strength=0.6)]
            },
        ],
        "treatments": [
            {
                "id": "t1", "type": "medication", "name": "Aspirin", "priority": 1,
                "confidence": 0.8, "urgency": "immediate"
            },
            {
                "id": "t2", "type": "investigation", "name": "CT pulmonary angiography",
                "priority": 2, "confidence": 0.7, "urgency": "urgent",
                "relationships": [rel("d2", relationship="investigates", strength=0.9)]
            },
        ],
        "actions": [
            {
                "id": "q1", "text": "Does the pain radiate to the left arm?",
                "category": "diagnostic_clarification", "actionType": "question",
                "priority": 2, "status": "pending",
                "impact": {"diagnoses": {"d1": 0.2}},
                "relationships": [rel("d1", relationship="clarifies")]
            },
            {
                "id": "q2", "text": "Is the breathlessness worse lying flat?",
                "category": "symptom_exploration", "actionType": "question",
                "priority": 5, "status": "pending",
                "impact": {"diagnoses": {"d2": 0.1}},
                "relationships": [rel("s2", relationship="explores")]
            },
            {
                "id": "q3", "text": "Any calf swelling?",
                "category": "diagnostic_clarification", "actionType": "question",
                "priority": 3, "status": "answered", "answer": "no",
                "relationships": [rel("d2", relationship="explores")]
            },
            {
                "id": "a1", "text": "Possible ACS: obtain ECG within 10 minutes",
                "category": "red_flag", "actionType": "alert",
                "priority": 1, "status": "pending",
                "relationships": [rel("d1", relationship="indicates")]
            },
        ],
    },
    "links": [
        {"sourceId": "s1", "targetId": "d1", "value": 1},
        {"sourceId": "d1", "targetId": "t1", "value": 1},
    ],
    "userActions": [],
}


@pytest.fixture
def sample_document():
    """Raw camelCase document"""
    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture
def session(sample_document):
    """Parsed session analysis"""
    return SessionAnalysis.model_validate(sample_document)


@pytest.fixture
def computed(session):
    """Session with its relationship index and maps"""
    return compute_session_data(session)


@pytest.fixture
def store(session):
    """Store with the sample session loaded"""
    store = SessionDataStore(max_sessions=5)
    store.load_session(session)
    return store
