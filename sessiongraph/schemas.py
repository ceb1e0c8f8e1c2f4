"""
SessionGraph - Session Analysis Schemas
Pydantic models for the clinical session analysis document and the
structures derived from it (relationship index entries, reasoning paths)
"""

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Literal, Union, Set, Annotated
from enum import Enum


# ============================================================================
# Enumerations
# ============================================================================

class NodeType(str, Enum):
    """Kinds of nodes in a session analysis"""
    SYMPTOM = "symptom"
    DIAGNOSIS = "diagnosis"
    TREATMENT = "treatment"
    ACTION = "action"


UNKNOWN_NODE_TYPE = "unknown"


class RelationshipType(str, Enum):
    """Vocabulary of clinical relationships between nodes"""
    SUPPORTS = "supports"
    CONTRADICTS = "contradicts"
    CONFIRMS = "confirms"
    RULES_OUT = "rules_out"
    SUGGESTS = "suggests"
    TREATS = "treats"
    MANAGES = "manages"
    PREVENTS = "prevents"
    RELIEVES = "relieves"
    INVESTIGATES = "investigates"
    CLARIFIES = "clarifies"
    EXPLORES = "explores"
    EXCLUDES = "excludes"
    REVEALS = "reveals"
    INDICATES = "indicates"
    REQUIRES = "requires"
    MONITORS = "monitors"


class RelationshipDirection(str, Enum):
    """Direction of a relationship relative to the node declaring it"""
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    BIDIRECTIONAL = "bidirectional"


class SymptomSource(str, Enum):
    """Provenance of a symptom"""
    TRANSCRIPT = "transcript"
    MEDICAL_HISTORY = "medical_history"
    FAMILY_HISTORY = "family_history"
    SOCIAL_HISTORY = "social_history"
    MEDICATION_HISTORY = "medication_history"
    SUSPECTED = "suspected"


class TreatmentType(str, Enum):
    """Treatment categories"""
    MEDICATION = "medication"
    PROCEDURE = "procedure"
    THERAPY = "therapy"
    LIFESTYLE = "lifestyle"
    INVESTIGATION = "investigation"
    IMMEDIATE = "immediate"
    REFERRAL = "referral"


class TreatmentUrgency(str, Enum):
    """Treatment urgency"""
    IMMEDIATE = "immediate"
    URGENT = "urgent"
    ROUTINE = "routine"


class ActionCategory(str, Enum):
    """Clinical question and alert categories"""
    SYMPTOM_EXPLORATION = "symptom_exploration"
    DIAGNOSTIC_CLARIFICATION = "diagnostic_clarification"
    TREATMENT_SELECTION = "treatment_selection"
    RISK_ASSESSMENT = "risk_assessment"
    DRUG_INTERACTION = "drug_interaction"
    CONTRAINDICATION = "contraindication"
    ALLERGY = "allergy"
    WARNING = "warning"
    RED_FLAG = "red_flag"


class ActionType(str, Enum):
    """Whether an action is a question to ask or an alert to review"""
    QUESTION = "question"
    ALERT = "alert"


class ActionStatus(str, Enum):
    """Lifecycle of a question or alert"""
    PENDING = "pending"
    ANSWERED = "answered"
    ACKNOWLEDGED = "acknowledged"
    SKIPPED = "skipped"
    RESOLVED = "resolved"


class UserActionKind(str, Enum):
    """Clinician actions recorded against a session"""
    SUPPRESS = "suppress"
    ACCEPT = "accept"
    MODIFY = "modify"
    ADD_NOTE = "add_note"
    HIGHLIGHT = "highlight"
    QUESTION = "question"


# ============================================================================
# Base Model
# ============================================================================

class SessionModel(BaseModel):
    """Accepts camelCase documents and snake_case keyword arguments alike"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


# ============================================================================
# Relationships & Nodes
# ============================================================================

class Relationship(SessionModel):
    """Edge embedded in a node, pointing at another node by id"""
    node_id: str
    relationship: RelationshipType
    direction: RelationshipDirection
    strength: float = Field(..., ge=0.0, le=1.0)
    confidence: float = Field(1.0, ge=0.0, le=1.0)
    reasoning: Optional[str] = None


def _empty_if_none(value):
    return [] if value is None else value


# null and absent relationship lists both read as empty
Relationships = Annotated[List[Relationship], BeforeValidator(_empty_if_none)]


class SymptomNode(SessionModel):
    """Symptom reported or suspected during the encounter"""
    node_type: Literal["symptom"] = "symptom"
    id: str
    text: str
    severity: float = Field(..., ge=1, le=10)
    confidence: float = Field(..., ge=0.0, le=1.0)
    source: SymptomSource
    duration: Optional[float] = None
    quote: Optional[str] = None
    characteristics: List[str] = Field(default_factory=list)
    relationships: Relationships = Field(default_factory=list)


class DiagnosisNode(SessionModel):
    """Candidate diagnosis with its probability"""
    node_type: Literal["diagnosis"] = "diagnosis"
    id: str
    name: str
    probability: float = Field(..., ge=0.0, le=1.0)
    priority: int = Field(..., ge=1, le=10)
    confidence: float = Field(..., ge=0.0, le=1.0)
    icd10: Optional[str] = None
    reasoning: Optional[str] = None
    suppressed: bool = False
    suppression_reason: Optional[str] = None
    red_flags: List[str] = Field(default_factory=list)
    relationships: Relationships = Field(default_factory=list)


class TreatmentNode(SessionModel):
    """Treatment, investigation or referral"""
    node_type: Literal["treatment"] = "treatment"
    id: str
    type: TreatmentType
    name: str
    priority: int = Field(..., ge=1, le=10)
    confidence: float = Field(..., ge=0.0, le=1.0)
    urgency: Optional[TreatmentUrgency] = None
    dosage: Optional[str] = None
    reasoning: Optional[str] = None
    relationships: Relationships = Field(default_factory=list)


class ActionImpact(SessionModel):
    """Expected effect of answering a question on diagnosis probabilities"""
    symptoms: List[str] = Field(default_factory=list)
    diagnoses: Dict[str, float] = Field(default_factory=dict)
    yes: Dict[str, float] = Field(default_factory=dict)
    no: Dict[str, float] = Field(default_factory=dict)


class ActionNode(SessionModel):
    """Question to ask the patient or alert for the clinician"""
    node_type: Literal["action"] = "action"
    id: str
    text: str
    # open vocabulary; ActionCategory lists the categories with known urgency
    category: str
    action_type: ActionType
    priority: int = Field(..., ge=0, le=10)
    status: ActionStatus = ActionStatus.PENDING
    impact: Optional[ActionImpact] = None
    answer: Optional[str] = None
    answer_confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    recommendation: Optional[str] = None
    relationships: Relationships = Field(default_factory=list)

    @property
    def is_question(self) -> bool:
        return self.action_type == ActionType.QUESTION.value

    @property
    def is_alert(self) -> bool:
        return self.action_type == ActionType.ALERT.value

    @property
    def is_pending(self) -> bool:
        return self.status == ActionStatus.PENDING.value

    def references(self, *node_ids: str) -> bool:
        """True when any relationship of this action points at one of node_ids"""
        return any(rel.node_id in node_ids for rel in self.relationships)


SessionNode = Annotated[
    Union[SymptomNode, DiagnosisNode, TreatmentNode, ActionNode],
    Field(discriminator="node_type"),
]


# ============================================================================
# Session Analysis Document
# ============================================================================

class SessionNodes(SessionModel):
    """The four node groups; absent groups are empty"""
    symptoms: List[SymptomNode] = Field(default_factory=list)
    diagnoses: List[DiagnosisNode] = Field(default_factory=list)
    treatments: List[TreatmentNode] = Field(default_factory=list)
    actions: List[ActionNode] = Field(default_factory=list)

    @field_validator("symptoms", "diagnoses", "treatments", "actions", mode="before")
    @classmethod
    def null_group_is_empty(cls, v):
        return _empty_if_none(v)


class SessionLink(SessionModel):
    """Top-level link between two nodes"""
    model_config = ConfigDict(extra="allow")

    source_id: str
    target_id: str

    @property
    def link_id(self) -> str:
        return f"{self.source_id}-{self.target_id}"


class UserAction(SessionModel):
    """Clinician action recorded in the session history"""
    timestamp: str
    action: UserActionKind
    target_id: str
    reason: Optional[str] = None
    confidence: Optional[float] = None
    note: Optional[str] = None


class SessionAnalysis(SessionModel):
    """AI-generated clinical findings snapshot for one encounter"""
    session_id: str = ""
    timestamp: str = ""
    analysis_version: int = 1
    nodes: SessionNodes = Field(default_factory=SessionNodes)
    links: Optional[List[SessionLink]] = None
    user_actions: Optional[List[UserAction]] = None

    @field_validator("nodes", mode="before")
    @classmethod
    def null_nodes_are_empty(cls, v):
        return {} if v is None else v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sessionId": "session-001",
                "timestamp": "2024-05-01T10:00:00Z",
                "analysisVersion": 1,
                "nodes": {
                    "symptoms": [{
                        "id": "s1", "text": "Chest pain", "severity": 8,
                        "confidence": 0.9, "source": "transcript",
                        "relationships": [{
                            "nodeId": "d1", "relationship": "supports",
                            "direction": "outgoing", "strength": 0.8
                        }]
                    }],
                    "diagnoses": [{
                        "id": "d1", "name": "Acute coronary syndrome",
                        "probability": 0.6, "priority": 1, "confidence": 0.7
                    }]
                }
            }
        }
    )


# ============================================================================
# Relationship Index Entries
# ============================================================================

class ForwardEdge(BaseModel):
    """Entry in forward[node]: node -> target"""
    model_config = ConfigDict(frozen=True)

    target_id: str
    type: str
    confidence: float
    target_type: str


class ReverseEdge(BaseModel):
    """Entry in reverse[node]: source -> node"""
    model_config = ConfigDict(frozen=True)

    source_id: str
    type: str
    confidence: float
    source_type: str


# ============================================================================
# Path Calculation
# ============================================================================

class PathTrigger(BaseModel):
    """What the user selected"""
    type: Literal["node", "link"] = "node"
    id: str
    item: Optional[SessionNode] = None


class ReasoningPath(BaseModel):
    """Connected node and link ids to highlight"""
    nodes: Set[str] = Field(default_factory=set)
    links: Set[str] = Field(default_factory=set)


class PathCalculation(BaseModel):
    """Reasoning path computed from a trigger node"""
    trigger: PathTrigger
    path: ReasoningPath


# ============================================================================
# API Request/Response Models
# ============================================================================

class SessionSummary(BaseModel):
    """Counts describing a loaded session"""
    session_id: str
    analysis_version: int
    symptom_count: int
    diagnosis_count: int
    treatment_count: int
    action_count: int
    indexed_node_count: int
    link_count: int


class NodeDetail(BaseModel):
    """Node with its display text"""
    node_type: str
    display_text: str
    node: SessionNode


class ScoredQuestion(BaseModel):
    """Question with its composite score"""
    score: float
    question: ActionNode

    @computed_field
    @property
    def question_id(self) -> str:
        return self.question.id


class AnswerRequest(BaseModel):
    """Answer to a pending question"""
    answer: str = Field(..., min_length=1)
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)


class NodeActionRequest(BaseModel):
    """Clinician action against a node"""
    action: UserActionKind
    reason: Optional[str] = None
