"""
SessionGraph Relationship Indexer
Bidirectional adjacency index over symptoms, diagnoses, treatments and actions
"""

import logging
from typing import Dict, List, NamedTuple, Optional, Set, Tuple, Any
from collections import defaultdict

from sessiongraph.schemas import (
    SessionAnalysis, Relationship, RelationshipDirection,
    ForwardEdge, ReverseEdge, UNKNOWN_NODE_TYPE
)
from sessiongraph.modules.registry import iter_node_groups

logger = logging.getLogger(__name__)


_FORWARD_DIRECTIONS = (RelationshipDirection.OUTGOING, RelationshipDirection.BIDIRECTIONAL)
_REVERSE_DIRECTIONS = (RelationshipDirection.INCOMING, RelationshipDirection.BIDIRECTIONAL)


# =============================================================================
# Relationship Index
# =============================================================================

class RelationshipIndex:
    """
    Forward and reverse adjacency sets keyed by node id, plus the node type
    of every node in the document.

    Built once per session analysis and only read afterwards; a new document
    means a new index.
    """

    def __init__(
        self,
        forward: Optional[Dict[str, Set[ForwardEdge]]] = None,
        reverse: Optional[Dict[str, Set[ReverseEdge]]] = None,
        node_types: Optional[Dict[str, str]] = None
    ):
        self.forward: Dict[str, Set[ForwardEdge]] = forward if forward is not None else {}
        self.reverse: Dict[str, Set[ReverseEdge]] = reverse if reverse is not None else {}
        self.node_types: Dict[str, str] = node_types if node_types is not None else {}

    def forward_edges(self, node_id: str) -> Set[ForwardEdge]:
        return self.forward.get(node_id, set())

    def reverse_edges(self, node_id: str) -> Set[ReverseEdge]:
        return self.reverse.get(node_id, set())

    def type_of(self, node_id: str) -> str:
        return self.node_types.get(node_id, UNKNOWN_NODE_TYPE)

    def edge_count(self) -> int:
        """Number of forward entries"""
        return sum(len(edges) for edges in self.forward.values())

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation with deterministic ordering"""
        return {
            "forward": {
                node_id: sorted(
                    (edge.model_dump() for edge in edges),
                    key=lambda e: (e["target_id"], e["type"], e["confidence"])
                )
                for node_id, edges in sorted(self.forward.items())
            },
            "reverse": {
                node_id: sorted(
                    (edge.model_dump() for edge in edges),
                    key=lambda e: (e["source_id"], e["type"], e["confidence"])
                )
                for node_id, edges in sorted(self.reverse.items())
            },
            "node_types": dict(sorted(self.node_types.items())),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RelationshipIndex):
            return NotImplemented
        return (
            self.forward == other.forward
            and self.reverse == other.reverse
            and self.node_types == other.node_types
        )

    def __repr__(self) -> str:
        return (
            f"RelationshipIndex(nodes={len(self.node_types)}, "
            f"forward={len(self.forward)}, reverse={len(self.reverse)})"
        )


# =============================================================================
# Edge Mirroring
# =============================================================================

class ImpliedEdges(NamedTuple):
    """Directed entries implied by a single declared relationship"""
    forward: List[Tuple[str, ForwardEdge]]
    reverse: List[Tuple[str, ReverseEdge]]


def edges_for_relationship(
    source_id: str,
    source_type: str,
    rel: Relationship,
    target_type: str
) -> ImpliedEdges:
    """
    Expand a relationship declared on source_id into index entries

    outgoing: source -> target (forward on source, reverse on target)
    incoming: target -> source (forward on target, reverse on source)
    bidirectional: both of the above

    Returns (owner id, entry) pairs for the forward and reverse maps.
    """
    forward: List[Tuple[str, ForwardEdge]] = []
    reverse: List[Tuple[str, ReverseEdge]] = []

    if rel.direction in _FORWARD_DIRECTIONS:
        forward.append((source_id, ForwardEdge(
            target_id=rel.node_id,
            type=rel.relationship,
            confidence=rel.confidence,
            target_type=target_type
        )))
        reverse.append((rel.node_id, ReverseEdge(
            source_id=source_id,
            type=rel.relationship,
            confidence=rel.confidence,
            source_type=source_type
        )))

    if rel.direction in _REVERSE_DIRECTIONS:
        forward.append((rel.node_id, ForwardEdge(
            target_id=source_id,
            type=rel.relationship,
            confidence=rel.confidence,
            target_type=source_type
        )))
        reverse.append((source_id, ReverseEdge(
            source_id=rel.node_id,
            type=rel.relationship,
            confidence=rel.confidence,
            source_type=target_type
        )))

    return ImpliedEdges(forward=forward, reverse=reverse)


# =============================================================================
# Index Construction
# =============================================================================

def build_relationship_index(session: SessionAnalysis) -> RelationshipIndex:
    """
    Build the relationship index for a session analysis

    Pass 1 registers the type of every node so that pass 2 can classify
    targets declared in groups processed later. Pass 2 expands each
    embedded relationship into forward/reverse entries. The backfill pass
    then merges every reverse entry into the forward map of the same node,
    so nodes whose relationships were all declared elsewhere remain
    forward-traversable.

    Targets missing from the document are indexed with type "unknown".
    """
    node_types: Dict[str, str] = {}
    forward: Dict[str, Set[ForwardEdge]] = defaultdict(set)
    reverse: Dict[str, Set[ReverseEdge]] = defaultdict(set)

    groups = list(iter_node_groups(session))

    # Pass 1: node types
    for node_type, nodes in groups:
        for node in nodes:
            node_types[node.id] = node_type.value

    # Pass 2: embedded relationships
    unresolved = 0
    for node_type, nodes in groups:
        for node in nodes:
            for rel in node.relationships or []:
                target_type = node_types.get(rel.node_id, UNKNOWN_NODE_TYPE)
                if target_type == UNKNOWN_NODE_TYPE:
                    unresolved += 1

                implied = edges_for_relationship(node.id, node_type.value, rel, target_type)
                for owner_id, edge in implied.forward:
                    forward[owner_id].add(edge)
                for owner_id, edge in implied.reverse:
                    reverse[owner_id].add(edge)

    # Backfill: merge reverse entries into forward, never overwrite
    for node_id, edges in reverse.items():
        existing = forward[node_id]
        for edge in edges:
            existing.add(ForwardEdge(
                target_id=edge.source_id,
                type=edge.type,
                confidence=edge.confidence,
                target_type=node_types.get(edge.source_id, UNKNOWN_NODE_TYPE)
            ))

    index = RelationshipIndex(
        forward=dict(forward),
        reverse=dict(reverse),
        node_types=node_types
    )

    if unresolved:
        logger.debug(
            f"Session {session.session_id}: {unresolved} relationship(s) reference "
            f"nodes not present in the document"
        )
    logger.debug(f"Built {index!r} for session {session.session_id}")
    return index
