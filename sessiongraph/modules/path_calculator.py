"""
SessionGraph Path Calculator
Reconstructs clinical reasoning paths (symptom -> diagnosis -> treatment)
from a selected node
"""

import logging
from typing import Callable, Dict, Optional, Set

from sessiongraph.schemas import (
    NodeType, PathCalculation, PathTrigger, ReasoningPath, SessionNode
)
from sessiongraph.modules.relationship_index import RelationshipIndex

logger = logging.getLogger(__name__)


def link_id(source_id: str, target_id: str) -> str:
    """Link ids are "sourceId-targetId", matching the link map keys"""
    return f"{source_id}-{target_id}"


# =============================================================================
# Traversal Strategies
# =============================================================================

def _add_supporting_symptoms(
    diagnosis_id: str,
    path_nodes: Set[str],
    path_links: Set[str],
    index: RelationshipIndex
) -> None:
    for edge in index.reverse_edges(diagnosis_id):
        if edge.source_type == NodeType.SYMPTOM.value:
            path_nodes.add(edge.source_id)
            path_links.add(link_id(edge.source_id, diagnosis_id))


def calculate_treatment_path(
    treatment_id: str,
    path_nodes: Set[str],
    path_links: Set[str],
    index: RelationshipIndex
) -> None:
    """
    Treatment <- Diagnosis <- Symptoms

    Diagnoses reach a treatment either through the reverse map (diagnosis
    requires/treats-with the treatment) or through the treatment's own
    forward map (the treatment investigates the diagnosis). Link ids are
    diagnosis-first in both cases.
    """
    for edge in index.reverse_edges(treatment_id):
        if edge.source_type == NodeType.DIAGNOSIS.value:
            path_nodes.add(edge.source_id)
            path_links.add(link_id(edge.source_id, treatment_id))
            _add_supporting_symptoms(edge.source_id, path_nodes, path_links, index)

    for edge in index.forward_edges(treatment_id):
        if edge.target_type == NodeType.DIAGNOSIS.value:
            path_nodes.add(edge.target_id)
            path_links.add(link_id(edge.target_id, treatment_id))
            _add_supporting_symptoms(edge.target_id, path_nodes, path_links, index)


def calculate_symptom_path(
    symptom_id: str,
    path_nodes: Set[str],
    path_links: Set[str],
    index: RelationshipIndex
) -> None:
    """Symptom -> Diagnoses -> Treatments"""
    for edge in index.forward_edges(symptom_id):
        if edge.target_type != NodeType.DIAGNOSIS.value:
            continue
        diagnosis_id = edge.target_id
        path_nodes.add(diagnosis_id)
        path_links.add(link_id(symptom_id, diagnosis_id))

        for treatment_edge in index.forward_edges(diagnosis_id):
            if treatment_edge.target_type == NodeType.TREATMENT.value:
                path_nodes.add(treatment_edge.target_id)
                path_links.add(link_id(diagnosis_id, treatment_edge.target_id))


def calculate_diagnosis_path(
    diagnosis_id: str,
    path_nodes: Set[str],
    path_links: Set[str],
    index: RelationshipIndex
) -> None:
    """Symptoms -> Diagnosis -> Treatments"""
    _add_supporting_symptoms(diagnosis_id, path_nodes, path_links, index)

    for edge in index.forward_edges(diagnosis_id):
        if edge.target_type == NodeType.TREATMENT.value:
            path_nodes.add(edge.target_id)
            path_links.add(link_id(diagnosis_id, edge.target_id))


PathStrategy = Callable[[str, Set[str], Set[str], RelationshipIndex], None]

PATH_STRATEGIES: Dict[str, PathStrategy] = {
    NodeType.TREATMENT.value: calculate_treatment_path,
    NodeType.SYMPTOM.value: calculate_symptom_path,
    NodeType.DIAGNOSIS.value: calculate_diagnosis_path,
}


# =============================================================================
# Entry Point
# =============================================================================

def calculate_path_from_node(node_id: str, data) -> PathCalculation:
    """
    Calculate the medical reasoning path from a node

    Args:
        node_id: Selected node id
        data: Computed session data exposing relationship_index and node_map

    Returns:
        PathCalculation whose nodes always include node_id. Actions and ids
        absent from the document yield the trigger alone.
    """
    index: RelationshipIndex = data.relationship_index
    node_map: Dict[str, SessionNode] = data.node_map

    path_nodes: Set[str] = {node_id}
    path_links: Set[str] = set()

    starting_type = index.type_of(node_id)
    strategy: Optional[PathStrategy] = PATH_STRATEGIES.get(starting_type)
    if strategy is not None:
        strategy(node_id, path_nodes, path_links, index)
    else:
        logger.debug(f"No reasoning path for node {node_id} of type {starting_type}")

    return PathCalculation(
        trigger=PathTrigger(type="node", id=node_id, item=node_map.get(node_id)),
        path=ReasoningPath(nodes=path_nodes, links=path_links)
    )
