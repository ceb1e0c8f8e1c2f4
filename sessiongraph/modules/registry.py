"""
SessionGraph Node Registry
Flat id lookups over the four node groups of a session analysis
"""

import logging
from typing import Dict, Iterator, List, NamedTuple, Sequence, Tuple

from sessiongraph.schemas import SessionAnalysis, SessionLink, SessionNode, NodeType

logger = logging.getLogger(__name__)


class NodeAndLinkMaps(NamedTuple):
    """O(1) lookups used by rendering and path calculation"""
    node_map: Dict[str, SessionNode]
    link_map: Dict[str, SessionLink]


def iter_node_groups(session: SessionAnalysis) -> Iterator[Tuple[NodeType, Sequence[SessionNode]]]:
    """Yield (node type, nodes) in fixed order: symptoms, diagnoses, treatments, actions"""
    nodes = session.nodes
    yield NodeType.SYMPTOM, nodes.symptoms or []
    yield NodeType.DIAGNOSIS, nodes.diagnoses or []
    yield NodeType.TREATMENT, nodes.treatments or []
    yield NodeType.ACTION, nodes.actions or []


def all_nodes(session: SessionAnalysis) -> List[SessionNode]:
    """Every node of the document, group by group"""
    return [node for _, group in iter_node_groups(session) for node in group]


def build_node_and_link_maps(session: SessionAnalysis) -> NodeAndLinkMaps:
    """
    Build node and link maps for quick lookups

    Ids are expected to be unique across the whole document; on a
    collision the node seen last wins. The link map is only populated from
    the optional top-level links list, keyed "sourceId-targetId".
    """
    node_map: Dict[str, SessionNode] = {}
    link_map: Dict[str, SessionLink] = {}

    for node in all_nodes(session):
        node_map[node.id] = node

    for link in session.links or []:
        link_map[link.link_id] = link

    logger.debug(
        f"Built node map ({len(node_map)} nodes) and link map ({len(link_map)} links) "
        f"for session {session.session_id}"
    )
    return NodeAndLinkMaps(node_map=node_map, link_map=link_map)


def node_display_text(node, fallback: str) -> str:
    """Human-readable label: name for diagnoses/treatments, text for symptoms/actions"""
    if node is None:
        return fallback
    return getattr(node, "name", None) or getattr(node, "text", None) or fallback
