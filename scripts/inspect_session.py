#!/usr/bin/env python3
"""
SessionGraph - Session Analysis Inspection Script
Builds the relationship index for a session analysis JSON file and prints
reasoning paths and the question ranking
"""

import sys
import json
import logging
import argparse
from pathlib import Path

# Add parent directory to path to import sessiongraph modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError

from sessiongraph.schemas import SessionAnalysis
from sessiongraph.services.session_store import compute_session_data
from sessiongraph.modules.path_calculator import calculate_path_from_node
from sessiongraph.modules.scoring import calculate_composite_score, sort_questions_by_score
from sessiongraph.modules.registry import node_display_text

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    """Main execution function"""
    parser = argparse.ArgumentParser(description="Inspect a session analysis document")
    parser.add_argument("document", type=Path, help="Session analysis JSON file")
    parser.add_argument("--node", action="append", default=[], help="Print the reasoning path from this node id")
    args = parser.parse_args()

    try:
        session = SessionAnalysis.model_validate(json.loads(args.document.read_text()))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"✗ Could not read {args.document}: {e}")
        return 1
    except ValidationError as e:
        logger.error(f"✗ Invalid session analysis document:\n{e}")
        return 1

    data = compute_session_data(session)
    index = data.relationship_index

    logger.info("="*60)
    logger.info(f"Session {session.session_id} (analysis v{session.analysis_version})")
    logger.info("="*60)
    logger.info(f"Nodes: {len(index.node_types)}  Forward edges: {index.edge_count()}  Links: {len(data.link_map)}")

    for node_id in args.node:
        calculation = calculate_path_from_node(node_id, data)
        logger.info(f"\nPath from {node_display_text(calculation.trigger.item, node_id)} ({index.type_of(node_id)})")
        for path_node in sorted(calculation.path.nodes):
            logger.info(f"  node  {path_node:20} | {node_display_text(data.node_map.get(path_node), path_node)}")
        for path_link in sorted(calculation.path.links):
            logger.info(f"  link  {path_link}")

    questions = sort_questions_by_score(data.questions, session)
    if questions:
        logger.info("\nQuestions by composite score")
        for question in questions:
            score = calculate_composite_score(question, session)
            logger.info(f"  {score:6.2f} | {question.status:12} | {question.text}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
