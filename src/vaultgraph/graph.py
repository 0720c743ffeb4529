"""
graph.py – Compiles the full-sync LangGraph.

Graph topology:
    START
      └─ scan
          └─ load_known
              └─ index_changed
                  ├─ (documents vanished) → prune → END
                  └─ (nothing vanished)   → END
"""

from __future__ import annotations

from langgraph.graph import END, START, StateGraph

from vaultgraph.nodes.indexer import index_changed_node
from vaultgraph.nodes.loader import load_known_node
from vaultgraph.nodes.pruner import has_removed_documents, prune_node
from vaultgraph.nodes.scanner import scan_node
from vaultgraph.state import SyncState


def compile_sync_graph():
    """Build and compile the full-sync state machine."""
    builder = StateGraph(SyncState)

    # Register nodes
    builder.add_node("scan", scan_node)
    builder.add_node("load_known", load_known_node)
    builder.add_node("index_changed", index_changed_node)
    builder.add_node("prune", prune_node)

    # Linear prefix
    builder.add_edge(START, "scan")
    builder.add_edge("scan", "load_known")
    builder.add_edge("load_known", "index_changed")

    # Conditional: vanished documents → prune, else → END
    builder.add_conditional_edges(
        "index_changed",
        has_removed_documents,
        {
            "prune": "prune",
            "end": END,
        },
    )
    builder.add_edge("prune", END)

    return builder.compile()
