"""
Merging of embedded RXML symbol trees into the host symbol tree.

Each embedded tree is mapped from its region's content coordinates into
document coordinates, wrapped in one container node spanning the literal,
and inserted under the deepest host node that contains the literal.
"""

import copy
import logging
from typing import List, Sequence, Tuple

from src.pike_lsp.constants import RXML_CONTAINER_NAME
from src.pike_lsp.document import LineIndex
from src.pike_lsp.models import ORIGIN_EMBEDDED, ORIGIN_HOST, EmbeddedRegion, SymbolNode
from src.pike_lsp.rxml.mapping import RegionMapper

logger = logging.getLogger(__name__)

CONTAINER_KIND = "namespace"

EmbeddedTree = Tuple[EmbeddedRegion, Sequence[SymbolNode]]


def _identity(node: SymbolNode) -> tuple:
    return (node.name, node.kind, node.range, node.origin)


def _sort_key(node: SymbolNode) -> tuple:
    return (node.range.start, 0 if node.origin == ORIGIN_HOST else 1)


def _sort_tree(nodes: List[SymbolNode]) -> None:
    # list.sort is stable, so ties keep insertion order
    nodes.sort(key=_sort_key)
    for node in nodes:
        _sort_tree(node.children)


def _map_node(node: SymbolNode, mapper: RegionMapper) -> SymbolNode:
    children: List[SymbolNode] = []
    for child in node.children:
        _add_unique(children, _map_node(child, mapper))
    return SymbolNode(
        name=node.name,
        kind=node.kind,
        range=mapper.range_to_document(node.range),
        children=children,
        detail=node.detail,
        origin=ORIGIN_EMBEDDED,
    )


def _add_unique(siblings: List[SymbolNode], node: SymbolNode) -> bool:
    identity = _identity(node)
    if any(_identity(sibling) == identity for sibling in siblings):
        return False
    siblings.append(node)
    return True


def _insert(siblings: List[SymbolNode], node: SymbolNode) -> bool:
    """Insert node at the deepest host level that contains it."""
    identity = _identity(node)
    if any(_identity(sibling) == identity for sibling in siblings):
        logger.debug(f"Skipping duplicate {node.name} at {node.range.start}")
        return False

    for sibling in siblings:
        if sibling.origin == ORIGIN_HOST and sibling.range.contains(node.range):
            return _insert(sibling.children, node)

    # A partial overlap would break sibling disjointness; nest under the host node instead
    for sibling in siblings:
        if sibling.origin == ORIGIN_HOST and sibling.range.overlaps(node.range):
            logger.debug(f"{node.name} partially overlaps {sibling.name}, nesting under it")
            return _insert(sibling.children, node)

    siblings.append(node)
    return True


def build_container(region: EmbeddedRegion, nodes: Sequence[SymbolNode], index: LineIndex) -> SymbolNode:
    """Wrap an embedded tree, mapped into document coordinates, in its container node."""
    mapper = RegionMapper(region, index)
    children: List[SymbolNode] = []
    for node in nodes:
        _add_unique(children, _map_node(node, mapper))
    return SymbolNode(
        name=RXML_CONTAINER_NAME,
        kind=CONTAINER_KIND,
        range=mapper.document_range(),
        children=children,
        detail=f"{len(region.markers)} RXML markers",
        origin=ORIGIN_EMBEDDED,
    )


def merge(
    host_tree: Sequence[SymbolNode],
    embedded_trees: Sequence[EmbeddedTree],
    document_text: str,
) -> List[SymbolNode]:
    """
    Merge embedded trees into a copy of host_tree.

    Neither input is modified. Merging the same embedded tree twice adds
    nothing the second time.

    Args:
        host_tree: Top-level host symbols, in document coordinates
        embedded_trees: (region, nodes) pairs; nodes are in content coordinates
        document_text: Full document text, used for offset/position conversion

    Returns:
        The merged top-level symbol list, siblings sorted by start
    """
    merged = copy.deepcopy(list(host_tree))
    index = LineIndex(document_text)

    inserted = 0
    for region, nodes in embedded_trees:
        container = build_container(region, nodes, index)
        if _insert(merged, container):
            inserted += 1

    _sort_tree(merged)
    logger.debug(f"Merged {inserted} RXML containers into host tree")
    return merged
