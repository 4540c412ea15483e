"""
Nest a flat list of categories into a tree
"""
from typing import Any, Dict, List


def build_category_tree(categories: list) -> List[Dict[str, Any]]:
    """
    Build hierarchical nodes from flat category rows

    A row whose parent is not part of ``categories`` becomes a top-level
    node at depth 0. Siblings are ordered by rank.

    Returns:
        List of ``{"category", "depth", "children"}`` dicts
    """
    nodes = {}
    for cat in categories:
        nodes[cat.id] = {"category": cat, "depth": 0, "children": []}

    roots = []
    for cat in categories:
        node = nodes[cat.id]
        parent = nodes.get(cat.parent_id) if cat.parent_id else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent["children"].append(node)

    def assign_depth(items: list, depth: int) -> None:
        items.sort(key=lambda n: (n["category"].rank or 0))
        for item in items:
            item["depth"] = depth
            assign_depth(item["children"], depth + 1)

    assign_depth(roots, 0)
    return roots
