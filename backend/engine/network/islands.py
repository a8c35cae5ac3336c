"""Split a solver graph into connected islands.

Union-find over node ids. A union points both roots at the smaller one, so
every island is rooted at its lowest node id and the split is deterministic.
Each island is renumbered 0..k-1 in original node order; its first node
becomes the reference (slack) node of the DC solve.
"""

from __future__ import annotations

import dataclasses

from engine.network.grid_model import SolverGridConfig


def split_islands(grid: SolverGridConfig) -> list[SolverGridConfig]:
    """Return the maximal connected components of ``grid``, ordered by lowest node id."""
    parent = list(range(grid.n_node))

    def find(x: int) -> int:
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    for line in grid.lines:
        a, b = line.node_from_id, line.node_to_id
        ra, rb = find(a), find(b)
        root = min(ra, rb)
        parent[ra] = parent[rb] = root
        parent[a] = parent[b] = root

    roots = [find(i) for i in range(grid.n_node)]

    members: dict[int, list[int]] = {}
    for node_id, root in enumerate(roots):
        members.setdefault(root, []).append(node_id)

    islands: list[SolverGridConfig] = []
    island_of_root: dict[int, int] = {}
    remap: dict[int, int] = {}
    for root in sorted(members):
        island = SolverGridConfig()
        for new_id, old_id in enumerate(members[root]):
            remap[old_id] = new_id
            island.nodes.append(dataclasses.replace(grid.nodes[old_id], id=new_id))
        island_of_root[root] = len(islands)
        islands.append(island)

    for line in grid.lines:
        island = islands[island_of_root[roots[line.node_from_id]]]
        island.lines.append(dataclasses.replace(
            line,
            node_from_id=remap[line.node_from_id],
            node_to_id=remap[line.node_to_id],
        ))

    return islands
