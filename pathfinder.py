from typing import Any, List

import networkx as nx

from network_graph import WalkableMap


class MapConnectivityError(RuntimeError):
    """No walkable path between two nodes that should be connected."""


class DijkstraPathFinder:
    """Shortest walkable paths over the allowed node types of a map."""

    def __init__(self, walkable_map: WalkableMap, weight: str = "weight"):
        self.map = walkable_map
        self.weight = weight

    def get_shortest_path(self, source: Any, target: Any) -> List[Any]:
        """
        Ordered node list from source to target (both included).
        Returns an empty list if the nodes are not connected.
        """
        if source == target:
            return [source]
        G = self.map.walkable_view()
        try:
            return nx.shortest_path(G, source, target, weight=self.weight, method="dijkstra")
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            return []
