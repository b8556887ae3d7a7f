import logging
from typing import Any, Iterable, List, Optional, Set, Tuple

import networkx as nx
import osmnx as ox

from convert import convert_geojson_to_graph
from settings import Settings, SettingsError

logger = logging.getLogger(__name__)

MAP_SECTION = "MapBasedMovement"
NROF_FILES_S = "nrofMapFiles"
FILE_S = "mapFile"
MAP_CRS_S = "mapCrs"
OK_MAPS_S = "okMaps"
# download the street network around "lat, lon" instead of reading map files
OSM_CENTER_S = "osmCenter"
OSM_DIST_S = "osmDist"
DEFAULT_METRIC_CRS = "EPSG:3826"

Coord = Tuple[float, float]


class WalkableMap:
    """
    Walkable node graph shared by every agent of a simulation.

    Nodes carry `x`, `y` and an integer `type` tag (the index of the map file
    they came from). `ok_node_types` limits which nodes agents may traverse;
    None means every node is allowed.
    """

    def __init__(self, G: nx.Graph, ok_node_types: Optional[Iterable[int]] = None,
                 crs: Optional[str] = None):
        self.G = G
        self.ok_node_types: Optional[Set[int]] = (
            set(ok_node_types) if ok_node_types is not None else None
        )
        # CRS the node coordinates are in; None means file coordinates as-is
        self.crs = crs

    # ---------- construction ----------

    @classmethod
    def from_settings(cls, settings: Settings, group: Optional[Settings] = None) -> "WalkableMap":
        """
        Load `mapFile1..N` from the MapBasedMovement section. Nodes of file i
        get type i. With `osmCenter = lat, lon` the street network around
        that point is downloaded instead and all its nodes have type 1.
        A group may restrict traversal with `okMaps = 1, 3`.
        """
        section = settings.section(MAP_SECTION)
        crs = section.get_setting(MAP_CRS_S) if section.contains(MAP_CRS_S) else None

        if section.contains(OSM_CENTER_S):
            lat, lon = section.get_csv_floats(OSM_CENTER_S, expected=2)
            walkable = cls.from_osm_point(
                (lat, lon),
                dist=section.get_float(OSM_DIST_S, 1500),
                metric_crs=crs or DEFAULT_METRIC_CRS,
            )
            nrof_files = 1
        else:
            nrof_files = section.get_int(NROF_FILES_S)
            G = nx.Graph()
            for i in range(1, nrof_files + 1):
                convert_geojson_to_graph(section.get_path(f"{FILE_S}{i}"), node_type=i, G=G, crs=crs)
            walkable = cls(G, crs=crs)
            logger.info("Loaded walkable map with %d nodes from %d file(s)",
                        G.number_of_nodes(), nrof_files)

        if group is not None and group.contains(OK_MAPS_S):
            ok_types = group.get_csv_ints(OK_MAPS_S)
            for t in ok_types:
                if t < 1 or t > nrof_files:
                    raise SettingsError(f"Map type {t} in {OK_MAPS_S} is not a loaded map file")
            walkable.ok_node_types = set(ok_types)

        return walkable

    @classmethod
    def from_osm_point(cls, center: Coord, dist: float = 1500,
                       metric_crs: str = DEFAULT_METRIC_CRS,
                       network_type: str = "walk") -> "WalkableMap":
        """
        Download a street network around (lat, lon) and project it so that
        edge weights are metres. Nodes are re-keyed to (x, y) tuples.
        """
        raw = ox.graph_from_point(center, dist=dist, network_type=network_type)
        raw = ox.project_graph(raw, to_crs=metric_crs)

        G = nx.Graph()
        for u, v, data in raw.edges(data=True):
            cu = (raw.nodes[u]["x"], raw.nodes[u]["y"])
            cv = (raw.nodes[v]["x"], raw.nodes[v]["y"])
            if cu == cv:
                continue
            for c in (cu, cv):
                if c not in G:
                    G.add_node(c, x=c[0], y=c[1], type=1)
            G.add_edge(cu, cv, weight=float(data.get("length", 1.0)),
                       road_type=data.get("highway", "road"))
        logger.info("Downloaded OSM network with %d nodes", G.number_of_nodes())
        return cls(G, crs=metric_crs)

    # ---------- queries ----------

    def is_ok(self, node: Any) -> bool:
        if self.ok_node_types is None:
            return True
        return self.G.nodes[node].get("type") in self.ok_node_types

    def ok_nodes(self) -> List[Any]:
        return [n for n in self.G.nodes if self.is_ok(n)]

    def nodes_of_type(self, node_type: int) -> List[Any]:
        return [n for n, d in self.G.nodes(data=True) if d.get("type") == node_type]

    def walkable_view(self) -> nx.Graph:
        """Read-only subgraph of traversable nodes."""
        if self.ok_node_types is None:
            return self.G
        return nx.subgraph_view(self.G, filter_node=self.is_ok)

    def location(self, node: Any) -> Coord:
        d = self.G.nodes[node]
        if "x" in d and "y" in d:
            return (d["x"], d["y"])
        raise RuntimeError(f"Node {node} has no x/y coords.")

    def node_at(self, coord: Coord) -> Any:
        """Node whose coordinate equals `coord`, or None."""
        key = (float(coord[0]), float(coord[1]))
        if key in self.G:
            return key
        for n, d in self.G.nodes(data=True):
            if (d.get("x"), d.get("y")) == key:
                return n
        return None

    def __len__(self):
        return self.G.number_of_nodes()
