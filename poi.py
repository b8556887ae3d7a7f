import logging
import random
from typing import Any, Dict, List, Optional, Sequence, Tuple

import geopandas as gpd

from network_graph import WalkableMap
from settings import Settings, SettingsError

logger = logging.getLogger(__name__)

POI_SECTION = "PointsOfInterest"
POI_FILE_S = "poiFile"
# per group: "pois": "poiIndex1, probability1, poiIndex2, probability2, ..."
POI_SELECT_S = "pois"


class PointsOfInterest:
    """
    Destination pool for unscheduled trips.

    With probability p_i the destination is a random node of POI list i;
    with the remaining probability it is any traversable map node.
    """

    def __init__(self, walkable_map: WalkableMap,
                 poi_lists: Optional[Sequence[Tuple[List[Any], float]]] = None,
                 rng: Optional[random.Random] = None):
        self.map = walkable_map
        self.rng = rng or random.Random()
        self.poi_lists = list(poi_lists or [])

        total = sum(p for _, p in self.poi_lists)
        if total > 1.0 + 1e-9:
            raise SettingsError(f"POI probabilities sum to {total:.3f} (> 1.0)")
        for nodes, _ in self.poi_lists:
            bad = [n for n in nodes if not walkable_map.is_ok(n)]
            if bad:
                raise SettingsError(f"POI node {bad[0]} is not of a traversable node type")

        self._ok_nodes = walkable_map.ok_nodes()
        if not self._ok_nodes:
            raise SettingsError("Map has no traversable nodes for destinations")

    @classmethod
    def from_settings(cls, settings: Settings, group: Settings, walkable_map: WalkableMap,
                      rng: Optional[random.Random] = None) -> "PointsOfInterest":
        if not group.contains(POI_SELECT_S):
            return cls(walkable_map, rng=rng)

        values = group.get_csv_floats(POI_SELECT_S)
        if len(values) % 2:
            raise SettingsError(f"{POI_SELECT_S} must hold index, probability pairs")

        section = settings.section(POI_SECTION)
        loaded: Dict[int, List[Any]] = {}
        poi_lists = []
        for index, prob in zip(values[0::2], values[1::2]):
            index = int(index)
            if index not in loaded:
                key = f"{POI_FILE_S}{index}"
                if not section.contains(key):
                    raise SettingsError(f"No {POI_SECTION}.{key} for POI index {index}")
                loaded[index] = read_poi_nodes(section.get_path(key), walkable_map,
                                               crs=walkable_map.crs)
            poi_lists.append((loaded[index], prob))
        return cls(walkable_map, poi_lists, rng)

    def select_destination(self) -> Any:
        r = self.rng.random()
        cumulative = 0.0
        for nodes, prob in self.poi_lists:
            cumulative += prob
            if r < cumulative and nodes:
                return self.rng.choice(nodes)
        return self.rng.choice(self._ok_nodes)


def read_poi_nodes(file_path: str, walkable_map: WalkableMap,
                   crs: Optional[str] = None) -> List[Any]:
    """Map nodes for every point (or vertex) in a vector file."""
    gdf = gpd.read_file(file_path)
    if crs is not None:
        gdf = gdf.to_crs(crs)
    nodes = []
    for geom in gdf.geometry:
        points = geom.geoms if hasattr(geom, "geoms") else [geom]
        for p in points:
            for c in p.coords:
                node = walkable_map.node_at(c)
                if node is None:
                    raise SettingsError(f"POI {tuple(c)} in {file_path} is not a map node")
                nodes.append(node)
    logger.info("Read %d POI node(s) from %s", len(nodes), file_path)
    return nodes
