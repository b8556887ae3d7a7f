import logging
from typing import Any, List, Optional

import geopandas as gpd
from shapely.geometry import LineString, MultiLineString, MultiPoint, Point

from network_graph import WalkableMap
from settings import SettingsError

logger = logging.getLogger(__name__)

# route types
CIRCULAR = 1
PINGPONG = 2
ROUTE_TYPES = (CIRCULAR, PINGPONG)


class RouteDefinition:
    """
    Ordered stops (graph node keys) plus a route type and a stop cursor.

    The stop list is never modified after loading; `replicate()` hands out a
    copy that shares it but keeps its own cursor.
    """

    def __init__(self, stops: List[Any], route_type: int = CIRCULAR):
        if route_type not in ROUTE_TYPES:
            raise SettingsError(f"Unknown route type {route_type}")
        if not stops:
            raise SettingsError("Route must have at least one stop")
        self.stops = stops
        self.type = route_type
        self.index = 0
        self.direction = 1

    def replicate(self) -> "RouteDefinition":
        clone = RouteDefinition(self.stops, self.type)
        clone.index = self.index
        clone.direction = self.direction
        return clone

    @property
    def nrof_stops(self) -> int:
        return len(self.stops)

    def set_next_index(self, index: int):
        if index < 0 or index > len(self.stops):
            raise ValueError(f"Route index {index} out of range for {len(self.stops)} stops")
        self.index = index % len(self.stops)

    def next_stop(self) -> Any:
        """Return the stop at the cursor and advance it."""
        nxt = self.stops[self.index]
        n = len(self.stops)
        if n == 1:
            return nxt

        if self.type == CIRCULAR:
            self.index = (self.index + 1) % n
        else:
            self.index += self.direction
            if self.index == n or self.index == -1:
                self.direction = -self.direction
                self.index += 2 * self.direction
        return nxt

    def __repr__(self):
        kind = "circular" if self.type == CIRCULAR else "ping-pong"
        return f"RouteDefinition({kind}, {len(self.stops)} stops, next={self.index})"


def _feature_coords(geom) -> List[tuple]:
    if isinstance(geom, (LineString, Point)):
        return [tuple(c[:2]) for c in geom.coords]
    if isinstance(geom, (MultiLineString, MultiPoint)):
        coords = []
        for part in geom.geoms:
            coords.extend(tuple(c[:2]) for c in part.coords)
        return coords
    return []


def read_routes(file_path: str, route_type: int, walkable_map: WalkableMap,
                crs: Optional[str] = None) -> List[RouteDefinition]:
    """
    Read routes from a vector file: every line/multipoint feature is one route
    whose vertices are its stops. Each vertex must be a node of the map.
    """
    gdf = gpd.read_file(file_path)
    if crs is not None:
        gdf = gdf.to_crs(crs)

    routes = []
    for i, geom in enumerate(gdf.geometry):
        coords = _feature_coords(geom)
        if not coords:
            continue
        stops = []
        for c in coords:
            node = walkable_map.node_at(c)
            if node is None:
                raise SettingsError(
                    f"Route {i} in {file_path} contains coordinate {c} that is not a map node"
                )
            stops.append(node)
        routes.append(RouteDefinition(stops, route_type))

    if not routes:
        raise SettingsError(f"No routes found in {file_path}")
    logger.info("Read %d route(s) from %s", len(routes), file_path)
    return routes


def read_stop_nodes(file_path: str, walkable_map: WalkableMap,
                    node_type: Optional[int] = None, crs: Optional[str] = None) -> List[Any]:
    """All stops of every route in a file, in file order, optionally of one node type."""
    nodes = [s for r in read_routes(file_path, CIRCULAR, walkable_map, crs) for s in r.stops]
    if node_type is not None:
        nodes = [n for n in nodes if walkable_map.G.nodes[n].get("type") == node_type]
        if not nodes:
            raise SettingsError(f"No nodes of type {node_type} in {file_path}")
    return nodes
