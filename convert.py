import json
import logging
from typing import Optional

import geopandas as gpd
import networkx as nx
import pandas as pd
from shapely.geometry import LineString, MultiLineString, Point, Polygon, MultiPolygon

logger = logging.getLogger(__name__)

ROAD_LINK = "road"
BUILDING_LINK = "building_link"


def _add_node(G: nx.Graph, coord, node_type: int, **attrs):
    # keep the type of the first map file that introduced the node
    if coord not in G:
        G.add_node(coord, x=coord[0], y=coord[1], type=node_type, **attrs)
    else:
        G.nodes[coord].update(attrs)


def _line_parts(geom):
    if isinstance(geom, LineString):
        return [geom]
    if isinstance(geom, MultiLineString):
        return list(geom.geoms)
    return []


def convert_geojson_to_graph(file_path: str, node_type: int = 1,
                             G: Optional[nx.Graph] = None,
                             crs: Optional[str] = None) -> nx.Graph:
    """
    Read a vector map file and add its features to a walkable graph.

    Nodes are (x, y) coordinate tuples with `x`, `y` and `type` attributes.
    - Line features become road edges weighted by their length.
    - Polygon features become building centroid nodes connected to the
      nearest node already in the graph.
    - Point features become standalone nodes linked to the nearest node.

    Parameters
    ----------
    file_path : str
        Any file geopandas can read (GeoJSON, shapefile, ...).
    node_type : int
        Type tag stored on the nodes introduced by this file.
    G : nx.Graph, optional
        Graph to extend; a new one is created if omitted.
    crs : str, optional
        Projected CRS to convert to before measuring distances.
    """
    gdf = gpd.read_file(file_path)
    if crs is not None:
        gdf = gdf.to_crs(crs)
    if G is None:
        G = nx.Graph()

    # ---- road edges ----
    for _, row in gdf.iterrows():
        for line in _line_parts(row.geometry):
            coords = [tuple(c[:2]) for c in line.coords]
            road_type = row.get("highway", ROAD_LINK)
            if pd.isna(road_type):
                road_type = ROAD_LINK
            for u, v in zip(coords[:-1], coords[1:]):
                if u == v:
                    continue
                _add_node(G, u, node_type)
                _add_node(G, v, node_type)
                G.add_edge(u, v, weight=Point(u).distance(Point(v)), road_type=road_type)

    # ---- buildings and standalone points ----
    road_nodes = list(G.nodes)
    for _, row in gdf.iterrows():
        geom = row.geometry
        if isinstance(geom, (Polygon, MultiPolygon)):
            anchor = geom.centroid
            attrs = {"building": True}
        elif isinstance(geom, Point):
            anchor = geom
            attrs = {}
        else:
            continue

        node = (anchor.x, anchor.y)
        _add_node(G, node, node_type, **attrs)
        candidates = [n for n in road_nodes if n != node]
        if not candidates:
            continue
        nearest = min(candidates, key=lambda n: anchor.distance(Point(n)))
        G.add_edge(node, nearest, weight=anchor.distance(Point(nearest)),
                   road_type=BUILDING_LINK)

    logger.info("Converted %s: %d nodes, %d edges so far",
                file_path, G.number_of_nodes(), G.number_of_edges())
    return G


def convert_graph_to_csv(G: nx.Graph, nodes_path: str = "nodes.csv",
                         edges_path: str = "edges.csv"):
    """
    Export graph nodes and edges to CSV files for Kepler.gl visualization.
    Edges carry their geometry as GeoJSON.
    """
    nodes_df = pd.DataFrame([
        {"x": n[0], "y": n[1], **attr} for n, attr in G.nodes(data=True)
    ])
    nodes_df.to_csv(nodes_path, index=False)

    edges_df = pd.DataFrame([
        {
            "geometry": json.dumps(LineString([u, v]).__geo_interface__),
            **attr
        }
        for u, v, attr in G.edges(data=True)
    ])
    edges_df.to_csv(edges_path, index=False)
    logger.info("Exported graph to %s and %s", nodes_path, edges_path)
