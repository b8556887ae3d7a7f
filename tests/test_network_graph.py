import networkx as nx
import pandas as pd
import pytest

from conftest import write_geojson
from convert import BUILDING_LINK, convert_geojson_to_graph, convert_graph_to_csv
import network_graph
from network_graph import WalkableMap
from settings import Settings, SettingsError


@pytest.fixture
def roads_file(tmp_path):
    return write_geojson(tmp_path / "roads.geojson", [
        {"type": "LineString", "coordinates": [[0, 0], [100, 0], [200, 0]]},
        {"type": "LineString", "coordinates": [[100, 0], [100, 100]]},
    ])


def test_roads_become_weighted_edges(roads_file):
    G = convert_geojson_to_graph(roads_file, node_type=1)
    assert set(G.nodes) == {(0.0, 0.0), (100.0, 0.0), (200.0, 0.0), (100.0, 100.0)}
    assert G[(0.0, 0.0)][(100.0, 0.0)]["weight"] == pytest.approx(100.0)
    assert all(d["type"] == 1 for _, d in G.nodes(data=True))


def test_buildings_link_to_nearest_node(tmp_path, roads_file):
    G = convert_geojson_to_graph(roads_file, node_type=1)
    buildings = write_geojson(tmp_path / "buildings.geojson", [
        {"type": "Polygon", "coordinates": [[[190, 80], [210, 80], [210, 100], [190, 100], [190, 80]]]},
    ])
    convert_geojson_to_graph(buildings, node_type=2, G=G)

    centroid = (200.0, 90.0)
    assert G.nodes[centroid]["type"] == 2
    assert G.nodes[centroid]["building"] is True
    neighbours = list(G.neighbors(centroid))
    assert neighbours == [(200.0, 0.0)]
    assert G[centroid][neighbours[0]]["road_type"] == BUILDING_LINK


def test_graph_exports_to_csv(tmp_path, roads_file):
    G = convert_geojson_to_graph(roads_file)
    nodes_path, edges_path = tmp_path / "nodes.csv", tmp_path / "edges.csv"
    convert_graph_to_csv(G, str(nodes_path), str(edges_path))
    assert len(pd.read_csv(nodes_path)) == 4
    assert len(pd.read_csv(edges_path)) == 3


def test_map_from_settings(tmp_path, roads_file):
    write_geojson(tmp_path / "shops.geojson", [{"type": "Point", "coordinates": [0, 50]}])
    settings = Settings({
        "MapBasedMovement": {
            "nrofMapFiles": 2,
            "mapFile1": "roads.geojson",
            "mapFile2": "shops.geojson",
        },
        "Group": {"okMaps": "1"},
    }, base_dir=str(tmp_path))

    walkable = WalkableMap.from_settings(settings, settings.for_group("Group"))
    assert len(walkable) == 5
    assert walkable.nodes_of_type(2) == [(0.0, 50.0)]
    assert (0.0, 50.0) not in walkable.ok_nodes()
    assert walkable.location((100.0, 100.0)) == (100.0, 100.0)
    assert walkable.node_at((100, 100)) == (100.0, 100.0)
    assert walkable.node_at((1, 1)) is None


def test_ok_maps_must_exist(tmp_path, roads_file):
    settings = Settings({
        "MapBasedMovement": {"nrofMapFiles": 1, "mapFile1": "roads.geojson"},
        "Group": {"okMaps": "1, 4"},
    }, base_dir=str(tmp_path))
    with pytest.raises(SettingsError):
        WalkableMap.from_settings(settings, settings.for_group("Group"))


def test_osm_center_downloads_projected_network(monkeypatch):
    calls = {}

    def graph_from_point(center, dist, network_type):
        calls["point"] = (center, dist, network_type)
        raw = nx.MultiDiGraph()
        raw.add_node(1, x=0.0, y=0.0)
        raw.add_node(2, x=100.0, y=0.0)
        raw.add_node(3, x=100.0, y=50.0)
        raw.add_edge(1, 2, length=100.0, highway="footway")
        raw.add_edge(2, 1, length=100.0, highway="footway")
        raw.add_edge(2, 3, length=50.0, highway="path")
        return raw

    def project_graph(raw, to_crs):
        calls["crs"] = to_crs
        return raw

    monkeypatch.setattr(network_graph.ox, "graph_from_point", graph_from_point)
    monkeypatch.setattr(network_graph.ox, "project_graph", project_graph)

    settings = Settings({
        "MapBasedMovement": {"osmCenter": "48.14, 11.56", "osmDist": 500, "mapCrs": "EPSG:32632"},
        "Group": {"okMaps": "1"},
    })
    walkable = WalkableMap.from_settings(settings, settings.for_group("Group"))

    assert calls["point"] == ((48.14, 11.56), 500.0, "walk")
    assert calls["crs"] == "EPSG:32632"
    assert walkable.crs == "EPSG:32632"
    assert len(walkable) == 3
    assert walkable.G[(0.0, 0.0)][(100.0, 0.0)]["weight"] == 100.0
    assert walkable.G[(100.0, 0.0)][(100.0, 50.0)]["road_type"] == "path"
    assert walkable.ok_node_types == {1}
