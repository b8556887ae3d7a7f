import json
import random

import networkx as nx
import pytest

from clock import SimClock
from movement import MovementTemplate
from network_graph import WalkableMap
from path import SpeedSampler
from phase import TimeWindows
from routes import CIRCULAR, RouteDefinition

SPACING = 100.0


def grid_graph(side=3, node_type=1, origin=(0.0, 0.0)):
    """side x side grid keyed by (x, y) with unit weights of SPACING."""
    G = nx.Graph()
    ox, oy = origin
    for i in range(side):
        for j in range(side):
            c = (ox + i * SPACING, oy + j * SPACING)
            G.add_node(c, x=c[0], y=c[1], type=node_type)
    for i in range(side):
        for j in range(side):
            u = (ox + i * SPACING, oy + j * SPACING)
            for v in ((ox + (i + 1) * SPACING, u[1]), (u[0], oy + (j + 1) * SPACING)):
                if v in G:
                    G.add_edge(u, v, weight=SPACING)
    return G


def write_geojson(path, geometries):
    features = [{"type": "Feature", "properties": {}, "geometry": g} for g in geometries]
    path.write_text(json.dumps({"type": "FeatureCollection", "features": features}))
    return str(path)


@pytest.fixture
def grid_map():
    return WalkableMap(grid_graph())


@pytest.fixture
def split_map():
    """Two grids with no edge between them."""
    G = grid_graph()
    G.update(grid_graph(side=2, origin=(1000.0, 1000.0)))
    return WalkableMap(G)


@pytest.fixture
def two_routes():
    return [
        RouteDefinition([(0.0, 0.0), (200.0, 0.0), (200.0, 200.0)], CIRCULAR),
        RouteDefinition([(0.0, 200.0), (100.0, 100.0), (200.0, 100.0)], CIRCULAR),
    ]


@pytest.fixture
def lunch_windows():
    return TimeWindows(lunch_begin=100, lunch_end=200)


@pytest.fixture
def day_windows():
    return TimeWindows(lunch_begin=500, lunch_end=600, gate_begin=100, gate_end=900)


@pytest.fixture
def make_template(grid_map, two_routes, lunch_windows):
    def _make(walkable_map=None, routes=None, windows=None, **kwargs):
        rng = kwargs.pop("rng", random.Random(7))
        kwargs.setdefault("speed_sampler", SpeedSampler(1.0, 1.0, rng))
        kwargs.setdefault("clock", SimClock())
        return MovementTemplate(
            walkable_map or grid_map,
            routes or two_routes,
            windows or lunch_windows,
            rng=rng,
            **kwargs,
        )
    return _make
