"""
Movement template: builds the shared route/map state for a node group once
and spawns individual walkers from it.

Agents follow their daily route outside the behavioural windows, visit a
point of interest at lunch and, when gate times are configured, walk from
the entry gate to their office in the morning, back to it after lunch and
out through their gate at the end of the day.
"""
import logging
import random
from typing import Any, List, Optional, Sequence

from agent import MobileAgent
from clock import SimClock
from network_graph import WalkableMap
from path import DEFAULT_SPEED, SpeedSampler
from pathfinder import DijkstraPathFinder
from phase import TimeWindows
from poi import PointsOfInterest
from routes import RouteDefinition, read_routes, read_stop_nodes
from settings import Settings, SettingsError

logger = logging.getLogger(__name__)

# per group settings
ROUTE_FILE_S = "routeFile"
ROUTE_TYPE_S = "routeType"
# stop to start from (counting from 0); negative or missing means random
ROUTE_FIRST_STOP_S = "routeFirstStop"
CLOCK1_S = "clock_begin"
CLOCK2_S = "clock_end"
GATE1_S = "wGate_begin"
GATE2_S = "wGate_end"
NODE_TYPE_S = "nodeType"
OFFICE_ROUTE_FILE_S = "officeRouteFile"
ENTRY_ROUTE_FILE_S = "entryRouteFile"
# all agents walk one shared route object instead of private copies
SHARE_ROUTES_S = "shareRoutes"

RNG_SECTION = "MovementModel"
RNG_SEED_S = "rngSeed"


def read_time_windows(group: Settings) -> TimeWindows:
    lunch_begin = group.get_int(CLOCK1_S)
    lunch_end = group.get_int(CLOCK2_S)

    has_gates = [group.contains(GATE1_S), group.contains(GATE2_S)]
    if any(has_gates) and not all(has_gates):
        raise SettingsError(f"Both {GATE1_S} and {GATE2_S} are needed for gate times")
    if all(has_gates):
        return TimeWindows(lunch_begin, lunch_end, group.get_int(GATE1_S), group.get_int(GATE2_S))
    return TimeWindows(lunch_begin, lunch_end)


class MovementTemplate:
    """
    Prototype for a group of walkers.

    Holds the routes, the map and the samplers every agent shares, plus the
    round-robin route index and spawn counter that `spawn()` advances.
    """

    def __init__(self, walkable_map: WalkableMap, routes: Sequence[RouteDefinition],
                 windows: TimeWindows, first_stop_index: int = -1,
                 pois: Optional[PointsOfInterest] = None,
                 speed_sampler: Optional[SpeedSampler] = None,
                 clock: Optional[SimClock] = None,
                 rng: Optional[random.Random] = None,
                 office_nodes: Optional[List[Any]] = None,
                 gate_nodes: Optional[List[Any]] = None,
                 share_routes: bool = False):
        if not routes:
            raise SettingsError("At least one route is needed")
        if windows.lunch_begin > windows.lunch_end:
            raise SettingsError(f"{CLOCK1_S} is after {CLOCK2_S}")
        if windows.extended:
            if not windows.gate_begin <= windows.lunch_begin <= windows.lunch_end <= windows.gate_end:
                raise SettingsError("Gate times must enclose the lunch window")
            if not office_nodes or not gate_nodes:
                raise SettingsError("Gate times need both office and entry routes")

        for i, route in enumerate(routes):
            if first_stop_index >= route.nrof_stops:
                raise SettingsError(
                    f"Too high first stop's index ({first_stop_index}) for route {i} "
                    f"with only {route.nrof_stops} stops"
                )

        self.rng = rng or random.Random()
        self.map = walkable_map
        self.routes = list(routes)
        self.windows = windows
        self.first_stop_index = first_stop_index
        self.path_finder = DijkstraPathFinder(walkable_map)
        self.pois = pois or PointsOfInterest(walkable_map, rng=self.rng)
        self.speed_sampler = speed_sampler or SpeedSampler(*DEFAULT_SPEED, rng=self.rng)
        self.clock = clock or SimClock()
        self.office_nodes = list(office_nodes or [])
        self.gate_nodes = list(gate_nodes or [])
        self.share_routes = share_routes

        self.next_route_index = 0
        self.spawned = 0

        if share_routes:
            logger.warning("Routes are shared between agents: every agent's stop "
                           "advances the same cursor")

    @classmethod
    def from_settings(cls, settings: Settings, group_name: str = "Group",
                      walkable_map: Optional[WalkableMap] = None,
                      clock: Optional[SimClock] = None,
                      rng: Optional[random.Random] = None) -> "MovementTemplate":
        group = settings.for_group(group_name)

        if rng is None:
            rng_section = settings.section(RNG_SECTION)
            seed = rng_section.get_int(RNG_SEED_S) if rng_section.contains(RNG_SEED_S) else None
            rng = random.Random(seed)

        windows = read_time_windows(group)
        if walkable_map is None:
            walkable_map = WalkableMap.from_settings(settings, group)

        # route, office and entry files are matched in the map's CRS
        crs = walkable_map.crs
        routes = read_routes(group.get_path(ROUTE_FILE_S), group.get_int(ROUTE_TYPE_S),
                             walkable_map, crs)

        office_nodes = gate_nodes = None
        if windows.extended:
            node_type = group.get_int(NODE_TYPE_S) if group.contains(NODE_TYPE_S) else None
            office_nodes = read_stop_nodes(group.get_path(OFFICE_ROUTE_FILE_S), walkable_map,
                                           node_type, crs)
            gate_nodes = read_stop_nodes(group.get_path(ENTRY_ROUTE_FILE_S), walkable_map,
                                         node_type, crs)

        first_stop = group.get_int(ROUTE_FIRST_STOP_S) if group.contains(ROUTE_FIRST_STOP_S) else -1

        template = cls(
            walkable_map,
            routes,
            windows,
            first_stop_index=first_stop,
            pois=PointsOfInterest.from_settings(settings, group, walkable_map, rng),
            speed_sampler=SpeedSampler.from_settings(group, rng),
            clock=clock,
            rng=rng,
            office_nodes=office_nodes,
            gate_nodes=gate_nodes,
            share_routes=group.get_boolean(SHARE_ROUTES_S, False),
        )
        logger.info("Movement template for %s: %d route(s), windows %s",
                    group_name, len(routes), windows)
        return template

    def spawn(self) -> MobileAgent:
        """New agent with the next route in round-robin order."""
        shared = self.routes[self.next_route_index]
        route = shared if self.share_routes else shared.replicate()

        if self.first_stop_index < 0:
            # random start, the last stop is never picked
            route.set_next_index(self.rng.randrange(max(route.nrof_stops - 1, 1)))
        else:
            route.set_next_index(self.first_stop_index)

        ordinal = self.spawned
        office = self.office_nodes[ordinal % len(self.office_nodes)] if self.office_nodes else None
        gate = self.gate_nodes[ordinal % len(self.gate_nodes)] if self.gate_nodes else None

        agent = MobileAgent(self, route, ordinal, office_node=office, gate_node=gate)

        self.next_route_index = (self.next_route_index + 1) % len(self.routes)
        self.spawned += 1
        logger.debug("Spawned agent %d on route %r", ordinal, route)
        return agent
