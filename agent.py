import logging
from typing import TYPE_CHECKING, Any, Optional, Tuple

from path import Path
from pathfinder import MapConnectivityError
from phase import Phase
from routes import RouteDefinition

if TYPE_CHECKING:
    from movement import MovementTemplate

logger = logging.getLogger(__name__)


class MobileAgent:
    """
    One simulated walker.

    Shared collaborators (map, path finder, POIs, speed sampler, clock,
    time windows) are reached through the template; the route cursor,
    current node and the office/gate assignment belong to this agent.
    """

    def __init__(self, template: "MovementTemplate", route: RouteDefinition, ordinal: int,
                 office_node: Any = None, gate_node: Any = None):
        self.template = template
        self.route = route
        self.ordinal = ordinal
        self.office_node = office_node
        self.gate_node = gate_node
        self.position: Any = None  # graph node, set on first query

    # ---------- decision making ----------

    def current_phase(self, t: Optional[int] = None) -> Phase:
        if t is None:
            t = self.template.clock.get_int_time()
        return self.template.windows.classify(t)

    def resolve_destination(self, phase: Phase) -> Any:
        if phase == Phase.LUNCH:
            logger.debug("agent %d is going for lunch", self.ordinal)
            return self.template.pois.select_destination()
        if phase in (Phase.MORNING_COMMUTE, Phase.EVENING_COMMUTE):
            return self.office_node
        if phase == Phase.EXIT:
            return self.gate_node
        return self.route.next_stop()

    def get_path(self) -> Path:
        """Path from the current node to the destination for the current phase."""
        clock = self.template.clock.get_int_time()
        phase = self.current_phase(clock)
        logger.debug("t=%d agent=%d phase=%s", clock, self.ordinal, phase.value)

        destination = self.resolve_destination(phase)
        if destination is None:
            raise RuntimeError(
                f"Agent {self.ordinal} has no destination for phase {phase.value}"
            )
        return self.build_path(destination)

    def build_path(self, destination: Any) -> Path:
        if self.position is None:
            self.position = destination

        node_path = self.template.path_finder.get_shortest_path(self.position, destination)
        if not node_path:
            raise MapConnectivityError(
                f"No path from {self.position} to {destination}. "
                "The simulation map isn't fully connected"
            )

        p = Path(self.template.speed_sampler.generate_speed())
        for node in node_path:
            p.add_waypoint(self.template.map.location(node))

        self.position = destination
        return p

    # ---------- locations ----------

    def get_initial_location(self) -> Tuple[float, float]:
        """First stop of the route; fixes the starting node on first call."""
        if self.position is None:
            self.position = self.route.next_stop()
        return self.template.map.location(self.position)

    def get_last_location(self) -> Optional[Tuple[float, float]]:
        if self.position is None:
            return None
        return self.template.map.location(self.position)

    def get_stops(self):
        return self.route.stops

    # ---------- replication ----------

    def replicate(self) -> "MobileAgent":
        return self.template.spawn()

    def __repr__(self):
        return f"MobileAgent(ordinal={self.ordinal}, position={self.position})"
