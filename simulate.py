# simulate.py
import logging
import math
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import geopandas as gpd
import pandas as pd
from shapely.geometry import Point

from agent import MobileAgent
from movement import MovementTemplate
from path import Path

logger = logging.getLogger(__name__)

START_TIME = datetime(2025, 10, 7, 0, 0, 0)  # simulated t=0 for exported timestamps


class MobilitySim:
    """
    Minimal scheduler: each agent asks for its next path once it has had
    time to walk the previous one (path length / speed).
    """

    def __init__(self, template: MovementTemplate, time_step: float = 1.0,
                 start_time: datetime = START_TIME):
        self.template = template
        self.clock = template.clock
        self.dt = float(time_step)
        self.start_time = start_time

        self.agents: List[MobileAgent] = []
        self.ready_at: Dict[int, float] = {}
        self.paths_requested = 0

        # For output recording
        self.records: List[Dict] = []

    def spawn_agents(self, n_agents: int) -> List[MobileAgent]:
        for _ in range(n_agents):
            agent = self.template.spawn()
            x, y = agent.get_initial_location()
            self.agents.append(agent)
            self.ready_at[agent.ordinal] = self.clock.get_time()
            self._record(agent, self.clock.get_time(), x, y, "initial")
        return self.agents

    def step(self):
        """Hand out new paths to every agent that has finished walking."""
        t = self.clock.get_time()
        for agent in self.agents:
            if t < self.ready_at[agent.ordinal]:
                continue
            phase = agent.current_phase()
            path = agent.get_path()
            self.paths_requested += 1
            self._record_path(agent, t, path, phase.value)
            # a zero-length path still takes one step so the agent can't spin
            self.ready_at[agent.ordinal] = t + max(path.duration(), self.dt)

    def run(self, end_time: float, verbose: bool = True):
        steps = 0
        while self.clock.get_time() <= end_time:
            self.step()
            self.clock.advance(self.dt)
            steps += 1
            if verbose and steps % max(1, int(3600 / self.dt)) == 0:
                print(f"time={self.clock.get_time():.0f}s  paths={self.paths_requested}")
        if verbose:
            print(f"Simulation finished at t={self.clock.get_time():.1f}s: "
                  f"{self.paths_requested} paths for {len(self.agents)} agents")

    # -----------------------
    # Recording / Exporting
    # -----------------------
    def _record(self, agent: MobileAgent, t: float, x: float, y: float, phase: str):
        self.records.append(
            {
                "agent_id": agent.ordinal,
                "time": float(t),
                "timestamp": (self.start_time + timedelta(seconds=t)).isoformat(),
                "x_proj": float(x),
                "y_proj": float(y),
                "phase": phase,
            }
        )

    def _record_path(self, agent: MobileAgent, t: float, path: Path, phase: str):
        # one record per waypoint at the time the agent would reach it
        elapsed = 0.0
        prev = None
        for wp in path.waypoints:
            if prev is not None and path.speed > 0:
                elapsed += math.hypot(wp[0] - prev[0], wp[1] - prev[1]) / path.speed
            self._record(agent, t + elapsed, wp[0], wp[1], phase)
            prev = wp

    def export_records_to_csv(self, path="agent_positions.csv", crs: Optional[str] = None):
        """
        Export recorded waypoints to CSV. With `crs` given, projected
        coordinates are converted to lon/lat as well.
        """
        df = pd.DataFrame(self.records)
        if df.empty:
            logger.warning("No records to export.")
            return df
        df = df.sort_values(["agent_id", "time"], kind="stable")
        columns = ["agent_id", "timestamp", "phase", "x_proj", "y_proj"]
        if crs is not None:
            gdf = gpd.GeoDataFrame(
                df,
                geometry=[Point(xy) for xy in zip(df["x_proj"], df["y_proj"])],
                crs=crs,
            ).to_crs("EPSG:4326")
            df["lon"] = gdf.geometry.x
            df["lat"] = gdf.geometry.y
            columns += ["lon", "lat"]
        out = df[columns]
        out.to_csv(path, index=False)
        logger.info("Exported %d records to %s", len(df), path)
        return df
