import argparse
import logging
from pathlib import Path

from convert import convert_graph_to_csv
from movement import MovementTemplate
from settings import load_settings
from simulate import MobilitySim

SCENARIO_SECTION = "Scenario"


def main():
    ap = argparse.ArgumentParser(description="Run daily-schedule walkers over a map.")
    ap.add_argument("--settings", default="config/tum_settings.jsonc")
    ap.add_argument("--group", default="Group1", help="node group section to use")
    ap.add_argument("--hosts", type=int, default=None, help="number of agents (Scenario.nrofHosts)")
    ap.add_argument("--end-time", type=float, default=None, help="seconds (Scenario.endTime)")
    ap.add_argument("--step", type=float, default=None, help="seconds (Scenario.updateInterval)")
    ap.add_argument("--out", default="output_files/agent_positions.csv")
    ap.add_argument("--export-graph", action="store_true",
                    help="also write nodes.csv / edges.csv of the walkable map")
    ap.add_argument("--log-level", default="INFO")
    args = ap.parse_args()

    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    settings = load_settings(args.settings)
    scenario = settings.section(SCENARIO_SECTION)
    hosts = args.hosts if args.hosts is not None else scenario.get_int("nrofHosts", 10)
    end_time = args.end_time if args.end_time is not None else scenario.get_float("endTime", 86400)
    step = args.step if args.step is not None else scenario.get_float("updateInterval", 1.0)

    template = MovementTemplate.from_settings(settings, args.group)
    if args.export_graph:
        convert_graph_to_csv(template.map.G)

    sim = MobilitySim(template, time_step=step)
    sim.spawn_agents(hosts)
    sim.run(end_time)

    Path(args.out).parent.mkdir(parents=True, exist_ok=True)
    # node coordinates are in the map CRS; None means they are exported as-is
    sim.export_records_to_csv(args.out, crs=template.map.crs)
    print("Done.")


if __name__ == "__main__":
    main()
