from unittest.mock import MagicMock

import pytest

from path import SpeedSampler
from pathfinder import MapConnectivityError
from phase import Phase
from routes import RouteDefinition


@pytest.fixture
def lunch_spot():
    pois = MagicMock()
    pois.select_destination.return_value = (100.0, 100.0)
    return pois


def test_initial_location_is_first_stop(make_template):
    agent = make_template(first_stop_index=1).spawn()
    assert agent.get_last_location() is None
    assert agent.get_initial_location() == (200.0, 0.0)
    assert agent.get_initial_location() == (200.0, 0.0)
    assert agent.get_last_location() == (200.0, 0.0)


def test_static_path_follows_route(make_template):
    template = make_template(first_stop_index=0)
    agent = template.spawn()
    agent.get_initial_location()
    template.clock.set_time(50)

    path = agent.get_path()
    assert path.waypoints == [(0.0, 0.0), (100.0, 0.0), (200.0, 0.0)]
    assert path.speed == 1.0
    assert agent.position == (200.0, 0.0)

    path = agent.get_path()
    assert path.waypoints == [(200.0, 0.0), (200.0, 100.0), (200.0, 200.0)]
    assert agent.get_last_location() == (200.0, 200.0)


def test_static_path_advances_cursor_once_and_never_repeats(make_template):
    template = make_template(first_stop_index=0)
    agent = template.spawn()
    agent.get_initial_location()

    previous = agent.position
    for _ in range(7):
        index_before = agent.route.index
        agent.get_path()
        assert agent.route.index == (index_before + 1) % agent.route.nrof_stops
        assert agent.position != previous
        previous = agent.position


def test_first_path_without_initial_location_goes_to_first_stop(make_template):
    agent = make_template(first_stop_index=2).spawn()
    path = agent.get_path()
    assert agent.position == (200.0, 200.0)
    assert path.waypoints == [(200.0, 200.0)]


def test_lunch_destination_comes_from_pool(make_template, lunch_spot):
    template = make_template(first_stop_index=0, pois=lunch_spot)
    agent = template.spawn()
    agent.get_initial_location()
    index_before = agent.route.index
    template.clock.set_time(150)

    path = agent.get_path()
    assert lunch_spot.select_destination.call_count == 1
    assert path.waypoints[-1] == (100.0, 100.0)
    assert agent.position == (100.0, 100.0)
    assert agent.route.index == index_before


def test_day_schedule_destinations(make_template, day_windows, lunch_spot):
    template = make_template(
        windows=day_windows,
        first_stop_index=0,
        pois=lunch_spot,
        office_nodes=[(0.0, 200.0)],
        gate_nodes=[(200.0, 0.0)],
    )
    agent = template.spawn()
    agent.get_initial_location()

    schedule = [
        (50, Phase.STATIC, (200.0, 0.0)),
        (300, Phase.MORNING_COMMUTE, (0.0, 200.0)),
        (550, Phase.LUNCH, (100.0, 100.0)),
        (700, Phase.EVENING_COMMUTE, (0.0, 200.0)),
        (950, Phase.EXIT, (200.0, 0.0)),
    ]
    for t, phase, destination in schedule:
        template.clock.set_time(t)
        assert agent.current_phase() == phase
        path = agent.get_path()
        assert path.waypoints[-1] == destination
        assert agent.position == destination


def test_commute_does_not_touch_route_cursor(make_template, day_windows):
    template = make_template(windows=day_windows, office_nodes=[(0.0, 200.0)],
                             gate_nodes=[(200.0, 0.0)])
    agent = template.spawn()
    agent.get_initial_location()
    index_before = agent.route.index
    template.clock.set_time(300)
    agent.get_path()
    template.clock.set_time(950)
    agent.get_path()
    assert agent.route.index == index_before


def test_unreachable_destination_is_fatal(make_template, split_map):
    routes = [RouteDefinition([(0.0, 0.0), (1000.0, 1000.0)])]
    template = make_template(walkable_map=split_map, routes=routes, first_stop_index=0)
    agent = template.spawn()
    agent.get_initial_location()

    with pytest.raises(MapConnectivityError) as excinfo:
        agent.get_path()
    assert "(0.0, 0.0)" in str(excinfo.value)
    assert "(1000.0, 1000.0)" in str(excinfo.value)


def test_connected_map_always_gives_waypoints(make_template):
    template = make_template(speed_sampler=SpeedSampler(0.5, 1.5))
    agents = [template.spawn() for _ in range(4)]
    for agent in agents:
        agent.get_initial_location()
    for t in range(0, 300, 25):
        template.clock.set_time(t)
        for agent in agents:
            path = agent.get_path()
            assert len(path) > 0
            assert 0.5 <= path.speed <= 1.5


def test_two_agents_through_lunch(make_template, lunch_spot):
    # two routes of three stops, lunch between 100 and 200
    template = make_template(pois=lunch_spot)
    agents = [template.spawn(), template.spawn()]
    for agent in agents:
        agent.get_initial_location()

    template.clock.set_time(50)
    for agent in agents:
        assert agent.current_phase() == Phase.STATIC
        agent.get_path()
        assert agent.position in agent.route.stops
    assert lunch_spot.select_destination.call_count == 0

    template.clock.set_time(150)
    for agent in agents:
        assert agent.current_phase() == Phase.LUNCH
        agent.get_path()
    assert lunch_spot.select_destination.call_count == 2
