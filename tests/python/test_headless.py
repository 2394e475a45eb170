import csv
import json

import pytest

from flocksim.headless import run_headless


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_basic_log_header(tmp_path):
    log_path = tmp_path / "basic.csv"
    run_headless(steps=2, seed=1, log_path=log_path, deterministic_log=True, log_format="basic")
    rows = _read_csv(log_path)
    assert len(rows) == 3
    assert rows[0] == [
        "tick",
        "population",
        "predators",
        "neighbor_checks",
        "avg_speed",
        "tick_ms",
    ]


def test_headless_detailed_log_header_and_ratios(tmp_path):
    log_path = tmp_path / "detailed.csv"
    run_headless(steps=3, seed=2, log_path=log_path, deterministic_log=True, log_format="detailed")
    rows = _read_csv(log_path)
    assert len(rows) == 4
    header = rows[0]
    assert header == [
        "tick",
        "population",
        "predators",
        "neighbor_checks",
        "avg_speed",
        "tick_ms",
        "max_speed",
        "outside_boundary",
        "neighbor_checks_per_agent",
        "tick_ms_per_agent",
        "occupied_cells",
        "avg_agents_per_cell",
        "max_cell_occupancy",
        "population_density",
    ]

    first_row = rows[1]
    idx = {name: i for i, name in enumerate(header)}
    population = int(first_row[idx["population"]])
    neighbor_checks = int(first_row[idx["neighbor_checks"]])
    occupied_cells = int(first_row[idx["occupied_cells"]])

    assert population == 84
    assert int(first_row[idx["predators"]]) == 4
    assert float(first_row[idx["tick_ms"]]) == 0.0
    assert float(first_row[idx["neighbor_checks_per_agent"]]) == pytest.approx(neighbor_checks / population, abs=1e-4)
    flock = population - int(first_row[idx["predators"]])
    assert float(first_row[idx["avg_agents_per_cell"]]) == pytest.approx(flock / occupied_cells, abs=1e-4)
    assert float(first_row[idx["max_speed"]]) <= 150.0 + 1e-3


def test_headless_is_deterministic_for_a_seed(tmp_path):
    first = tmp_path / "first.csv"
    second = tmp_path / "second.csv"
    run_headless(steps=5, seed=9, log_path=first, deterministic_log=True)
    run_headless(steps=5, seed=9, log_path=second, deterministic_log=True)
    assert first.read_text() == second.read_text()


def test_headless_summary_output(tmp_path):
    log_path = tmp_path / "summary.csv"
    summary_path = tmp_path / "summary.json"
    run_headless(
        steps=4,
        seed=3,
        log_path=log_path,
        deterministic_log=True,
        log_format="basic",
        summary_path=summary_path,
        summary_window=2,
    )
    payload = json.loads(summary_path.read_text())
    assert payload["steps"] == 4
    assert payload["seed"] == 3
    assert payload["log_format"] == "basic"
    assert "tick_ms" in payload
    assert "neighbor_checks" in payload
    assert payload["tail_window"]["window"] == 2


def test_headless_rejects_unknown_log_format(tmp_path):
    with pytest.raises(ValueError):
        run_headless(steps=1, seed=1, log_path=tmp_path / "x.csv", log_format="verbose")


def test_headless_cell_occupancy_counts_flock_only(tmp_path):
    config_path = tmp_path / "lone.yaml"
    config_path.write_text("initial_population: 1\npredator_count: 3\n")
    log_path = tmp_path / "lone.csv"
    run_headless(steps=2, seed=4, log_path=log_path, deterministic_log=True, config_path=config_path)
    rows = _read_csv(log_path)
    idx = {name: i for i, name in enumerate(rows[0])}
    for row in rows[1:]:
        assert int(row[idx["population"]]) == 4
        assert int(row[idx["occupied_cells"]]) == 1
        assert int(row[idx["max_cell_occupancy"]]) == 1
        assert float(row[idx["avg_agents_per_cell"]]) == pytest.approx(1.0)


def test_headless_predators_only_reports_empty_grid(tmp_path):
    config_path = tmp_path / "predators.yaml"
    config_path.write_text("initial_population: 0\npredator_count: 2\n")
    log_path = tmp_path / "predators.csv"
    run_headless(steps=1, seed=4, log_path=log_path, deterministic_log=True, config_path=config_path)
    header, row = _read_csv(log_path)
    idx = {name: i for i, name in enumerate(header)}
    assert int(row[idx["occupied_cells"]]) == 0
    assert int(row[idx["max_cell_occupancy"]]) == 0
