#!/usr/bin/env python3
"""Load pytest-benchmark JSON into DuckDB for comparing TRE builds.

Usage:
    uv run pytest tests/bench --benchmark-only --benchmark-json bench/raw/tre-0.8.0.json
    uv run scripts/bench_ingest.py [--db bench/tre_regex_bench.duckdb] [--notes "baseline"]

Every JSON file under the raw directory is one variant, named by its file
stem. Commit, machine and timestamp come from the metadata pytest-benchmark
writes into the file itself.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click
import duckdb

DB_DEFAULT = "bench/tre_regex_bench.duckdb"
RAW_DIR = "bench/raw"

PHASES = ("compile", "match", "approximate")

# pytest-benchmark reports seconds
NS_PER_S = 1_000_000_000

SCHEMA = """
CREATE TABLE IF NOT EXISTS results (
    variant     VARCHAR NOT NULL,
    phase       VARCHAR NOT NULL,
    scenario    VARCHAR NOT NULL,
    taken_at    VARCHAR,
    commit_id   VARCHAR,
    machine     VARCHAR,
    notes       VARCHAR,
    mean_ns     DOUBLE NOT NULL,
    median_ns   DOUBLE,
    stddev_ns   DOUBLE,
    rounds      BIGINT
);
"""

INSERT = "INSERT INTO results VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"


def split_name(name: str) -> tuple[str, str]:
    """``test_bench_approximate_scan[64]`` -> ("approximate", "scan[64]")."""
    rest = name.removeprefix("test_bench_")
    phase, _, scenario = rest.partition("_")
    if phase in PHASES and scenario:
        return phase, scenario
    return "match", rest


def rows_from_report(report: dict[str, Any], variant: str, notes: str | None) -> list[tuple]:
    machine = report.get("machine_info", {})
    host = f"{machine.get('node', '?')}/{machine.get('machine', '?')}"
    commit = report.get("commit_info", {}).get("id")
    taken_at = report.get("datetime")

    rows = []
    for bench in report["benchmarks"]:
        phase, scenario = split_name(bench["name"])
        stats = bench["stats"]
        rows.append((
            variant,
            phase,
            scenario,
            taken_at,
            commit,
            host,
            notes,
            stats["mean"] * NS_PER_S,
            stats.get("median", 0) * NS_PER_S,
            (stats.get("stddev") or 0) * NS_PER_S,
            stats.get("rounds"),
        ))
    return rows


@click.command()
@click.option("--db", default=DB_DEFAULT, help="DuckDB database path")
@click.option("--notes", default=None, help="Notes stored with every row")
@click.option("--raw-dir", default=RAW_DIR, help="Directory with pytest-benchmark JSON files")
def main(db: str, notes: str | None, raw_dir: str) -> None:
    """Ingest benchmark results into DuckDB."""
    reports = sorted(Path(raw_dir).glob("*.json"))
    if not reports:
        click.echo(f"No JSON files found in {raw_dir}", err=True)
        sys.exit(1)

    con = duckdb.connect(db)
    con.execute(SCHEMA)
    total = 0
    for path in reports:
        report = json.loads(path.read_text())
        if "benchmarks" not in report:
            click.echo(f"  Skipping {path.name}: not pytest-benchmark output")
            continue
        rows = rows_from_report(report, path.stem, notes)
        if rows:
            con.executemany(INSERT, rows)
        total += len(rows)
        click.echo(f"  {path.stem}: {len(rows)} results")
    con.close()
    click.echo(f"{total} results ingested into {db}")


if __name__ == "__main__":
    main()
