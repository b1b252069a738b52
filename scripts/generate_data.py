"""
Synthetic alert generation and loading script for recordkit.

Implements deterministic pseudo-random alert generation, CSV emission, and
Postgres COPY loading into the ``alerts`` table.
"""

from __future__ import annotations

import csv
import hashlib
import random
import sys
import tempfile
import time
from pathlib import Path

import psycopg
import typer

from recordkit.domain.alert import Alert
from recordkit.infrastructure.db_factory import build_dsn

app = typer.Typer(help="Generate synthetic alerts and load into Postgres (CSV + COPY).")

# Serialized column order; the primary key is generated by the database.
COLUMNS = list(Alert.schema)


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _generate_alert(rng: random.Random, now: int) -> Alert:
    search_id = rng.randint(1, 50)
    host = f"host-{rng.randint(1, 500)}"
    content = {"host": host, "message": rng.choice(["disk full", "timeout", "5xx spike", "login failure"])}
    created = now - rng.randint(0, 7 * 24 * 3600)
    return Alert(
        {
            "alert_date": created,
            "create_date": created,
            "update_date": created,
            "search_id": search_id,
            "state": rng.choice([0, 0, 1, 2]),
            "resolution": rng.choice([0, 1, 2]),
            "escalated": rng.random() < 0.1,
            "content": content,
            "content_hash": hashlib.sha1(f"{search_id}:{host}".encode()).hexdigest(),
            "renderer_data": {},
        }
    )


def _generate_rows_csv(csv_path: Path, rows: int, batch_size: int, seed: int) -> None:
    rng = random.Random(seed)
    now = int(time.time())

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(COLUMNS)

        buffer: list[list[object]] = []
        for _ in range(rows):
            values = _generate_alert(rng, now).serialize()
            buffer.append([values[column] for column in COLUMNS])
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)


def _copy_into_db(dsn: str, csv_path: Path) -> int:
    columns = ", ".join(COLUMNS)
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            with cur.copy(
                f"COPY public.alerts ({columns}) FROM STDIN WITH (FORMAT csv, HEADER TRUE)"
            ) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            conn.commit()
    return 0


@app.command()
def main(
    rows: int = typer.Option(
        10_000,
        "--rows",
        "-r",
        help="Number of alerts to generate.",
    ),
    batch_size: int = typer.Option(
        1_000,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate synthetic alerts and optionally load them into Postgres using COPY.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="recordkit_csv_"))
        csv_path = tmpdir / "alerts.csv"

    typer.echo(f"Generating {rows:,} alerts -> {csv_path} (batch={batch_size}, seed={seed})")
    _generate_rows_csv(csv_path, rows=rows, batch_size=batch_size, seed=seed)
    typer.echo(f"CSV generation completed in {time.perf_counter() - start:.2f}s")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    typer.echo("Loading CSV into Postgres via COPY...")
    _copy_into_db(_build_dsn(dsn), csv_path)
    typer.echo(f"Load completed in {time.perf_counter() - load_start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
