"""Flask CLI commands: ``flask --app driver_attendance <command>``."""

from __future__ import annotations

import click
from flask import Flask

from driver_attendance.extensions import db
from driver_attendance.lookups import import_reference_csv


def register_commands(app: Flask) -> None:
    @app.cli.command("init-db")
    def init_db() -> None:
        """Create missing tables. Production databases use ``alembic upgrade head``."""
        db.create_all()
        click.echo("Tables created.")

    @app.cli.command("import-reference")
    @click.argument("csv_file", type=click.File("r", encoding="utf-8-sig"))
    @click.option("--replace", is_flag=True, help="Delete existing reference rows first.")
    def import_reference(csv_file, replace: bool) -> None:
        """Load drivers, helpers, vehicles, destinations and customers from CSV."""
        count = import_reference_csv(csv_file, replace=replace)
        click.echo(f"Imported {count} reference rows.")
