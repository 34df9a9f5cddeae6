"""Flask CLI commands for habitledger."""

from __future__ import annotations

import click

from .domain.errors import UnknownHabit


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("habitledger-init-db")
    def habitledger_init_db() -> None:
        """Create the database schema (idempotent)."""

        from .extensions import get_services
        from .infra.database import init_database

        init_database(get_services().engine)
        click.echo("Database schema ready.")

    @app.cli.command("habitledger-verify")
    @click.option("--habit-id", type=int, default=None, help="Check a single habit")
    def habitledger_verify(habit_id: int | None) -> None:
        """Report habits whose streak counters disagree with the ledger."""

        from .extensions import get_services

        services = get_services()
        ids = [habit_id] if habit_id is not None else [h.id for h in services.habits.list_all()]
        inconsistent = 0
        for hid in ids:
            try:
                problems = services.streaks.verify(hid)
            except UnknownHabit as exc:
                raise click.ClickException(str(exc)) from exc
            for problem in problems:
                click.echo(f"habit {hid}: {problem}")
            inconsistent += bool(problems)
        click.echo(f"Checked {len(ids)} habit(s); {inconsistent} inconsistent.")
        if inconsistent:
            raise SystemExit(1)

    @app.cli.command("habitledger-repair")
    @click.option("--habit-id", type=int, default=None, help="Repair a single habit")
    @click.option("--all", "repair_all", is_flag=True, default=False, help="Repair every habit")
    def habitledger_repair(habit_id: int | None, repair_all: bool) -> None:
        """Rebuild streak counters from the completion ledger."""

        from .extensions import get_services

        if habit_id is None and not repair_all:
            raise click.UsageError("Pass --habit-id or --all.")

        services = get_services()
        ids = [habit_id] if habit_id is not None else [h.id for h in services.habits.list_all()]
        for hid in ids:
            try:
                snapshot = services.streaks.repair(hid)
            except UnknownHabit as exc:
                raise click.ClickException(str(exc)) from exc
            click.echo(
                f"habit {hid}: current={snapshot.current_streak} longest={snapshot.longest_streak}"
            )
