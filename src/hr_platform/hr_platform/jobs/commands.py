from __future__ import annotations

from datetime import date
from typing import Optional

import click
from flask import Flask

from ..common.datetime_utils import parse_iso_date, today_local
from ..container import Container


def _parse_date_option(value: Optional[str]) -> date:
    if not value:
        return today_local()
    try:
        return parse_iso_date(value)
    except ValueError:
        raise click.BadParameter("expected YYYY-MM-DD", param_hint="--date")


def register(app: Flask, container: Container) -> None:
    """Scheduled batch jobs, exposed as ``flask <name>`` commands."""

    @app.cli.command("attendance:mark-absent")
    @click.option("--date", "date_", default=None, help="Date to mark (YYYY-MM-DD), defaults to today.")
    @click.pass_context
    def mark_absent(ctx: click.Context, date_: Optional[str]):
        """Mark absent/leave for employees with no attendance record."""
        work_date = _parse_date_option(date_)
        result = container.marking_service.mark_absent(work_date)
        if result.holiday:
            click.echo(f"{work_date.isoformat()} is a holiday. Skipping absent marking.")
            return
        s = result.summary()
        click.echo(
            f"{s['date']}: absent={s['marked_absent']} leave={s['marked_leave']} "
            f"weekend={s['weekend_skipped']} existing={s['already_recorded']} errors={s['errors']}"
        )
        if not result.ok:
            ctx.exit(1)

    @app.cli.command("leave:calculate-accrual")
    @click.option("--user", "user_id", type=int, default=None, help="Only this user id.")
    @click.option("--year", type=int, default=None, help="Year to calculate, defaults to the current year.")
    @click.pass_context
    def calculate_accrual(ctx: click.Context, user_id: Optional[int], year: Optional[int]):
        """Calculate attendance-based leave accrual."""
        result = container.accrual_service.run(user_id=user_id, year=year)
        click.echo(f"Calculating leave accrual for year {result.year}...")
        for change in result.changes:
            click.echo(f"  balance {change['balance_id']} (user {change['user_id']}): +{change['earned']} day(s)")
        click.echo(f"Processed {result.processed} leave balances.")
        if not result.ok:
            click.echo(f"{result.errors} errors occurred during processing.", err=True)
            ctx.exit(1)

    @app.cli.command("employees:deactivate-separated")
    @click.option("--dry-run", is_flag=True, help="List candidates without changing anything.")
    @click.pass_context
    def deactivate_separated(ctx: click.Context, dry_run: bool):
        """Deactivate employees whose closing date has passed."""
        result = container.lifecycle_service.deactivate_separated(today=today_local(), dry_run=dry_run)
        if not result.candidates:
            click.echo("No employees to deactivate.")
            return
        for c in result.candidates:
            click.echo(f"  {c['employee_code'] or c['id']}  {c['name']}  closing_date={c['closing_date']}")
        if dry_run:
            click.echo(f"Dry run: {len(result.candidates)} employee(s) would be deactivated.")
            return
        click.echo(f"Deactivated {result.deactivated} employee(s).")
        if result.errors:
            ctx.exit(1)

    @app.cli.command("attendance:notify-missed-clockin")
    @click.option("--date", "date_", default=None, help="Date to check (YYYY-MM-DD), defaults to today.")
    def notify_missed_clockin(date_: Optional[str]):
        """Remind employees who have not clocked in."""
        result = container.reminder_service.notify_missed_clock_in(_parse_date_option(date_))
        if result.skipped_reason:
            click.echo(f"Skipped: {result.skipped_reason}")
            return
        click.echo(f"Clock-in reminders sent: {result.sent}, failed: {result.failed}")

    @app.cli.command("attendance:remind-clockout")
    @click.option("--date", "date_", default=None, help="Date to check (YYYY-MM-DD), defaults to today.")
    def remind_clockout(date_: Optional[str]):
        """Remind employees who clocked in but not out."""
        result = container.reminder_service.remind_clock_out(_parse_date_option(date_))
        if result.skipped_reason:
            click.echo(f"Skipped: {result.skipped_reason}")
            return
        click.echo(f"Clock-out reminders sent: {result.sent}, failed: {result.failed}")

    @app.cli.command("attendance:notify-missed-clockout")
    @click.option("--date", "date_", default=None, help="Date to report (YYYY-MM-DD), defaults to today.")
    @click.pass_context
    def notify_missed_clockout(ctx: click.Context, date_: Optional[str]):
        """Send admins the list of employees who never clocked out."""
        result = container.reminder_service.notify_admins_missed_clock_out(_parse_date_option(date_))
        if result.skipped_reason:
            click.echo(f"Skipped: {result.skipped_reason}")
            return
        if not result.ok:
            click.echo("Failed to send the missed clock-out report.", err=True)
            ctx.exit(1)
        click.echo("Missed clock-out report sent to admins.")
