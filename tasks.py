"""Invoke tasks for StudentBox application management."""

import sys

from invoke import task
from invoke.context import Context


@task
def start(ctx: Context, host: str = "127.0.0.1", port: int = 8000, reload: bool = False) -> None:
    """Start the StudentBox FastAPI server.

    Args:
        ctx: Invoke context
        host: Host to bind to (default: 127.0.0.1)
        port: Port to bind to (default: 8000)
        reload: Enable auto-reload for development
    """
    cmd = f"uv run uvicorn studentbox.main:app --host {host} --port {port}"
    if reload:
        cmd += " --reload"

    try:
        ctx.run(cmd, pty=True)
    except KeyboardInterrupt:
        print("\nServer stopped")
        sys.exit(0)


@task
def test(ctx: Context, verbose: bool = False, coverage: bool = False) -> None:
    """Run the test suite.

    Args:
        ctx: Invoke context
        verbose: Enable verbose output
        coverage: Run with coverage report
    """
    cmd = "uv run pytest"
    if verbose:
        cmd += " -v"
    if coverage:
        cmd += " --cov=studentbox --cov-report=term-missing"
    ctx.run(cmd, pty=True)


@task(name="init-db")
def init_db(ctx: Context) -> None:
    """Initialize the database and its indexes."""
    print("Initializing database...")
    ctx.run(
        "uv run python -c 'import asyncio; from studentbox.database import init_db; "
        "asyncio.run(init_db())'"
    )
    print("Database initialized successfully")


@task
def template(ctx: Context, output: str = "student_import_template.csv", sample: bool = False) -> None:
    """Write the student import CSV template.

    Args:
        ctx: Invoke context
        output: File to write (default: student_import_template.csv)
        sample: Include an example row
    """
    cmd = f"uv run studentbox-import template -o {output}"
    if sample:
        cmd += " --sample"
    ctx.run(cmd)


@task(name="generate-csv")
def generate_csv(ctx: Context, rows: int = 1000, output: str = "test_students.csv", invalid: int = 0) -> None:
    """Generate a synthetic student CSV for load testing the import.

    Args:
        ctx: Invoke context
        rows: Number of data rows
        output: File to write
        invalid: Number of rows to make invalid
    """
    ctx.run(
        f"uv run python scripts/generate_test_csv.py -n {rows} -o {output} --invalid {invalid}"
    )


@task(name="import")
def import_csv(ctx: Context, file: str, created_by: str = "", dry_run: bool = False) -> None:
    """Import a student CSV file into the configured database.

    Args:
        ctx: Invoke context
        file: CSV file to import
        created_by: Email of the user the import is recorded for
        dry_run: Validate only
    """
    cmd = f"uv run studentbox-import run {file}"
    if created_by:
        cmd += f" --created-by {created_by}"
    if dry_run:
        cmd += " --dry-run"
    ctx.run(cmd, pty=True)


@task
def clean(ctx: Context) -> None:
    """Clean up temporary files."""
    for pattern in ["__pycache__", "*.pyc", "*.pyo", ".pytest_cache"]:
        ctx.run(f"find . -name '{pattern}' -exec rm -rf {{}} + 2>/dev/null || true", warn=True)

    for path in ["build", "dist", "*.egg-info", ".eggs"]:
        ctx.run(f"rm -rf {path} 2>/dev/null || true", warn=True)

    print("Cleanup complete")
