"""Bulk student import from the command line.

Commands:
    template  Write the CSV import template
    run       Validate a CSV file and import its students
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from pymongo.errors import PyMongoError

from studentbox.config import settings
from studentbox.database import close_db, init_db
from studentbox.models.import_batch import ImportBatch
from studentbox.models.user import User
from studentbox.services.student_import import (
    BatchProgress,
    BeanieStudentStore,
    FileError,
    ImportNotAllowedError,
    ImportResult,
    ImportSession,
    ParseResult,
    StudentImportError,
    describe_store_error,
    format_id_number,
    generate_student_csv_template,
    present_result,
    summarize_result,
)

logger = logging.getLogger(__name__)


def write_template(output: Optional[str], include_sample: bool) -> None:
    """Write the import template to a file or stdout."""
    text = generate_student_csv_template(include_sample=include_sample)
    if output:
        Path(output).write_text(text, encoding="utf-8")
        print(f"Template written to {output}")
    else:
        sys.stdout.write(text)


def print_validation_report(parse_result: ParseResult) -> None:
    """Print row counts and every field error of a parsed file."""
    print(
        f"{parse_result.filename}: {parse_result.row_count} rows, "
        f"{parse_result.valid_count} valid, {parse_result.invalid_count} invalid"
    )
    for row in parse_result.data:
        for error in parse_result.errors.get(row.row_index, []):
            print(f"  line {row.line_number}: {error.field}: {error.message}")
    for later, first in sorted(parse_result.repeated_id_rows.items()):
        print(
            f"  line {parse_result.data[later].line_number}: repeats the ID number of "
            f"line {parse_result.data[first].line_number} (will be skipped)"
        )


def print_result(result: ImportResult) -> None:
    """Print the import summary with a capped list of details."""
    print(summarize_result(result))
    shown = present_result(result, settings.import_detail_limit)
    for duplicate in shown.duplicate_students:
        id_number = format_id_number(duplicate.id_number)
        print(f"  duplicate: {duplicate.name} ({id_number}): {duplicate.reason}")
    if shown.more_duplicates:
        print(f"  ... and {shown.more_duplicates} more duplicate(s)")
    for error in shown.errors:
        id_number = format_id_number(error.id_number) if error.id_number else "no ID number"
        print(f"  error: {error.name or 'unknown'} ({id_number}): {error.error}")
    if shown.more_errors:
        print(f"  ... and {shown.more_errors} more error(s)")


def log_progress(progress: BatchProgress) -> None:
    logger.info(
        "Batch %d/%d: %d/%d students processed (%d%%)",
        progress.current_batch,
        progress.total_batches,
        progress.imported_count,
        progress.total_count,
        progress.percentage,
    )


async def run_import(
    session: ImportSession,
    chunk_size: Optional[int] = None,
    created_by: Optional[str] = None,
) -> ImportResult:
    """Import the session's previewed file into the configured database.

    When ``created_by`` names a user, the run is recorded as an import batch
    owned by that user.
    """
    await init_db()
    try:
        owner: Optional[User] = None
        if created_by:
            owner = await User.find_one(User.email == created_by)
            if owner is None:
                raise StudentImportError(f"User '{created_by}' not found")

        parse_result = session.begin_import()
        batch: Optional[ImportBatch] = None
        if owner is not None:
            batch = ImportBatch(
                owner_id=owner.id,
                filename=parse_result.filename or "unknown",
                row_count=parse_result.row_count,
            )
            try:
                await batch.insert()
            except PyMongoError as e:
                session.abandon_import(f"Import failed: {describe_store_error(e)}")
                raise

        store = BeanieStudentStore(
            created_by=created_by,
            import_batch_id=batch.id if batch else None,
        )
        try:
            result = await session.execute_import(
                store, chunk_size=chunk_size, on_progress=log_progress
            )
        except (StudentImportError, PyMongoError) as e:
            if batch is not None:
                await batch.mark_failed(str(e))
            raise

        if batch is not None:
            await batch.mark_completed(result, settings.import_detail_limit)
        return result
    finally:
        await close_db()


def run(
    path: str,
    chunk_size: Optional[int] = None,
    dry_run: bool = False,
    created_by: Optional[str] = None,
) -> int:
    """Validate and import one CSV file. Returns the process exit code."""
    file_path = Path(path)
    if not file_path.is_file():
        print(f"Error: File '{path}' not found.")
        return 1

    session = ImportSession()
    try:
        parse_result = session.load_file(file_path.read_bytes(), filename=file_path.name)
    except FileError as e:
        print(f"Error: {e}")
        return 1

    print_validation_report(parse_result)
    if parse_result.has_errors:
        print("Error: Fix the invalid rows and run the import again.")
        return 1
    if parse_result.valid_count == 0:
        print("Error: The file contains no students to import.")
        return 1

    if dry_run:
        print(f"Dry run: {parse_result.valid_count} students would be imported.")
        return 0

    try:
        result = asyncio.run(run_import(session, chunk_size, created_by))
    except ImportNotAllowedError as e:
        print(f"Error: {e}")
        return 1
    except (StudentImportError, PyMongoError) as e:
        logger.error("Import failed: %s", e)
        print(f"Error: Import failed: {e}")
        return 1

    print_result(result)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="StudentBox bulk student import",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    template_parser = subparsers.add_parser("template", help="Write the CSV import template")
    template_parser.add_argument(
        "--sample", "-s", action="store_true", help="Include an example row"
    )
    template_parser.add_argument("--output", "-o", help="Output file (default: stdout)")

    run_parser = subparsers.add_parser("run", help="Validate and import a CSV file")
    run_parser.add_argument("file", help="CSV file to import")
    run_parser.add_argument(
        "--chunk-size", "-c", type=int, default=None, help="Records per batch (default: from config)"
    )
    run_parser.add_argument(
        "--dry-run", "-n", action="store_true", help="Validate only, do not import"
    )
    run_parser.add_argument("--created-by", "-u", help="Email of the user the import is recorded for")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "run" and args.chunk_size is not None and args.chunk_size < 1:
        parser.error("--chunk-size must be at least 1")

    try:
        if args.command == "template":
            write_template(args.output, args.sample)
            return 0
        return run(args.file, args.chunk_size, args.dry_run, args.created_by)
    except KeyboardInterrupt:
        print("\nAborted.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
