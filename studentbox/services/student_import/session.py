"""Upload → preview → import → complete workflow of one import session."""

import logging
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from studentbox.config import settings

from .batch_importer import ProgressCallback, import_student_batch
from .converter import convert_to_validated_students
from .csv_parser import parse_student_csv
from .errors import FileError, ImportNotAllowedError, InvalidTransitionError
from .store import StudentStore
from .types import BatchProgress, ImportResult, ParseResult

logger = logging.getLogger(__name__)


class ImportStep(str, Enum):
    UPLOAD = "upload"
    PREVIEW = "preview"
    IMPORTING = "importing"
    COMPLETE = "complete"


class UploadState(BaseModel):
    """Waiting for a file; ``error`` holds the reason the last one was rejected."""

    model_config = ConfigDict(frozen=True)

    step: Literal[ImportStep.UPLOAD] = ImportStep.UPLOAD
    error: Optional[str] = None


class PreviewState(BaseModel):
    """A file has been parsed and is shown for review."""

    model_config = ConfigDict(frozen=True)

    step: Literal[ImportStep.PREVIEW] = ImportStep.PREVIEW
    parse_result: ParseResult
    error: Optional[str] = None


class ImportingState(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: Literal[ImportStep.IMPORTING] = ImportStep.IMPORTING
    parse_result: ParseResult
    progress: Optional[BatchProgress] = None


class CompleteState(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: Literal[ImportStep.COMPLETE] = ImportStep.COMPLETE
    parse_result: ParseResult
    result: ImportResult


SessionState = Annotated[
    Union[UploadState, PreviewState, ImportingState, CompleteState],
    Field(discriminator="step"),
]


class ImportSession:
    """Drives one user's import from file upload to final result.

    The session is the only place that decides whether an import may run:
    a file with any invalid row, or without a single valid row, is refused.
    """

    def __init__(
        self,
        max_upload_size: Optional[int] = None,
        verify_checksum: Optional[bool] = None,
    ):
        self.max_upload_size = (
            max_upload_size if max_upload_size is not None else settings.max_upload_size_bytes
        )
        self.verify_checksum = (
            verify_checksum if verify_checksum is not None else settings.verify_id_checksum
        )
        self._state: SessionState = UploadState()
        # Set by begin_import until the claimed import starts or is abandoned
        self._claimed = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def step(self) -> ImportStep:
        return self._state.step

    @property
    def is_importing(self) -> bool:
        return self._state.step == ImportStep.IMPORTING

    def load_file(
        self,
        content: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> ParseResult:
        """Parse a file and move to the preview step.

        Raises:
            InvalidTransitionError: If an import is running or finished.
            FileError: If the file is rejected; the session returns to upload.
        """
        if self._state.step not in (ImportStep.UPLOAD, ImportStep.PREVIEW):
            raise InvalidTransitionError(f"Cannot load a file during step '{self.step.value}'")

        try:
            parse_result = parse_student_csv(
                content,
                filename=filename,
                content_type=content_type,
                max_size=self.max_upload_size,
                verify_checksum=self.verify_checksum,
            )
        except FileError as e:
            logger.info("Rejected upload %s: %s", filename, e)
            self._state = UploadState(error=str(e))
            raise

        self._state = PreviewState(parse_result=parse_result)
        return parse_result

    def ensure_importable(self) -> ParseResult:
        """Check that the previewed file may be imported.

        Raises:
            InvalidTransitionError: If no file is being previewed.
            ImportNotAllowedError: If the file has invalid rows or no valid
                ones; the message is kept on the preview state.
        """
        state = self._state
        if not isinstance(state, PreviewState):
            raise InvalidTransitionError(f"Cannot start an import during step '{self.step.value}'")

        parse_result = state.parse_result
        message = None
        if parse_result.invalid_count > 0:
            message = f"Fix {parse_result.invalid_count} invalid row(s) before importing"
        elif parse_result.valid_count == 0:
            message = "The file contains no students to import"

        if message is not None:
            self._state = PreviewState(parse_result=parse_result, error=message)
            raise ImportNotAllowedError(message)
        return parse_result

    def begin_import(self) -> ParseResult:
        """Move the previewed file into the importing step.

        Nothing is awaited between the gate and the transition, so a second
        caller sees the session as importing and is refused.

        Raises:
            InvalidTransitionError: If no file is being previewed.
            ImportNotAllowedError: If the file has invalid rows or no valid ones.
        """
        parse_result = self.ensure_importable()
        self._state = ImportingState(parse_result=parse_result)
        self._claimed = True
        return parse_result

    def abandon_import(self, reason: str) -> None:
        """Return a claimed import to preview before any record was written."""
        state = self._state
        if not self._claimed or not isinstance(state, ImportingState):
            raise InvalidTransitionError("No import is waiting to start")
        self._claimed = False
        self._state = PreviewState(parse_result=state.parse_result, error=reason)

    async def execute_import(
        self,
        store: StudentStore,
        chunk_size: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ImportResult:
        """Run an import claimed with :meth:`begin_import`.

        Raises:
            InvalidTransitionError: If no import was begun.
            Exception: Whatever the importer raised; the session returns to preview.
        """
        state = self._state
        if not self._claimed or not isinstance(state, ImportingState):
            raise InvalidTransitionError("Call begin_import before running the import")
        self._claimed = False
        parse_result = state.parse_result
        students = convert_to_validated_students(parse_result.data, parse_result.errors)

        def track(progress: BatchProgress) -> None:
            self._state = ImportingState(parse_result=parse_result, progress=progress)
            if on_progress is not None:
                on_progress(progress)

        try:
            result = await import_student_batch(
                students, track, store=store, chunk_size=chunk_size
            )
        except Exception as e:
            logger.error("Import of %s failed: %s", parse_result.filename, e)
            self._state = PreviewState(parse_result=parse_result, error=f"Import failed: {e}")
            raise

        self._state = CompleteState(parse_result=parse_result, result=result)
        return result

    async def start_import(
        self,
        store: StudentStore,
        chunk_size: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ImportResult:
        """Import the previewed file in one step.

        Raises:
            InvalidTransitionError: If no file is being previewed.
            ImportNotAllowedError: If the file has invalid rows or no valid ones.
            Exception: Whatever the importer raised; the session returns to preview.
        """
        self.begin_import()
        return await self.execute_import(store, chunk_size=chunk_size, on_progress=on_progress)

    def reset(self) -> None:
        """Discard the current file or result and wait for a new upload.

        Raises:
            InvalidTransitionError: While an import is running.
        """
        if self.is_importing:
            raise InvalidTransitionError("Cannot reset while an import is running")
        self._state = UploadState()
