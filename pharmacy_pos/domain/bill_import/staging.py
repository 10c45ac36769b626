# pharmacy_pos/domain/bill_import/staging.py
"""Client-side workflow for importing a supplier bill into inventory.

A session walks a document through extraction, lets the user correct the
extracted rows and then commits them in one call::

    session = ImportStagingSession(extractor=api, committer=api)
    session.select_file(StagedFile("bill.pdf", data, "application/pdf"))
    await session.submit()          # IDLE -> UPLOADING -> REVIEWING
    session.set_quantity(0, 12)
    session.delete_row(2)
    await session.confirm()         # REVIEWING -> COMMITTING -> IDLE

Rows entered or corrected by the user are only dropped by ``cancel`` or by a
successful commit; a rejected or failed commit returns to ``REVIEWING`` with
the rows untouched.

Every network call is tagged with the session generation. ``cancel`` (and a
successful commit) bump the generation, so a response that arrives for an
abandoned request is ignored instead of being applied to a fresh session.
"""
import enum
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from pharmacy_pos.core.errors import PosError, ValidationFailure
from pharmacy_pos.domain.pricing.valuation import ZERO, Number, to_decimal

from .schemas import ImportedLine, ImportSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StagedFile:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class BillExtractor(Protocol):
    async def import_bill(self, file: StagedFile) -> List[ImportedLine]: ...


class ImportCommitter(Protocol):
    async def confirm_import(self, items: Sequence[ImportedLine]) -> ImportSummary: ...


class StagingState(str, enum.Enum):
    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    REVIEWING = "REVIEWING"
    COMMITTING = "COMMITTING"
    FAILED = "FAILED"


class StagingEvent(str, enum.Enum):
    SELECT_FILE = "SELECT_FILE"
    SUBMIT = "SUBMIT"
    EXTRACTION_SUCCEEDED = "EXTRACTION_SUCCEEDED"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    EDIT = "EDIT"
    DELETE_ROW = "DELETE_ROW"
    CONFIRM = "CONFIRM"
    COMMIT_SUCCEEDED = "COMMIT_SUCCEEDED"
    COMMIT_FAILED = "COMMIT_FAILED"
    RETRY = "RETRY"
    CANCEL = "CANCEL"


_S = StagingState
_E = StagingEvent

TRANSITIONS: Dict[Tuple[StagingState, StagingEvent], StagingState] = {
    (_S.IDLE, _E.SELECT_FILE): _S.IDLE,
    (_S.IDLE, _E.SUBMIT): _S.UPLOADING,
    (_S.UPLOADING, _E.EXTRACTION_SUCCEEDED): _S.REVIEWING,
    (_S.UPLOADING, _E.EXTRACTION_FAILED): _S.FAILED,
    (_S.FAILED, _E.RETRY): _S.IDLE,
    (_S.REVIEWING, _E.EDIT): _S.REVIEWING,
    (_S.REVIEWING, _E.DELETE_ROW): _S.REVIEWING,
    (_S.REVIEWING, _E.CONFIRM): _S.COMMITTING,
    (_S.COMMITTING, _E.COMMIT_SUCCEEDED): _S.IDLE,
    (_S.COMMITTING, _E.COMMIT_FAILED): _S.REVIEWING,
    # cancel is an explicit reset and is accepted from every state
    (_S.IDLE, _E.CANCEL): _S.IDLE,
    (_S.UPLOADING, _E.CANCEL): _S.IDLE,
    (_S.REVIEWING, _E.CANCEL): _S.IDLE,
    (_S.COMMITTING, _E.CANCEL): _S.IDLE,
    (_S.FAILED, _E.CANCEL): _S.IDLE,
}


class IllegalTransition(PosError):
    def __init__(self, state: StagingState, event: StagingEvent):
        super().__init__(f"Cannot {event.value.lower()} while {state.value.lower()}")
        self.state = state
        self.event = event


@dataclass(frozen=True)
class StagingFailure:
    """Why the last upload or commit did not go through."""

    stage: str  # "upload" or "commit"
    message: str


class ImportStagingSession:
    def __init__(
        self,
        extractor: BillExtractor,
        committer: ImportCommitter,
        on_committed: Optional[Callable[[ImportSummary], Any]] = None,
    ):
        self._extractor = extractor
        self._committer = committer
        self._on_committed = on_committed

        self._state = StagingState.IDLE
        self._file: Optional[StagedFile] = None
        self._items: List[ImportedLine] = []
        self._generation = 0
        self.failure: Optional[StagingFailure] = None

    # -- read side -------------------------------------------------------

    @property
    def state(self) -> StagingState:
        return self._state

    @property
    def file(self) -> Optional[StagedFile]:
        return self._file

    @property
    def items(self) -> Tuple[ImportedLine, ...]:
        return tuple(self._items)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def can_confirm(self) -> bool:
        return self._state is StagingState.REVIEWING and bool(self._items)

    # -- transitions -----------------------------------------------------

    def _check(self, event: StagingEvent) -> StagingState:
        target = TRANSITIONS.get((self._state, event))
        if target is None:
            raise IllegalTransition(self._state, event)
        return target

    def _fire(self, event: StagingEvent) -> None:
        target = self._check(event)
        logger.debug(f"Import session {self._state.value} --{event.value}--> {target.value}")
        self._state = target

    def _is_stale(self, generation: int) -> bool:
        if generation != self._generation:
            logger.info(f"Discarding response for abandoned import request (generation {generation})")
            return True
        return False

    def _clear(self) -> None:
        self._file = None
        self._items = []
        self.failure = None
        self._generation += 1

    def select_file(self, file: StagedFile) -> None:
        self._fire(StagingEvent.SELECT_FILE)
        self._file = file

    async def submit(self) -> None:
        """Send the selected document for extraction.

        Raises ``ValidationFailure`` without any network call when no file is
        selected. A remote failure moves the session to ``FAILED`` and is
        re-raised for display.
        """
        self._check(StagingEvent.SUBMIT)
        if self._file is None:
            raise ValidationFailure("Select a bill to upload first")

        self._fire(StagingEvent.SUBMIT)
        self.failure = None
        generation = self._generation

        try:
            items = await self._extractor.import_bill(self._file)
        except Exception as exc:
            if self._is_stale(generation):
                return
            self._fire(StagingEvent.EXTRACTION_FAILED)
            message = exc.message if isinstance(exc, PosError) else "Failed to analyze bill. Please try again."
            self.failure = StagingFailure("upload", message)
            raise

        if self._is_stale(generation):
            return
        self._fire(StagingEvent.EXTRACTION_SUCCEEDED)
        self._items = list(items)
        self._file = None
        logger.info(f"Bill extraction returned {len(self._items)} rows")

    def retry(self) -> None:
        """Leave ``FAILED`` and go back to ``IDLE``; the selected file is kept."""
        self._fire(StagingEvent.RETRY)

    # -- typed row edits -------------------------------------------------

    def _edit(self, index: int, **changes) -> None:
        self._check(StagingEvent.EDIT)
        if not 0 <= index < len(self._items):
            raise IndexError(f"No staged row at index {index}")
        self._items[index] = self._items[index].model_copy(update=changes)
        self._fire(StagingEvent.EDIT)

    def set_medicine_name(self, index: int, value: str) -> None:
        self._edit(index, medicine_name=value)

    def set_batch_number(self, index: int, value: str) -> None:
        self._edit(index, batch_number=value)

    def set_expiry_date(self, index: int, value: str) -> None:
        self._edit(index, expiry_date=value)

    def set_quantity(self, index: int, value: Number) -> None:
        self._edit(index, quantity=_non_negative(value, "quantity"))

    def set_mrp(self, index: int, value: Number) -> None:
        self._edit(index, mrp=_non_negative(value, "mrp"))

    def set_rate(self, index: int, value: Number) -> None:
        self._edit(index, rate=_non_negative(value, "rate"))

    def delete_row(self, index: int) -> None:
        self._check(StagingEvent.DELETE_ROW)
        if not 0 <= index < len(self._items):
            raise IndexError(f"No staged row at index {index}")
        del self._items[index]
        self._fire(StagingEvent.DELETE_ROW)

    # -- commit ----------------------------------------------------------

    async def confirm(self) -> Optional[ImportSummary]:
        """Commit the staged rows.

        An empty list is rejected locally and the session stays in
        ``REVIEWING``. On failure the session returns to ``REVIEWING`` with
        the rows exactly as they were and the error is re-raised. Returns
        ``None`` when the session was cancelled while the request was in
        flight.
        """
        self._check(StagingEvent.CONFIRM)
        if not self._items:
            raise ValidationFailure("No items to import")

        self._fire(StagingEvent.CONFIRM)
        self.failure = None
        generation = self._generation
        snapshot = [item.model_copy() for item in self._items]

        try:
            summary = await self._committer.confirm_import(snapshot)
        except Exception as exc:
            if self._is_stale(generation):
                return None
            self._fire(StagingEvent.COMMIT_FAILED)
            message = exc.message if isinstance(exc, PosError) else "Failed to save inventory"
            self.failure = StagingFailure("commit", message)
            raise

        if self._is_stale(generation):
            return None
        self._fire(StagingEvent.COMMIT_SUCCEEDED)
        self._clear()
        logger.info(f"Bill import committed: {summary.created} created, {summary.updated} updated")

        if self._on_committed is not None:
            refreshed = self._on_committed(summary)
            if inspect.isawaitable(refreshed):
                await refreshed
        return summary

    def cancel(self) -> None:
        """Reset the session; any request still in flight is abandoned."""
        self._fire(StagingEvent.CANCEL)
        self._clear()


def _non_negative(value: Number, field: str):
    amount = to_decimal(value, field)
    if amount < ZERO:
        raise ValidationFailure(f"{field} cannot be negative")
    return amount
