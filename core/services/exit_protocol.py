"""Exit protocol for a presentation session.

Every exit locks the device first and only then asks what to do with an
unsaved collection. Phases:

    ACTIVE -> EXIT_REQUESTED -> LOCKING -> EXITING                (secure exit)
                                       -> EXITING                (saved collection)
                                       -> AWAITING_DISPOSITION   (ephemeral)
    AWAITING_DISPOSITION -> EXITING (discard)
                         -> SAVING -> EXITING (save; stays SAVING on failure)
                         -> ACTIVE (cancel; the device may remain locked)

Exit intents received outside ACTIVE are ignored.
"""

from __future__ import annotations

from collections.abc import Callable
import inspect

from loguru import logger

from core.errors import InvalidTransitionError, PersistenceError
from core.models import Collection, ExitIntent, PresentationPhase
from core.services.interfaces import CollectionStore, LockBridge

_BUSY_PHASES = frozenset(
    {
        PresentationPhase.EXIT_REQUESTED,
        PresentationPhase.LOCKING,
        PresentationPhase.AWAITING_DISPOSITION,
        PresentationPhase.SAVING,
    }
)


class ExitProtocol:
    """State machine sequencing device lock, disposition and teardown."""

    def __init__(
        self,
        collection: Collection,
        lock_bridge: LockBridge,
        store: CollectionStore | None = None,
        *,
        on_phase_changed: Callable[[PresentationPhase], None] | None = None,
        on_disposition_required: Callable[[], None] | None = None,
        on_save_failed: Callable[[str], None] | None = None,
        on_exit: Callable[[str | None], None] | None = None,
    ) -> None:
        self._collection = collection
        self._bridge = lock_bridge
        self._store = store
        self._on_phase_changed = on_phase_changed
        self._on_disposition_required = on_disposition_required
        self._on_save_failed = on_save_failed
        self._on_exit = on_exit
        self._phase = PresentationPhase.ACTIVE
        self._persisting = False
        self._pending_name: str | None = None
        self.lock_confirmed: bool | None = None
        self.save_error: str | None = None
        self.saved_collection_id: str | None = None

    @property
    def phase(self) -> PresentationPhase:
        return self._phase

    @property
    def is_busy(self) -> bool:
        """True while an exit attempt is in progress."""
        return self._phase in _BUSY_PHASES

    @property
    def pending_name(self) -> str | None:
        return self._pending_name

    async def request_exit(self, intent: ExitIntent) -> PresentationPhase:
        """Handle an exit gesture and return the phase reached."""
        if self._phase is not PresentationPhase.ACTIVE:
            logger.debug("Ignoring {} exit intent during {}", intent.value, self._phase.value)
            return self._phase

        logger.info("Exit requested via {}", intent.value)
        self._set_phase(PresentationPhase.EXIT_REQUESTED)
        self._set_phase(PresentationPhase.LOCKING)
        self.lock_confirmed = await self._lock_device()

        if self._phase is not PresentationPhase.LOCKING:
            # Torn down while the lock call was outstanding.
            return self._phase

        if intent is ExitIntent.SECURE:
            if self._collection.ephemeral:
                logger.info("Secure exit discards unsaved collection {}", self._collection.id)
            self._finish()
        elif self._collection.ephemeral:
            self._set_phase(PresentationPhase.AWAITING_DISPOSITION)
            if self._on_disposition_required is not None:
                self._on_disposition_required()
        else:
            self._finish()
        return self._phase

    async def choose_save(self, name: str) -> PresentationPhase:
        """Persist the collection under `name` and exit.

        A blank name is refused and the disposition stays open.
        """
        if self._phase is PresentationPhase.SAVING and self._persisting:
            logger.debug("Save already in progress; ignoring")
            return self._phase
        self._require(PresentationPhase.AWAITING_DISPOSITION, "save")
        cleaned = (name or "").strip()
        if not cleaned:
            logger.info("Save refused: empty collection name")
            return self._phase
        self._pending_name = cleaned
        self._set_phase(PresentationPhase.SAVING)
        return await self._persist()

    async def retry_save(self, name: str | None = None) -> PresentationPhase:
        """Retry a failed save, optionally under a new name."""
        if self._persisting:
            logger.debug("Save already in progress; ignoring retry")
            return self._phase
        self._require(PresentationPhase.SAVING, "retry")
        if name and name.strip():
            self._pending_name = name.strip()
        return await self._persist()

    def choose_discard(self) -> PresentationPhase:
        """Drop the unsaved collection and exit."""
        if self._persisting:
            logger.debug("Discard ignored while saving")
            return self._phase
        if self._phase not in (
            PresentationPhase.AWAITING_DISPOSITION,
            PresentationPhase.SAVING,
        ):
            raise InvalidTransitionError(f"Cannot discard during {self._phase.value}")
        logger.info("Discarding collection {}", self._collection.id)
        self._finish()
        return self._phase

    def choose_cancel(self) -> PresentationPhase:
        """Resume the presentation with items and cursor untouched."""
        self._require(PresentationPhase.AWAITING_DISPOSITION, "cancel")
        logger.info("Exit cancelled; resuming presentation")
        self._set_phase(PresentationPhase.ACTIVE)
        return self._phase

    def force_exit(self) -> None:
        """Tear down without lock or disposition (e.g. the last item was removed)."""
        if self._phase is PresentationPhase.EXITING:
            return
        self._finish()

    async def _lock_device(self) -> bool:
        try:
            confirmed = bool(await self._bridge.lock())
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.warning("Device lock raised {}: {}", type(ex).__name__, ex)
            confirmed = False
        if confirmed:
            logger.info("Device lock confirmed")
        else:
            logger.warning("Device lock not confirmed; continuing exit")
        return confirmed

    async def _persist(self) -> PresentationPhase:
        name = self._pending_name or ""
        items = list(self._collection.items)
        self._persisting = True
        try:
            if self._store is None:
                raise PersistenceError("No collection store configured")
            result = self._store.persist(name, items)
            if inspect.isawaitable(result):
                result = await result
        except (PersistenceError, OSError) as ex:
            self.save_error = str(ex) or type(ex).__name__
            logger.error("Saving collection {!r} failed: {}", name, self.save_error)
            if self._on_save_failed is not None:
                self._on_save_failed(self.save_error)
            return self._phase
        finally:
            self._persisting = False

        self.save_error = None
        self.saved_collection_id = str(result)
        logger.info("Saved {} items as {!r} ({})", len(items), name, self.saved_collection_id)
        self._finish()
        return self._phase

    def _require(self, expected: PresentationPhase, action: str) -> None:
        if self._phase is not expected:
            raise InvalidTransitionError(f"Cannot {action} during {self._phase.value}")

    def _set_phase(self, phase: PresentationPhase) -> None:
        if phase is self._phase:
            return
        logger.info("Phase {} -> {}", self._phase.value, phase.value)
        self._phase = phase
        if self._on_phase_changed is not None:
            self._on_phase_changed(phase)

    def _finish(self) -> None:
        self._set_phase(PresentationPhase.EXITING)
        if self._on_exit is not None:
            self._on_exit(self.saved_collection_id)
