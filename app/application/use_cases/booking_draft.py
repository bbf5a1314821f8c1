from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any

from app.application.exceptions import BookingApiError, DraftTransitionError, StepValidationError
from app.application.ports.booking_api import BookingApiPort
from app.application.ports.key_value_storage import KeyValueStoragePort
from app.application.utils.draft_validation import validate_client_details, validate_service_step
from app.domain.entities.booking_draft import BookingDraft, ConfirmationState, DraftStep


DEFAULT_STORAGE_KEY = "recovery_office_booking"

_PREVIOUS_STEP = {
    DraftStep.ENTERING_DETAILS: DraftStep.SELECTING_SERVICE,
    DraftStep.CONFIRMING: DraftStep.ENTERING_DETAILS,
}
_TERMINAL_STEPS = (DraftStep.SUBMITTED, DraftStep.ERRORED)


class BookingDraftMachine:
    """
    Multi-step booking flow: selecting_service -> entering_details -> confirming -> submitted.
    Every successful mutation writes the whole draft to storage; submission is the only
    other persistence.
    """

    def __init__(
        self,
        storage: KeyValueStoragePort,
        api: BookingApiPort,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        self._storage = storage
        self._api = api
        self._storage_key = storage_key
        self._draft = BookingDraft()
        self._submitting = False
        self._touched = False
        self._logger = logging.getLogger(__name__)

    @property
    def draft(self) -> BookingDraft:
        return self._draft

    @property
    def step(self) -> DraftStep:
        return self._draft.step

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    def hydrate(self) -> BookingDraft:
        """
        Restore the stored draft. Corrupt or stale payloads are discarded and the flow
        starts fresh; a draft already edited in this session is never overwritten.
        """
        if self._touched:
            self._logger.info("Skipping draft rehydration: draft already edited")
            return self._draft

        try:
            raw = self._storage.get(self._storage_key)
            if raw is None:
                return self._draft
            restored = BookingDraft.from_dict(json.loads(raw))
        except (ValueError, TypeError, KeyError, OSError) as e:
            self._logger.warning("Discarding corrupt booking draft", extra={"error": str(e)})
            self._discard_stored()
            self._draft = BookingDraft()
            return self._draft

        if restored.step in _TERMINAL_STEPS:
            self._discard_stored()
            return self._draft

        self._draft = restored
        return self._draft

    def select_service(self, service_id: str) -> BookingDraft:
        self._ensure_idle()
        self._require_step(DraftStep.SELECTING_SERVICE)
        if not service_id:
            raise StepValidationError(DraftStep.SELECTING_SERVICE.value, {"selected_service_id": "Please select a service"})
        return self._commit(replace(self._draft, selected_service_id=service_id))

    def choose_slot(self, date: str | None, time_slot: str | None) -> BookingDraft:
        self._ensure_idle()
        self._require_step(DraftStep.SELECTING_SERVICE, DraftStep.ENTERING_DETAILS)
        return self._commit(replace(self._draft, date=date, time_slot=time_slot))

    def update_client_details(self, **changes: Any) -> BookingDraft:
        """Merge field changes (first_name, last_name, email, phone, urgency_level, notes)."""
        self._ensure_idle()
        self._require_step(DraftStep.ENTERING_DETAILS)
        details = replace(self._draft.client_details, **changes)
        return self._commit(replace(self._draft, client_details=details))

    def advance(self) -> BookingDraft:
        self._ensure_idle()
        step = self._draft.step
        if step is DraftStep.SELECTING_SERVICE:
            errors = validate_service_step(self._draft)
            next_step = DraftStep.ENTERING_DETAILS
        elif step is DraftStep.ENTERING_DETAILS:
            errors = validate_client_details(self._draft.client_details)
            next_step = DraftStep.CONFIRMING
        else:
            raise DraftTransitionError(f"Cannot advance from step '{step.value}'")

        if errors:
            raise StepValidationError(step.value, errors)
        return self._commit(replace(self._draft, step=next_step))

    def go_back(self) -> BookingDraft:
        self._ensure_idle()
        previous = _PREVIOUS_STEP.get(self._draft.step)
        if previous is None:
            raise DraftTransitionError(f"Cannot go back from step '{self._draft.step.value}'")
        return self._commit(replace(self._draft, step=previous))

    def mark_errored(self, reason: str) -> BookingDraft:
        return self._commit(
            replace(
                self._draft,
                step=DraftStep.ERRORED,
                confirmation_state=replace(self._draft.confirmation_state, error_reason=reason),
            )
        )

    def reset(self) -> BookingDraft:
        """Drop the draft (and its stored copy) and start a new booking."""
        self._ensure_idle()
        self._draft = BookingDraft()
        self._touched = True
        self._discard_stored()
        return self._draft

    def start_new(self) -> BookingDraft:
        """Begin another booking once the current one is submitted or has errored."""
        self._require_step(*_TERMINAL_STEPS)
        return self.reset()

    async def submit(self) -> dict[str, Any] | None:
        """
        Send the confirmed draft to the booking API.
        Returns the stored booking, or None when a submission is already in flight or
        the API rejected it (the reason is kept on the draft, which stays in confirming).
        """
        if self._submitting:
            self._logger.info("Submission already in flight; ignoring duplicate submit")
            return None
        self._require_step(DraftStep.CONFIRMING)

        draft = self._draft
        self._submitting = True
        try:
            client = await self._api.create_or_reuse_client(_client_payload(draft))
            booking = await self._api.create_booking(
                {
                    "clientId": client["_id"],
                    "serviceId": draft.selected_service_id,
                    "date": draft.date,
                    "timeSlot": draft.time_slot,
                    "urgencyLevel": draft.client_details.urgency_level,
                    "notes": draft.client_details.notes,
                }
            )
        except Exception as e:
            reason = str(e) or type(e).__name__
            self._commit(
                replace(draft, step=DraftStep.CONFIRMING, confirmation_state=ConfirmationState(error_reason=reason))
            )
            if isinstance(e, BookingApiError):
                self._logger.warning("Booking submission failed", extra={"reason": reason})
                return None
            raise
        finally:
            self._submitting = False

        self._draft = replace(
            draft,
            step=DraftStep.SUBMITTED,
            confirmation_state=ConfirmationState(booking_id=booking.get("_id"), reference=booking.get("reference")),
        )
        self._discard_stored()
        self._logger.info(
            "Booking submitted", extra={"booking_id": booking.get("_id"), "reference": booking.get("reference")}
        )
        return booking

    def _ensure_idle(self) -> None:
        if self._submitting:
            raise DraftTransitionError("A submission is in flight; wait for it to finish")

    def _require_step(self, *allowed: DraftStep) -> None:
        if self._draft.step not in allowed:
            names = ", ".join(s.value for s in allowed)
            raise DraftTransitionError(f"Operation requires step {names}; current step is '{self._draft.step.value}'")

    def _commit(self, draft: BookingDraft) -> BookingDraft:
        self._draft = draft
        self._touched = True
        try:
            self._storage.set(self._storage_key, json.dumps(draft.to_dict()))
        except OSError as e:
            self._logger.warning("Could not persist booking draft", extra={"error": str(e)})
        return draft

    def _discard_stored(self) -> None:
        try:
            self._storage.remove(self._storage_key)
        except OSError as e:
            self._logger.warning("Could not clear stored booking draft", extra={"error": str(e)})


def _client_payload(draft: BookingDraft) -> dict[str, Any]:
    details = draft.client_details
    return {
        "firstName": details.first_name.strip(),
        "lastName": details.last_name.strip(),
        "email": details.email.strip().lower(),
        "phone": details.phone,
    }
