from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class DraftStep(str, Enum):
    SELECTING_SERVICE = "selecting_service"
    ENTERING_DETAILS = "entering_details"
    CONFIRMING = "confirming"
    SUBMITTED = "submitted"
    ERRORED = "errored"


@dataclass(frozen=True)
class ClientDetails:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    urgency_level: str = "standard"  # "standard", "urgent", "emergency"
    notes: str | None = None


@dataclass(frozen=True)
class ConfirmationState:
    booking_id: str | None = None
    reference: str | None = None
    error_reason: str | None = None  # set when the last submission failed


@dataclass(frozen=True)
class BookingDraft:
    step: DraftStep = DraftStep.SELECTING_SERVICE
    selected_service_id: str | None = None
    date: str | None = None
    time_slot: str | None = None
    client_details: ClientDetails = field(default_factory=ClientDetails)
    confirmation_state: ConfirmationState = field(default_factory=ConfirmationState)

    def to_dict(self) -> dict[str, Any]:
        details = asdict(self.client_details)
        confirmation = asdict(self.confirmation_state)
        return {
            "step": self.step.value,
            "selectedServiceId": self.selected_service_id,
            "date": self.date,
            "timeSlot": self.time_slot,
            "clientDetails": {
                "firstName": details["first_name"],
                "lastName": details["last_name"],
                "email": details["email"],
                "phone": details["phone"],
                "urgencyLevel": details["urgency_level"],
                "notes": details["notes"],
            },
            "confirmationState": {
                "bookingId": confirmation["booking_id"],
                "reference": confirmation["reference"],
                "errorReason": confirmation["error_reason"],
            },
        }

    @classmethod
    def from_dict(cls, data: Any) -> "BookingDraft":
        """Rebuild a draft from its stored form. Raises ValueError/TypeError on malformed data."""
        if not isinstance(data, dict):
            raise TypeError(f"Stored draft must be an object, got {type(data).__name__}")
        details = data.get("clientDetails") or {}
        confirmation = data.get("confirmationState") or {}
        if not isinstance(details, dict) or not isinstance(confirmation, dict):
            raise TypeError("Stored draft has malformed nested sections")

        return cls(
            step=DraftStep(data["step"]),
            selected_service_id=_optional_str(data.get("selectedServiceId")),
            date=_optional_str(data.get("date")),
            time_slot=_optional_str(data.get("timeSlot")),
            client_details=ClientDetails(
                first_name=str(details.get("firstName") or ""),
                last_name=str(details.get("lastName") or ""),
                email=str(details.get("email") or ""),
                phone=str(details.get("phone") or ""),
                urgency_level=str(details.get("urgencyLevel") or "standard"),
                notes=_optional_str(details.get("notes")),
            ),
            confirmation_state=ConfirmationState(
                booking_id=_optional_str(confirmation.get("bookingId")),
                reference=_optional_str(confirmation.get("reference")),
                error_reason=_optional_str(confirmation.get("errorReason")),
            ),
        )


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"Expected a string, got {type(value).__name__}")
    return value
