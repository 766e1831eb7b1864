from __future__ import annotations


class PlacementError(Exception):
    """Base class for recoverable placement-engine errors.

    ``kind`` is a stable tag callers switch on instead of parsing messages.
    """

    kind = "PlacementError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class NotFound(PlacementError):
    kind = "NotFound"


class AlreadyApplied(PlacementError):
    kind = "AlreadyApplied"


class NotEligible(PlacementError):
    kind = "NotEligible"

    def __init__(self, reasons: list[str]) -> None:
        super().__init__("; ".join(reasons) or "student is not eligible")
        self.reasons = list(reasons)

    def to_dict(self) -> dict:
        return super().to_dict() | {"reasons": self.reasons}


class DeadlinePassed(PlacementError):
    kind = "DeadlinePassed"


class VisitInactive(PlacementError):
    kind = "VisitInactive"


class InvalidTransition(PlacementError):
    kind = "InvalidTransition"


class MissingFeedback(PlacementError):
    kind = "MissingFeedback"


class ReferentialIntegrityError(PlacementError):
    kind = "ReferentialIntegrity"
