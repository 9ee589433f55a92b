"""
Domain exceptions raised by the diet engine and the plan store.

Routes translate them into HTTP responses (see `http_status`).
"""


class DietPlanError(Exception):
    """Base class for diet planning errors."""

    status_code = 500

    def __init__(self, message: str, detail: dict = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class PlanValidationError(DietPlanError):
    """Dosha, season, region, diet type or targets are not acceptable."""

    status_code = 422


class PlanNotFoundError(DietPlanError):
    """Plan or patient missing, or not owned by the acting practitioner."""

    status_code = 404


class PlanIndexError(PlanNotFoundError):
    """Meal or food index outside the stored plan."""


class PlanVersionConflict(DietPlanError):
    """The stored plan changed since the caller last read it."""

    status_code = 409

    def __init__(self, plan_id: str, expected: int = None, actual: int = None):
        message = f"Diet plan {plan_id} was modified concurrently"
        super().__init__(message, {"plan_id": plan_id, "expected_version": expected, "current_version": actual})


class PlanPersistenceError(DietPlanError):
    """Writing the plan to Firestore failed."""

    status_code = 503


def http_status(exc: DietPlanError) -> int:
    return getattr(exc, "status_code", 500)
