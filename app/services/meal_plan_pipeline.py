import random
from typing import Optional, Sequence

from app.core.exceptions import PlanValidationError
from app.models.diet_plan import GeneratePlanRequest
from app.services.food_catalog import FoodCandidate
from app.services.patient_service import PatientService, merge_unique
from app.services.weekly_planner import WeeklyPlan, generate_week


def build_diet_plan(
    request: GeneratePlanRequest,
    patient: Optional[dict] = None,
    catalog: Optional[Sequence[FoodCandidate]] = None,
    rng: Optional[random.Random] = None,
) -> WeeklyPlan:
    """Merge patient defaults into the request and run the weekly planner."""
    defaults = PatientService.generation_defaults(patient)

    dosha = request.dosha or defaults["prakriti"]
    if not dosha:
        raise PlanValidationError("Dosha is required when the patient has no prakriti", {"dosha": None})

    targets = request.targets.model_dump(exclude_none=True) if request.targets else None

    return generate_week(
        dosha,
        season=request.season,
        region=request.region,
        allergies=merge_unique(request.allergies, defaults["allergies"]),
        health_conditions=merge_unique(request.health_conditions, defaults["health_conditions"]),
        targets=targets,
        fast=request.fast,
        diet_type=request.diet_type,
        goals=request.goals,
        duration=request.duration,
        catalog=catalog,
        rng=rng,
    )
