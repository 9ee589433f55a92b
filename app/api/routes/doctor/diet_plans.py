from fastapi import APIRouter, Depends, Body, HTTPException, Query, Response
from typing import Optional

from app.api.deps import require_role
from app.core.exceptions import DietPlanError, PlanPersistenceError, http_status
from app.models.diet_plan import (
    AddFoodRequest,
    DietPlanDocument,
    DietPlanList,
    GeneratePlanRequest,
    PlanStatus,
    SavePlanRequest,
)
from app.services import plan_store
from app.services.meal_plan_pipeline import build_diet_plan
from app.services.patient_service import PatientService

router = APIRouter(prefix="/doctor/diet-plans", tags=["doctor_diet_plans"])


def _http_error(exc: DietPlanError) -> HTTPException:
    return HTTPException(status_code=http_status(exc), detail=exc.message)


@router.post("/generate", status_code=201)
def generate_diet_plan(
    response: Response,
    request: GeneratePlanRequest = Body(...),
    user=Depends(require_role(["doctor"]))
):
    # 1. Patient defaults (allergies, conditions, prakriti)
    patient = None
    try:
        if request.patient_id:
            patient = PatientService().get_patient(request.patient_id)

        # 2. Run the engine
        plan = build_diet_plan(request, patient)
    except DietPlanError as exc:
        raise _http_error(exc) from exc

    if plan.is_empty:
        response.status_code = 200
        return {"id": None, "saved": False, "empty": True, **plan.to_document(), "generation": plan.metadata}

    document = plan_store.plan_to_document(plan, user["uid"], request.patient_id)

    if not request.persist:
        response.status_code = 200
        return {"id": None, "saved": False, **document}

    # 3. Save; a failed write still hands the plan back so the client can retry the save
    try:
        plan_id = plan_store.save_plan(document)
    except PlanPersistenceError as exc:
        response.status_code = 202
        return {"id": None, "saved": False, "error": exc.message, **document}

    return {"id": plan_id, "saved": True, **document}


@router.post("/", status_code=201)
def save_diet_plan(
    payload: SavePlanRequest = Body(...),
    user=Depends(require_role(["doctor"]))
):
    plan = plan_store.document_to_plan(payload.model_dump(by_alias=True))
    document = plan_store.plan_to_document(plan, user["uid"], payload.patient_id)

    try:
        plan_id = plan_store.save_plan(document)
    except DietPlanError as exc:
        raise _http_error(exc) from exc

    return {"id": plan_id, "saved": True, **document}


@router.get("/", response_model=DietPlanList)
def list_diet_plans(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    status: Optional[PlanStatus] = Query(None),
    user=Depends(require_role(["doctor"]))
):
    return {"items": plan_store.list_plans(user["uid"], patient_id=patient_id, status=status)}


@router.get("/{plan_id}", response_model=DietPlanDocument)
def get_diet_plan(plan_id: str, user=Depends(require_role(["doctor"]))):
    try:
        return plan_store.get_plan(plan_id, user["uid"])
    except DietPlanError as exc:
        raise _http_error(exc) from exc


@router.post("/{plan_id}/meals/{meal_index}/foods")
def add_food(
    plan_id: str,
    meal_index: int,
    food: AddFoodRequest = Body(...),
    user=Depends(require_role(["doctor"]))
):
    try:
        return plan_store.add_food_to_plan(
            plan_id,
            user["uid"],
            meal_index,
            food.model_dump(exclude={"expected_version"}),
            expected_version=food.expected_version,
        )
    except DietPlanError as exc:
        raise _http_error(exc) from exc


@router.delete("/{plan_id}/meals/{meal_index}/foods/{food_index}")
def remove_food(
    plan_id: str,
    meal_index: int,
    food_index: int,
    expected_version: Optional[int] = Query(None, ge=1),
    user=Depends(require_role(["doctor"]))
):
    try:
        return plan_store.remove_food_from_plan(
            plan_id,
            user["uid"],
            meal_index,
            food_index,
            expected_version=expected_version,
        )
    except DietPlanError as exc:
        raise _http_error(exc) from exc
