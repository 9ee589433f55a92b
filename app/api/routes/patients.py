"""Patient-related API routes."""

from fastapi import APIRouter, Depends, Body, HTTPException

from app.api.deps import get_current_user, require_role, user_roles
from app.core.exceptions import DietPlanError, http_status
from app.models.patient import Patient, PrakritiIntake
from app.services.dosha import infer_prakriti, rasa_guide, score_intake
from app.services.patient_service import PatientService

router = APIRouter(prefix="/patients", tags=["patients"])


@router.get("/")
def list_patients(user=Depends(get_current_user)):
    """List patients.

    - Doctors can list all patients.
    - Otherwise only return patients created by the caller.
    """
    is_doctor = "doctor" in user_roles(user)

    return {"items": PatientService().list_patients(None if is_doctor else user["uid"])}


@router.post("/", status_code=201)
def create_patient(
    patient: Patient = Body(...),
    user=Depends(require_role(["doctor"]))
):
    data = patient.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)
    patient_id = PatientService().create_patient(data, user["uid"])

    return {
        "message": "Patient created successfully",
        "id": patient_id
    }


@router.post("/prakriti")
def assess_prakriti(
    intake: PrakritiIntake = Body(...),
    user=Depends(require_role(["doctor"]))
):
    answers = intake.model_dump()
    try:
        prakriti = infer_prakriti(answers)
        prefer, avoid = rasa_guide(prakriti)
    except DietPlanError as exc:
        raise HTTPException(status_code=http_status(exc), detail=exc.message) from exc

    return {
        "prakriti": prakriti,
        "scores": score_intake(answers),
        "rasa": {"prefer": prefer, "avoid": avoid},
    }
