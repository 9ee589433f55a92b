from fastapi import APIRouter

from app.api.routes.patients import router as patients_router
from app.api.routes.doctor.diet_plans import router as doctor_diet_plans_router

api_router = APIRouter()

# Patient records (generation defaults, prakriti assessment)
api_router.include_router(patients_router)

# Doctor routes
api_router.include_router(doctor_diet_plans_router)
