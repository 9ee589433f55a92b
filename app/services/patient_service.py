"""Business logic / service layer for patient operations.

Patients are stored in the Firestore `patients` collection. The diet routes
only need them as a source of generation defaults (allergies, health
conditions and prakriti).
"""
from typing import Any, Iterable, List, Optional

from google.cloud.firestore import FieldFilter

from app.core import firebase
from app.core.exceptions import PlanNotFoundError
from app.services.dosha import normalize_dosha

COLLECTION = "patients"


def _names(items: Optional[Iterable[Any]], key: str) -> List[str]:
    names = []
    for item in items or []:
        value = (item.get(key) or item.get("name")) if isinstance(item, dict) else item
        if value and str(value).strip():
            names.append(str(value).strip())
    return names


def merge_unique(*groups: Iterable[str]) -> List[str]:
    merged: List[str] = []
    seen = set()
    for group in groups:
        for value in group or []:
            key = value.strip().lower()
            if key and key not in seen:
                seen.add(key)
                merged.append(value.strip())
    return merged


class PatientService:
    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        return self._db or firebase.get_db()

    def list_patients(self, created_by: Optional[str] = None) -> List[dict]:
        coll = self.db.collection(COLLECTION)
        query = coll.where(filter=FieldFilter("created_by", "==", created_by)) if created_by else coll
        docs = query.stream()
        return [{"id": doc.id, **doc.to_dict()} for doc in docs]

    def get_patient(self, patient_id: str) -> dict:
        doc = self.db.collection(COLLECTION).document(patient_id).get()
        if not doc.exists:
            raise PlanNotFoundError("Patient not found", {"patient_id": patient_id})
        return {"id": doc.id, **doc.to_dict()}

    def create_patient(self, data: dict, created_by: str) -> str:
        _, ref = self.db.collection(COLLECTION).add({**data, "created_by": created_by})
        return ref.id

    @staticmethod
    def generation_defaults(patient: Optional[dict]) -> dict:
        """Allergies, condition names and prakriti of a stored patient record."""
        patient = patient or {}
        profile = patient.get("healthProfile") or {}
        prakriti = patient.get("prakriti")
        return {
            "allergies": _names(patient.get("allergies") or profile.get("allergies"), "allergen"),
            "health_conditions": _names(
                patient.get("healthConditions") or patient.get("health_conditions")
                or profile.get("healthConditions"),
                "name",
            ),
            "prakriti": normalize_dosha(prakriti) if prakriti else None,
        }
