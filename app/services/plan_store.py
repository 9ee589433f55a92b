"""
Diet plan persistence adapter.

Translates generated plans to the stored document shape (a flat, ordered
`meals` list of {day, mealType, foods, notes, totalCalories}) and back, and
applies the two cell edits: append a food to one meal and remove a food by
index. Firestore writes for edits are version-checked.
"""
import copy
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from google.api_core.exceptions import FailedPrecondition, GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud.firestore import FieldFilter

from app.core import firebase
from app.core.exceptions import (
    PlanIndexError,
    PlanNotFoundError,
    PlanPersistenceError,
    PlanVersionConflict,
)
from app.services.logger import log_debug
from app.services.meal_composer import FoodEntry
from app.services.weekly_planner import Meal, WeeklyPlan

COLLECTION = "diet_plans"

FOOD_DEFAULTS = {
    "quantity": "1 serving",
    "calories": 0,
    "protein": 0.0,
    "carbs": 0.0,
    "fat": 0.0,
    "fiber": 0.0,
    "notes": "",
}


# ---------------- Shape conversion ---------------- #

def normalize_food(food: dict) -> dict:
    entry = {"name": str(food.get("name", "")).strip()}
    for key, default in FOOD_DEFAULTS.items():
        value = food.get(key)
        entry[key] = default if value is None else value
    return entry


def recompute_totals(meals: List[dict]) -> List[dict]:
    for meal in meals:
        meal["totalCalories"] = sum(f.get("calories") or 0 for f in meal.get("foods", []))
    return meals


def plan_to_document(plan: WeeklyPlan, practitioner_id: str, patient_id: Optional[str] = None) -> dict:
    now = datetime.now(timezone.utc)
    return {
        **plan.to_document(),
        "practitioner_id": practitioner_id,
        "patient_id": patient_id,
        "generation": copy.deepcopy(plan.metadata),
        "version": 1,
        "created_at": now,
        "updated_at": now,
    }


def document_to_plan(document: dict) -> WeeklyPlan:
    plan = WeeklyPlan(
        name=document.get("name", ""),
        dosha=document.get("dosha"),
        season=document.get("season", "All-Season"),
        region=document.get("region", "Pan-India"),
        duration=document.get("duration", 7),
        goals=list(document.get("goals") or []),
        restrictions=list(document.get("restrictions") or []),
        diet_type=document.get("dietType", "any"),
        status=document.get("status", "Active"),
        metadata=copy.deepcopy(document.get("generation") or {}),
    )
    days = OrderedDict()
    for record in document.get("meals") or []:
        foods = [FoodEntry(**normalize_food(f)) for f in record.get("foods") or []]
        meal = Meal(day=record["day"], meal_type=record["mealType"], foods=foods,
                    notes=list(record.get("notes") or []))
        days.setdefault(meal.day, OrderedDict())[meal.meal_type] = meal
    plan.days = days
    return plan


# ---------------- Cell edits ---------------- #

def _check_meal_index(meals: List[dict], meal_index: int):
    if meal_index < 0 or meal_index >= len(meals):
        raise PlanIndexError(f"Invalid meal index {meal_index}", {"meal_index": meal_index, "meals": len(meals)})


def add_food(meals: List[dict], meal_index: int, food: dict) -> List[dict]:
    """Append one food to meals[meal_index]; returns a new meals list."""
    _check_meal_index(meals, meal_index)
    updated = copy.deepcopy(meals)
    updated[meal_index].setdefault("foods", []).append(normalize_food(food))
    return recompute_totals(updated)


def remove_food(meals: List[dict], meal_index: int, food_index: int) -> Tuple[List[dict], dict]:
    """Remove meals[meal_index].foods[food_index]; returns (new meals list, removed food)."""
    _check_meal_index(meals, meal_index)
    foods = meals[meal_index].get("foods") or []
    if food_index < 0 or food_index >= len(foods):
        raise PlanIndexError(f"Invalid food index {food_index}", {"food_index": food_index, "foods": len(foods)})
    updated = copy.deepcopy(meals)
    removed = updated[meal_index]["foods"].pop(food_index)
    return recompute_totals(updated), removed


# ---------------- Firestore ---------------- #

def save_plan(document: dict) -> str:
    """Write a new plan document; raises PlanPersistenceError on storage failure."""
    try:
        ref = firebase.get_db().collection(COLLECTION).document()
        ref.set(document)
    except (GoogleAPIError, GoogleAuthError) as exc:
        log_debug("plan_persist_failed", {"error": str(exc), "name": document.get("name")})
        raise PlanPersistenceError("Diet plan could not be saved", {"error": str(exc)}) from exc
    return ref.id


def _owned_snapshot(plan_id: str, practitioner_id: str):
    ref = firebase.get_db().collection(COLLECTION).document(plan_id)
    snapshot = ref.get()
    if not snapshot.exists:
        raise PlanNotFoundError("Diet plan not found", {"plan_id": plan_id})
    data = snapshot.to_dict()
    if data.get("practitioner_id") != practitioner_id:
        raise PlanNotFoundError("Diet plan not found", {"plan_id": plan_id})
    return ref, snapshot, data


def get_plan(plan_id: str, practitioner_id: str) -> dict:
    _, snapshot, data = _owned_snapshot(plan_id, practitioner_id)
    return {"id": snapshot.id, **data}


def list_plans(practitioner_id: str, patient_id: Optional[str] = None, status: Optional[str] = None) -> List[dict]:
    query = firebase.get_db().collection(COLLECTION)
    query = query.where(filter=FieldFilter("practitioner_id", "==", practitioner_id))
    if patient_id:
        query = query.where(filter=FieldFilter("patient_id", "==", patient_id))
    if status:
        query = query.where(filter=FieldFilter("status", "==", status))

    items = [{"id": doc.id, **doc.to_dict()} for doc in query.stream()]
    items.sort(key=lambda d: d.get("created_at") or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
    return items


def update_plan_meals(
    plan_id: str,
    practitioner_id: str,
    mutate: Callable[[List[dict]], List[dict]],
    expected_version: Optional[int] = None,
    updated_by: Optional[str] = None,
) -> dict:
    """
    Read-modify-write of a plan's meals guarded by the document version.

    The write carries a last-update-time precondition, so a concurrent edit
    between the read and the write fails instead of being overwritten.
    """
    ref, snapshot, data = _owned_snapshot(plan_id, practitioner_id)
    current_version = data.get("version", 1)
    if expected_version is not None and expected_version != current_version:
        raise PlanVersionConflict(plan_id, expected_version, current_version)

    meals = mutate(data.get("meals") or [])
    updates = {
        "meals": meals,
        "version": current_version + 1,
        "updated_at": datetime.now(timezone.utc),
        "updated_by": updated_by or practitioner_id,
    }

    db = firebase.get_db()
    try:
        ref.update(updates, option=db.write_option(last_update_time=snapshot.update_time))
    except FailedPrecondition as exc:
        raise PlanVersionConflict(plan_id, expected_version, current_version) from exc
    except (GoogleAPIError, GoogleAuthError) as exc:
        log_debug("plan_persist_failed", {"plan_id": plan_id, "error": str(exc)})
        raise PlanPersistenceError("Diet plan could not be updated", {"error": str(exc)}) from exc

    return {"id": plan_id, **data, **updates}


def add_food_to_plan(plan_id: str, practitioner_id: str, meal_index: int, food: dict,
                     expected_version: Optional[int] = None) -> dict:
    return update_plan_meals(
        plan_id, practitioner_id,
        lambda meals: add_food(meals, meal_index, food),
        expected_version=expected_version,
    )


def remove_food_from_plan(plan_id: str, practitioner_id: str, meal_index: int, food_index: int,
                          expected_version: Optional[int] = None) -> dict:
    return update_plan_meals(
        plan_id, practitioner_id,
        lambda meals: remove_food(meals, meal_index, food_index)[0],
        expected_version=expected_version,
    )
