from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.services.knowledge_base import DietType, Dosha, MealType, Region, Season


PlanStatus = Literal["Active", "Completed", "Paused", "Cancelled"]


class Targets(BaseModel):
    calories: Optional[float] = Field(default=None, ge=0)
    protein: Optional[float] = Field(default=None, ge=0)
    carbs: Optional[float] = Field(default=None, ge=0)
    fat: Optional[float] = Field(default=None, ge=0)


class FoodEntryIn(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: Optional[str] = None
    calories: Optional[float] = Field(default=None, ge=0)
    protein: Optional[float] = Field(default=None, ge=0)
    carbs: Optional[float] = Field(default=None, ge=0)
    fat: Optional[float] = Field(default=None, ge=0)
    fiber: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class AddFoodRequest(FoodEntryIn):
    expected_version: Optional[int] = Field(default=None, ge=1)


class GeneratePlanRequest(BaseModel):
    """Input of the generate call. `dosha` may be omitted when the patient has a prakriti."""

    model_config = ConfigDict(populate_by_name=True)

    dosha: Optional[Dosha] = None
    season: Season = "All-Season"
    region: Region = "Pan-India"
    health_conditions: List[str] = Field(default_factory=list, alias="healthConditions")
    allergies: List[str] = Field(default_factory=list)
    goals: List[str] = Field(default_factory=list)
    duration: int = Field(default=7, ge=1, le=90)
    fast: bool = False
    targets: Optional[Targets] = None
    diet_type: DietType = Field(default="any", alias="dietType")
    patient_id: Optional[str] = Field(default=None, alias="patientId")
    persist: bool = True


class MealIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: str
    meal_type: MealType = Field(alias="mealType")
    foods: List[FoodEntryIn] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)


class SavePlanRequest(BaseModel):
    """A generated plan document posted back for storage (retry of a failed save)."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    dosha: Dosha
    season: Season = "All-Season"
    region: Region = "Pan-India"
    duration: int = Field(default=7, ge=1, le=90)
    goals: List[str] = Field(default_factory=list)
    restrictions: List[str] = Field(default_factory=list)
    diet_type: DietType = Field(default="any", alias="dietType")
    meals: List[MealIn] = Field(..., min_length=1)
    status: PlanStatus = "Active"
    patient_id: Optional[str] = Field(default=None, alias="patientId")
    generation: Dict[str, Any] = Field(default_factory=dict)


class DietPlanDocument(BaseModel):
    """Stored shape of a diet plan in the `diet_plans` collection."""

    id: Optional[str] = None
    name: str
    dosha: Dosha
    season: Season
    region: Region
    duration: int
    goals: List[str] = Field(default_factory=list)
    restrictions: List[str] = Field(default_factory=list)
    dietType: DietType = "any"
    meals: List[Dict[str, Any]] = Field(default_factory=list)
    status: PlanStatus = "Active"
    practitioner_id: str
    patient_id: Optional[str] = None
    generation: Dict[str, Any] = Field(default_factory=dict)
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None


class DietPlanList(BaseModel):
    items: List[DietPlanDocument] = Field(default_factory=list)
