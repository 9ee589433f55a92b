"""Pydantic models for patient records stored in Firestore.

Allergies and health conditions are accepted either as plain strings or as
small objects ({"allergen": ...} / {"name": ...}), matching how older
records were written.
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Any, Dict, List, Literal, Optional, Union

from app.services.knowledge_base import Dosha

PrimaryDosha = Literal["Vata", "Pitta", "Kapha"]


class Patient(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    age: Optional[int] = Field(default=None, ge=0, le=130)
    notes: Optional[str] = None
    prakriti: Optional[Dosha] = None
    allergies: List[Union[str, Dict[str, Any]]] = Field(default_factory=list)
    health_conditions: List[Union[str, Dict[str, Any]]] = Field(default_factory=list, alias="healthConditions")


class PrakritiIntake(BaseModel):
    """Questionnaire answers; each one names the dosha the chosen option belongs to."""

    model_config = ConfigDict(populate_by_name=True)

    body_frame: Optional[PrimaryDosha] = Field(default=None, alias="bodyFrame")
    skin_type: Optional[PrimaryDosha] = Field(default=None, alias="skinType")
    hair_type: Optional[PrimaryDosha] = Field(default=None, alias="hairType")
    eye_type: Optional[PrimaryDosha] = Field(default=None, alias="eyeType")
    appetite: Optional[PrimaryDosha] = None
    sleep_pattern: Optional[PrimaryDosha] = Field(default=None, alias="sleepPattern")
    climate_tolerance: Optional[PrimaryDosha] = Field(default=None, alias="climateTolerance")
    thinking_style: Optional[PrimaryDosha] = Field(default=None, alias="thinkingStyle")
    emotional_tendencies: Optional[PrimaryDosha] = Field(default=None, alias="emotionalTendencies")
    speech: Optional[PrimaryDosha] = None
    physical_activity: Optional[PrimaryDosha] = Field(default=None, alias="physicalActivity")
    adaptability: Optional[PrimaryDosha] = None
