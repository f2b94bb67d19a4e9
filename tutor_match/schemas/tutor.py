from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import List, Optional, Union
import math

from tutor_match.services.price_filter import lowest_lesson_price


class TutorLanguage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    language_code: str = Field(..., alias="languageCode", description="Language code")
    is_primary: bool = Field(False, alias="isPrimary", description="Whether this is the primary language")


class TutorLesson(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, description="Lesson ID")
    name: Optional[str] = Field(None, description="Lesson name")
    price: Optional[Union[float, str]] = Field(None, description="Lesson price")


class TutorSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="tutorId", description="Tutor ID")
    full_name: str = Field(..., alias="fullName", description="Tutor name")
    profile_image_url: Optional[str] = Field(None, alias="profileImageUrl", description="Profile image URL")
    rating: float = Field(0, description="Average rating")
    description: Optional[str] = Field(None, description="Tutor bio")
    is_professional: bool = Field(False, alias="isProfessional", description="Whether tutor is verified professional")
    languages: List[TutorLanguage] = Field(default_factory=list, description="Spoken languages")
    price: Optional[float] = Field(None, description="Listed price")
    lessons: List[TutorLesson] = Field(default_factory=list, description="Priced lessons")

    @property
    def primary_language_code(self) -> Optional[str]:
        for language in self.languages:
            if language.is_primary:
                return language.language_code
        return None

    @property
    def lowest_price(self) -> Optional[float]:
        """Price of the cheapest lesson, falling back to the listed price"""
        lowest = lowest_lesson_price(lesson.price for lesson in self.lessons)
        return lowest if lowest is not None else self.price


class TutorPage(BaseModel):
    items: List[TutorSummary] = Field(default_factory=list, description="Tutors on this page")
    total_count: int = Field(0, ge=0, description="Server-side total, before local day/time filtering")
    page: int = Field(1, ge=1, description="1-based page number")
    page_size: int = Field(..., ge=1, description="Number of tutors per page")

    @computed_field
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)


class TutorListResponse(BaseModel):
    items: List[TutorSummary] = Field(..., description="Tutors on this page after local filtering")
    total_count: int = Field(..., description="Server-side total, before local day/time filtering")
    page: int = Field(..., description="1-based page number")
    page_size: int = Field(..., description="Number of tutors per page")
    total_pages: int = Field(..., description="Number of pages reported by the server")
