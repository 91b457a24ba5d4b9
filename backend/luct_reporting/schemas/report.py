"""Report and rating request/response schemas."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from luct_reporting.lifecycle import ReportStatus


class ReportCreate(BaseModel):
    # Everything is optional at the schema level so the service can report
    # the complete set of missing fields in one error.
    faculty_name: Optional[str] = None
    class_name: Optional[str] = None
    week_of_reporting: Optional[str] = None
    date_of_lecture: Optional[date] = None
    course_name: Optional[str] = None
    course_code: Optional[str] = None
    lecturer_name: Optional[str] = None
    actual_students_present: Optional[int] = Field(None, ge=0)
    total_registered_students: Optional[int] = Field(None, ge=0)
    venue: Optional[str] = None
    scheduled_time: Optional[str] = None
    topic_taught: Optional[str] = None
    learning_outcomes: Optional[str] = None
    recommendations: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


class ReportUpdate(ReportCreate):
    principal_feedback: Optional[str] = None
    rating: Optional[int] = None
    status: Optional[ReportStatus] = None


class ReviewRequest(BaseModel):
    principal_feedback: Optional[str] = None
    rating: Optional[int] = None


class RatingCreate(BaseModel):
    rating: Optional[int] = None
    feedback: Optional[str] = None


class ReportResponse(BaseModel):
    id: str
    faculty_name: str
    class_name: str
    week_of_reporting: str
    date_of_lecture: str
    course_name: str
    course_code: str
    lecturer_name: str
    actual_students_present: int
    total_registered_students: int
    venue: str
    scheduled_time: str
    topic_taught: str
    learning_outcomes: str
    recommendations: str
    lecturer_id: str
    lecturer_full_name: Optional[str] = None
    status: ReportStatus
    principal_feedback: Optional[str] = None
    rating: Optional[int] = None
    average_rating: float = 0.0
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[str] = None
    created_at: str
    my_rating: Optional[int] = None

    class Config:
        from_attributes = True


class ReportEnvelope(BaseModel):
    success: bool = True
    data: ReportResponse


class ReportListResponse(BaseModel):
    success: bool = True
    data: list[ReportResponse]
    count: int


class ReportCreatedResponse(BaseModel):
    success: bool = True
    message: str
    report_id: str


class ReportUpdatedResponse(BaseModel):
    success: bool = True
    message: str
    forwarded: bool = False


class RatingResponse(BaseModel):
    id: str
    report_id: str
    student_id: str
    student_name: Optional[str] = None
    rating: int
    feedback: Optional[str] = None
    created_at: str
    course_name: Optional[str] = None
    class_name: Optional[str] = None
    date_of_lecture: Optional[str] = None

    class Config:
        from_attributes = True


class RatingListResponse(BaseModel):
    success: bool = True
    data: list[RatingResponse]
    count: int


class RatingSubmittedResponse(BaseModel):
    success: bool = True
    message: str
    average_rating: float
    rating_count: int


class ReportHealthResponse(BaseModel):
    success: bool = True
    data: dict
