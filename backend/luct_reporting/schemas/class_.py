"""Class and enrollment request/response schemas."""

from typing import Optional
from pydantic import BaseModel, Field


class ClassCreate(BaseModel):
    class_code: str
    class_name: str
    course_id: str
    semester: str
    academic_year: int
    lecturer_id: Optional[str] = None
    max_students: Optional[int] = Field(None, ge=1)


class ClassUpdate(BaseModel):
    class_name: Optional[str] = None
    lecturer_id: Optional[str] = None
    semester: Optional[str] = None
    academic_year: Optional[int] = None
    max_students: Optional[int] = Field(None, ge=1)


class ClassResponse(BaseModel):
    id: str
    class_code: str
    class_name: str
    course_id: str
    course_code: Optional[str] = None
    course_name: Optional[str] = None
    lecturer_id: Optional[str] = None
    lecturer_name: Optional[str] = None
    semester: str
    academic_year: int
    max_students: int
    enrolled_students: int = 0
    created_at: str

    class Config:
        from_attributes = True


class ClassEnvelope(BaseModel):
    success: bool = True
    data: ClassResponse


class ClassListResponse(BaseModel):
    success: bool = True
    data: list[ClassResponse]
    count: int


class ClassCreatedResponse(BaseModel):
    success: bool = True
    message: str
    class_id: str


class EnrollRequest(BaseModel):
    student_id: str
    class_id: Optional[str] = None


class EnrollmentResponse(BaseModel):
    id: str
    class_id: str
    student_id: str
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    class_code: Optional[str] = None
    class_name: Optional[str] = None
    course_code: Optional[str] = None
    course_name: Optional[str] = None
    lecturer_name: Optional[str] = None
    enrolled_at: str
    status: str = "active"


class EnrollmentListResponse(BaseModel):
    success: bool = True
    data: list[EnrollmentResponse]
    count: int


class EnrollmentCreatedResponse(BaseModel):
    success: bool = True
    message: str
    enrollment_id: str
    class_name: Optional[str] = None
    course_name: Optional[str] = None


class StudentSummary(BaseModel):
    id: str
    name: str
    email: str
    current_enrollments: int = 0


class StudentListResponse(BaseModel):
    success: bool = True
    data: list[StudentSummary]
    count: int


class EnrollmentStats(BaseModel):
    total_enrollments: int
    unique_students: int
    active_classes: int
    popular_classes: list[dict]


class EnrollmentStatsResponse(BaseModel):
    success: bool = True
    data: EnrollmentStats
