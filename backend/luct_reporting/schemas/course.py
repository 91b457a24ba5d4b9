"""Course request/response schemas."""

from typing import Optional
from pydantic import BaseModel, Field


class CourseCreate(BaseModel):
    course_code: str
    course_name: str
    faculty: str
    description: Optional[str] = None
    credits: Optional[int] = Field(None, ge=0)


class CourseUpdate(BaseModel):
    course_name: Optional[str] = None
    faculty: Optional[str] = None
    description: Optional[str] = None
    credits: Optional[int] = Field(None, ge=0)


class CourseResponse(BaseModel):
    id: str
    course_code: str
    course_name: str
    description: Optional[str]
    credits: int
    faculty: str
    created_at: str
    active_classes: int = 0

    class Config:
        from_attributes = True


class CourseEnvelope(BaseModel):
    success: bool = True
    data: CourseResponse


class CourseListResponse(BaseModel):
    success: bool = True
    data: list[CourseResponse]
    count: int


class CourseCreatedResponse(BaseModel):
    success: bool = True
    message: str
    course_id: str


class AssignRequest(BaseModel):
    lecturer_id: Optional[str] = None
    module_name: Optional[str] = None


class AssignmentResponse(BaseModel):
    id: str
    course_id: str
    lecturer_id: str
    lecturer_name: Optional[str] = None
    lecturer_email: Optional[str] = None
    module_name: str
    assigned_at: str


class AssignmentListResponse(BaseModel):
    success: bool = True
    data: list[AssignmentResponse]
    count: int


class AssignmentCreatedResponse(BaseModel):
    success: bool = True
    message: str
    assignment_id: str


class LecturerSummary(BaseModel):
    id: str
    name: str
    email: str
    role: str
    current_assignments: int = 0


class LecturerListResponse(BaseModel):
    success: bool = True
    data: list[LecturerSummary]
    count: int
