"""
Pydantic models for API boundaries.
Why: contract-first; the same shapes go to the cache, the database and JSON.
"""

from datetime import date, datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field

EmploymentType = Literal["Full-time", "Part-time", "Contract", "Freelance", "Internship"]


class ProjectCreate(BaseModel):
    title: str
    description: str
    tech_stack: List[str] = []
    github_url: Optional[str] = None
    demo_url: Optional[str] = None
    image_url: str = Field(..., min_length=1)
    featured: bool = False


class ProjectUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    tech_stack: Optional[List[str]] = None
    github_url: Optional[str] = None
    demo_url: Optional[str] = None
    image_url: Optional[str] = None
    featured: Optional[bool] = None


class Project(ProjectCreate):
    id: int
    created_at: datetime
    updated_at: datetime


class ExperienceCreate(BaseModel):
    company: str
    position: str
    start_date: date
    end_date: Optional[date] = None
    description: str
    achievements: List[str] = []
    technologies: List[str] = []
    company_logo: Optional[str] = None
    location: str
    # plain str so validation can report a readable message instead of a 422
    employment_type: str


class ExperienceUpdate(BaseModel):
    company: Optional[str] = None
    position: Optional[str] = None
    start_date: Optional[date] = None
    # explicit null marks the position as current
    end_date: Optional[date] = None
    description: Optional[str] = None
    achievements: Optional[List[str]] = None
    technologies: Optional[List[str]] = None
    company_logo: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None


class Experience(ExperienceCreate):
    id: int
    created_at: datetime
    updated_at: datetime


class ContactCreate(BaseModel):
    name: str
    email: str
    message: str


class ContactMessage(ContactCreate):
    id: int
    read: bool = False
    created_at: datetime


class ContactUpdate(BaseModel):
    read: bool


class ApiResponse(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    message: Optional[str] = None
    details: Optional[List[str]] = None


class CacheStatsResponse(BaseModel):
    size: int
    max_size: int
    keys: List[str]


class InvalidateRequest(BaseModel):
    pattern: str = Field(default="", max_length=128)


class InvalidateResponse(BaseModel):
    pattern: str
    removed: int
