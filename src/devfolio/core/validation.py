"""Straight-line field checks for admin and contact form payloads."""

import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse

from .schemas import ContactCreate, ExperienceCreate, ProjectCreate

EMPLOYMENT_TYPES = ("Full-time", "Part-time", "Contract", "Freelance", "Internship")
MAX_EMAIL_LENGTH = 254

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_EVENT_HANDLER_RE = re.compile(r"on\w+=", re.IGNORECASE)
_JS_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def is_valid_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email)) and len(email) <= MAX_EMAIL_LENGTH


def _too_short(value: Optional[str], minimum: int) -> bool:
    return not value or len(value.strip()) < minimum


def validate_project(data: ProjectCreate) -> ValidationResult:
    result = ValidationResult()
    if _too_short(data.title, 3):
        result.errors.append("Project title must be at least 3 characters long")
    if _too_short(data.description, 10):
        result.errors.append("Project description must be at least 10 characters long")
    if not data.tech_stack:
        result.errors.append("At least one technology must be specified")
    if data.github_url and not is_valid_url(data.github_url):
        result.errors.append("GitHub URL must be a valid URL")
    if data.demo_url and not is_valid_url(data.demo_url):
        result.errors.append("Demo URL must be a valid URL")
    return result


def validate_contact(data: ContactCreate) -> ValidationResult:
    result = ValidationResult()
    if _too_short(data.name, 2):
        result.errors.append("Name must be at least 2 characters long")
    if not data.email or not validate_email(data.email):
        result.errors.append("Valid email address is required")
    if _too_short(data.message, 10):
        result.errors.append("Message must be at least 10 characters long")
    return result


def validate_experience(data: ExperienceCreate) -> ValidationResult:
    result = ValidationResult()
    if _too_short(data.company, 2):
        result.errors.append("Company name must be at least 2 characters long")
    if _too_short(data.position, 2):
        result.errors.append("Position title must be at least 2 characters long")
    if data.end_date and data.end_date < data.start_date:
        result.errors.append("End date cannot be before start date")
    if _too_short(data.description, 10):
        result.errors.append("Description must be at least 10 characters long")
    if _too_short(data.location, 2):
        result.errors.append("Location is required")
    if data.employment_type not in EMPLOYMENT_TYPES:
        result.errors.append("Employment type is required")
    return result


def sanitize_input(text: str) -> str:
    if not text:
        return ""
    cleaned = text.replace("<", "").replace(">", "")
    cleaned = _JS_PROTOCOL_RE.sub("", cleaned)
    cleaned = _EVENT_HANDLER_RE.sub("", cleaned)
    return cleaned.strip()
