from datetime import date

import pytest
from pydantic import ValidationError

from devfolio.core.schemas import ExperienceCreate, InvalidateRequest, ProjectCreate, ProjectUpdate


def test_project_create_defaults():
    project = ProjectCreate(title="App", description="d", image_url="/img.png")
    assert project.tech_stack == []
    assert project.featured is False


def test_project_create_requires_image():
    with pytest.raises(ValidationError):
        ProjectCreate(title="App", description="d", image_url="")


def test_project_update_tracks_set_fields():
    update = ProjectUpdate(featured=True)
    assert update.model_dump(exclude_unset=True) == {"featured": True}


def test_experience_parses_dates():
    exp = ExperienceCreate(
        company="Acme",
        position="Engineer",
        start_date="2021-03-01",
        description="Built things for people",
        location="Remote",
        employment_type="Full-time",
    )
    assert exp.start_date == date(2021, 3, 1)
    assert exp.end_date is None


def test_invalidate_request_bounds():
    assert InvalidateRequest().pattern == ""
    with pytest.raises(ValidationError):
        InvalidateRequest(pattern="x" * 200)
