"""Unit tests for the resume record model."""

import pytest

from resumark.contexts.authoring.resume_data_structure import Experience, ResumeData

CAMEL_RECORD = {
    "id": "r-1",
    "title": "Backend roles",
    "lastUpdated": 1700000000000,
    "personalInfo": {
        "fullName": "Jane Doe",
        "email": "jane@example.com",
        "jobTitle": "Staff Engineer",
        "summary": "Builds reliable systems.",
    },
    "experiences": [
        {
            "id": "e-1",
            "company": "Acme",
            "role": "Engineer",
            "startDate": "2020",
            "isCurrent": True,
            "description": "- Built the billing service\n\n• Cut latency by 40%",
        }
    ],
    "education": [{"institution": "MIT", "degree": "BSc", "graduationYear": "2015"}],
    "skills": ["Python", " ", "Go"],
    "projects": [{"name": "resumark", "technologies": ["Pillow", "httpx"]}],
    "certifications": [{"name": "CKA", "issuer": "CNCF", "year": "2022"}],
    "pdfUrl": "https://example.com/r-1.pdf",
}


@pytest.mark.unit
def test_from_camel_case_dict():
    resume = ResumeData.from_dict(CAMEL_RECORD)

    assert resume.id == "r-1"
    assert resume.title == "Backend roles"
    assert resume.last_updated == 1700000000000
    assert resume.personal_info.full_name == "Jane Doe"
    assert resume.personal_info.job_title == "Staff Engineer"
    assert resume.experiences[0].is_current
    assert resume.education[0].graduation_year == "2015"
    assert resume.skills == ["Python", "Go"]
    assert resume.projects[0].technologies == ["Pillow", "httpx"]
    assert resume.certifications[0].issuer == "CNCF"
    assert resume.pdf_url == "https://example.com/r-1.pdf"
    assert resume.subject_name == "Jane Doe"


@pytest.mark.unit
def test_from_snake_case_row():
    resume = ResumeData.from_dict(
        {
            "id": "r-2",
            "personal_info": {"full_name": "John Roe"},
            "last_updated": "2024-01-01T00:00:00+00:00",
            "pdf_url": None,
        }
    )

    assert resume.personal_info.full_name == "John Roe"
    assert resume.pdf_url is None
    # ISO strings from the database are not epoch values
    assert isinstance(resume.last_updated, int)


@pytest.mark.unit
def test_from_flat_builder_layout():
    """Top-level summary, workExperience entries and a single education object."""
    resume = ResumeData.from_dict(
        {
            "fullName": "Sam Poe",
            "summary": "Generalist.",
            "workExperience": [
                {
                    "companyName": "Globex",
                    "jobTitle": "Analyst",
                    "startYear": 2019,
                    "endYear": 2021,
                    "responsibilities": ["Modelled risk", "Automated reports"],
                }
            ],
            "education": {"institution": "LSE", "degree": "MSc"},
        }
    )

    assert resume.personal_info.full_name == "Sam Poe"
    assert resume.personal_info.summary == "Generalist."
    experience = resume.experiences[0]
    assert (experience.company, experience.role) == ("Globex", "Analyst")
    assert experience.date_range == "2019 - 2021"
    assert experience.bullets == ["Modelled risk", "Automated reports"]
    assert resume.education[0].institution == "LSE"


@pytest.mark.unit
def test_experience_bullets_strip_markers_and_blank_lines():
    experience = Experience(description="- One\n\n  * Two\n• Three\n")

    assert experience.bullets == ["One", "Two", "Three"]


@pytest.mark.unit
def test_current_role_date_range():
    assert Experience(start_date="2021", is_current=True).date_range == "2021 - Present"
    assert Experience(start_date="2021").date_range == "2021"


@pytest.mark.unit
def test_defaults_generate_ids():
    first, second = ResumeData(), ResumeData()

    assert first.id != second.id
    assert first.title == "Untitled Resume"


@pytest.mark.unit
def test_to_dict_uses_camel_case_and_reloads():
    resume = ResumeData.from_dict(CAMEL_RECORD)

    data = resume.to_dict()

    assert data["personalInfo"]["fullName"] == "Jane Doe"
    assert data["experiences"][0]["isCurrent"] is True
    assert "pdfUrl" in data
    assert ResumeData.from_dict(data) == resume
