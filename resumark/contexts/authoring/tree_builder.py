"""
Content tree construction from resume records.

Lays out a ResumeData as a single-column document:

    [header placeholder] [watermark placeholder]      (preview only)
    Name / job title / contact lines                   (kept together)
    Summary
    Experience      one entry per job, one atomic unit per bullet
    Education       one atomic unit per entry
    Skills
    Projects        one atomic unit per project
    Certifications  one atomic unit per certification

Empty sections are omitted.
"""

from typing import List

from resumark.contexts.authoring.content_tree import (
    ContentNode,
    ContentTree,
    bullet,
    bullet_list,
    heading,
    key_value,
    overlay_placeholder,
    paragraph,
    section,
)
from resumark.contexts.authoring.resume_data_structure import ResumeData

PLACEHOLDER_NAME = "Your Name"
SKILL_SEPARATOR = "  |  "

CONTACT_FIELDS = (
    ("Email", "email"),
    ("Phone", "phone"),
    ("Location", "location"),
    ("LinkedIn", "linkedin"),
    ("Website", "website"),
)


def _identity_section(resume: ResumeData) -> ContentNode:
    info = resume.personal_info
    children = [heading(info.full_name.strip() or PLACEHOLDER_NAME, level=1)]
    if info.job_title:
        children.append(paragraph(info.job_title, atomic=True))
    for label, attribute in CONTACT_FIELDS:
        value = getattr(info, attribute)
        if value:
            children.append(key_value(label, value))
    return section(children, atomic=True)


def _experience_section(resume: ResumeData) -> List[ContentNode]:
    entries = []
    for experience in resume.experiences:
        title = " | ".join(part for part in (experience.role, experience.company) if part)
        children = [heading(title or "Experience", level=3)]
        if experience.date_range:
            dates = paragraph(experience.date_range, atomic=True)
            dates.keep_with_next = bool(experience.bullets)
            children.append(dates)
        if experience.bullets:
            children.append(bullet_list(experience.bullets))
        entries.append(section(children))
    return entries


def _education_section(resume: ResumeData) -> List[ContentNode]:
    entries = []
    for entry in resume.education:
        children = [heading(entry.degree or entry.institution, level=3)]
        details = entry.institution if entry.degree else ""
        if entry.date_range:
            details = f"{details} ({entry.date_range})" if details else entry.date_range
        if details:
            children.append(paragraph(details, atomic=True))
        entries.append(section(children, atomic=True))
    return entries


def _project_section(resume: ResumeData) -> List[ContentNode]:
    entries = []
    for project in resume.projects:
        children = [heading(project.name or "Project", level=3)]
        if project.description:
            children.append(paragraph(project.description, atomic=True))
        if project.technologies:
            children.append(key_value("Technologies", ", ".join(project.technologies)))
        if project.link:
            children.append(key_value("Link", project.link))
        entries.append(section(children, atomic=True))
    return entries


def _certification_lines(resume: ResumeData) -> List[ContentNode]:
    lines = []
    for certification in resume.certifications:
        text = ", ".join(part for part in (certification.name, certification.issuer) if part)
        if certification.year:
            text = f"{text} ({certification.year})"
        if text:
            lines.append(bullet(text))
    return lines


def build_content_tree(resume: ResumeData, include_preview_overlays: bool = True) -> ContentTree:
    """
    Convert a resume record into a content tree.

    Args:
        resume: Resume record
        include_preview_overlays: Add header/watermark placeholders, as the
            on-screen preview does (the rendering context strips them)

    Returns:
        ContentTree whose subject_name is the person's full name
    """
    nodes: List[ContentNode] = []
    if include_preview_overlays:
        nodes.extend([overlay_placeholder("header"), overlay_placeholder("watermark")])

    nodes.append(_identity_section(resume))

    if resume.personal_info.summary:
        nodes.append(section([heading("Summary"), paragraph(resume.personal_info.summary)]))

    experience = _experience_section(resume)
    if experience:
        nodes.append(section([heading("Experience"), *experience]))

    education = _education_section(resume)
    if education:
        nodes.append(section([heading("Education"), *education]))

    if resume.skills:
        nodes.append(section([heading("Skills"), paragraph(SKILL_SEPARATOR.join(resume.skills))]))

    projects = _project_section(resume)
    if projects:
        nodes.append(section([heading("Projects"), *projects]))

    certifications = _certification_lines(resume)
    if certifications:
        nodes.append(section([heading("Certifications"), *certifications]))

    return ContentTree(nodes=nodes, subject_name=resume.subject_name)
