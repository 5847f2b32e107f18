"""Section models and the page section extractor."""

from .extractor import SectionExtractor
from .models import (
    AnnotationSection,
    ContentSection,
    FormSection,
    ImageSection,
    LinkSection,
    MetadataSection,
    SectionType,
    TextSection,
    section_from_dict,
    section_to_dict,
)

__all__ = [
    "SectionExtractor",
    "AnnotationSection",
    "ContentSection",
    "FormSection",
    "ImageSection",
    "LinkSection",
    "MetadataSection",
    "SectionType",
    "TextSection",
    "section_from_dict",
    "section_to_dict",
]
