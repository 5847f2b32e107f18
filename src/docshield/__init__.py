"""Pre-flight inspection and redaction of documents bound for external AI services.

The package analyses PDFs and images into addressable content sections,
classifies each section for personal, financial, medical and legal
identifiers, and supports a review workflow in which a human selects which
sections may leave the device.  Redaction replaces detected content with
category-tagged placeholders and, for PDFs, applies area redactions and
scrubs document metadata.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
