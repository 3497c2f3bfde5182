from .template import (
    DEFAULT_FIELD_HEIGHT,
    DEFAULT_TEMPLATE_ID,
    Alignment,
    Field,
    Page,
    PaperSize,
    Template,
    default_pages,
    default_template,
)

__all__ = [
    "DEFAULT_FIELD_HEIGHT",
    "DEFAULT_TEMPLATE_ID",
    "Alignment",
    "Field",
    "Page",
    "PaperSize",
    "Template",
    "default_pages",
    "default_template",
]
