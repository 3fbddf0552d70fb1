from src.core.documents.models import (
    DOC_PREFIXES,
    DocType,
    DocumentCounter,
    NumberedDocumentMixin,
    format_doc_number,
)
from src.core.documents.number_generator import DocumentNumberService, assign_document_number

__all__ = [
    "DOC_PREFIXES",
    "DocType",
    "DocumentCounter",
    "NumberedDocumentMixin",
    "format_doc_number",
    "DocumentNumberService",
    "assign_document_number",
]
