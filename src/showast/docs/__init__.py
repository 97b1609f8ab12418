from showast.docs.store import (
    DEFAULT_DOCS_PATH,
    DocStore,
    DocStoreError,
    PropertyDoc,
    TypeDoc,
    format_doc_text,
)

__all__ = [
    "DEFAULT_DOCS_PATH",
    "DocStore",
    "DocStoreError",
    "PropertyDoc",
    "TypeDoc",
    "format_doc_text",
]
