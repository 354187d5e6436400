"""Batch document editing and review preview domain module."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Sequence

from confedit.core.domain_impl.infra.engine_settings_service import EngineSettings
from confedit.core.domain_impl.json import json_diff_core
from confedit.core.domain_impl.json.json_document_core import JSONDocument
from confedit.core.domain_impl.json.json_edit_core import EditOperation

_LOG = logging.getLogger(__name__)


def apply_to_documents(
    documents: Sequence[JSONDocument],
    operation: EditOperation,
    max_workers: Optional[int] = None,
) -> list[Optional[JSONDocument]]:
    """Apply the same operation to every document in parallel.

    Results keep the input order; an entry is None where the operation did not
    resolve against that document.
    """
    if not documents:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(lambda doc: doc.with_operation(operation), documents))
    failed = sum(1 for result in results if result is None)
    if failed:
        _LOG.info("batch edit unresolved in %d of %d documents: %s", failed, len(results), operation.description)
    return results


def diff_preview(document: JSONDocument) -> str:
    """Unified diff between the original text and the current serialization."""
    original = document.original_text or ""
    updated = document.serialize_text()
    if updated is None:
        return ""
    return json_diff_core.unified_diff_text(original, updated, document.file_name or "document")


class DocumentService:
    json_diff_core = json_diff_core
    apply_to_documents = staticmethod(apply_to_documents)
    diff_preview = staticmethod(diff_preview)

    def __init__(self, settings: Any = None) -> None:
        self.settings = settings if isinstance(settings, EngineSettings) else EngineSettings()

    def apply_batch(
        self,
        documents: Sequence[JSONDocument],
        operation: EditOperation,
    ) -> list[Optional[JSONDocument]]:
        """Batch edit with the worker count taken from the engine settings."""
        return apply_to_documents(documents, operation, self.settings.batch_max_workers)


DOCUMENT = DocumentService()
