"""JSON domain package exports."""

from __future__ import annotations

from . import json_diff_core
from . import json_document_core
from . import json_edit_core
from . import json_layout_core
from . import json_serialize_core
from . import json_value_core

__all__ = [
    "json_value_core",
    "json_edit_core",
    "json_layout_core",
    "json_serialize_core",
    "json_document_core",
    "json_diff_core",
]
