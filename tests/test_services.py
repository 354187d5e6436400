"""Boundary function and service facade tests."""

import confedit
from confedit.core.domain_impl.infra.engine_settings_service import EngineSettings
from confedit.services.document_service import DOCUMENT, DocumentService
from confedit.services.json_engine import JSON_ENGINE, JsonEngine
from confedit.services.validation_engine import VALIDATION, ValidationEngine

SOURCE = b'{\n  "greeting": {\n    "translation": "Hallo",\n    "notes": "Home screen"\n  },\n  "farewell": {\n    "translation": "Tschuss"\n  }\n}\n'
SCHEMA = b"""{
  "type": "object",
  "additionalProperties": {
    "type": "object",
    "required": ["translation", "notes"],
    "properties": {"translation": {"type": "string"}, "notes": {"type": "string"}}
  }
}"""


def test_boundary_round_trip():
    doc = confedit.parse_document(SOURCE, "strings/de.json")
    assert confedit.serialize_document(doc) == SOURCE
    edited = confedit.apply_operation(doc, confedit.AddField(["farewell"], "notes", "Exit dialog"))
    assert edited is not None
    output = confedit.serialize_document(edited)
    assert output == SOURCE.replace(
        b'"translation": "Tschuss"\n', b'"translation": "Tschuss",\n    "notes": "Exit dialog"\n'
    )
    assert confedit.apply_operation(doc, confedit.DeleteField(["missing"])) is None


def test_boundary_validation():
    schema = confedit.parse_schema(SCHEMA)
    doc = confedit.parse_document(SOURCE)
    result = confedit.validate_document(doc, schema)
    assert [(error.path_string, error.message) for error in result.errors] == [
        ("farewell", "Missing required field: notes")
    ]
    fixed = confedit.apply_operation(doc, confedit.SetValue(["farewell", "notes"], "Exit"))
    assert confedit.validate_document(fixed, schema).is_valid
    assert VALIDATION.validate_document(fixed.content, schema).is_valid


def test_engine_settings_drive_canonical_output():
    doc = confedit.JSONDocument.from_content({"b": 1, "a": 2})
    engine = JsonEngine(EngineSettings(canonical_indent=4, canonical_sort_keys=False))
    assert engine.serialize(doc) == b'{\n    "b": 1,\n    "a": 2\n}\n'
    assert JSON_ENGINE.serialize(doc) == b'{\n  "a": 2,\n  "b": 1\n}\n'


def test_apply_to_documents_keeps_order_and_marks_failures():
    docs = [
        confedit.parse_document(b'{"flags": {"dark_mode": false}}', "a.json"),
        confedit.parse_document(b'{"other": 1}', "b.json"),
        confedit.parse_document(b'{"flags": {"dark_mode": false, "beta": true}}', "c.json"),
    ]
    results = DOCUMENT.apply_to_documents(docs, confedit.SetValue(["flags", "dark_mode"], True), max_workers=2)
    assert [result is None for result in results] == [False, True, False]
    assert results[0].id == docs[0].id
    assert results[2].serialize() == b'{"flags": {"dark_mode": true, "beta": true}}'
    assert DOCUMENT.apply_to_documents([], confedit.DeleteField(["x"])) == []


def test_diff_preview():
    doc = confedit.parse_document(SOURCE, "strings/de.json")
    assert DOCUMENT.diff_preview(doc) == ""
    edited = doc.with_operation(confedit.SetValue(["greeting", "translation"], "Servus"))
    preview = DOCUMENT.diff_preview(edited)
    assert '-    "translation": "Hallo",\n' in preview
    assert '+    "translation": "Servus",\n' in preview
    assert "a/de.json" in preview


def test_invalid_input_raises_app_errors():
    try:
        confedit.parse_document(b"[]")
    except confedit.AppError as exc:
        assert isinstance(exc, confedit.InvalidJSONError)
    else:
        raise AssertionError("expected InvalidJSONError")


def test_validation_engine_reads_format_setting():
    schema = confedit.parse_schema(b'{"properties": {"released": {"type": "string", "format": "date"}}}')
    doc = confedit.parse_document(b'{"released": "2024-13-01"}')
    assert VALIDATION.validate(doc, schema).warning_count == 1
    assert ValidationEngine(EngineSettings(check_formats=False)).validate(doc, schema).errors == ()


def test_document_service_batch_uses_configured_workers():
    service = DocumentService(EngineSettings(batch_max_workers=1))
    docs = [confedit.parse_document(f'{{"n": {idx}}}'.encode("utf-8")) for idx in range(4)]
    results = service.apply_batch(docs, confedit.SetValue(["n"], 0))
    assert [result.serialize() for result in results] == [b'{"n": 0}'] * 4
    assert [result.id for result in results] == [doc.id for doc in docs]
