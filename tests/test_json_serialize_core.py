"""Order-preserving serializer tests."""

import json
import random

import pytest

from confedit.core.domain_impl.json.json_diff_core import count_changed_lines
from confedit.core.domain_impl.json.json_edit_core import (
    AddField,
    DeleteArrayElement,
    DeleteField,
    InsertArrayElement,
    MoveArrayElement,
    SetValue,
    apply_operation,
)
from confedit.core.domain_impl.json.json_layout_core import detect_indent_unit, detect_newline
from confedit.core.domain_impl.json.json_serialize_core import (
    render_value,
    serialize_canonical,
    serialize_tree,
)
from confedit.core.domain_impl.json.json_value_core import (
    JSONArray,
    JSONFloat,
    JSONObject,
    from_python,
    parse_value_text,
)

LAYOUTS = [
    '{\n  "b": 1,\n  "a": [1, 2, 3],\n  "c": {"x": null}\n}\n',
    '{"compact":true,"n":[1,2,{"k":"v"}]}',
    '{\n\t"a": 1,\n\t"b": {\n\t\t"c": "é"\n\t}\n}',
    '{\r\n    "a": 1,\r\n    "b": 2\r\n}\r\n',
    '{"s": "\\u00e9\\n", "e": 1.50, "big": 1e3, "neg": -0.0}',
    "{}",
    '  {"a" : 1 ,  "b":[ ]}  \n',
]


def _edit(text, operation):
    tree = apply_operation(parse_value_text(text), operation)
    assert tree is not None
    return serialize_tree(tree, text)


@pytest.mark.parametrize("text", LAYOUTS)
def test_unchanged_tree_round_trips_byte_identical(text):
    assert serialize_tree(parse_value_text(text), text) == text


def test_leaf_edit_only_touches_its_value():
    text = '{\n  "name": "app",\n  "version": 1,\n  "nested": {\n    "flag": false,\n    "list": [1, 2, 3]\n  }\n}\n'
    output = _edit(text, SetValue(["nested", "flag"], True))
    assert output == text.replace('"flag": false', '"flag": true')


def test_new_key_follows_sibling_style():
    text = '{\n    "a": 1,\n    "b": 2\n}\n'
    assert _edit(text, AddField([], "c", 3)) == '{\n    "a": 1,\n    "b": 2,\n    "c": 3\n}\n'
    expected = '{\n    "a": 1,\n    "b": 2,\n    "d": {\n        "x": 1\n    }\n}\n'
    assert _edit(text, AddField([], "d", {"x": 1})) == expected


def test_inline_objects_stay_inline():
    text = '{"a": {"x": 1, "y": 2}, "b": 3}'
    assert _edit(text, SetValue(["a", "y"], 5)) == '{"a": {"x": 1, "y": 5}, "b": 3}'
    assert _edit(text, AddField(["a"], "z", True)) == '{"a": {"x": 1, "y": 2, "z": true}, "b": 3}'


def test_deleting_members_keeps_remaining_layout():
    text = '{\n  "a": 1,\n  "b": 2,\n  "c": 3\n}\n'
    assert _edit(text, DeleteField(["b"])) == '{\n  "a": 1,\n  "c": 3\n}\n'
    assert _edit(text, DeleteField(["c"])) == '{\n  "a": 1,\n  "b": 2\n}\n'
    assert _edit(text, DeleteField(["a"])) == '{\n  "b": 2,\n  "c": 3\n}\n'


def test_array_append_uses_element_indentation():
    text = '{\n  "arr": [\n    "x",\n    "y"\n  ]\n}\n'
    output = _edit(text, InsertArrayElement(["arr"], "z"))
    assert output == '{\n  "arr": [\n    "x",\n    "y",\n    "z"\n  ]\n}\n'


def test_array_move_in_single_line_array():
    text = '{"a": [1, 2, 3, 4]}'
    assert _edit(text, MoveArrayElement(["a"], 0, 2)) == '{"a": [2, 3, 1, 4]}'


def test_array_delete_keeps_neighbours():
    text = '{\n  "arr": [\n    "a",\n    "b",\n    "c"\n  ]\n}\n'
    output = _edit(text, DeleteArrayElement(["arr", 1]))
    assert output == '{\n  "arr": [\n    "a",\n    "c"\n  ]\n}\n'


def test_crlf_newlines_are_kept_for_new_members():
    text = '{\r\n  "a": 1\r\n}\r\n'
    assert _edit(text, AddField([], "b", 2)) == '{\r\n  "a": 1,\r\n  "b": 2\r\n}\r\n'


def test_member_order_survives_value_changes():
    text = '{"z": 1, "a": 2, "m": 3}'
    output = _edit(text, SetValue(["a"], "two"))
    assert list(json.loads(output)) == ["z", "a", "m"]


def test_canonical_output_without_original_text():
    tree = from_python({"b": 1, "a": [1]})
    assert serialize_tree(tree) == '{\n  "a": [\n    1\n  ],\n  "b": 1\n}\n'
    assert serialize_canonical(tree, indent=4, sort_keys=False) == '{\n    "b": 1,\n    "a": [\n        1\n    ]\n}\n'


def test_unreadable_original_falls_back_to_canonical():
    tree = from_python({"a": 1})
    assert serialize_tree(tree, "not json") == '{\n  "a": 1\n}\n'


def test_unrepresentable_tree_serializes_to_none():
    tree = JSONObject((("bad", JSONFloat(float("inf"))),))
    assert serialize_tree(tree) is None
    assert serialize_tree(tree, '{"bad": 1}') is None


def test_layout_detection():
    assert detect_indent_unit('{\n    "a": {\n        "b": 1\n    }\n}') == "    "
    assert detect_indent_unit('{\n\t"a": 1\n}') == "\t"
    assert detect_indent_unit('{"a": 1}') == "  "
    assert detect_newline('{\r\n}') == "\r\n"
    assert detect_newline('{\n}') == "\n"


def test_render_value_nests_blocks():
    value = from_python({"a": [], "b": {"c": [1]}})
    assert render_value(value) == '{\n  "a": [],\n  "b": {\n    "c": [\n      1\n    ]\n  }\n}'


def _random_value(rng, depth):
    roll = rng.random()
    if depth <= 0 or roll < 0.45:
        return rng.choice(
            [
                rng.randint(-1000, 1000),
                round(rng.uniform(-100, 100), 3),
                f"text-{rng.randint(0, 10 ** 6)}",
                rng.random() < 0.5,
                None,
            ]
        )
    if roll < 0.7:
        return [_random_value(rng, depth - 1) for _ in range(rng.randint(1, 5))]
    return {f"key_{idx}": _random_value(rng, depth - 1) for idx in range(rng.randint(1, 6))}


def _large_document(rng, sections=60):
    return {f"section_{idx}": _random_value(rng, 4) for idx in range(sections)}


def _leaf_paths(value, path=()):
    if isinstance(value, JSONObject):
        for key, child in value.items():
            yield from _leaf_paths(child, path + (key,))
    elif isinstance(value, JSONArray):
        for idx, child in enumerate(value):
            yield from _leaf_paths(child, path + (str(idx),))
    else:
        yield path


def _object_paths(value, path=()):
    if isinstance(value, JSONObject):
        if len(value):
            yield path
        for key, child in value.items():
            yield from _object_paths(child, path + (key,))
    elif isinstance(value, JSONArray):
        for idx, child in enumerate(value):
            yield from _object_paths(child, path + (str(idx),))


@pytest.mark.parametrize("seed", range(8))
def test_single_leaf_edit_changes_a_bounded_number_of_lines(seed):
    rng = random.Random(seed)
    text = json.dumps(_large_document(rng), indent=2) + "\n"
    tree = parse_value_text(text)
    path = rng.choice(list(_leaf_paths(tree)))
    edited = SetValue(path, f"changed-{seed}").apply(tree)
    output = serialize_tree(edited, text)
    assert parse_value_text(output) == edited
    assert count_changed_lines(text, output) <= 2


@pytest.mark.parametrize("seed", range(8))
def test_added_key_changes_a_bounded_number_of_lines(seed):
    rng = random.Random(100 + seed)
    text = json.dumps(_large_document(rng), indent=2) + "\n"
    tree = parse_value_text(text)
    parent = rng.choice(list(_object_paths(tree)))
    edited = AddField(parent, "added_key", [1, 2]).apply(tree)
    output = serialize_tree(edited, text)
    assert parse_value_text(output) == edited
    # One new member spread over its rendered lines plus the comma on its predecessor.
    assert count_changed_lines(text, output) <= 2 + len(render_value(from_python([1, 2])).splitlines())


def _random_operation(rng, tree):
    leaves = list(_leaf_paths(tree))
    objects = list(_object_paths(tree)) or [()]
    kind = rng.randrange(6)
    if kind == 0 and leaves:
        return SetValue(rng.choice(leaves), _random_value(rng, 1))
    if kind == 1:
        return AddField(rng.choice(objects), f"new_{rng.randint(0, 999)}", _random_value(rng, 2))
    if kind == 2 and leaves:
        path = rng.choice(leaves)
        return DeleteField(path) if path else SetValue(("x",), 1)
    if kind == 3 and leaves:
        path = rng.choice(leaves)
        return DeleteArrayElement(path)
    if kind == 4 and leaves:
        path = rng.choice(leaves)
        return InsertArrayElement(path[:-1], _random_value(rng, 1), rng.randint(0, 3))
    if leaves:
        path = rng.choice(leaves)
        return MoveArrayElement(path[:-1], rng.randint(0, 3), rng.randint(0, 3))
    return AddField((), "filler", 1)


@pytest.mark.parametrize("seed", range(12))
def test_reparse_after_edit_sequences_reproduces_tree(seed):
    rng = random.Random(1000 + seed)
    text = json.dumps(_large_document(rng, sections=12), indent=rng.choice([2, 4]))
    tree = parse_value_text(text)
    applied = 0
    for _ in range(25):
        updated = apply_operation(tree, _random_operation(rng, tree))
        if updated is None:
            continue
        tree = updated
        applied += 1
        output = serialize_tree(tree, text)
        assert output is not None
        assert parse_value_text(output) == tree
    assert applied > 0


def test_moved_containers_are_copied_verbatim():
    text = '{\n  "arr": [\n    {"k": 1},\n    {"k": 2}\n  ]\n}\n'
    assert _edit(text, MoveArrayElement(["arr"], 1, 0)) == '{\n  "arr": [\n    {"k": 2},\n    {"k": 1}\n  ]\n}\n'
    block = '{\n  "arr": [\n    {\n      "k": 1\n    },\n    {\n      "k": 2\n    }\n  ]\n}\n'
    expected = '{\n  "arr": [\n    {\n      "k": 2\n    },\n    {\n      "k": 1\n    }\n  ]\n}\n'
    assert _edit(block, MoveArrayElement(["arr"], 1, 0)) == expected


def test_new_item_among_single_line_objects_stays_inline():
    text = '{\n  "arr": [\n    {"k": 1},\n    {"k": 2}\n  ]\n}\n'
    output = _edit(text, InsertArrayElement(["arr"], {"k": 3}))
    assert output == '{\n  "arr": [\n    {"k": 1},\n    {"k": 2},\n    {"k": 3}\n  ]\n}\n'


def test_compact_documents_keep_compact_separators():
    text = '{"a":{"x":1},"b":2}'
    assert _edit(text, SetValue(["a"], {"y": [1, 2]})) == '{"a":{"y":[1,2]},"b":2}'
    assert _edit(text, AddField([], "c", {"d": True})) == '{"a":{"x":1},"b":2,"c":{"d":true}}'
