import argparse
import gc
import json
import time
import tracemalloc
from pathlib import Path

from confedit.core.domain_impl.json.json_diff_core import count_changed_lines
from confedit.core.domain_impl.json.json_document_core import JSONDocument
from confedit.core.domain_impl.json.json_edit_core import SetValue
from confedit.core.domain_impl.json.json_value_core import JSONArray, JSONObject
from confedit.core.exceptions import EXPECTED_ERRORS


def _build_synthetic_payload(records: int) -> str:
    # Deterministic localization + feature-flag payload for repeatable local/CI perf checks.
    records = max(20, int(records))
    strings = {}
    flags = {}
    for idx in range(records):
        strings[f"screen_{idx // 25}.label_{idx}"] = {
            "translation": f"Label number {idx}",
            "notes": f"Shown on screen {idx // 25}",
            "max_length": 40 + idx % 20,
        }
        flags[f"feature_{idx}"] = {
            "enabled": idx % 3 == 0,
            "rollout": {"percentage": idx % 101, "countries": ["DE", "AT", "CH"][: 1 + idx % 3]},
        }
    payload = {"version": 3, "strings": strings, "flags": flags}
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def _middle_leaf_path(content) -> list:
    path = []
    node = content
    while True:
        if isinstance(node, JSONObject) and len(node):
            key, node = node.entries[len(node) // 2]
            path.append(key)
        elif isinstance(node, JSONArray) and len(node):
            path.append("0")
            node = node[0]
        else:
            return path


def _run_once(payload_text: str) -> dict:
    parse_start = time.perf_counter()
    document = JSONDocument.parse(payload_text, "synthetic.json")
    parse_ms = (time.perf_counter() - parse_start) * 1000.0

    edit_start = time.perf_counter()
    leaf_path = _middle_leaf_path(document.content)
    edited = document.with_operation(SetValue(leaf_path, "edited by perf_smoke"))
    edit_ms = (time.perf_counter() - edit_start) * 1000.0
    if edited is None:
        raise RuntimeError(f"edit did not resolve at {'.'.join(leaf_path)}")

    serialize_start = time.perf_counter()
    roundtrip = document.serialize_text()
    output = edited.serialize_text()
    serialize_ms = (time.perf_counter() - serialize_start) * 1000.0
    if roundtrip != payload_text or output is None:
        raise RuntimeError("round-trip serialization was not byte-identical")

    return {
        "parse_ms": parse_ms,
        "edit_ms": edit_ms,
        "serialize_ms": serialize_ms,
        "total_ms": parse_ms + edit_ms + serialize_ms,
        "changed_lines": count_changed_lines(payload_text, output),
    }


def _fmt_bytes(num_bytes: int) -> str:
    mib = float(num_bytes) / (1024.0 * 1024.0)
    return f"{mib:.2f} MiB"


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Parse/edit/serialize timing and diff-size smoke check for the document engine."
    )
    parser.add_argument(
        "--input",
        type=Path,
        help="Path to a JSON document. If omitted, synthetic payload is used.",
    )
    parser.add_argument("--synthetic-records", type=int, default=1200)
    parser.add_argument("--warmup", type=int, default=1)
    parser.add_argument("--iterations", type=int, default=5)
    # Strict gate exits non-zero when perf or diff-size thresholds regress.
    parser.add_argument("--strict", action="store_true")
    parser.add_argument("--max-parse-ms", type=float, default=500.0)
    parser.add_argument("--max-total-ms", type=float, default=1500.0)
    parser.add_argument("--max-peak-mib", type=float, default=256.0)
    parser.add_argument("--max-changed-lines", type=int, default=2)
    args = parser.parse_args()

    if args.input:
        if not args.input.exists():
            print(f"ERROR: input not found: {args.input}")
            return 2
        source = str(args.input)
        try:
            payload_text = args.input.read_bytes().decode("utf-8")
        except EXPECTED_ERRORS as exc:
            print(f"ERROR: failed to load input payload: {exc}")
            return 2
    else:
        source = f"synthetic:{max(20, int(args.synthetic_records))}"
        payload_text = _build_synthetic_payload(args.synthetic_records)

    iterations = max(1, int(args.iterations))
    warmup = max(0, int(args.warmup))

    samples = []
    peak_samples = []
    tracemalloc.start()
    try:
        for idx in range(warmup + iterations):
            gc.collect()
            try:
                metrics = _run_once(payload_text)
            except EXPECTED_ERRORS as exc:
                print(f"ERROR: {exc}")
                return 2
            _, peak_bytes = tracemalloc.get_traced_memory()
            if idx < warmup:
                continue
            samples.append(metrics)
            peak_samples.append(peak_bytes)
    finally:
        tracemalloc.stop()

    avg_parse = sum(sample["parse_ms"] for sample in samples) / len(samples)
    avg_edit = sum(sample["edit_ms"] for sample in samples) / len(samples)
    avg_serialize = sum(sample["serialize_ms"] for sample in samples) / len(samples)
    max_total = max(sample["total_ms"] for sample in samples)
    changed_lines = max(sample["changed_lines"] for sample in samples)
    peak_bytes = max(peak_samples)

    print("perf_smoke summary")
    print(f"- source: {source}")
    print(f"- iterations: {iterations} (warmup={warmup})")
    print(f"- payload size: {len(payload_text):,} bytes")
    print(f"- avg parse: {avg_parse:.2f} ms")
    print(f"- avg edit: {avg_edit:.2f} ms")
    print(f"- avg serialize: {avg_serialize:.2f} ms")
    print(f"- max total: {max_total:.2f} ms")
    print(f"- changed lines for one leaf edit: {changed_lines}")
    print(f"- peak traced memory: {_fmt_bytes(peak_bytes)}")

    if not args.strict:
        return 0

    failures = []
    if avg_parse > float(args.max_parse_ms):
        failures.append(f"avg parse {avg_parse:.2f} ms > {args.max_parse_ms:.2f} ms")
    if max_total > float(args.max_total_ms):
        failures.append(f"max total {max_total:.2f} ms > {args.max_total_ms:.2f} ms")
    if peak_bytes > int(float(args.max_peak_mib) * 1024 * 1024):
        failures.append(
            f"peak traced memory {_fmt_bytes(peak_bytes)} > {args.max_peak_mib:.2f} MiB"
        )
    if changed_lines > int(args.max_changed_lines):
        failures.append(f"changed lines {changed_lines} > {args.max_changed_lines}")

    if failures:
        print("perf_smoke strict gate: FAIL")
        for failure in failures:
            print(f"- {failure}")
        return 1

    print("perf_smoke strict gate: PASS")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
