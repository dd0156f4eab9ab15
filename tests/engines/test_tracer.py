"""Tests for the @traced_engine decorator and input fingerprinting."""

from dataclasses import dataclass
from decimal import Decimal

from erp_engines.tracer import TRACE_TYPE, compute_input_fingerprint, traced_engine


@dataclass(frozen=True)
class _Line:
    sku: str
    qty: int


@traced_engine("sample_engine", "2.1", fingerprint_fields=("lines", "rate"))
def _sample(lines, rate, note=None):
    return sum(line.qty for line in lines) * rate


class TestTracedEngine:

    def test_result_passes_through(self):
        assert _sample([_Line("A", 2), _Line("B", 3)], Decimal("1.5")) == Decimal("7.5")

    def test_emits_one_trace(self, captured_logs):
        _sample([_Line("A", 2)], Decimal("2"))

        traces = [r for r in captured_logs() if r["message"] == TRACE_TYPE]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "sample_engine"
        assert traces[0]["engine_version"] == "2.1"
        assert traces[0]["function"].endswith("_sample")
        assert traces[0]["duration_ms"] >= 0

    def test_positional_and_keyword_calls_fingerprint_alike(self, captured_logs):
        lines = [_Line("A", 2)]
        _sample(lines, Decimal("2"))
        _sample(rate=Decimal("2"), lines=lines)

        fps = [r["input_fingerprint"] for r in captured_logs() if r["message"] == TRACE_TYPE]
        assert len(fps) == 2
        assert fps[0] == fps[1]

    def test_unlisted_arguments_do_not_change_fingerprint(self, captured_logs):
        _sample([_Line("A", 2)], Decimal("2"), note="first")
        _sample([_Line("A", 2)], Decimal("2"), note="second")

        fps = {r["input_fingerprint"] for r in captured_logs() if r["message"] == TRACE_TYPE}
        assert len(fps) == 1


class TestComputeInputFingerprint:

    def test_sixteen_hex_chars(self):
        fp = compute_input_fingerprint(("a",), {"a": 1})

        assert len(fp) == 16
        int(fp, 16)

    def test_dict_key_order_ignored(self):
        assert compute_input_fingerprint(("m",), {"m": {"x": 1, "y": 2}}) == compute_input_fingerprint(
            ("m",), {"m": {"y": 2, "x": 1}}
        )

    def test_sequence_order_matters(self):
        assert compute_input_fingerprint(("s",), {"s": [1, 2]}) != compute_input_fingerprint(
            ("s",), {"s": [2, 1]}
        )

    def test_missing_field_is_null(self):
        assert compute_input_fingerprint(("a",), {}) == compute_input_fingerprint(("a",), {"a": None})
