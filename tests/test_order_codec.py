"""Unit tests for the orders.txt / order_queue.txt text format."""

from datetime import datetime

import pytest

from core.exceptions import PersistenceError
from models.order import Order
from modules import order_codec
from modules.estimator import PrintTimeEstimator


LEGACY_FILE = """# Order Data Export
# Format: orderID|username|email|role|materialName|materialCostPerGram|materialPrintTemp|materialColor|dimensions|quantity|specialInstructions|status|priority|estimatedPrintHours
# Generated: 2024-03-01 09:00:00

1000|alice|alice@example.com|customer|PLA|0.05|210|red|10x10x10cm|2|Handle with care|pending|normal|2.0
1001|bob|bob@example.com|vip|ABS|0.06|240|black|5x5x5cm|1|RUSH\\|fragile|printing|rush|0.125
"""


class TestEscaping:

    def test_escape_pipe_and_line_breaks(self):
        assert order_codec.escape_field("a|b\nc\rd") == "a\\|b\\nc\\rd"

    def test_round_trip_v1(self):
        text = "a|b\nc"
        assert order_codec.unescape_field(order_codec.escape_field(text)) == text

    def test_v1_leaves_backslash_ambiguous(self):
        # A literal backslash-n reads back as a newline in version 1
        escaped = order_codec.escape_field("C:\\new")
        assert escaped == "C:\\new"
        assert order_codec.unescape_field(escaped) == "C:" + "\n" + "ew"

    def test_v2_escapes_backslash_first(self):
        escaped = order_codec.escape_field("C:\\new|x", order_codec.FORMAT_V2)
        assert escaped == "C:\\\\new\\|x"
        assert order_codec.unescape_field(escaped, order_codec.FORMAT_V2) == "C:\\new|x"

    @pytest.mark.parametrize("text", ["\\", "a\\|b", "end\\", "\\n\n\\r\r|"])
    def test_v2_exact_for_backslash_text(self, text):
        escaped = order_codec.escape_field(text, order_codec.FORMAT_V2)
        assert order_codec.unescape_field(escaped, order_codec.FORMAT_V2) == text

    def test_split_honours_escaped_pipes(self):
        assert order_codec.split_fields("a\\|b|c||d") == ["a\\|b", "c", "", "d"]

    def test_none_escapes_to_empty(self):
        assert order_codec.escape_field(None) == ""
        assert order_codec.unescape_field(None) == ""


class TestRecords:

    def test_encode_layout(self, make_order):
        line = order_codec.encode_order(make_order(order_id=1000))
        assert line == (
            "1000|alice|alice@example.com|customer|PLA|0.05|210|red|"
            "10x10x10cm|2||pending|normal|2.0"
        )

    def test_missing_user_and_material_are_empty_fields(self, make_order):
        order = make_order(order_id=5, user=None, material=None)
        line = order_codec.encode_order(order)
        assert line.startswith("5||||||||10x10x10cm|")
        assert len(order_codec.split_fields(line)) == order_codec.FIELD_COUNT

        decoded = order_codec.decode_order(line)
        assert decoded.user is None
        assert decoded.material is None

    def test_round_trip_single_order(self, make_order, vip_user):
        order = make_order(order_id=77, user=vip_user, instructions="a|b\nc")
        order.update_status("processing")
        order.set_priority("rush")
        assert order_codec.decode_order(order_codec.encode_order(order)) == order

    def test_legacy_thirteen_field_line_without_material(self):
        order = order_codec.decode_order(
            "1001|bob|b@example.com|customer||||5x5x5cm|1||pending|normal|0.125"
        )
        assert order.material is None
        assert order.dimensions == "5x5x5cm"
        assert order.estimated_print_hours == pytest.approx(0.125)

    def test_bad_hours_are_recomputed(self):
        order = order_codec.decode_order(
            "9|alice|a@example.com|customer|PLA|0.05|210|red|10x10x10cm|3||pending|normal|n/a"
        )
        assert order.estimated_print_hours == PrintTimeEstimator.estimate_hours("10x10x10cm", 3)

    def test_status_outside_enum_is_kept(self):
        order = order_codec.decode_order(
            "9|alice|a@example.com|customer|PLA|0.05|210|red|1x1x1|1||on hold|normal|0.1"
        )
        assert order.status == "on hold"

    @pytest.mark.parametrize("line", [
        "garbage",
        "x|alice|a@example.com|customer|PLA|0.05|210|red|1x1x1|1||pending|normal|0.1",
        "9|alice|a@example.com|customer|PLA|cheap|210|red|1x1x1|1||pending|normal|0.1",
        "9|alice|a@example.com|customer|PLA|0.05|210|red|1x1x1|two||pending|normal|0.1",
        "9|alice|a@example.com|customer|PLA|0.05|210|red|1x1x1|1||pending|normal|0.1|extra",
    ])
    def test_malformed_lines_raise(self, line):
        with pytest.raises(order_codec.OrderDecodeError):
            order_codec.decode_order(line)


class TestOrdersFile:

    def test_reads_legacy_file(self):
        orders, report = order_codec.parse_orders(LEGACY_FILE)
        assert report.loaded == 2
        assert report.skipped == 0
        assert orders[0].special_instructions == "Handle with care"
        assert orders[1].special_instructions == "RUSH|fragile"
        assert orders[1].user.role == "vip"
        assert orders[1].status == "printing"
        assert orders[1].priority == "rush"

    def test_header_and_round_trip(self, make_order):
        orders = [make_order(order_id=1000, instructions="a|b\nc"), make_order(order_id=1001)]
        text = order_codec.dump_orders(orders, generated_at=datetime(2026, 1, 2, 3, 4, 5))

        assert text.startswith("# Order Data Export\n# Format: orderID|username|")
        assert "# Generated: 2026-01-02 03:04:05" in text
        assert "Format-Version" not in text

        loaded, report = order_codec.parse_orders(text)
        assert loaded == orders
        assert loaded[0].special_instructions == "a|b\nc"
        assert report.loaded == 2

    def test_version_two_file(self, make_order):
        orders = [make_order(order_id=1, instructions="path C:\\new\\ and |pipes|")]
        text = order_codec.dump_orders(orders, order_codec.FORMAT_V2)
        assert "# Format-Version: 2" in text
        assert order_codec.detect_version(text) == order_codec.FORMAT_V2

        loaded, _ = order_codec.parse_orders(text)
        assert loaded[0].special_instructions == "path C:\\new\\ and |pipes|"

    def test_malformed_lines_skipped_and_counted(self):
        text = LEGACY_FILE + "not an order\n\n# trailing comment\n1002|too|few\n"
        orders, report = order_codec.parse_orders(text)
        assert [o.order_id for o in orders] == [1000, 1001]
        assert report.loaded == 2
        assert report.skipped == 2
        assert len(report.errors) == 2

    def test_empty_text(self):
        orders, report = order_codec.parse_orders("")
        assert orders == []
        assert report.loaded == 0

    def test_unknown_version_rejected(self):
        with pytest.raises(PersistenceError):
            order_codec.parse_orders("# Order Data Export\n# Format-Version: 9\n\n")

    def test_dump_rejects_unknown_version(self, make_order):
        with pytest.raises(ValueError):
            order_codec.dump_orders([make_order()], version=3)


class TestQueueFile:

    def test_round_trip_keeps_order(self):
        text = order_codec.dump_queue([1002, 1000, 1001])
        assert text.startswith("# Order Queue Export")
        ids, report = order_codec.parse_queue(text)
        assert ids == [1002, 1000, 1001]
        assert report.loaded == 3

    def test_bad_lines_skipped(self):
        ids, report = order_codec.parse_queue("# header\n\n1002\nxyz\n1000\n")
        assert ids == [1002, 1000]
        assert report.skipped == 1
