"""Tests for saving and loading orders and the queue."""

import pytest

from core.exceptions import PersistenceError
from models.order import IdGenerator
from modules import order_codec
from services.order_manager import OrderManager
from services.persistence_service import PersistenceService


@pytest.fixture
def populated(manager, make_order, vip_user):
    orders = [
        make_order(order_id=1000, instructions="a|b\nc"),
        make_order(order_id=1001, user=vip_user, quantity=12),
        make_order(order_id=1002, user=None, material=None),
    ]
    orders[1].update_status("processing")
    orders[1].set_priority("rush")
    for order in orders:
        manager.register(order)
    # Queue order differs from id order on purpose
    manager.enqueue(orders[2])
    manager.enqueue(orders[0])
    return orders


class TestSaveAndLoad:

    def test_round_trip(self, tmp_path, manager, populated):
        PersistenceService(manager, tmp_path).save_all()

        restored = OrderManager()
        reports = PersistenceService(restored, tmp_path).load_all()

        assert reports["orders"].loaded == 3
        assert reports["queue"].loaded == 2
        assert sorted(restored.get_all(), key=lambda o: o.order_id) == populated
        assert restored.get_by_id(1000).special_instructions == "a|b\nc"
        assert restored.queued_ids() == [1002, 1000]

    def test_queue_entries_share_registered_orders(self, tmp_path, manager, populated):
        PersistenceService(manager, tmp_path).save_all()
        restored = OrderManager()
        PersistenceService(restored, tmp_path).load_all()
        assert restored.dequeue_next() is restored.get_by_id(1002)

    def test_files_written(self, tmp_path, manager, populated):
        counts = PersistenceService(manager, tmp_path).save_all()
        assert counts == {"orders": 3, "queue": 2}

        orders_text = (tmp_path / "orders.txt").read_text(encoding="utf-8")
        queue_text = (tmp_path / "order_queue.txt").read_text(encoding="utf-8")
        assert orders_text.startswith("# Order Data Export")
        assert queue_text.splitlines()[-2:] == ["1002", "1000"]
        assert not list(tmp_path.glob("*.tmp"))

    def test_save_orders_and_queue_separately(self, tmp_path, manager, populated):
        service = PersistenceService(manager, tmp_path / "nested")
        assert service.save_orders() == 3
        assert service.save_queue() == 2
        assert service.orders_path.exists()
        assert service.queue_path.exists()

    def test_version_two(self, tmp_path, manager, make_order):
        manager.register(make_order(order_id=1, instructions="C:\\new\\file"))
        PersistenceService(manager, tmp_path, format_version=order_codec.FORMAT_V2).save_orders()

        assert "# Format-Version: 2" in (tmp_path / "orders.txt").read_text(encoding="utf-8")

        restored = OrderManager()
        PersistenceService(restored, tmp_path).load_orders()
        assert restored.get_by_id(1).special_instructions == "C:\\new\\file"

    def test_load_advances_id_generator(self, tmp_path, manager, populated):
        PersistenceService(manager, tmp_path).save_all()
        generator = IdGenerator()
        PersistenceService(OrderManager(), tmp_path, id_generator=generator).load_orders()
        assert generator.next_id() == 1003

    def test_unsupported_version(self, tmp_path, manager):
        with pytest.raises(ValueError):
            PersistenceService(manager, tmp_path, format_version=5)


class TestLoadEdgeCases:

    def test_missing_files_are_empty_loads(self, tmp_path, manager):
        reports = PersistenceService(manager, tmp_path).load_all()
        assert reports["orders"].loaded == 0
        assert reports["queue"].loaded == 0
        assert manager.get_all() == []

    def test_queue_ids_without_orders_are_skipped(self, tmp_path, manager, make_order):
        manager.register(make_order(order_id=1000))
        (tmp_path / "order_queue.txt").write_text("# queue\n1000\n5555\nabc\n", encoding="utf-8")

        report = PersistenceService(manager, tmp_path).load_queue()
        assert report.loaded == 1
        assert report.skipped == 2
        assert manager.queued_ids() == [1000]

    def test_bad_lines_counted(self, tmp_path, manager):
        (tmp_path / "orders.txt").write_text(
            "# Order Data Export\n\n"
            "1000|alice|a@example.com|customer|PLA|0.05|210|red|1x1x1|1||pending|normal|0.1\n"
            "broken line\n",
            encoding="utf-8",
        )
        report = PersistenceService(manager, tmp_path).load_orders()
        assert report.loaded == 1
        assert report.skipped == 1
        assert manager.get_by_id(1000) is not None

    def test_crlf_file(self, tmp_path, manager):
        (tmp_path / "orders.txt").write_bytes(
            b"# Order Data Export\r\n\r\n"
            b"1000|alice|a@example.com|customer|PLA|0.05|210|red|1x1x1|1||pending|normal|0.1\r\n"
        )
        report = PersistenceService(manager, tmp_path).load_orders()
        assert report.loaded == 1
        assert manager.get_by_id(1000).estimated_print_hours == pytest.approx(0.1)

    def test_unreadable_file_raises(self, tmp_path, manager):
        (tmp_path / "orders.txt").mkdir()
        with pytest.raises(PersistenceError):
            PersistenceService(manager, tmp_path).load_orders()


class TestLoadReplacesMemory:

    def test_load_all_twice_keeps_one_queue_entry_per_order(self, tmp_path, manager, populated):
        service = PersistenceService(manager, tmp_path)
        service.save_all()

        service.load_all()
        service.load_all()

        assert manager.queued_ids() == [1002, 1000]
        assert manager.registry_size() == 3

    def test_queue_holds_registered_objects_after_reload(self, tmp_path, manager, populated):
        service = PersistenceService(manager, tmp_path)
        service.save_all()
        service.load_all()

        manager.get_by_id(1002).update_status("processing")
        head = manager.dequeue_next()
        assert head is manager.get_by_id(1002)
        assert head.status == "processing"

    def test_orders_added_after_save_are_dropped(self, tmp_path, manager, populated, make_order):
        service = PersistenceService(manager, tmp_path)
        service.save_all()

        extra = make_order(order_id=1003)
        manager.register(extra)
        manager.enqueue(extra)
        service.load_all()

        assert manager.get_by_id(1003) is None
        assert manager.queued_ids() == [1002, 1000]

    def test_no_saved_files_keeps_memory(self, tmp_path, manager, populated):
        PersistenceService(manager, tmp_path).load_all()
        assert manager.registry_size() == 3
        assert manager.queued_ids() == [1002, 1000]

    def test_read_error_keeps_memory(self, tmp_path, manager, populated):
        service = PersistenceService(manager, tmp_path)
        service.save_orders()
        (tmp_path / "order_queue.txt").mkdir()

        with pytest.raises(PersistenceError):
            service.load_all()
        assert manager.registry_size() == 3
        assert manager.queued_ids() == [1002, 1000]

    def test_load_orders_repoints_queue(self, tmp_path, manager, populated):
        service = PersistenceService(manager, tmp_path)
        service.save_orders()
        service.load_orders()

        assert manager.queued_ids() == [1002, 1000]
        assert manager.queue_snapshot()[0] is manager.get_by_id(1002)
        assert manager.queue_snapshot()[0] is not populated[2]

    def test_load_queue_replaces_queue(self, tmp_path, manager, populated):
        service = PersistenceService(manager, tmp_path)
        (tmp_path / "order_queue.txt").write_text("1001\n", encoding="utf-8")

        report = service.load_queue()
        assert report.loaded == 1
        assert manager.queued_ids() == [1001]
