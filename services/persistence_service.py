"""
Saving and loading orders and the print queue.

Files (inside the data directory):
    orders.txt        every registered order, see modules.order_codec
    order_queue.txt   queued order ids, head of the queue first

Save:
    1. Take a snapshot of registry + queue under the OrderManager lock
    2. Release the lock and render the text
    3. Write to a temporary file in the same directory, then os.replace()
       it over the target, so a crash never leaves a half-written file

Load:
    Loading replaces what is in memory. load_all() swaps in the registry and
    the queue from the files together; load_orders() and load_queue() replace
    one side and re-resolve the queue against the registry. Queue ids that
    are not in the registry are skipped and counted. After loading, the id
    generator is moved past the highest loaded id.

    A missing file is an empty load. A file that exists but cannot be read
    raises PersistenceError. Bad lines are skipped, never fatal.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple, Union

from core.exceptions import PersistenceError
from logging_config import get_logger
from models.order import IdGenerator, Order
from models.order_result import LoadReport
from modules import order_codec
from services.order_manager import OrderManager


logger = get_logger(__name__)

ORDERS_FILENAME = "orders.txt"
QUEUE_FILENAME = "order_queue.txt"


class PersistenceService:
    """
    Moves OrderManager state to and from the data directory.

    Usage:
        persistence = PersistenceService(manager, "data/")
        persistence.save_all()
        report = persistence.load_all()
    """

    def __init__(
        self,
        manager: OrderManager,
        data_dir: Union[str, Path],
        format_version: int = order_codec.FORMAT_V1,
        id_generator: Optional[IdGenerator] = None,
    ):
        if format_version not in order_codec.SUPPORTED_VERSIONS:
            raise ValueError(f"Unsupported order file format version: {format_version}")

        self.manager = manager
        self.data_dir = Path(data_dir)
        self.format_version = format_version
        self.id_generator = id_generator

    @property
    def orders_path(self) -> Path:
        return self.data_dir / ORDERS_FILENAME

    @property
    def queue_path(self) -> Path:
        return self.data_dir / QUEUE_FILENAME

    # =========================================================================
    # FILE HELPERS
    # =========================================================================

    def _write_atomic(self, path: Path, text: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as tmp:
                    tmp.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write {path.name}: {e}", str(path)) from e

    def _read(self, path: Path) -> Optional[str]:
        if not path.exists():
            logger.info(f"{path} does not exist, nothing to load")
            return None
        try:
            # newline="" keeps escaped content byte-exact; the codec splits on "\n"
            with open(path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Cannot read {path.name}: {e}", str(path)) from e

    def _parse_orders_file(self) -> Tuple[Optional[List[Order]], LoadReport]:
        text = self._read(self.orders_path)
        if text is None:
            return None, LoadReport()
        return order_codec.parse_orders(text)

    def _parse_queue_file(self) -> Tuple[Optional[List[int]], LoadReport]:
        text = self._read(self.queue_path)
        if text is None:
            return None, LoadReport()
        order_ids, parsed = order_codec.parse_queue(text)
        return order_ids, LoadReport(skipped=parsed.skipped, errors=list(parsed.errors))

    def _count_queue(self, queue_ids: List[int], missing: List[int], report: LoadReport) -> None:
        for order_id in missing:
            logger.warning(f"Queued order {order_id} is not registered, skipping")
            report.skip(f"order {order_id} is not registered")
        report.loaded = len(queue_ids) - len(missing)

    def _advance_ids(self, orders: List[Order]) -> None:
        if orders and self.id_generator is not None:
            self.id_generator.advance_past(max(order.order_id for order in orders))

    # =========================================================================
    # ORDERS
    # =========================================================================

    def save_orders(self) -> int:
        """
        Write every registered order to orders.txt.

        Returns:
            Number of orders written
        """
        orders, _ = self.manager.snapshot()
        text = order_codec.dump_orders(orders, self.format_version)
        self._write_atomic(self.orders_path, text)
        logger.info(f"Saved {len(orders)} orders to {self.orders_path}")
        return len(orders)

    def load_orders(self) -> LoadReport:
        """
        Replace the registry with the orders found in orders.txt.

        Queued ids are kept in order and pointed at the loaded orders; queued
        ids that orders.txt does not contain are dropped. A missing file
        leaves memory untouched.
        """
        orders, report = self._parse_orders_file()
        if orders is None:
            return report

        missing = self.manager.restore(orders=orders)
        for order_id in missing:
            logger.warning(f"Queued order {order_id} is not in {self.orders_path}, dropped")
        self._advance_ids(orders)

        logger.info(
            f"Loaded {report.loaded} orders from {self.orders_path} "
            f"({report.skipped} skipped)"
        )
        return report

    # =========================================================================
    # QUEUE
    # =========================================================================

    def save_queue(self) -> int:
        """
        Write the queue's order ids to order_queue.txt, head first.

        Returns:
            Number of queue entries written
        """
        _, queue_ids = self.manager.snapshot()
        self._write_atomic(self.queue_path, order_codec.dump_queue(queue_ids))
        logger.info(f"Saved {len(queue_ids)} queue entries to {self.queue_path}")
        return len(queue_ids)

    def load_queue(self) -> LoadReport:
        """
        Replace the queue with the orders listed in order_queue.txt, in file
        order.

        Orders must already be registered (call load_orders first). A missing
        file leaves memory untouched.
        """
        queue_ids, report = self._parse_queue_file()
        if queue_ids is None:
            return report

        missing = self.manager.restore(queue_ids=queue_ids)
        self._count_queue(queue_ids, missing, report)

        logger.info(
            f"Restored {report.loaded} queue entries from {self.queue_path} "
            f"({report.skipped} skipped)"
        )
        return report

    # =========================================================================
    # BOTH
    # =========================================================================

    def save_all(self) -> dict:
        """Save orders and queue from one consistent snapshot."""
        orders, queue_ids = self.manager.snapshot()
        self._write_atomic(self.orders_path, order_codec.dump_orders(orders, self.format_version))
        self._write_atomic(self.queue_path, order_codec.dump_queue(queue_ids))
        logger.info(f"Saved {len(orders)} orders and {len(queue_ids)} queue entries")
        return {"orders": len(orders), "queue": len(queue_ids)}

    def load_all(self) -> dict:
        """
        Replace registry and queue with the saved state.

        Both files are read before anything in memory changes, so a read
        error leaves the current state as it was. When neither file exists
        memory is left untouched; when only one exists the other side is
        loaded empty.

        Returns:
            {"orders": LoadReport, "queue": LoadReport}
        """
        orders, orders_report = self._parse_orders_file()
        queue_ids, queue_report = self._parse_queue_file()
        if orders is None and queue_ids is None:
            logger.info(f"No saved state in {self.data_dir}, nothing to load")
            return {"orders": orders_report, "queue": queue_report}

        orders = orders or []
        queue_ids = queue_ids or []

        missing = self.manager.restore(orders=orders, queue_ids=queue_ids)
        self._count_queue(queue_ids, missing, queue_report)
        self._advance_ids(orders)

        logger.info(
            f"Loaded {orders_report.loaded} orders ({orders_report.skipped} skipped) and "
            f"{queue_report.loaded} queue entries ({queue_report.skipped} skipped)"
        )
        return {"orders": orders_report, "queue": queue_report}
