from __future__ import annotations

from concurrent.futures import Executor, Future
from decimal import Decimal

from load_planner.background import LatestPlanRunner
from load_planner.catalog import build_catalog_entry
from load_planner.models import ListingEntry
from load_planner.planner import plan_load
from load_planner.reconstruct import MissingCatalogEntry
from load_planner.vehicles import get_vehicle


class ManualExecutor(Executor):
    def __init__(self) -> None:
        self.jobs: list[tuple[Future, object, tuple, dict]] = []

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        self.jobs.append((future, fn, args, kwargs))
        return future

    def start(self, index: int) -> bool:
        return self.jobs[index][0].set_running_or_notify_cancel()

    def finish(self, index: int) -> None:
        future, fn, args, kwargs = self.jobs[index]
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:  # noqa: BLE001
            future.set_exception(exc)

    def run_all(self) -> None:
        for index in range(len(self.jobs)):
            if self.jobs[index][0].done():
                continue
            if self.start(index):
                self.finish(index)


def test_latest_request_wins_and_pending_one_is_cancelled():
    executor = ManualExecutor()
    calls: list[str] = []

    def compute(key: str) -> str:
        calls.append(key)
        return key.lower()

    runner = LatestPlanRunner(compute, executor=executor)
    first = runner.submit("A")
    runner.submit("B")
    executor.run_all()

    assert first.cancelled()
    assert calls == ["B"]
    assert runner.is_ready()
    assert runner.result() == "b"


def test_stale_running_result_is_discarded():
    executor = ManualExecutor()
    published: list[str] = []
    runner = LatestPlanRunner(lambda key: key, executor=executor, on_result=published.append)

    runner.submit("old")
    assert executor.start(0)
    runner.submit("new")
    executor.finish(0)

    assert not runner.is_ready()
    assert runner.result() is None

    executor.run_all()

    assert runner.result() == "new"
    assert published == ["new"]


def test_error_of_latest_computation_is_reraised():
    executor = ManualExecutor()

    def compute(_):
        raise MissingCatalogEntry(["Z"])

    runner = LatestPlanRunner(compute, executor=executor)
    runner.submit("x")
    executor.run_all()

    assert runner.is_ready()
    try:
        runner.result()
        assert False, "MissingCatalogEntry expected"
    except MissingCatalogEntry as exc:
        assert exc.product_ids == ["Z"]


def test_runs_a_plan_on_a_worker_thread():
    catalog = {"A": build_catalog_entry("A", 60, 10, "0.15", 8, max_stack_weight_kg=500)}
    listing = [ListingEntry("P1", "A", Decimal("50")), ListingEntry("P2", "A", Decimal("10"))]
    runner = LatestPlanRunner(plan_load)
    try:
        runner.submit(listing, catalog, get_vehicle("7.5T"), True)
        result = runner.wait(timeout=10)
    finally:
        runner.shutdown()

    assert len(result.units) == 2
    assert runner.generation == 1
