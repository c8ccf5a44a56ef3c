import pytest

from services.connectivity import ConnectivityMonitor
from services.delivery import DeliveryReport
from services.offline_queue import OfflineQueue


class RecordingDeliverer:
    """Acknowledges everything it is asked to deliver."""

    def __init__(self, store):
        self.store = store
        self.calls = 0

    async def deliver_pending(self):
        self.calls += 1
        report = DeliveryReport()
        for action in await self.store.list_pending():
            report.attempted += 1
            await self.store.remove_delivered({action.id})
            report.delivered.append(action.id)
        return report


@pytest.mark.asyncio
async def test_enqueue_with_unavailable_storage_does_not_raise(broken_store):
    queue = OfflineQueue(broken_store, ConnectivityMonitor(initial=True), RecordingDeliverer(broken_store))
    await queue.start()

    assert await queue.enqueue({"type": "create-record", "id": 42}) is None
    await queue.wait_idle()
    assert queue.pending_count == 0


@pytest.mark.asyncio
async def test_enqueue_online_delivers_without_waiting(store):
    deliverer = RecordingDeliverer(store)
    queue = OfflineQueue(store, ConnectivityMonitor(initial=True), deliverer)
    await queue.start()

    action_id = await queue.enqueue({"type": "mark-read", "id": 1})
    assert action_id is not None
    assert queue.pending_count == 1

    await queue.wait_idle()
    assert deliverer.calls == 1
    assert queue.pending_count == 0
    assert queue.is_syncing is False


@pytest.mark.asyncio
async def test_start_loads_existing_count_and_resets_flag(store):
    await store.add("left over from last run")
    queue = OfflineQueue(store, ConnectivityMonitor(initial=False), RecordingDeliverer(store))
    queue.coordinator.state.is_syncing = True

    await queue.start()

    assert queue.pending_count == 1
    assert queue.is_syncing is False


@pytest.mark.asyncio
async def test_listeners_receive_snapshots(store):
    queue = OfflineQueue(store, ConnectivityMonitor(initial=False), RecordingDeliverer(store))
    seen = []
    unsubscribe = queue.subscribe(seen.append)
    await queue.start()

    await queue.enqueue("a")
    assert seen[-1].pending_count == 1

    snapshot = queue.state
    snapshot.pending_count = 99
    assert queue.pending_count == 1

    unsubscribe()
    before = len(seen)
    await queue.enqueue("b")
    assert len(seen) == before


@pytest.mark.asyncio
async def test_close_detaches_from_connectivity(store):
    connectivity = ConnectivityMonitor(initial=False)
    deliverer = RecordingDeliverer(store)
    queue = OfflineQueue(store, connectivity, deliverer)
    await queue.start()
    await queue.enqueue("a")
    await queue.close()

    await connectivity.set_online(True)
    assert deliverer.calls == 0
    assert await store.count() == 1


@pytest.mark.asyncio
async def test_independent_queues_do_not_share_state(tmp_path):
    from services.action_store import ActionStore
    from storage.db import create_store_engine

    engines = [create_store_engine(tmp_path / f"q{n}.db") for n in range(2)]
    try:
        first = OfflineQueue(ActionStore(engines[0]), ConnectivityMonitor(initial=False))
        second = OfflineQueue(ActionStore(engines[1]), ConnectivityMonitor(initial=False))
        await first.start()
        await second.start()

        await first.enqueue("only here")
        assert first.pending_count == 1
        assert second.pending_count == 0
    finally:
        for engine in engines:
            engine.dispose()
