import asyncio

import pytest

from models.push_subscription import (
    Notification,
    Permission,
    PushSubscriptionRecord,
    SubscriptionKeys,
    SubscriptionState,
)
from core.settings import PUSH
from services.errors import RemoteMirrorFailed
from services.platform import UnsupportedPushPlatform
from services.subscription_manager import SubscriptionManager, url_base64_to_bytes


class FakePlatform:
    """In-memory push capability for unit tests."""

    def __init__(self, *, supported=True, permission=Permission.DEFAULT, answer=Permission.GRANTED, existing=None):
        self.supported = supported
        self.current_permission = permission
        self.answer = answer
        self.current = existing
        self.subscribe_calls = []
        self.unsubscribed = []
        self.shown = []
        self.fail_subscribe = False
        self.fail_unsubscribe = False
        self.prompt_gate = None

    def is_supported(self):
        return self.supported

    async def permission(self):
        return self.current_permission

    async def request_permission(self):
        if self.prompt_gate is not None:
            await self.prompt_gate.wait()
        if self.current_permission is Permission.DEFAULT:
            self.current_permission = self.answer
        return self.current_permission

    async def subscribe(self, application_server_key):
        self.subscribe_calls.append(application_server_key)
        if self.fail_subscribe:
            raise RuntimeError("push service unreachable")
        self.current = PushSubscriptionRecord("https://push.test/sub-1", SubscriptionKeys("p256", "secret"))
        return self.current

    async def unsubscribe(self, subscription):
        if self.fail_unsubscribe:
            raise RuntimeError("cannot cancel")
        self.unsubscribed.append(subscription)
        self.current = None

    async def get_current_subscription(self):
        return self.current

    async def show_notification(self, notification):
        self.shown.append(notification)


class FakeRegistrar:
    def __init__(self, fail=False):
        self.fail = fail
        self.saved = []
        self.removed = []

    async def save(self, subscription):
        self.saved.append(subscription)
        if self.fail:
            raise RemoteMirrorFailed("server down")

    async def remove(self, endpoint):
        self.removed.append(endpoint)
        if self.fail:
            raise RemoteMirrorFailed("server down")


@pytest.mark.asyncio
async def test_initial_state_detection():
    assert await SubscriptionManager(UnsupportedPushPlatform(), FakeRegistrar()).initialize() is SubscriptionState.UNSUPPORTED

    denied = FakePlatform(permission=Permission.DENIED)
    assert await SubscriptionManager(denied, FakeRegistrar()).initialize() is SubscriptionState.PERMISSION_DENIED

    existing = PushSubscriptionRecord("https://push.test/old", SubscriptionKeys("a", "b"))
    granted = FakePlatform(permission=Permission.GRANTED, existing=existing)
    manager = SubscriptionManager(granted, FakeRegistrar())
    assert await manager.initialize() is SubscriptionState.SUBSCRIBED
    assert manager.subscription == existing

    fresh = FakePlatform()
    assert await SubscriptionManager(fresh, FakeRegistrar()).initialize() is SubscriptionState.UNSUBSCRIBED


@pytest.mark.asyncio
async def test_permission_denied_creates_nothing():
    platform = FakePlatform(answer=Permission.DENIED)
    registrar = FakeRegistrar()
    manager = SubscriptionManager(platform, registrar)

    assert await manager.subscribe() is False
    assert manager.state is SubscriptionState.PERMISSION_DENIED
    assert platform.subscribe_calls == []
    assert platform.current is None
    assert registrar.saved == []


@pytest.mark.asyncio
async def test_subscribe_registers_with_server():
    platform = FakePlatform()
    registrar = FakeRegistrar()
    manager = SubscriptionManager(platform, registrar)

    assert await manager.subscribe() is True
    assert manager.state is SubscriptionState.SUBSCRIBED
    assert platform.subscribe_calls == [url_base64_to_bytes(PUSH.vapid_public_key)]
    assert registrar.saved == [platform.current]

    assert await manager.subscribe() is True
    assert len(platform.subscribe_calls) == 1


@pytest.mark.asyncio
async def test_remote_mirror_failure_keeps_local_subscription():
    platform = FakePlatform()
    manager = SubscriptionManager(platform, FakeRegistrar(fail=True))

    assert await manager.subscribe() is True
    assert manager.state is SubscriptionState.SUBSCRIBED
    assert platform.current is not None


@pytest.mark.asyncio
async def test_platform_error_reverts_state():
    platform = FakePlatform()
    platform.fail_subscribe = True
    registrar = FakeRegistrar()
    manager = SubscriptionManager(platform, registrar)

    assert await manager.subscribe() is False
    assert manager.state is SubscriptionState.UNSUBSCRIBED
    assert registrar.saved == []


@pytest.mark.asyncio
async def test_concurrent_subscribe_is_rejected():
    platform = FakePlatform()
    platform.prompt_gate = asyncio.Event()
    manager = SubscriptionManager(platform, FakeRegistrar())
    await manager.initialize()

    first = asyncio.create_task(manager.subscribe())
    await asyncio.sleep(0)
    assert manager.is_busy is True
    assert await manager.subscribe() is False

    platform.prompt_gate.set()
    assert await first is True
    assert len(platform.subscribe_calls) == 1


@pytest.mark.asyncio
async def test_unsubscribe_cancels_then_removes_remote():
    platform = FakePlatform()
    registrar = FakeRegistrar(fail=True)
    manager = SubscriptionManager(platform, registrar)
    await manager.subscribe()

    assert await manager.unsubscribe() is True
    assert manager.state is SubscriptionState.UNSUBSCRIBED
    assert manager.subscription is None
    assert platform.current is None
    assert registrar.removed == ["https://push.test/sub-1"]

    assert await manager.unsubscribe() is False


@pytest.mark.asyncio
async def test_unsubscribe_platform_error_stays_subscribed():
    platform = FakePlatform()
    registrar = FakeRegistrar()
    manager = SubscriptionManager(platform, registrar)
    await manager.subscribe()
    platform.fail_unsubscribe = True

    assert await manager.unsubscribe() is False
    assert manager.state is SubscriptionState.SUBSCRIBED
    assert registrar.removed == []


@pytest.mark.asyncio
async def test_local_test_notification_requires_permission():
    platform = FakePlatform()
    manager = SubscriptionManager(platform, FakeRegistrar())

    assert await manager.send_local_test() is False
    assert platform.shown == []

    await manager.subscribe()
    assert await manager.send_local_test() is True
    assert platform.shown == [
        Notification(
            title=PUSH.notification_title,
            body=PUSH.notification_body,
            icon=PUSH.notification_icon,
            badge=PUSH.notification_badge,
            tag="test",
        )
    ]
    assert manager.state is SubscriptionState.SUBSCRIBED


def test_url_base64_to_bytes_restores_padding():
    assert url_base64_to_bytes("aGk") == b"hi"
    assert len(url_base64_to_bytes(PUSH.vapid_public_key)) == 65


@pytest.mark.asyncio
async def test_state_is_unknown_until_initialized():
    manager = SubscriptionManager(UnsupportedPushPlatform(), FakeRegistrar())
    assert manager.state is None
    assert manager.is_supported is False

    assert await manager.initialize() is SubscriptionState.UNSUPPORTED
    assert manager.is_supported is False

    supported = SubscriptionManager(FakePlatform(), FakeRegistrar())
    assert supported.state is None
    assert supported.is_supported is False
    await supported.initialize()
    assert supported.state is SubscriptionState.UNSUBSCRIBED
    assert supported.is_supported is True


@pytest.mark.asyncio
async def test_permission_is_tracked_apart_from_subscription():
    platform = FakePlatform()
    manager = SubscriptionManager(platform, FakeRegistrar())
    assert manager.permission is None

    await manager.initialize()
    assert manager.permission is Permission.DEFAULT

    await manager.subscribe()
    await manager.unsubscribe()
    assert manager.state is SubscriptionState.UNSUBSCRIBED
    assert manager.permission is Permission.GRANTED
    assert await manager.send_local_test() is True


@pytest.mark.asyncio
async def test_incoming_json_message_overrides_defaults():
    platform = FakePlatform()
    manager = SubscriptionManager(platform, FakeRegistrar())

    shown = await manager.on_push(b'{"title": "Pedido aprovado", "tag": "orders", "data": {"id": 7}}')

    assert shown == Notification(
        title="Pedido aprovado",
        body=PUSH.incoming_body,
        icon=PUSH.notification_icon,
        badge=PUSH.notification_badge,
        tag="orders",
    )
    assert platform.shown == [shown]


@pytest.mark.asyncio
async def test_incoming_text_message_becomes_body():
    platform = FakePlatform()
    manager = SubscriptionManager(platform, FakeRegistrar())

    shown = await manager.on_push("Estoque atualizado")
    assert shown.title == PUSH.notification_title
    assert shown.body == "Estoque atualizado"
    assert shown.tag == PUSH.incoming_tag

    empty = await manager.on_push(None)
    assert empty.body == PUSH.incoming_body
    assert len(platform.shown) == 2
