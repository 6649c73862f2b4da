import pytest

from conftest import make_user
from matchtrust.core.events import DomainEvent, EventCollector, NotificationKind
from matchtrust.core.exceptions import ForbiddenError, NotFoundError
from matchtrust.services.notification_service import NotificationDispatcher, NotificationService


def event_for(user, kind=NotificationKind.match_created, title="新的媒合！"):
    return DomainEvent(user_id=user.user_id, kind=kind, title=title, action_url="/matches/m1")


def test_drain_events_empties_the_queue():
    collector = EventCollector()
    collector._emit(DomainEvent(user_id="u1", kind=NotificationKind.match_completed, title="done"))

    assert len(collector.drain_events()) == 1
    assert collector.drain_events() == []


@pytest.mark.asyncio
async def test_dispatch_creates_notifications(db):
    user = await make_user(db)
    delivered = await NotificationDispatcher(db).dispatch([
        event_for(user),
        event_for(user, NotificationKind.review_received, "你收到新的評價"),
    ])
    assert delivered == 2

    inbox = await NotificationService(db).get_my_notifications(user)
    assert {n.kind for n in inbox} == {NotificationKind.match_created, NotificationKind.review_received}
    assert all(n.link_url == "/matches/m1" for n in inbox)
    assert await NotificationService(db).get_unread_count(user) == 2


@pytest.mark.asyncio
async def test_dispatch_failure_is_swallowed(db):
    user = await make_user(db)
    await db.commit()
    dispatcher = NotificationDispatcher(db)
    real_create = dispatcher.notification_service.create_notification

    async def flaky_create(**kwargs):
        if kwargs["kind"] == NotificationKind.match_created:
            raise RuntimeError("notification backend down")
        return await real_create(**kwargs)

    dispatcher.notification_service.create_notification = flaky_create

    delivered = await dispatcher.dispatch([
        event_for(user),
        event_for(user, NotificationKind.match_completed, "服務已完成！"),
    ])
    assert delivered == 1
    await db.refresh(user)

    inbox = await NotificationService(db).get_my_notifications(user)
    assert [n.kind for n in inbox] == [NotificationKind.match_completed]


@pytest.mark.asyncio
async def test_dispatch_recovers_from_flush_failure(db):
    user = await make_user(db)
    await db.commit()

    # title 為 NOT NULL，第一則在 flush 時就會失敗
    delivered = await NotificationDispatcher(db).dispatch([
        event_for(user, title=None),
        event_for(user, NotificationKind.review_received, "你收到新的評價"),
    ])
    assert delivered == 1

    # rollback 之後 session 仍可正常使用
    await db.refresh(user)
    inbox = await NotificationService(db).get_my_notifications(user)
    assert [n.kind for n in inbox] == [NotificationKind.review_received]
    assert await NotificationService(db).get_unread_count(user) == 1


@pytest.mark.asyncio
async def test_mark_as_read_is_owner_only(db):
    owner = await make_user(db)
    other = await make_user(db)
    service = NotificationService(db)
    await NotificationDispatcher(db).dispatch([event_for(owner), event_for(owner)])
    first = (await service.get_my_notifications(owner))[0]

    with pytest.raises(ForbiddenError):
        await service.mark_notification_as_read(first.notification_id, other)
    with pytest.raises(NotFoundError):
        await service.mark_notification_as_read("missing", owner)

    read = await service.mark_notification_as_read(first.notification_id, owner)
    assert read.is_read is True
    assert await service.get_unread_count(owner) == 1

    assert await service.mark_all_as_read(owner) == 1
    assert await service.get_unread_count(owner) == 0


@pytest.mark.asyncio
async def test_delete_notification_is_owner_only(db):
    owner = await make_user(db)
    other = await make_user(db)
    service = NotificationService(db)
    await NotificationDispatcher(db).dispatch([event_for(owner), event_for(owner)])
    first, second = await service.get_my_notifications(owner)

    with pytest.raises(ForbiddenError):
        await service.delete_notification(first.notification_id, other)
    with pytest.raises(NotFoundError):
        await service.delete_notification("missing", owner)

    await service.delete_notification(first.notification_id, owner)

    remaining = await service.get_my_notifications(owner)
    assert [n.notification_id for n in remaining] == [second.notification_id]
    with pytest.raises(NotFoundError):
        await service.delete_notification(first.notification_id, owner)
