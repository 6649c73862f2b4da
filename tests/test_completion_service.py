import pytest
from datetime import timedelta

from conftest import make_match, make_user
from matchtrust.core.events import NotificationKind
from matchtrust.core.exceptions import (
    AlreadyRequestedError, ConflictError, ForbiddenError, InvalidTransitionError,
    NotFoundError, NotRequestedError, SelfConfirmationError
)
from matchtrust.models.match import MatchStatusEnum
from matchtrust.services.completion_service import CompletionService


@pytest.mark.asyncio
async def test_two_sided_completion_handshake(db, clock):
    world = await make_match(db)
    service = CompletionService(db, clock=clock)
    match_id = world.match.match_id

    job = await service.request_completion(match_id, world.professional.user_id, comment="All done")
    assert job.completion_requested_by == world.professional.user_id
    assert job.completion_requested_at == clock.now

    status = await service.get_completion_status(match_id)
    assert status.match_status == MatchStatusEnum.active
    assert status.is_completed is False
    assert status.can_review is False

    requested = service.drain_events()
    assert len(requested) == 1
    assert requested[0].kind == NotificationKind.completion_requested
    assert requested[0].user_id == world.client.user_id
    assert requested[0].message == "All done"

    clock.advance(timedelta(hours=2))
    match = await service.confirm_completion(match_id, world.client.user_id)
    assert match.status == MatchStatusEnum.completed
    assert world.job.status == "completed"
    assert world.job.completion_confirmed_by == world.client.user_id
    assert world.job.completion_confirmed_at == clock.now

    status = await service.get_completion_status(match_id)
    assert status.is_completed is True
    assert status.can_review is True

    completed = service.drain_events()
    assert {e.user_id for e in completed} == {world.client.user_id, world.professional.user_id}
    assert all(e.kind == NotificationKind.match_completed for e in completed)


@pytest.mark.asyncio
async def test_requester_cannot_confirm_own_request(db, clock):
    world = await make_match(db)
    service = CompletionService(db, clock=clock)

    await service.request_completion(world.match.match_id, world.client.user_id)
    with pytest.raises(SelfConfirmationError):
        await service.confirm_completion(world.match.match_id, world.client.user_id)

    status = await service.get_completion_status(world.match.match_id)
    assert status.is_completed is False
    assert status.match_status == MatchStatusEnum.active


@pytest.mark.asyncio
async def test_same_user_cannot_request_twice(db, clock):
    world = await make_match(db)
    service = CompletionService(db, clock=clock)

    await service.request_completion(world.match.match_id, world.professional.user_id)
    with pytest.raises(AlreadyRequestedError):
        await service.request_completion(world.match.match_id, world.professional.user_id)


@pytest.mark.asyncio
async def test_other_side_may_take_over_the_request(db, clock):
    world = await make_match(db)
    service = CompletionService(db, clock=clock)

    await service.request_completion(world.match.match_id, world.professional.user_id)
    await service.request_completion(world.match.match_id, world.client.user_id)
    assert world.job.completion_requested_by == world.client.user_id

    await service.confirm_completion(world.match.match_id, world.professional.user_id)
    assert world.job.completion_confirmed_by == world.professional.user_id


@pytest.mark.asyncio
async def test_confirm_without_request_fails(db, clock):
    world = await make_match(db)
    with pytest.raises(NotRequestedError):
        await CompletionService(db, clock=clock).confirm_completion(
            world.match.match_id, world.client.user_id
        )


@pytest.mark.asyncio
async def test_confirmed_job_cannot_be_requested_or_confirmed_again(db, clock):
    world = await make_match(db)
    service = CompletionService(db, clock=clock)
    await service.request_completion(world.match.match_id, world.professional.user_id)
    await service.confirm_completion(world.match.match_id, world.client.user_id)

    with pytest.raises(ConflictError):
        await service.request_completion(world.match.match_id, world.professional.user_id)
    with pytest.raises(ConflictError):
        await service.confirm_completion(world.match.match_id, world.client.user_id)


@pytest.mark.asyncio
async def test_terminal_match_cannot_be_completed(db, clock):
    world = await make_match(db, status=MatchStatusEnum.cancelled)
    service = CompletionService(db, clock=clock)
    await service.request_completion(world.match.match_id, world.professional.user_id)

    with pytest.raises(InvalidTransitionError):
        await service.confirm_completion(world.match.match_id, world.client.user_id)
    assert world.job.completion_confirmed_at is None


@pytest.mark.asyncio
async def test_only_participants_take_part(db, clock):
    world = await make_match(db)
    outsider = await make_user(db)
    with pytest.raises(ForbiddenError):
        await CompletionService(db, clock=clock).request_completion(world.match.match_id, outsider.user_id)


@pytest.mark.asyncio
async def test_job_is_found_through_project_when_match_has_no_job_id(db, clock):
    world = await make_match(db, link_job=False)
    service = CompletionService(db, clock=clock)

    await service.request_completion(world.match.match_id, world.professional.user_id)
    await service.confirm_completion(world.match.match_id, world.client.user_id)

    status = await service.get_completion_status(world.match.match_id)
    assert status.job_id == world.job.job_id
    assert status.is_completed is True


@pytest.mark.asyncio
async def test_match_without_any_job(db, clock):
    world = await make_match(db, with_job=False)
    service = CompletionService(db, clock=clock)

    with pytest.raises(NotFoundError):
        await service.request_completion(world.match.match_id, world.professional.user_id)

    status = await service.get_completion_status(world.match.match_id)
    assert status.job_id is None
    assert status.can_review is False
