import pytest
from sqlalchemy import select

from conftest import complete_match, make_match, make_user
from matchtrust.core.exceptions import NotFoundError
from matchtrust.models.activity import ReviewModerationAction
from matchtrust.models.professional_profile import ProfessionalProfile
from matchtrust.models.review import MatchReview
from matchtrust.models.user import UserRoleEnum
from matchtrust.schemas.review_schema import ReviewCreate
from matchtrust.services.moderation_service import (
    DECISION_APPROVED, DECISION_REJECTED, ReviewModerationService
)
from matchtrust.services.rating_service import RatingAggregator, round_mean
from matchtrust.services.review_service import ReviewService


@pytest.mark.parametrize("values, expected", [
    ([5, 4, 4], 4.3),
    ([4, 5], 4.5),
    ([2, 3, 3, 3], 2.8),
    ([1, 1, 2], 1.3),
    ([5], 5.0),
    ([], 0.0),
    ([None, 4, None], 4.0),
])
def test_round_mean(values, expected):
    assert round_mean(values) == expected


async def reviewed_professional(db, clock, ratings):
    """One professional reviewed once per rating, each from a different completed match"""
    professional = await make_user(db, UserRoleEnum.professional, phone="+44 20 7946 0958", with_profile=True)
    service = ReviewService(db, clock=clock)
    reviews = []
    for rating in ratings:
        world = await complete_match(db, await make_match(db, professional=professional), clock)
        reviews.append(await service.create_review(
            world.match.match_id, world.client.user_id, ReviewCreate(overall_rating=rating)
        ))
    return professional, reviews


async def profile_of(db, user_id):
    return await db.scalar(select(ProfessionalProfile).where(ProfessionalProfile.user_id == user_id))


@pytest.mark.asyncio
async def test_aggregate_is_recomputed_from_remaining_reviews(db, clock):
    professional, reviews = await reviewed_professional(db, clock, [5, 4, 4])
    admin = await make_user(db, UserRoleEnum.admin)

    profile = await profile_of(db, professional.user_id)
    assert float(profile.rating) == 4.3
    assert profile.review_count == 3

    result = await ReviewModerationService(db, clock=clock).reject_review(
        reviews[0].review_id, admin.user_id, "Abusive language"
    )
    assert result.decision == DECISION_REJECTED
    assert result.decided_at == clock.now

    profile = await profile_of(db, professional.user_id)
    assert float(profile.rating) == 4.0
    assert profile.review_count == 2
    assert await db.scalar(select(MatchReview).where(MatchReview.review_id == reviews[0].review_id)) is None


@pytest.mark.asyncio
async def test_recompute_is_idempotent(db, clock):
    professional, _ = await reviewed_professional(db, clock, [3, 4])
    aggregator = RatingAggregator(db)

    first = await aggregator.recompute(professional.user_id)
    second = await aggregator.recompute(professional.user_id)
    assert first == second
    assert first.rating == 3.5
    assert first.review_count == 2


@pytest.mark.asyncio
async def test_recompute_without_profile_only_returns_summary(db, clock):
    client = await make_user(db, UserRoleEnum.client)
    summary = await RatingAggregator(db).recompute(client.user_id)
    assert summary.rating == 0.0
    assert summary.review_count == 0


@pytest.mark.asyncio
async def test_moderator_can_remove_frozen_review(db, clock):
    world = await complete_match(db, await make_match(db), clock)
    reviews = ReviewService(db, clock=clock)
    client_review = await reviews.create_review(
        world.match.match_id, world.client.user_id, ReviewCreate(overall_rating=1)
    )
    await reviews.create_review(world.match.match_id, world.professional.user_id, ReviewCreate(overall_rating=5))
    admin = await make_user(db, UserRoleEnum.admin)

    await ReviewModerationService(db, clock=clock).reject_review(client_review.review_id, admin.user_id, "Spam")

    status = await reviews.get_review_status(world.match.match_id)
    assert status.client_reviewed is False
    assert status.professional_reviewed is True


@pytest.mark.asyncio
async def test_moderation_decisions_are_logged(db, clock):
    professional, reviews = await reviewed_professional(db, clock, [5, 2])
    admin = await make_user(db, UserRoleEnum.admin)
    service = ReviewModerationService(db, clock=clock)

    approved = await service.approve_review(reviews[0].review_id, admin.user_id)
    assert approved.decision == DECISION_APPROVED
    await service.reject_review(reviews[1].review_id, admin.user_id, "Fake review")

    actions = (await db.execute(
        select(ReviewModerationAction).order_by(ReviewModerationAction.decision)
    )).scalars().all()
    assert [a.decision for a in actions] == [DECISION_APPROVED, DECISION_REJECTED]
    rejected = actions[1]
    assert rejected.review_id == reviews[1].review_id
    assert rejected.reviewed_user_id == professional.user_id
    assert rejected.overall_rating == 2
    assert rejected.reason == "Fake review"

    stats = await service.get_moderation_stats()
    assert stats.total_reviews == 1
    assert stats.reviews_this_month == 1
    assert stats.average_rating == 5.0
    assert stats.approved_count == 1
    assert stats.rejected_count == 1


@pytest.mark.asyncio
async def test_moderation_list_and_detail(db, clock):
    professional, reviews = await reviewed_professional(db, clock, [4, 3])
    service = ReviewModerationService(db, clock=clock)

    page = await service.list_reviews_for_moderation(limit=10, offset=0)
    assert page.total == 2
    assert {r.review_id for r in page.reviews} == {r.review_id for r in reviews}

    detail = await service.get_review_detail(reviews[0].review_id)
    assert detail.reviewed_user.user_id == professional.user_id

    with pytest.raises(NotFoundError):
        await service.get_review_detail("missing")


@pytest.mark.asyncio
async def test_moderation_stats_without_reviews(db, clock):
    stats = await ReviewModerationService(db, clock=clock).get_moderation_stats()
    assert stats.total_reviews == 0
    assert stats.average_rating == 0.0
    assert stats.approved_count == 0
