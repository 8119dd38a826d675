"""
Post approval workflow.
PLANNED -> GENERATED -> WAITING_APPROVAL -> APPROVED -> PUBLISHED, with REJECTED as the review dead end
that can go back to GENERATED (regenerate) or WAITING_APPROVAL (resubmit).
Every function returns an updated copy; persisting it is the workspace's job (update_post).
"""
from typing import Dict, FrozenSet, List, Optional, Sequence

from studio.logging_config import get_logger
from studio.schemas.post import Post, PostStatus

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: Dict[PostStatus, FrozenSet[PostStatus]] = {
    PostStatus.PLANNED: frozenset({PostStatus.GENERATED}),
    PostStatus.GENERATED: frozenset({PostStatus.WAITING_APPROVAL}),
    PostStatus.WAITING_APPROVAL: frozenset({PostStatus.APPROVED, PostStatus.REJECTED}),
    PostStatus.REJECTED: frozenset({PostStatus.GENERATED, PostStatus.WAITING_APPROVAL}),
    PostStatus.APPROVED: frozenset({PostStatus.PUBLISHED, PostStatus.WAITING_APPROVAL}),
    PostStatus.PUBLISHED: frozenset(),
}


def can_transition(current: PostStatus, target: PostStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def transition(post: Post, target: PostStatus, **changes) -> Post:
    """Move post to target status. Raises ValueError("invalid_transition") for a disallowed move."""
    if not can_transition(post.status, target):
        logger.info("approval.invalid_transition", post_id=post.id, current=post.status.value, target=target.value)
        raise ValueError("invalid_transition")
    updated = post.model_copy(update={"status": target, **changes})
    logger.info("approval.transition", post_id=post.id, current=post.status.value, target=target.value)
    return updated


def mark_generated(post: Post, caption: Optional[str] = None, image_url: Optional[str] = None) -> Post:
    """Generated content attached; clears a previous rejection reason."""
    changes = {"rejection_reason": None}
    if caption is not None:
        changes["caption"] = caption
    if image_url is not None:
        changes["image_url"] = image_url
    return transition(post, PostStatus.GENERATED, **changes)


def submit_for_approval(post: Post) -> Post:
    return transition(post, PostStatus.WAITING_APPROVAL)


def approve_post(post: Post) -> Post:
    return transition(post, PostStatus.APPROVED, rejection_reason=None)


def reject_post(post: Post, reason: str) -> Post:
    """Reject with a required reason, kept on the post."""
    if not reason or not reason.strip():
        raise ValueError("rejection_reason_required")
    return transition(post, PostStatus.REJECTED, rejection_reason=reason.strip())


def publish_post(post: Post, publish_log: str = "") -> Post:
    return transition(post, PostStatus.PUBLISHED, publish_log=publish_log or None)


def approval_queue(posts: Sequence[Post]) -> List[Post]:
    """Posts waiting for review, oldest first."""
    waiting = [p for p in posts if p.status == PostStatus.WAITING_APPROVAL]
    return sorted(waiting, key=lambda p: p.created_at)
