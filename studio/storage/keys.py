"""Storage key layout shared by both tiers."""
from enum import Enum

USERS_STORAGE_KEY = "ai_influencer_users_v1"
SESSION_KEY = "ai_influencer_session_v1"

# Never evicted by the storage guard.
PROTECTED_KEYS = frozenset({USERS_STORAGE_KEY, SESSION_KEY})

INFLUENCER_LIST_PREFIX = "ai_influencer_"
INFLUENCER_LIST_SUFFIX = "_influencer_list"

DOCUMENT_NAMESPACE = "data"


class DocumentCategory(str, Enum):
    """The five per-influencer documents."""

    PERSONA = "persona"
    PLANS = "plans"
    POSTS = "posts"
    BRANDS = "brands"
    STRATEGIES = "strategies"


def influencer_list_key(username: str) -> str:
    return f"{INFLUENCER_LIST_PREFIX}{username}{INFLUENCER_LIST_SUFFIX}"


def influencer_list_owner(key: str) -> str | None:
    """Username owning an influencer list key, or None if key is not one."""
    if key in PROTECTED_KEYS:
        return None
    if not (key.startswith(INFLUENCER_LIST_PREFIX) and key.endswith(INFLUENCER_LIST_SUFFIX)):
        return None
    owner = key[len(INFLUENCER_LIST_PREFIX):-len(INFLUENCER_LIST_SUFFIX)]
    return owner or None


def document_prefix(influencer_id: str) -> str:
    return f"{DOCUMENT_NAMESPACE}_{influencer_id}_"


def document_key(influencer_id: str, category: DocumentCategory) -> str:
    return f"{document_prefix(influencer_id)}{DocumentCategory(category).value}"
