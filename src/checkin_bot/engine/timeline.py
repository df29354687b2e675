from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def as_utc(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a GitHub ISO-8601 timestamp into an aware UTC datetime.

    Returns None for anything that cannot be read as a timestamp.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    text = normalize_str(value).strip()
    if not text:
        return None
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return as_utc(parsed)


@dataclass(frozen=True)
class TrackedItem:
    number: int
    created_at: datetime
    author: Optional[str] = None
    title: str = ""
    state: str = "open"
    is_pull_request: bool = False


@dataclass(frozen=True)
class Comment:
    author: Optional[str]
    body: Optional[str]
    created_at: Optional[datetime]


@dataclass(frozen=True)
class ActivitySummary:
    last_human_activity: datetime
    last_bot_activity: Optional[datetime]
    has_stop_signal: bool


def is_bot_author(author: Optional[str], bot_identity: str) -> bool:
    author_name = normalize_str(author)
    if not author_name:
        return False
    return author_name == bot_identity


def contains_stop_phrase(body: Optional[str], stop_phrase: str) -> bool:
    phrase = normalize_str(stop_phrase).strip().lower()
    if not phrase:
        return False
    return phrase in normalize_str(body).lower()


def classify(
    created_at: datetime,
    comments: Iterable[Comment],
    bot_identity: str,
    stop_phrase: str,
) -> ActivitySummary:
    """Reduce an item's comments to the facts the decision policy needs.

    Comments are partitioned by exact, case-sensitive match of the author
    against ``bot_identity``. Comments without an author always count as human.
    The stop phrase is only honoured in human comments, so the bot can quote it
    in its own reminder without silencing itself.
    """
    last_human = as_utc(created_at)
    last_bot: Optional[datetime] = None
    undated_bot = False
    has_stop = False

    for comment in comments:
        stamp = as_utc(comment.created_at) if comment.created_at is not None else None
        if is_bot_author(comment.author, bot_identity):
            if stamp is None:
                undated_bot = True
            elif last_bot is None or stamp > last_bot:
                last_bot = stamp
            continue
        if stamp is not None and stamp > last_human:
            last_human = stamp
        if not has_stop and contains_stop_phrase(comment.body, stop_phrase):
            has_stop = True

    # A bot comment with no usable timestamp still counts as a reminder, placed
    # at the latest instant we know of.
    if undated_bot and (last_bot is None or last_bot < last_human):
        last_bot = last_human

    return ActivitySummary(
        last_human_activity=last_human,
        last_bot_activity=last_bot,
        has_stop_signal=has_stop,
    )


def comment_author(payload: Dict[str, Any]) -> Optional[str]:
    user = payload.get("user")
    if not isinstance(user, dict):
        user = payload.get("author") if isinstance(payload.get("author"), dict) else {}
    login = user.get("login") or user.get("name")
    if login is None:
        return None
    return str(login)


def comment_from_payload(payload: Dict[str, Any]) -> Comment:
    body = payload.get("body")
    return Comment(
        author=comment_author(payload),
        body=body if isinstance(body, str) else None,
        created_at=parse_timestamp(payload.get("created_at")),
    )


def comments_from_payload(payload: Any) -> List[Comment]:
    if not isinstance(payload, list):
        return []
    return [comment_from_payload(item) for item in payload if isinstance(item, dict)]


def item_from_payload(payload: Dict[str, Any]) -> Optional[TrackedItem]:
    """Build a TrackedItem from a search/issues payload.

    Returns None when the payload has no usable number or creation time.
    """
    created_at = parse_timestamp(payload.get("created_at"))
    if created_at is None:
        return None
    try:
        number = int(payload.get("number"))
    except (TypeError, ValueError):
        return None
    return TrackedItem(
        number=number,
        created_at=created_at,
        author=comment_author(payload),
        title=normalize_str(payload.get("title")).strip(),
        state=normalize_str(payload.get("state") or "open").strip().lower(),
        is_pull_request=isinstance(payload.get("pull_request"), dict),
    )
