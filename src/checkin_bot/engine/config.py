from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import math
import os


DEFAULT_DAYS_INACTIVE = "7"
DEFAULT_BOT_USERNAME = "github-actions[bot]"
DEFAULT_IGNORE_LABEL = "ignore-checkin"
DEFAULT_STOP_COMMENT = "checkin stop"

DEFAULT_CHECK_IN_MESSAGE = (
    "Hi! This thread has been quiet for a while. "
    "Is there an update, or is anything blocking progress here?"
)

DEFAULT_COMMENT_MESSAGE = (
    "{{ check-in-message }}\n\n"
    "_No activity for {{ days-inactive }} days. "
    "Reply with `{{ stop-comment }}` to stop these check-ins._"
)

GITHUB_API_URL = "https://api.github.com"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Config:
    repository: str
    repo_token: Optional[str]
    api_base_url: str
    days_inactive: float
    check_in_message: str
    comment_message: str
    bot_username: str
    ignore_label: str
    stop_comment: str
    dry_run: bool
    fail_on_unresolved: bool
    per_page: int
    log_level: str
    log_path: Optional[Path]


def _read_input(name: str, default: str = "") -> str:
    """Read an input the way GitHub Actions exposes it, then the local fallback.

    ``days-inactive`` is looked up as ``INPUT_DAYS-INACTIVE`` and then as
    ``CHECKIN_DAYS_INACTIVE``.
    """
    action_key = "INPUT_" + name.replace(" ", "_").upper()
    value = os.getenv(action_key)
    if value is not None and value.strip():
        return value
    local_key = "CHECKIN_" + name.replace("-", "_").replace(" ", "_").upper()
    value = os.getenv(local_key)
    if value is not None and value.strip():
        return value
    return default


def _parse_flag(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


def parse_days_inactive(raw: str) -> float:
    try:
        days = float(raw.strip())
    except ValueError:
        raise ValueError(f"days-inactive must be a number of days, got {raw!r}") from None
    if math.isnan(days) or math.isinf(days) or days < 0:
        raise ValueError(f"days-inactive must be a finite, non-negative number, got {raw!r}")
    return days


def load_config() -> Config:
    repository = _read_input("repository", os.getenv("GITHUB_REPOSITORY", "")).strip()
    if repository.count("/") != 1 or not all(repository.split("/")):
        raise ValueError(
            "Repository must be set as 'owner/repo' through GITHUB_REPOSITORY "
            f"or CHECKIN_REPOSITORY, got {repository!r}"
        )

    repo_token = _read_input("repo-token").strip() or None
    api_base_url = os.getenv("GITHUB_API_URL", GITHUB_API_URL).strip().rstrip("/") or GITHUB_API_URL

    days_inactive = parse_days_inactive(_read_input("days-inactive", DEFAULT_DAYS_INACTIVE))
    check_in_message = _read_input("check-in-message", DEFAULT_CHECK_IN_MESSAGE)
    comment_message = _read_input("comment-message", DEFAULT_COMMENT_MESSAGE)
    bot_username = _read_input("bot-username", DEFAULT_BOT_USERNAME).strip()
    ignore_label = _read_input("ignore-label", DEFAULT_IGNORE_LABEL).strip()
    stop_comment = _read_input("stop-comment", DEFAULT_STOP_COMMENT).strip()

    dry_run = _parse_flag(_read_input("dry-run", "0"))
    fail_on_unresolved = _parse_flag(_read_input("fail-on-unresolved", "0"))
    per_page = max(1, min(100, int(_read_input("per-page", "100"))))

    log_level = _read_input("log-level", "INFO").strip().upper()
    log_path_str = _read_input("log-path", "").strip()
    log_path = Path(log_path_str) if log_path_str else None

    return Config(
        repository=repository,
        repo_token=repo_token,
        api_base_url=api_base_url,
        days_inactive=days_inactive,
        check_in_message=check_in_message,
        comment_message=comment_message,
        bot_username=bot_username,
        ignore_label=ignore_label,
        stop_comment=stop_comment,
        dry_run=dry_run,
        fail_on_unresolved=fail_on_unresolved,
        per_page=per_page,
        log_level=log_level,
        log_path=log_path,
    )
