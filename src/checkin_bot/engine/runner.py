from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional, Sequence

from ..github_client import GitHubAuthError, GitHubClient, GitHubCredentials
from .config import Config, load_config
from .logging_utils import LOGGER_NAME, setup_logging
from .policy import ApplyLabel, Decision, NoAction, PostComment, days_since, decide
from .templates import render
from .timeline import (
    ActivitySummary,
    Comment,
    TrackedItem,
    as_utc,
    classify,
    comments_from_payload,
    item_from_payload,
    utc_now,
)


@dataclass(frozen=True)
class ItemEvaluation:
    item: TrackedItem
    summary: ActivitySummary
    decision: Decision
    days_inactive: float
    unresolved: FrozenSet[str] = frozenset()


@dataclass
class RunSummary:
    processed: int = 0
    commented: int = 0
    labeled: int = 0
    skipped: int = 0
    blocked: int = 0
    invalid: List[Any] = field(default_factory=list)


def format_days(value: float) -> str:
    text = repr(float(value))
    if text.endswith(".0"):
        return text[:-2]
    return text


def reminder_bindings(cfg: Config, item: TrackedItem) -> Dict[str, str]:
    return {
        "check-in-message": cfg.check_in_message,
        "days-inactive": format_days(cfg.days_inactive),
        "stop-comment": cfg.stop_comment,
        "ignore-label": cfg.ignore_label,
        "author": item.author or "",
        "number": str(item.number),
    }


def evaluate_item(
    item: TrackedItem,
    comments: Sequence[Comment],
    cfg: Config,
    now: datetime,
) -> ItemEvaluation:
    summary = classify(item.created_at, comments, cfg.bot_username, cfg.stop_comment)
    decision = decide(summary, now, cfg.days_inactive, cfg.ignore_label)
    unresolved: FrozenSet[str] = frozenset()
    if isinstance(decision, PostComment):
        rendered = render(cfg.comment_message, reminder_bindings(cfg, item))
        decision = replace(decision, body=rendered.output)
        unresolved = rendered.unresolved
    return ItemEvaluation(
        item=item,
        summary=summary,
        decision=decision,
        days_inactive=days_since(summary, now),
        unresolved=unresolved,
    )


def _describe_activity(evaluation: ItemEvaluation) -> str:
    summary = evaluation.summary
    last_bot = summary.last_bot_activity.isoformat() if summary.last_bot_activity else "none"
    return (
        f"last_user_activity={summary.last_human_activity.isoformat()} "
        f"days_inactive={evaluation.days_inactive:.1f} last_bot_activity={last_bot} "
        f"stop_signal={summary.has_stop_signal}"
    )


def apply_decision(
    client: GitHubClient,
    evaluation: ItemEvaluation,
    cfg: Config,
    logger: logging.Logger,
    run_summary: RunSummary,
) -> None:
    number = evaluation.item.number
    decision = evaluation.decision

    if isinstance(decision, ApplyLabel):
        run_summary.labeled += 1
        if cfg.dry_run:
            logger.info("DRY RUN would label #%s label=%s reason=%s", number, decision.label, decision.reason)
            return
        logger.info(
            "LABELING #%s label=%s reason=%s stop_comment=%r",
            number,
            decision.label,
            decision.reason,
            cfg.stop_comment,
        )
        client.add_labels(number, [decision.label])
        return

    if isinstance(decision, PostComment):
        if not decision.body.strip():
            run_summary.blocked += 1
            logger.error("Reminder for #%s blocked reason=empty_body", number)
            return
        if evaluation.unresolved:
            names = ",".join(sorted(evaluation.unresolved))
            if cfg.fail_on_unresolved:
                run_summary.blocked += 1
                logger.error("Reminder for #%s blocked unresolved_placeholders=%s", number, names)
                return
            logger.warning("Reminder for #%s has unresolved_placeholders=%s", number, names)
        run_summary.commented += 1
        if cfg.dry_run:
            logger.info(
                "DRY RUN would comment on #%s reason=%s chars=%s",
                number,
                decision.reason,
                len(decision.body),
            )
            return
        logger.info(
            "COMMENTING #%s inactive_days=%.1f threshold=%s reason=%s",
            number,
            evaluation.days_inactive,
            format_days(cfg.days_inactive),
            decision.reason,
        )
        client.create_comment(number, decision.body)
        logger.info("Comment posted on #%s", number)
        return

    run_summary.skipped += 1
    logger.info("SKIPPING #%s reason=%s", number, decision.reason if isinstance(decision, NoAction) else "unknown")


def run_once(
    cfg: Config,
    client: GitHubClient,
    logger: logging.Logger,
    now: Optional[datetime] = None,
) -> RunSummary:
    now = as_utc(now) if now is not None else utc_now()
    run_summary = RunSummary()

    logger.info("Searching open issues/PRs repo=%s excluding_label=%s", cfg.repository, cfg.ignore_label)
    payloads = client.search_open_items(exclude_label=cfg.ignore_label)
    logger.info("Found %s issues/PRs to process now=%s", len(payloads), now.isoformat())

    for index, payload in enumerate(payloads, start=1):
        item = item_from_payload(payload)
        if item is None:
            run_summary.invalid.append(payload.get("number"))
            logger.warning("Ignoring search result without number/created_at number=%s", payload.get("number"))
            continue
        run_summary.processed += 1
        logger.info("[%s/%s] Processing #%s title=%r", index, len(payloads), item.number, item.title or "No title")

        comments = comments_from_payload(client.list_issue_comments(item.number))
        evaluation = evaluate_item(item, comments, cfg, now)
        logger.debug("#%s comments=%s", item.number, len(comments))
        logger.info("#%s %s", item.number, _describe_activity(evaluation))
        apply_decision(client, evaluation, cfg, logger, run_summary)

    logger.info(
        "Run summary processed=%s commented=%s labeled=%s skipped=%s blocked=%s invalid=%s",
        run_summary.processed,
        run_summary.commented,
        run_summary.labeled,
        run_summary.skipped,
        run_summary.blocked,
        len(run_summary.invalid),
    )
    return run_summary


def build_client(cfg: Config) -> GitHubClient:
    return GitHubClient(
        repository=cfg.repository,
        credentials=GitHubCredentials.load(cfg.repo_token),
        base_url=cfg.api_base_url,
        per_page=cfg.per_page,
    )


def run(dry_run: Optional[bool] = None) -> int:
    logger = logging.getLogger(LOGGER_NAME)
    try:
        cfg = load_config()
        if dry_run is not None:
            cfg.dry_run = dry_run
        logger = setup_logging(cfg)
        logger.info(
            (
                "Check-in bot starting repo=%s days_inactive=%s bot_username=%s ignore_label=%s "
                "stop_comment=%r dry_run=%s fail_on_unresolved=%s template_chars=%s"
            ),
            cfg.repository,
            format_days(cfg.days_inactive),
            cfg.bot_username,
            cfg.ignore_label,
            cfg.stop_comment,
            cfg.dry_run,
            cfg.fail_on_unresolved,
            len(cfg.comment_message),
        )
        client = build_client(cfg)
        logger.info("Using GitHub token source=%s api=%s", client.credentials.source, client.base_url)
        run_once(cfg, client, logger)
    except GitHubAuthError as e:
        logger.error("CHECK-IN BOT FAILED auth error: %s", e)
        return 1
    except Exception as e:
        logger.error("CHECK-IN BOT FAILED: %s", e)
        return 1
    logger.info("CHECK-IN BOT COMPLETED")
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
