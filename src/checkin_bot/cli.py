import argparse
import json
from typing import Any

from .engine.config import load_config
from .engine.runner import build_client, evaluate_item, reminder_bindings, run
from .engine.templates import placeholders, render
from .engine.timeline import TrackedItem, comments_from_payload, item_from_payload, utc_now
from .github_client import GitHubAuthError


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, sort_keys=True))


def cmd_run(args: argparse.Namespace) -> None:
    """Run one check-in pass over the repository's open issues and PRs."""
    raise SystemExit(run(dry_run=True if args.dry_run else None))


def cmd_inspect(args: argparse.Namespace) -> None:
    """Show what the bot would do for one issue or PR, without acting.

    Example:

        checkin-bot inspect 42
    """
    cfg = load_config()
    client = build_client(cfg)
    item = item_from_payload(client.get_issue(args.number))
    if item is None:
        raise SystemExit(f"#{args.number} has no readable creation time.")

    comments = comments_from_payload(client.list_issue_comments(item.number))
    evaluation = evaluate_item(item, comments, cfg, utc_now())
    summary = evaluation.summary
    decision = evaluation.decision
    print_json(
        {
            "number": item.number,
            "title": item.title,
            "state": item.state,
            "comments": len(comments),
            "last_human_activity": summary.last_human_activity.isoformat(),
            "last_bot_activity": summary.last_bot_activity.isoformat() if summary.last_bot_activity else None,
            "has_stop_signal": summary.has_stop_signal,
            "days_inactive": round(evaluation.days_inactive, 3),
            "decision": type(decision).__name__,
            "reason": decision.reason,
            "label": getattr(decision, "label", None),
            "body": getattr(decision, "body", None),
            "unresolved": sorted(evaluation.unresolved),
        }
    )


def cmd_render(args: argparse.Namespace) -> None:
    """Preview the configured reminder template.

    Example:

        CHECKIN_COMMENT_MESSAGE='{{ check-in-message }} ({{ days-inactive }}d)' \\
          checkin-bot render --author octocat
    """
    cfg = load_config()
    template = args.template if args.template is not None else cfg.comment_message
    item = TrackedItem(number=args.number, created_at=utc_now(), author=args.author)
    result = render(template, reminder_bindings(cfg, item))
    print(result.output)
    if result.unresolved:
        print(f"\nUnresolved placeholders: {', '.join(sorted(result.unresolved))}")
        if args.strict:
            raise SystemExit(1)
    elif args.verbose:
        print(f"\nPlaceholders: {', '.join(placeholders(template)) or '(none)'}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Post check-in reminders on quiet GitHub issues and pull requests.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # run
    p_run = subparsers.add_parser("run", help="Run one check-in pass")
    p_run.add_argument("--dry-run", action="store_true", help="Log decisions without commenting or labeling")
    p_run.set_defaults(func=cmd_run)

    # inspect
    p_inspect = subparsers.add_parser("inspect", help="Explain the decision for one issue/PR")
    p_inspect.add_argument("number", type=int, help="Issue or pull request number")
    p_inspect.set_defaults(func=cmd_inspect)

    # render
    p_render = subparsers.add_parser("render", help="Render the reminder template")
    p_render.add_argument("--template", help="Template text to render instead of the configured one")
    p_render.add_argument("--author", default="octocat", help="Value bound to {{ author }}")
    p_render.add_argument("--number", type=int, default=1, help="Value bound to {{ number }}")
    p_render.add_argument("--strict", action="store_true", help="Exit non-zero on unresolved placeholders")
    p_render.add_argument("--verbose", action="store_true", help="List the placeholders found")
    p_render.set_defaults(func=cmd_render)

    return parser


def main() -> None:
    try:
        parser = build_parser()
        args = parser.parse_args()
        args.func(args)
    except GitHubAuthError as e:
        raise SystemExit(str(e))
    except Exception as e:
        # Keep common configuration and network errors to one line.
        raise SystemExit(f"Error: {e}")


if __name__ == "__main__":
    main()
