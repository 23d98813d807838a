"""Command-line interface for drafting and publishing articles."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Callable, Sequence

from ..ai import DEFAULT_STYLE, STYLE_PRESETS, GenerationAgent, Spec, create_llm
from ..core import AutoDraftError, CallContext
from ..platforms import PublishParams
from ..platforms.wechat import WeChatContentPublisher
from ..services import DraftingService, PublishingService
from ..settings import AppConfig, load_config
from ..utils.file_helper import write_text
from ..utils.logging import configure_logging, get_logger
from .session_store import SessionStore

LOGGER = get_logger(__name__)

Handler = Callable[[argparse.Namespace, AppConfig], int]


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    handler: Handler | None = getattr(args, "handler", None)
    if handler is None:
        parser.print_help(sys.stderr)
        return 1

    try:
        config = load_config(args.config, allow_missing=args.config is None)
    except (OSError, ValueError) as exc:
        print(f"配置加载失败: {exc}", file=sys.stderr)
        return 1

    configure_logging(
        level=config.app.log_level,
        structured=config.app.structured_logs and not args.log_plain,
    )

    try:
        return handler(args, config)
    except (AutoDraftError, OSError, ValueError) as exc:
        LOGGER.error(
            "Command failed: %s",
            exc,
            extra={"event": "cli.error", "command": args.command},
        )
        print(f"错误: {exc}", file=sys.stderr)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="autodraft", description="autodraft CLI")
    parser.add_argument("--config", help="Path to configuration file", default=None)
    parser.add_argument(
        "--log-plain",
        action="store_true",
        help="Use plain-text logs instead of JSON",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Deadline in seconds for each generation or publish; 0 disables it",
    )

    subparsers = parser.add_subparsers(dest="command")

    _add_publish_command(subparsers)
    _add_compose_command(subparsers)

    styles_parser = subparsers.add_parser("styles", help="List writing style presets")
    styles_parser.set_defaults(handler=_handle_styles)

    return parser


def _add_publish_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    publish_parser = subparsers.add_parser(
        "publish", help="Publish a Markdown file to the WeChat draft box"
    )
    publish_parser.add_argument("--md", required=True, type=Path, help="Markdown file path")
    publish_parser.add_argument("--title", required=True, help="Article title")
    publish_parser.add_argument("--cover", required=True, type=Path, help="Cover image path")
    publish_parser.add_argument("--author", default="", help="Author name")
    publish_parser.add_argument("--digest", default="", help="Article digest")
    publish_parser.set_defaults(handler=_handle_publish)


def _add_compose_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    compose_parser = subparsers.add_parser(
        "compose", help="Draft an article with the configured model, optionally revise and publish"
    )
    compose_parser.add_argument("--topic", required=True, help="Article topic")
    compose_parser.add_argument("--outline", nargs="+", default=[], metavar="POINT")
    compose_parser.add_argument("--words", type=int, default=0, help="Target word count")
    compose_parser.add_argument(
        "--constraint",
        dest="constraints",
        action="append",
        default=[],
        help="Extra writing constraint; repeatable",
    )
    compose_parser.add_argument(
        "--style",
        default="",
        help=f"Style preset key (default {DEFAULT_STYLE})",
    )
    compose_parser.add_argument(
        "--comment",
        dest="comments",
        action="append",
        default=[],
        help="Revision comment applied after the first draft; repeatable",
    )
    compose_parser.add_argument("--output", type=Path, help="Write the final Markdown here")
    compose_parser.add_argument(
        "--publish",
        action="store_true",
        help="Publish the final draft to the WeChat draft box",
    )
    compose_parser.add_argument("--cover", type=Path, help="Cover image; defaults to config")
    compose_parser.add_argument("--author", default="", help="Author name")
    compose_parser.add_argument("--title", default="", help="Title override")
    compose_parser.add_argument("--digest", default="", help="Digest override")
    compose_parser.set_defaults(handler=_handle_compose)


def _context(args: argparse.Namespace) -> CallContext:
    if args.timeout > 0:
        return CallContext.with_timeout(args.timeout)
    return CallContext.background()


def _publisher_factory(
    config: AppConfig, args: argparse.Namespace
) -> Callable[[], WeChatContentPublisher]:
    def build() -> WeChatContentPublisher:
        return WeChatContentPublisher.create(
            config.wechat,
            digest_limit=config.publish.digest_limit,
            context=_context(args),
        )

    return build


def _handle_publish(args: argparse.Namespace, config: AppConfig) -> int:
    publisher = _publisher_factory(config, args)()
    LOGGER.info(
        "Publishing markdown",
        extra={"event": "cli.command", "command": "publish", "path": str(args.md)},
    )
    media_id = publisher.publish_draft(
        PublishParams(
            markdown_path=args.md,
            title=args.title,
            cover_path=args.cover,
            author=args.author,
            digest=args.digest,
        ),
        context=_context(args),
    )
    print(media_id)
    return 0


def _handle_compose(args: argparse.Namespace, config: AppConfig) -> int:
    spec = Spec.from_mapping(
        {
            "topic": args.topic,
            "outline": args.outline,
            "words": args.words,
            "constraints": args.constraints,
            "style": args.style,
        }
    )
    agent = GenerationAgent(create_llm(config.llm))

    with SessionStore(ttl=config.session.ttl_seconds) as store:
        store.start_sweeper(config.session.sweep_interval_seconds)
        drafting = DraftingService(store, agent)
        session = drafting.create_session(spec, context=_context(args))
        try:
            for comment in args.comments:
                drafting.revise(session.id, comment, context=_context(args))

            snapshot = session.snapshot()
            if args.output and session.draft is not None:
                write_text(args.output, session.draft.markdown)
                LOGGER.info("Wrote final draft to %s", args.output)

            if args.publish:
                publishing = PublishingService(
                    store,
                    _publisher_factory(config, args),
                    default_cover=config.publish.default_cover,
                )
                publishing.cleanup_stale_drafts(config.publish.temp_draft_max_age_hours * 3600)
                outcome = publishing.publish_session(
                    session.id,
                    cover_path=args.cover,
                    author=args.author,
                    title=args.title,
                    digest=args.digest,
                    context=_context(args),
                )
                snapshot["publish"] = outcome.to_dict()
        finally:
            drafting.delete(session.id)

    print(json.dumps(snapshot, ensure_ascii=False, indent=2))
    return 0


def _handle_styles(args: argparse.Namespace, config: AppConfig) -> int:
    for key in STYLE_PRESETS:
        marker = " (default)" if key == DEFAULT_STYLE else ""
        print(f"{key}{marker}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
