"""Command-line interface for commentlens."""
from __future__ import annotations
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .aggregate import aggregate, aggregate_campaign, aggregate_folder, sentiment_shares, top_labels
from .exceptions import CommentLensError
from .llm_client import GeminiClient
from .logging_config import setup_logging
from .orchestration import analyze_post
from .persist import PostStore, export_campaigns, export_records
from .pipeline import AnalysisPipeline
from .schemas import PLATFORMS, AnalysisStats, CommentRecord
from .visualization import render_all

logger = logging.getLogger(__name__)


def _print_stats(title: str, stats: AnalysisStats) -> None:
    shares = sentiment_shares(stats)
    print(f"{title}: {stats.total} comments")
    print(f"  positive {stats.positive} ({shares['positive']}%)")
    print(f"  negative {stats.negative} ({shares['negative']}%)")
    print(f"  neutral  {stats.neutral} ({shares['neutral']}%)")
    for kind, counts in (("themes", stats.themes), ("topics", stats.topics)):
        if counts:
            print(f"  top {kind}: " + ", ".join(f"{k} ({n})" for k, n in top_labels(counts, 5)))


def _scope(store: PostStore, args) -> tuple[str, List[CommentRecord], AnalysisStats]:
    """Records and stats of a post, a platform folder, or a whole campaign."""
    if getattr(args, "post", None):
        post = store.load_post(args.post)
        return post.name, post.records, aggregate(post.records)
    campaign = store.load_campaign(args.campaign)
    if args.platform:
        folder = campaign.folder(args.platform)
        return f"{campaign.name} / {folder.name}", folder.records, aggregate_folder(folder)
    records = [r for f in campaign.folders for r in f.records]
    return campaign.name, records, aggregate_campaign(campaign)


def cmd_list(args, store: PostStore) -> None:
    for c in store.load_campaigns():
        print(f"{c.id}  {c.name}")
        for folder in c.folders:
            for p in folder.posts:
                print(f"    {folder.id:<10} {p.id}  {p.name}  [{p.state}, {len(p.records)} comments]")


def cmd_new_campaign(args, store: PostStore) -> None:
    campaign = store.create_campaign(args.name)
    print(campaign.id)


def cmd_new_post(args, store: PostStore) -> None:
    post = store.create_post(args.campaign, args.platform, args.name)
    print(post.id)


async def _run_analysis(args, store: PostStore) -> None:
    post = store.load_post(args.post)
    post.image_paths = list(args.images)
    async with GeminiClient() as client:
        pipeline = AnalysisPipeline(client, batch_size=args.batch_size)
        await analyze_post(post, pipeline, store, on_progress=print)
    print("Analysis complete!")
    _print_stats(post.name, aggregate(post.records))


def cmd_analyze(args, store: PostStore) -> None:
    asyncio.run(_run_analysis(args, store))


def cmd_stats(args, store: PostStore) -> None:
    title, _, stats = _scope(store, args)
    _print_stats(title, stats)


def cmd_export(args, store: PostStore) -> None:
    if args.output.lower().endswith(".backup.json"):
        out = export_campaigns(store.load_campaigns(), args.output)
        print(f"Campaign backup written to {out}")
        return
    _, records, _ = _scope(store, args)
    out = export_records(records, args.output)
    print(f"Exported {len(records)} comments to {out}")


def cmd_charts(args, store: PostStore) -> None:
    title, _, stats = _scope(store, args)
    for path in render_all(stats, args.out_dir, title):
        print(path)


def _add_scope_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--campaign", help="Campaign id")
    p.add_argument("--platform", choices=[pid for pid, _ in PLATFORMS], help="Restrict to one platform folder")
    p.add_argument("--post", help="Post id (overrides --campaign/--platform)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="commentlens", description="Screenshot comment sentiment analysis")
    parser.add_argument("--db", default=None, help="DuckDB file (default: DUCKDB_PATH)")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List campaigns and posts")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("new-campaign", help="Create a campaign")
    p.add_argument("name")
    p.set_defaults(func=cmd_new_campaign)

    p = sub.add_parser("new-post", help="Create a post in a campaign's platform folder")
    p.add_argument("campaign")
    p.add_argument("platform", choices=[pid for pid, _ in PLATFORMS])
    p.add_argument("name")
    p.set_defaults(func=cmd_new_post)

    p = sub.add_parser("analyze", help="Analyze screenshots for a post (replaces previous results)")
    p.add_argument("post")
    p.add_argument("images", nargs="+", help="Image files or directories of images")
    p.add_argument("--batch-size", type=int, default=None)
    p.set_defaults(func=cmd_analyze)

    p = sub.add_parser("stats", help="Print statistics")
    _add_scope_args(p)
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("export", help="Export comments (.csv/.parquet/.json) or a full *.backup.json")
    p.add_argument("output")
    _add_scope_args(p)
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("charts", help="Render sentiment/theme/topic charts")
    p.add_argument("--out-dir", default="reports/charts")
    _add_scope_args(p)
    p.set_defaults(func=cmd_charts)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.command in {"stats", "export", "charts"} and not (args.post or args.campaign):
        if not (args.command == "export" and args.output.lower().endswith(".backup.json")):
            parser.error("--campaign or --post is required")

    store = None
    try:
        store = PostStore(args.db)
        args.func(args, store)
    except CommentLensError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130
    finally:
        if store is not None:
            store.close()
    return 0
