import argparse
import logging
import os
import sys
from pathlib import Path

import orjson
import uvicorn
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from catalogue import config
from catalogue.api import build_manifest, create_app
from catalogue.engine import CrawlEngine
from catalogue.errors import ConfigError
from catalogue.fetcher import Fetcher
from catalogue.log import console, setup_logging
from catalogue.resolvers import build_resolver
from catalogue.store import CourseStore

logger = logging.getLogger("catalogue")


def build_engine(settings: config.Settings):
    """
    Wires fetcher, resolver, store and engine together. The semester has to be known
    before anything can be crawled, so a resolution failure ends the process here.
    """
    fetcher = Fetcher(timeout=settings.fetch_timeout, retries=settings.fetch_retries, user_agent=settings.user_agent)
    try:
        resolver = build_resolver(settings.semester_strategy, settings.base_url, fetcher)
        semester = resolver.current_semester_code()
    except ConfigError as error:
        logger.error("Error while getting current semester code: %s", error)
        fetcher.close()
        raise SystemExit(1)

    logger.info("Current semester is %s (strategy '%s')", semester, settings.semester_strategy)
    engine = CrawlEngine(
        fetcher,
        CourseStore(),
        settings.base_url,
        semester,
        seed_department=settings.seed_department,
        max_departments=settings.max_departments,
    )
    return engine, resolver


def serve(settings: config.Settings) -> None:
    manifest = build_manifest()
    console.print(manifest.banner())
    logger.info("Initializing application...")
    engine, resolver = build_engine(settings)
    app = create_app(engine, resolver, manifest=manifest, precache=settings.precache)
    # log_config=None keeps uvicorn on our rich handler
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=settings.shutdown_timeout,
    )
    logger.info("Shutting down...")


def crawl(settings: config.Settings, department: str | None, output: str | None) -> None:
    engine, _ = build_engine(settings)

    with Progress(SpinnerColumn(), TextColumn("{task.description}"), TimeElapsedColumn(), console=console, transient=True) as progress:
        if department:
            progress.add_task(f"[green]Crawling {department.upper()}...", total=None)
            report = engine.crawl_department(department)
        else:
            progress.add_task(f"[green]Crawling semester {engine.semester}...", total=None)
            report = engine.crawl_all()

    output_path = Path(output) if output else config.DATA_DIR / f"{engine.semester}_courses.json"
    os.makedirs(output_path.parent, exist_ok=True)
    serializable = [record.model_dump() for record in engine.store.list()]
    with open(output_path, "wb") as fh:
        fh.write(orjson.dumps(serializable, option=orjson.OPT_INDENT_2))
    engine.fetcher.close()

    console.print(f"Visited {len(report.departments)} departments, {report.fetch_failures} could not be fetched.")
    if report.parse_failures:
        console.print(f"Skipped {report.parse_failures} malformed courses.", style="yellow")
    if report.truncated:
        console.print(f"Stopped after {settings.max_departments} departments.", style="bold yellow")
    console.print(f"Wrote {len(serializable)} courses to {output_path}")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Course catalogue crawler and API.")
    sub = ap.add_subparsers(dest="command")

    serve_ap = sub.add_parser("serve", help="Run the HTTP API (default).")
    serve_ap.add_argument("--host", default=config.HOST)
    serve_ap.add_argument("--port", type=int, default=config.PORT)
    serve_ap.add_argument("--precache", action="store_true", help="Pre-cache current semester courses")

    crawl_ap = sub.add_parser("crawl", help="Crawl once and write the courses to a JSON file.")
    crawl_ap.add_argument("--department", help="Only crawl this department, e.g. COMP")
    crawl_ap.add_argument("--output", help="Where to write the JSON (default: data/<semester>_courses.json)")

    ap.add_argument("--strategy", choices=["calendar", "redirect"], default=config.SEMESTER_STRATEGY, help="How to find the current semester")
    ap.add_argument("--log-level", default=config.LOG_LEVEL)
    return ap


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    settings = config.Settings.from_env(semester_strategy=args.strategy, log_level=args.log_level)

    if args.command == "crawl":
        crawl(settings, args.department, args.output)
        return

    if args.command == "serve":
        settings = settings.model_copy(update={"host": args.host, "port": args.port, "precache": args.precache})
    serve(settings)


if __name__ == "__main__":
    main(sys.argv[1:])
