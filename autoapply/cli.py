"""Command-line entry point: manage the queue, scrape, process and send."""
from __future__ import annotations

import argparse
import smtplib
import sys

import yaml

from autoapply.config import DEFAULT_SETTINGS, SETTINGS_PATH, ensure_dirs, read_config, read_stored, set_value, write_config
from autoapply.errors import AutoApplyError, ConfigurationError
from autoapply.log import get_logger
from autoapply.models import COMPLETED, STATUSES, Job
from autoapply.store import JobStore

log = get_logger(__name__)


def _print_job(job: Job, *, verbose: bool = False) -> None:
    print(f"  {job.id}  [{job.status:<10}]  {job.title} @ {job.company}")
    if not verbose:
        return
    print(f"      url:      {job.url}")
    print(f"      added:    {job.date_added}")
    if job.source:
        print(f"      source:   {job.source}")
    if job.screenshot:
        print(f"      screenshot: {job.screenshot}")
    for qa in job.questions or []:
        print(f"      Q: {qa.question}")
        print(f"      A: {qa.answer}")


def cmd_add(args: argparse.Namespace, store: JobStore) -> int:
    try:
        job = store.append(args.title, args.company, args.url)
    except ValueError as exc:
        print(f"  ✗ {exc}")
        return 2
    print(f"  ✓ Queued {job.id}")
    return 0


def cmd_list(args: argparse.Namespace, store: JobStore) -> int:
    jobs = store.list_all()
    if args.status:
        jobs = [j for j in jobs if j.status == args.status]
    if not jobs:
        print("  No jobs.")
        return 0
    for job in jobs:
        _print_job(job, verbose=args.verbose)
    return 0


def cmd_show(args: argparse.Namespace, store: JobStore) -> int:
    job = store.get(args.job_id)
    if job is None:
        print(f"  ✗ No job {args.job_id}")
        return 1
    _print_job(job, verbose=True)
    if job.tailored_resume:
        print("\n── Tailored resume ──\n" + job.tailored_resume)
    if job.cover_letter:
        print("\n── Cover letter ──\n" + job.cover_letter)
    return 0


def cmd_scrape(args: argparse.Namespace, store: JobStore) -> int:
    from autoapply.sources import scrape_and_import

    added = scrape_and_import(args.query, args.location, args.sources, config=read_config(), store=store)
    print(f"  ✓ {len(added)} new job(s) added")
    for job in added:
        _print_job(job)
    return 0


def cmd_process(args: argparse.Namespace, store: JobStore) -> int:
    from autoapply.processor import process_all

    processed = process_all(read_config(), store)
    for job in processed:
        _print_job(job)
    print(f"  ✓ Processed {len(processed)} job(s)")
    return 0


def cmd_process_one(args: argparse.Namespace, store: JobStore) -> int:
    from autoapply.processor import process_job

    try:
        job = process_job(args.job_id, args.email, config=read_config(), store=store)
    except KeyError:
        print(f"  ✗ No job {args.job_id}")
        return 1
    except (smtplib.SMTPException, OSError) as exc:
        log.error("Email for job %s failed: %s", args.job_id, exc)
        print(f"  ✗ Email failed: {str(exc)[:150]}")
        print(f"    Job {args.job_id} is still {COMPLETED}; retry with `autoapply send {args.job_id}`")
        return 1
    _print_job(job)
    return 0 if job.status == COMPLETED else 1


def cmd_send(args: argparse.Namespace, store: JobStore) -> int:
    from autoapply.notifier import send_job_email

    try:
        send_job_email(args.job_id, args.to, store=store, config=read_config())
    except KeyError:
        print(f"  ✗ No job {args.job_id}")
        return 1
    except (smtplib.SMTPException, OSError) as exc:
        print(f"  ✗ Email failed: {str(exc)[:150]}")
        return 1
    print("  ✓ Email sent")
    return 0


def cmd_requeue(args: argparse.Namespace, store: JobStore) -> int:
    try:
        job = store.requeue(args.job_id)
    except KeyError:
        print(f"  ✗ No job {args.job_id}")
        return 1
    _print_job(job)
    return 0


def cmd_schedule(args: argparse.Namespace, store: JobStore) -> int:
    from autoapply import scheduler

    if args.once:
        scheduler.run_cycle(read_config(), store)
    else:
        scheduler.main()
    return 0


def cmd_config(args: argparse.Namespace, store: JobStore) -> int:
    if args.set:
        stored = read_stored()
        for item in args.set:
            key, sep, value = item.partition("=")
            if not sep:
                print(f"  ✗ Expected key=value, got {item!r}")
                return 2
            set_value(stored, key.strip(), value.strip())
        write_config(stored)
        print(f"  ✓ Saved {SETTINGS_PATH}")
        return 0
    print(yaml.safe_dump(read_stored() or DEFAULT_SETTINGS, sort_keys=False), end="")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="autoapply", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add", help="queue a job posting")
    p.add_argument("title")
    p.add_argument("company")
    p.add_argument("url")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("list", help="list queued jobs")
    p.add_argument("--status", choices=STATUSES)
    p.add_argument("-v", "--verbose", action="store_true")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("show", help="print one job with its generated documents")
    p.add_argument("job_id")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("scrape", help="search job sources and queue new postings")
    p.add_argument("--query")
    p.add_argument("--location")
    p.add_argument("--sources", nargs="+", metavar="SOURCE")
    p.set_defaults(func=cmd_scrape)

    p = sub.add_parser("process", help="process every pending job")
    p.set_defaults(func=cmd_process)

    p = sub.add_parser("process-one", help="process a single pending job")
    p.add_argument("job_id")
    p.add_argument("--email", help="mail the results here when done")
    p.set_defaults(func=cmd_process_one)

    p = sub.add_parser("send", help="email a completed job's documents")
    p.add_argument("job_id")
    p.add_argument("--to")
    p.set_defaults(func=cmd_send)

    p = sub.add_parser("requeue", help="reset a job to pending")
    p.add_argument("job_id")
    p.set_defaults(func=cmd_requeue)

    p = sub.add_parser("schedule", help="scrape and process on the configured interval")
    p.add_argument("--once", action="store_true")
    p.set_defaults(func=cmd_schedule)

    p = sub.add_parser("config", help="show or edit settings")
    p.add_argument("--set", nargs="+", metavar="KEY=VALUE", help="e.g. llm.provider=together")
    p.set_defaults(func=cmd_config)
    return parser


def main(argv: list[str] | None = None, store: JobStore | None = None) -> int:
    args = build_parser().parse_args(argv)
    if store is None:
        ensure_dirs()
        store = JobStore()
    try:
        return args.func(args, store)
    except ConfigurationError as exc:
        log.error("Configuration error: %s", exc)
        print(f"  ✗ {exc}")
        return 3
    except AutoApplyError as exc:
        log.error("%s", exc)
        print(f"  ✗ {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
