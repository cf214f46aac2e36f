#!/usr/bin/env python3
"""
coord_bot.py
============
Adds {{coord}} templates to wiki articles from a KML placemark file.

Each placemark's <name> is the article title and its <Point> is the
location. For every article the bot:
  - skips pages with {{nobots}} / {{bots|deny=...}} or an existing {{coord}}
  - fills an empty "| coordinates =" / "| coords =" infobox field, or
  - appends {{coord|...|display=title}} at the end of the article

When done the run report is posted as a new section on REPORT_PAGE and
mailed to COORDBOT_REPORT_TO.

Dry run first:
    python coord_bot.py places.kml --no-edit
"""

import argparse
import io
import os
import sys

from mwclient.errors import LoginError

from edit_run import RunContext, run_edits
from kml_locations import ParseError, read_locations
from report_mailer import Mailer, dispatch_report
from wiki_client import WikiClient

if sys.platform == 'win32':
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')

WIKI_URL    = os.getenv("WIKI_URL", "en.wikipedia.org")
WIKI_PATH   = os.getenv("WIKI_PATH", "/w/")
USERNAME    = os.getenv("WIKI_USERNAME", "CoordBot")
PASSWORD    = os.getenv("WIKI_PASSWORD", "")
BOT_NAME    = os.getenv("COORDBOT_NAME", USERNAME.split("@")[0])
REPORT_PAGE = os.getenv("COORDBOT_REPORT_PAGE", f"User:{BOT_NAME}/Reports")
EDIT_LIMIT  = os.getenv("COORDBOT_EDIT_LIMIT", "")
THROTTLE    = float(os.getenv("COORDBOT_THROTTLE", "1.5"))
USER_AGENT  = os.getenv("COORDBOT_USER_AGENT", f"CoordBot/1.0 (User:{BOT_NAME})")

MAIL_HOST     = os.getenv("MAIL_HOST", "localhost")
MAIL_PORT     = os.getenv("MAIL_PORT", "25")
MAIL_USER     = os.getenv("MAIL_USER", "")
MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
MAIL_FROM     = os.getenv("MAIL_FROM", f"{BOT_NAME}@localhost")
MAIL_TO       = os.getenv("COORDBOT_REPORT_TO", "")

INPUT_EXTENSIONS = (".kml", ".xml")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="coord_bot.py",
        description="Add {{coord}} templates to articles listed in a KML file.",
    )
    parser.add_argument("kml_file", help="KML/XML file of placemarks")
    parser.add_argument("--silent", action="store_true", help="No console output.")
    parser.add_argument("--no-report", action="store_true",
                        help="Do not post the run report to the wiki.")
    parser.add_argument("--no-edit", action="store_true",
                        help="Dry run: make no live edits.")
    parser.add_argument("--max-edits", type=int, default=None,
                        help="Max edits for this run (overrides COORDBOT_EDIT_LIMIT).")
    return parser


def int_setting(value, name):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise RuntimeError(f"{name} must be an integer") from None


def edit_limit(args):
    if args.max_edits is not None:
        return max(args.max_edits, 0)
    if EDIT_LIMIT.strip():
        return max(int_setting(EDIT_LIMIT, "COORDBOT_EDIT_LIMIT"), 0)
    return None


def build_context(args):
    return RunContext(
        bot_name=BOT_NAME,
        edit_limit=edit_limit(args),
        allow_edits=not args.no_edit,
        post_report=not args.no_report,
        silent=args.silent,
        throttle=THROTTLE,
    )


def run(args, ctx, locations, wiki, mailer):
    """Log in, edit every location, then post and mail the report."""
    ctx.report.source = os.path.basename(args.kml_file)
    wiki.login(USERNAME, PASSWORD)
    ctx.say(f"Logged in as {USERNAME}\n")

    run_edits(wiki, ctx, locations)
    dispatch_report(wiki, mailer, ctx, REPORT_PAGE, MAIL_FROM, MAIL_TO)
    return ctx


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.kml_file.lower().endswith(INPUT_EXTENSIONS):
        parser.print_usage()
        return 0

    if not PASSWORD:
        raise RuntimeError("WIKI_PASSWORD must be set")
    if not MAIL_TO:
        raise RuntimeError("COORDBOT_REPORT_TO must be set")
    mail_port = int_setting(MAIL_PORT, "MAIL_PORT")

    ctx = build_context(args)
    try:
        locations = read_locations(args.kml_file)
    except (ParseError, OSError) as e:
        print(f"ERROR reading {args.kml_file}: {e}", file=sys.stderr)
        return 1
    for title, loc in locations.items():
        ctx.say(f"[[{title}]]: {loc.latitude} N, {loc.longitude} E")
    ctx.say(f"Found {len(locations)} locations in {args.kml_file}\n")

    wiki = WikiClient(WIKI_URL, path=WIKI_PATH, user_agent=USER_AGENT)
    mailer = Mailer(MAIL_HOST, mail_port, MAIL_USER, MAIL_PASSWORD)

    try:
        run(args, ctx, locations, wiki, mailer)
    except LoginError as e:
        print(f"ERROR logging in as {USERNAME}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
