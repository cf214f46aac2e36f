"""
edit_run.py
===========
The per-article edit loop.

For every (title, Location) pair:
  - fetch the page text
  - run coord_annotator.add_coordinates
  - if the text changed, save it (or just report it in dry-run mode)

A failure on one page is recorded in the report and the loop moves on.
The edit limit is checked only when a page would actually change, so
pages that are skipped or fail still get reported after the budget is
spent. The first page that would need an edit beyond the limit stops the
run.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from coord_annotator import add_coordinates
from wiki_client import FetchError, SubmitError

EDIT_SUMMARY = "Bot: adding coordinates from KML placemark data"


class Outcome(str, Enum):
    EDITED = "edited"
    DRY_RUN = "dry run"
    SKIPPED = "skipped"
    FETCH_FAILED = "fetch failed"
    SUBMIT_FAILED = "submit failed"
    FAILED = "failed"
    LIMIT_REACHED = "limit reached"


ERROR_OUTCOMES = {Outcome.FETCH_FAILED, Outcome.SUBMIT_FAILED, Outcome.FAILED}
EDIT_OUTCOMES = {Outcome.EDITED, Outcome.DRY_RUN}


@dataclass
class ReportEntry:
    title: Optional[str]
    outcome: Optional[Outcome]
    message: str

    def render(self):
        if self.title is None:
            return f"* {self.message}"
        return f"* [[{self.title}]]: {self.message}"


@dataclass
class Report:
    """Ordered record of what happened to each page, rendered once at the end."""

    source: str = ""
    total: int = 0
    entries: List[ReportEntry] = field(default_factory=list)

    def add(self, title, outcome, message):
        self.entries.append(ReportEntry(title, outcome, message))

    def note(self, message):
        self.entries.append(ReportEntry(None, None, message))

    def count(self, *outcomes):
        return sum(1 for e in self.entries if e.outcome in outcomes)

    @property
    def processed(self):
        return sum(
            1 for e in self.entries
            if e.outcome is not None and e.outcome is not Outcome.LIMIT_REACHED
        )

    def render(self):
        lines = [
            f"Processed {self.processed} of {self.total} locations"
            + (f" from {self.source}." if self.source else "."),
            f"Edits: {self.count(*EDIT_OUTCOMES)}. "
            f"Skipped: {self.count(Outcome.SKIPPED)}. "
            f"Errors: {self.count(*ERROR_OUTCOMES)}.",
            "",
        ]
        lines.extend(entry.render() for entry in self.entries)
        return "\n".join(lines) + "\n"


@dataclass
class RunContext:
    """State carried through one bot run."""

    bot_name: str
    edit_limit: Optional[int] = None
    allow_edits: bool = True
    post_report: bool = True
    silent: bool = False
    throttle: float = 0.0
    edit_count: int = 0
    report: Report = field(default_factory=Report)

    def say(self, message=""):
        if not self.silent:
            print(message)

    def limit_reached(self):
        return self.edit_limit is not None and self.edit_count >= self.edit_limit


@dataclass
class ItemResult:
    title: str
    outcome: Outcome
    message: str


def process_location(wiki, ctx, title, location) -> ItemResult:
    """Fetch, annotate and save one article. Never raises."""
    try:
        try:
            text = wiki.fetch(title)
        except FetchError as e:
            return ItemResult(title, Outcome.FETCH_FAILED, f"Could not fetch page: {e}")

        result = add_coordinates(text, location, ctx.bot_name)
        if not result.changed:
            return ItemResult(title, Outcome.SKIPPED, result.reason)

        if ctx.limit_reached():
            return ItemResult(title, Outcome.LIMIT_REACHED, result.reason)

        if not ctx.allow_edits:
            ctx.edit_count += 1
            return ItemResult(title, Outcome.DRY_RUN, f"{result.reason} (dry run, not saved)")

        try:
            wiki.submit(title, result.text, EDIT_SUMMARY, minor=True, bot=True, nocreate=True)
        except SubmitError as e:
            return ItemResult(title, Outcome.SUBMIT_FAILED, f"Could not save page: {e}")
        ctx.edit_count += 1
        if ctx.throttle:
            time.sleep(ctx.throttle)
        return ItemResult(title, Outcome.EDITED, result.reason)
    except Exception as e:
        return ItemResult(title, Outcome.FAILED, f"Unexpected error: {type(e).__name__}: {e}")


def run_edits(wiki, ctx, locations):
    """Run process_location over every location, stopping at the edit limit.

    Returns the run's Report.
    """
    report = ctx.report
    report.total = len(locations)
    items = list(locations.items())

    for i, (title, location) in enumerate(items, 1):
        result = process_location(wiki, ctx, title, location)
        if result.outcome is Outcome.LIMIT_REACHED:
            remaining = len(items) - i + 1
            message = (f"Edit limit of {ctx.edit_limit} reached at [[{title}]]; "
                       f"stopped with {remaining} location(s) unprocessed.")
            report.add(None, Outcome.LIMIT_REACHED, message)
            ctx.say(message)
            break

        report.add(result.title, result.outcome, result.message)
        ctx.say(f"[{i}/{len(items)}] {result.outcome.value.upper()}: {title} ({result.message})")

    ctx.say("=" * 60)
    ctx.say(f"Done. Edits: {report.count(*EDIT_OUTCOMES)} | "
            f"Skipped: {report.count(Outcome.SKIPPED)} | "
            f"Errors: {report.count(*ERROR_OUTCOMES)}")
    return report
