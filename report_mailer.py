"""
report_mailer.py
================
Sends the finished run report: optionally as a new section on the bot's
report page, and always by mail.

A failure to post on-wiki is written into the report itself; the mail goes
out regardless.
"""

import smtplib
from datetime import datetime, timezone
from email.mime.text import MIMEText

from wiki_client import ReportSubmitError

MAIL_SUBJECT = "Coordinate bot run report"
REPORT_SUMMARY = "Bot: coordinate run report"


class Mailer:
    """Mail relay over SMTP (STARTTLS + login when credentials are given)."""

    def __init__(self, host="localhost", port=25, username="", password=""):
        self.host = host
        self.port = port
        self.username = username
        self.password = password

    def send(self, sender, recipient, subject, body):
        msg = MIMEText(body, "plain", "utf-8")
        msg["From"] = sender
        msg["To"] = recipient
        msg["Subject"] = subject

        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            if self.username:
                server.starttls()
                server.login(self.username, self.password)
            server.sendmail(sender, [recipient], msg.as_string())


def section_title(now=None):
    now = now or datetime.now(timezone.utc)
    return f"Coordinate run {now.strftime('%Y-%m-%d %H:%M')} (UTC)"


def post_report(wiki, ctx, report_page):
    """Add the report as a new section of *report_page*. Never raises."""
    try:
        wiki.submit(
            report_page,
            ctx.report.render(),
            REPORT_SUMMARY,
            minor=False,
            bot=True,
            nocreate=False,
            section="new",
            section_title=section_title(),
            error_class=ReportSubmitError,
        )
        ctx.say(f"Posted report to [[{report_page}]]")
    except ReportSubmitError as e:
        ctx.report.note(f"Could not post report to [[{report_page}]]: {e}")
        ctx.say(f"ERROR posting report: {e}")


def dispatch_report(wiki, mailer, ctx, report_page, sender, recipient):
    """Post the report on-wiki (if enabled) and mail it. Returns the mailed body."""
    if ctx.post_report and ctx.allow_edits:
        post_report(wiki, ctx, report_page)

    body = ctx.report.render()
    mailer.send(sender, recipient, MAIL_SUBJECT, body)
    ctx.say(f"Mailed report to {recipient}")
    return body
