"""
Unit tests for report_mailer.py - posting and mailing the run report.
"""

from datetime import datetime, timezone

import pytest

import report_mailer
from edit_run import Outcome, RunContext
from report_mailer import MAIL_SUBJECT, Mailer, dispatch_report, section_title
from conftest import FakeMailer, FakeWiki

REPORT_PAGE = "User:CoordBot/Reports"


@pytest.fixture
def ctx():
    ctx = RunContext(bot_name="CoordBot", silent=True)
    ctx.report.total = 1
    ctx.report.add("London", Outcome.EDITED, "Added coordinates to infobox.")
    return ctx


# ══════════════════════════════════════════════════════════════════════════════
# TEST: Dispatch
# ══════════════════════════════════════════════════════════════════════════════

class TestDispatchReport:

    def test_posts_and_mails(self, ctx):
        wiki, mailer = FakeWiki(), FakeMailer()
        body = dispatch_report(wiki, mailer, ctx, REPORT_PAGE, "bot@example.org", "op@example.org")

        assert len(wiki.submits) == 1
        submit = wiki.submits[0]
        assert submit["title"] == REPORT_PAGE
        assert submit["section"] == "new"
        assert submit["section_title"].startswith("Coordinate run ")
        assert submit["nocreate"] is False
        assert "* [[London]]: Added coordinates to infobox." in submit["text"]

        assert mailer.sent == [("bot@example.org", "op@example.org", MAIL_SUBJECT, body)]
        assert body == submit["text"]

    def test_no_report_flag(self, ctx):
        ctx.post_report = False
        wiki, mailer = FakeWiki(), FakeMailer()
        dispatch_report(wiki, mailer, ctx, REPORT_PAGE, "a", "b")

        assert wiki.submits == []
        assert len(mailer.sent) == 1

    def test_dry_run_skips_wiki_post(self, ctx):
        ctx.allow_edits = False
        wiki, mailer = FakeWiki(), FakeMailer()
        dispatch_report(wiki, mailer, ctx, REPORT_PAGE, "a", "b")

        assert wiki.submits == []
        assert len(mailer.sent) == 1

    def test_post_failure_goes_into_mail(self, ctx):
        wiki = FakeWiki(submit_errors={REPORT_PAGE: "protectedpage"})
        mailer = FakeMailer()
        body = dispatch_report(wiki, mailer, ctx, REPORT_PAGE, "a", "b")

        assert f"* Could not post report to [[{REPORT_PAGE}]]: protectedpage" in body
        assert mailer.sent[0][3] == body


def test_section_title():
    now = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
    assert section_title(now) == "Coordinate run 2024-05-01 09:30 (UTC)"


# ══════════════════════════════════════════════════════════════════════════════
# TEST: SMTP relay
# ══════════════════════════════════════════════════════════════════════════════

class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port = host, port
        self.calls = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append(("starttls",))

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def sendmail(self, sender, recipients, message):
        self.calls.append(("sendmail", sender, recipients, message))


class TestMailer:

    @pytest.fixture(autouse=True)
    def fake_smtp(self, monkeypatch):
        FakeSMTP.instances = []
        monkeypatch.setattr(report_mailer.smtplib, "SMTP", FakeSMTP)

    def test_plain_relay(self):
        Mailer("mail.example.org", 25).send("bot@x", "op@x", "Subj", "Body text")

        smtp = FakeSMTP.instances[0]
        assert (smtp.host, smtp.port) == ("mail.example.org", 25)
        assert [c[0] for c in smtp.calls] == ["sendmail"]
        _, sender, recipients, message = smtp.calls[0]
        assert sender == "bot@x"
        assert recipients == ["op@x"]
        assert "Subject: Subj" in message

    def test_authenticated_relay(self):
        Mailer("smtp.example.org", 587, "user", "secret").send("a", "b", "s", "body")

        calls = FakeSMTP.instances[0].calls
        assert calls[0] == ("starttls",)
        assert calls[1] == ("login", "user", "secret")
        assert calls[2][0] == "sendmail"
