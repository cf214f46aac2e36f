"""
Shared fixtures for the coordinate bot tests.

Wiki and mail access are replaced with in-memory fakes so no test touches
the network.
"""

import sys
import textwrap
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from wiki_client import FetchError, SubmitError  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════════
# FAKES
# ══════════════════════════════════════════════════════════════════════════════

class FakeWiki:
    """In-memory stand-in for wiki_client.WikiClient."""

    def __init__(self, pages=None, fetch_errors=None, submit_errors=None,
                 login_error=None):
        self.pages = dict(pages or {})
        self.fetch_errors = dict(fetch_errors or {})
        self.submit_errors = dict(submit_errors or {})
        self.login_error = login_error
        self.fetched = []
        self.submits = []
        self.logins = []

    def login(self, username, password):
        if self.login_error:
            raise self.login_error
        self.logins.append((username, password))

    def fetch(self, title):
        self.fetched.append(title)
        if title in self.fetch_errors:
            raise self.fetch_errors[title]
        if title not in self.pages:
            raise FetchError(title, "page does not exist")
        return self.pages[title]

    def submit(self, title, text, summary, minor=True, bot=True, nocreate=True,
               section=None, section_title=None, append=False,
               error_class=SubmitError):
        if title in self.submit_errors:
            raise error_class(title, self.submit_errors[title], self.submit_errors[title])
        self.submits.append({
            "title": title, "text": text, "summary": summary, "minor": minor,
            "bot": bot, "nocreate": nocreate, "section": section,
            "section_title": section_title, "append": append,
        })
        if section is None:
            self.pages[title] = text


class FakeMailer:
    def __init__(self):
        self.sent = []

    def send(self, sender, recipient, subject, body):
        self.sent.append((sender, recipient, subject, body))


# ══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_wiki():
    return FakeWiki()


@pytest.fixture
def fake_mailer():
    return FakeMailer()


@pytest.fixture
def write_kml(tmp_path):
    """Write a KML document to a temp file and return its path."""
    def _write(body, name="places.kml"):
        path = tmp_path / name
        path.write_text(textwrap.dedent(body).strip() + "\n", encoding="utf-8")
        return path
    return _write


@pytest.fixture
def sample_kml(write_kml):
    return write_kml("""
        <?xml version="1.0" encoding="UTF-8"?>
        <kml xmlns="http://www.opengis.net/kml/2.2">
          <Document>
            <Placemark>
              <name>London</name>
              <Point><coordinates>-0.1,51.5,0</coordinates></Point>
            </Placemark>
            <Placemark>
              <name>Paris</name>
              <Point><coordinates>2.35,48.85</coordinates></Point>
            </Placemark>
          </Document>
        </kml>
    """)
