"""
wiki_client.py
==============
Thin wrapper around mwclient.Site exposing the three calls the bot needs:
login, fetch page text, and submit an edit. Every mwclient/requests failure
is turned into FetchError or SubmitError so callers can decide per page
whether to skip or stop.
"""

import mwclient
import requests
from mwclient.errors import MwClientError

WIKI_ERRORS = (MwClientError, requests.exceptions.RequestException)


class FetchError(Exception):
    def __init__(self, title, message):
        super().__init__(message)
        self.title = title


class SubmitError(Exception):
    def __init__(self, title, message, code=None):
        super().__init__(message)
        self.title = title
        self.code = code


class ReportSubmitError(SubmitError):
    pass


def describe_error(e):
    """Short human-readable text for an mwclient/requests exception."""
    code = getattr(e, "code", None)
    info = getattr(e, "info", None)
    if code and info:
        return f"{code}: {info}"
    if code:
        return str(code)
    return str(e) or type(e).__name__


class WikiClient:
    """Page fetch/edit capability backed by a live MediaWiki site."""

    def __init__(self, host, path="/w/", user_agent=None, site=None):
        self.site = site or mwclient.Site(host, path=path, clients_useragent=user_agent)
        self._last = None

    def login(self, username, password):
        self.site.login(username, password)

    def _page(self, title):
        if self._last is not None and self._last[0] == title:
            return self._last[1]
        return self.site.pages[title]

    def fetch(self, title):
        """Return the wikitext of *title*; missing pages raise FetchError."""
        try:
            page = self.site.pages[title]
            if not page.exists:
                raise FetchError(title, "page does not exist")
            text = page.text()
        except WIKI_ERRORS as e:
            raise FetchError(title, describe_error(e)) from e
        # only the last fetched page is kept; its save carries the base timestamp
        self._last = (title, page)
        return text

    def submit(self, title, text, summary, minor=True, bot=True, nocreate=True,
               section=None, section_title=None, append=False,
               error_class=SubmitError):
        """Save *text* to *title*, replacing it or appending to it."""
        kwargs = {}
        if nocreate:
            kwargs["nocreate"] = True
        if section_title:
            kwargs["sectiontitle"] = section_title
        try:
            page = self._page(title)
            if append:
                page.append(text, summary=summary, minor=minor, bot=bot,
                            section=section, **kwargs)
            else:
                page.edit(text, summary=summary, minor=minor, bot=bot,
                          section=section, **kwargs)
        except WIKI_ERRORS as e:
            raise error_class(title, describe_error(e), getattr(e, "code", None)) from e
        finally:
            self._last = None
