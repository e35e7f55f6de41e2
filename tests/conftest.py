# Shared pytest fixtures
from __future__ import annotations

import csv
import logging
from io import StringIO
from typing import Callable, List

import pytest
import structlog

from src.config.settings import PipelineConfig
from src.tools.csv_generator import EXPORT_HEADERS


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture()
def config(tmp_path) -> PipelineConfig:
    return PipelineConfig(
        imap_server="imap.test.local",
        imap_username="orders@test.local",
        imap_password="secret",
        attachment_directory=str(tmp_path / "attachments"),
    )


@pytest.fixture()
def make_row() -> Callable[..., List[str]]:
    def _make_row(
        po_number: str,
        model: str = "A",
        zip_code: str = "12345",
        name: str = "Dana Whitfield",
        quantity: str = "1",
        cost: str = "10.00",
        order_date: str = "01/02/2024",
    ) -> List[str]:
        return [
            po_number,
            quantity,
            model,
            f"{model} description",
            name,
            "Harbor Supply",
            "12 Pier Rd",
            "",
            "Portland",
            "ME",
            zip_code,
            "UPS-GND",
            cost,
            order_date,
            "555-010-0100",
        ]

    return _make_row


@pytest.fixture()
def make_csv() -> Callable[[List[List[str]]], bytes]:
    def _make_csv(rows: List[List[str]], header: List[str] = EXPORT_HEADERS) -> bytes:
        buffer = StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(header)
        writer.writerows(rows)
        return buffer.getvalue().encode("utf-8")

    return _make_csv


class FakeIMAPConnection:
    """In-memory stand-in for imaplib.IMAP4_SSL covering the calls the client makes."""

    def __init__(self, messages=None):
        self.messages = dict(messages or {})
        self.flags = {uid: set() for uid in self.messages}
        self.folders = {"INBOX"}
        self.copied = []
        self.state = "NONAUTH"
        self.logged_in_as = None

    def login(self, user, password):
        self.logged_in_as = user
        self.state = "AUTH"
        return "OK", [b"LOGIN completed"]

    def select(self, mailbox="INBOX"):
        name = mailbox.strip('"')
        if name not in self.folders:
            return "NO", [b"Mailbox does not exist"]
        self.state = "SELECTED"
        return "OK", [str(len(self.messages)).encode()]

    def create(self, mailbox):
        self.folders.add(mailbox.strip('"'))
        return "OK", [b"CREATE completed"]

    def uid(self, command, *args):
        command = command.upper()
        if command == "SEARCH":
            unseen = [uid for uid in self.messages if "\\Seen" not in self.flags[uid]]
            return "OK", [b" ".join(unseen)]
        if command == "FETCH":
            uid = args[0]
            if uid not in self.messages:
                return "NO", [None]
            raw = self.messages[uid]
            return "OK", [(b"1 (UID " + uid + b" RFC822 {%d}" % len(raw), raw), b")"]
        if command == "STORE":
            uid, _, flags = args
            self.flags[uid].update(flags.strip("()").split())
            return "OK", [b""]
        if command == "COPY":
            uid, folder = args
            self.copied.append((uid, folder.strip('"')))
            return "OK", [b""]
        raise AssertionError(f"unexpected UID command {command}")

    def expunge(self):
        deleted = [uid for uid, flags in self.flags.items() if "\\Deleted" in flags]
        for uid in deleted:
            del self.messages[uid]
            del self.flags[uid]
        return "OK", [b""]

    def close(self):
        self.state = "AUTH"
        return "OK", [b""]

    def logout(self):
        self.state = "LOGOUT"
        return "BYE", [b""]


@pytest.fixture()
def fake_imap(monkeypatch):
    """Patch imaplib.IMAP4_SSL; returns the connection the client will receive."""
    import imaplib

    connection = FakeIMAPConnection()

    def factory(host, port, ssl_context=None):
        connection.host = host
        connection.port = port
        connection.ssl_context = ssl_context
        return connection

    monkeypatch.setattr(imaplib, "IMAP4_SSL", factory)
    return connection
