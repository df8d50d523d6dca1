"""Shared helpers for etch tests."""

from dataclasses import dataclass
from pathlib import Path

FIXTURES = Path(__file__).parent / "fixtures"


@dataclass
class User:
    name: str
    email: str = ""


def fixture(name: str) -> str:
    """Read a fixture template, dropping carriage returns."""
    return (FIXTURES / name).read_text("utf-8").replace("\r", "")


class RecordingResponse:
    """Minimal `ResponseSink` that remembers what was sent."""

    def __init__(self, ip: str = "127.0.0.1"):
        self.ip = ip
        self.body: str | None = None
        self.content_type: str | None = None
        self.sends = 0

    def send(self, body: str, content_type: str) -> None:
        self.body = body
        self.content_type = content_type
        self.sends += 1
