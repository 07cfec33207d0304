import base64
from io import StringIO

import pyperclip
import pytest

from ninja_wallet.shared.clipboard import (
    CopyResult,
    copy_text,
    copy_with_osc52,
    copy_with_pyperclip,
    osc52_sequence,
)

ADDRESS = "kaspa:qypr7ayn2qjxg9z4mgyj9aj7p3d0r6lqz3x0kcudgt4lfsd7r6d4ncs4lm5ht4"


@pytest.mark.unit
def test_copy_with_osc52_writes_escape_sequence(monkeypatch):
    monkeypatch.delenv("TMUX", raising=False)
    stream = StringIO()
    assert copy_with_osc52("ABC", stream=stream)

    value = stream.getvalue()
    assert value.startswith("\x1b]52;c;")
    assert value.endswith("\x07")
    assert base64.b64encode(b"ABC").decode("ascii") in value


@pytest.mark.unit
def test_copy_with_osc52_wraps_for_tmux(monkeypatch):
    monkeypatch.setenv("TMUX", "/tmp/tmux-1000/default,123,0")
    stream = StringIO()
    assert copy_with_osc52("ABC", stream=stream)

    value = stream.getvalue()
    assert value.startswith("\x1bPtmux;\x1b")
    assert value.endswith("\x1b\\")


@pytest.mark.unit
def test_copy_with_osc52_rejects_empty_text():
    assert copy_with_osc52("", stream=StringIO()) is False


@pytest.mark.unit
def test_osc52_sequence_encodes_utf8():
    sequence = osc52_sequence("kaspa:é")
    payload = base64.b64encode("kaspa:é".encode("utf-8")).decode("ascii")
    assert sequence == f"\x1b]52;c;{payload}\x07"


@pytest.fixture
def fake_clipboard(monkeypatch):
    contents = {"value": ""}

    def fake_copy(text):
        contents["value"] = text

    monkeypatch.setattr(pyperclip, "copy", fake_copy)
    monkeypatch.setattr(pyperclip, "paste", lambda: contents["value"])
    return contents


@pytest.mark.unit
def test_copy_with_pyperclip_success(fake_clipboard):
    assert copy_with_pyperclip(ADDRESS)
    assert fake_clipboard["value"] == ADDRESS


@pytest.mark.unit
def test_copy_with_pyperclip_failure(monkeypatch):
    def failing_copy(text):
        raise pyperclip.PyperclipException("no clipboard backend")

    monkeypatch.setattr(pyperclip, "copy", failing_copy)

    assert copy_with_pyperclip(ADDRESS) is False


@pytest.mark.unit
def test_copy_with_pyperclip_write_only_clipboard(monkeypatch):
    def failing_paste():
        raise pyperclip.PyperclipException("paste not supported")

    monkeypatch.setattr(pyperclip, "copy", lambda text: None)
    monkeypatch.setattr(pyperclip, "paste", failing_paste)

    assert copy_with_pyperclip(ADDRESS) is True


@pytest.mark.unit
def test_copy_with_pyperclip_rejects_empty_text(fake_clipboard):
    assert copy_with_pyperclip("") is False



@pytest.mark.unit
def test_copy_text_prefers_pyperclip(monkeypatch):
    osc_calls = []
    monkeypatch.setattr(
        "ninja_wallet.shared.clipboard.copy_with_pyperclip", lambda text: True
    )
    monkeypatch.setattr(
        "ninja_wallet.shared.clipboard.copy_with_osc52",
        lambda text: osc_calls.append(text) or True,
    )

    result = copy_text(ADDRESS)

    assert result == CopyResult(success=True, method="pyperclip")
    assert osc_calls == []


@pytest.mark.unit
def test_copy_text_falls_back_to_osc52(monkeypatch):
    monkeypatch.setattr(
        "ninja_wallet.shared.clipboard.copy_with_pyperclip", lambda text: False
    )
    monkeypatch.setattr("ninja_wallet.shared.clipboard.copy_with_osc52", lambda text: True)

    result = copy_text("ABC")

    assert result.success is True
    assert result.method == "osc52"


@pytest.mark.unit
def test_copy_text_reports_failure(monkeypatch):
    monkeypatch.setattr(
        "ninja_wallet.shared.clipboard.copy_with_pyperclip", lambda text: False
    )
    monkeypatch.setattr(
        "ninja_wallet.shared.clipboard.copy_with_osc52", lambda text: False
    )

    result = copy_text("ABC")

    assert result == CopyResult(success=False, method=None)
