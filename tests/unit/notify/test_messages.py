"""Tests for the user-facing message catalogue."""

import pytest

from pagebridge.core.errors import (
    ClipboardError,
    ClipboardErrorCode,
    ExtractionError,
    ExtractionErrorCode,
    InjectionError,
    InjectionErrorCode,
)
from pagebridge.inject.fallback import SUGGESTED_ACTIONS
from pagebridge.notify import messages
from pagebridge.notify.sink import NotificationLevel


class TestActionableMessage:
    """Tests for actionable_message()."""

    @pytest.mark.parametrize(
        ("technical", "fragment"),
        [
            ("NotAllowedError: Permission denied", "Permission denied"),
            ("Document is not focused.", "must be focused"),
            ("Request timed out", "timed out"),
            ("Editor not ready", "not ready yet"),
        ],
    )
    def test_hints(self, technical: str, fragment: str) -> None:
        assert fragment in messages.actionable_message(technical, "fallback")

    def test_fallback(self) -> None:
        assert messages.actionable_message("weird", "fallback") == "fallback"


class TestCatalogue:
    """Every error code maps to a notification."""

    @pytest.mark.parametrize("code", list(ExtractionErrorCode))
    def test_extraction(self, code: ExtractionErrorCode) -> None:
        note = messages.extraction_failed(ExtractionError(code, "x"))
        assert note.level is NotificationLevel.ERROR
        assert note.actions

    @pytest.mark.parametrize("code", list(ClipboardErrorCode))
    def test_clipboard(self, code: ClipboardErrorCode) -> None:
        note = messages.clipboard_failed(ClipboardError(code, "x"))
        assert note.level is NotificationLevel.ERROR
        assert note.actions

    @pytest.mark.parametrize("code", list(InjectionErrorCode))
    def test_injection(self, code: InjectionErrorCode) -> None:
        note = messages.injection_failed(InjectionError(code, "x"))
        assert note.level is NotificationLevel.ERROR
        assert note.actions == SUGGESTED_ACTIONS[code]
        assert "manual import" in note.message

    def test_injection_with_export_path(self) -> None:
        note = messages.injection_failed(
            InjectionError(InjectionErrorCode.TIMEOUT, "x"), "/tmp/export.json"
        )
        assert "/tmp/export.json" in note.message

    def test_injection_actions_are_copies(self) -> None:
        note = messages.injection_failed(InjectionError(InjectionErrorCode.TIMEOUT, "x"))
        note.actions.append("extra")
        assert "extra" not in SUGGESTED_ACTIONS[InjectionErrorCode.TIMEOUT]


class TestSuccessMessages:
    """Tests for success and informational messages."""

    def test_copied(self) -> None:
        note = messages.copied("section")
        assert note.level is NotificationLevel.SUCCESS
        assert note.message.startswith("Section copied")

    def test_pasted(self) -> None:
        assert "1 element " in messages.pasted(1, "structured-create").message
        assert "3 elements" in messages.pasted(3, "clipboard-channel").message

    def test_manual_copy_includes_text(self) -> None:
        note = messages.manual_copy_required('{"marker": {}}')
        assert note.level is NotificationLevel.WARNING
        assert note.message.endswith('{"marker": {}}')

    def test_clipboard_empty(self) -> None:
        assert messages.clipboard_empty().level is NotificationLevel.INFO

    def test_sanitization_degraded(self) -> None:
        assert "2 unsafe" in messages.sanitization_degraded(2).message
