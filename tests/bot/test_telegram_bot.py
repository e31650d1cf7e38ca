"""Tests for the Telegram adapter helpers."""

from types import SimpleNamespace

import pytest
from telegram import InlineKeyboardMarkup
from telegram.error import BadRequest, Forbidden, TimedOut

from bot.channel import CALLBACK, COMMAND, MESSAGE, Button, ChannelError
from bot.telegram_bot import build_application, event_from_update, to_channel_error, to_markup


class TestToChannelError:
    """Tests for to_channel_error."""

    @pytest.mark.parametrize(
        "error, kind",
        [
            (Forbidden("bot was blocked by the user"), ChannelError.PERMISSION),
            (BadRequest("Not enough rights to send text messages"), ChannelError.PERMISSION),
            (BadRequest("Message can't be edited"), ChannelError.STALE),
            (BadRequest("Message to edit not found"), ChannelError.STALE),
            (BadRequest("Query is too old and response timeout expired"), ChannelError.STALE),
            (BadRequest("Chat not found"), ChannelError.OTHER),
            (TimedOut(), ChannelError.OTHER),
        ],
    )
    def test_classification(self, error, kind):
        """Test Telegram errors map to permission, stale or other."""
        assert to_channel_error(error).kind == kind


class TestToMarkup:
    """Tests for to_markup."""

    def test_empty(self):
        """Test no controls means no keyboard."""
        assert to_markup([]) is None
        assert to_markup(None) is None

    def test_buttons(self):
        """Test action and URL buttons become inline keyboard buttons."""
        markup = to_markup(
            [
                [Button("✏️ Edit Amount", "edit:1"), Button("🗑️ Delete", "delete:1")],
                [Button("🌐 View Dashboard", url="https://example.org")],
            ]
        )

        assert isinstance(markup, InlineKeyboardMarkup)
        first_row, second_row = markup.inline_keyboard
        assert [b.callback_data for b in first_row] == ["edit:1", "delete:1"]
        assert second_row[0].url == "https://example.org"
        assert second_row[0].callback_data is None


class TestEventFromUpdate:
    """Tests for event_from_update."""

    def _update(self, text=None, data=None):
        user = SimpleNamespace(id=42)
        chat = SimpleNamespace(id=4242)
        query = None
        message = None
        if data is not None:
            query = SimpleNamespace(id="q1", data=data, message=SimpleNamespace(message_id=7))
        else:
            message = SimpleNamespace(text=text, message_id=8)
        return SimpleNamespace(
            effective_user=user, effective_chat=chat, callback_query=query, message=message
        )

    def test_message(self):
        """Test a text message becomes a MESSAGE event keyed by user id."""
        event = event_from_update(self._update(text="30 on food"))

        assert event.kind == MESSAGE
        assert event.user_id == "42"
        assert event.chat_id == 4242
        assert event.text == "30 on food"

    def test_command(self):
        """Test slash messages become COMMAND events."""
        assert event_from_update(self._update(text="/help")).kind == COMMAND

    def test_callback(self):
        """Test a button press carries its data and message."""
        event = event_from_update(self._update(data="delete:3"))

        assert event.kind == CALLBACK
        assert event.callback_data == "delete:3"
        assert event.callback_id == "q1"
        assert event.message_id == 7

    def test_ignored(self):
        """Test updates without text or user are ignored."""
        assert event_from_update(self._update(text=None)) is None
        assert event_from_update(
            SimpleNamespace(effective_user=None, effective_chat=None)
        ) is None


class TestBuildApplication:
    """Tests for build_application."""

    def test_requires_token(self, test_config, services):
        """Test a missing bot token is a configuration error."""
        test_config.telegram_bot_token = ""

        with pytest.raises(ValueError):
            build_application(test_config, services)
