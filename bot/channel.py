"""Delivery channel abstraction.

The conversation controller talks to users only through a DeliveryChannel, so
it can be driven by Telegram in production and by a recording fake in tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

MESSAGE = "message"
CALLBACK = "callback"
COMMAND = "command"


@dataclass
class Event:
    """An inbound update from a user.

    Attributes:
        kind: MESSAGE, CALLBACK (button press) or COMMAND ("/help").
        user_id: Identity the session and all store calls are keyed by.
        chat_id: Where replies go.
        text: Message text, or the full command text including arguments.
        callback_data: Encoded button action, for callbacks.
        callback_id: Id used to acknowledge the callback.
        message_id: Message the pressed button belongs to.
    """

    kind: str
    user_id: str
    chat_id: int
    text: str = ""
    callback_data: Optional[str] = None
    callback_id: Optional[str] = None
    message_id: Optional[int] = None


@dataclass(frozen=True)
class Button:
    """An inline button that either triggers an action or opens a URL."""

    label: str
    action: Optional[str] = None
    url: Optional[str] = None

    def __post_init__(self):
        if (self.action is None) == (self.url is None):
            raise ValueError(f"Button {self.label!r} needs exactly one of action or url")


Controls = List[List[Button]]


@dataclass
class Reply:
    text: str
    controls: Controls = field(default_factory=list)


class ChannelError(Exception):
    """Delivery failure reported by the channel.

    Attributes:
        kind: PERMISSION when the bot lacks rights for the operation, STALE
            when the target message is too old or gone, OTHER otherwise.
    """

    PERMISSION = "permission"
    STALE = "stale"
    OTHER = "other"

    def __init__(self, kind: str, message: str = ""):
        super().__init__(message or kind)
        self.kind = kind


class DeliveryChannel(ABC):
    """Outbound side of the bot."""

    @abstractmethod
    async def send(self, chat_id: int, text: str, controls: Optional[Controls] = None) -> None:
        """Send a message, optionally with a grid of inline buttons.

        Raises:
            ChannelError: If the message could not be delivered.
        """
        pass

    @abstractmethod
    async def answer(self, callback_id: str, text: Optional[str] = None, alert: bool = False) -> None:
        """Acknowledge a button press, optionally with a toast or alert.

        Raises:
            ChannelError: If the callback could not be answered.
        """
        pass

    @abstractmethod
    async def clear_controls(self, chat_id: int, message_id: int) -> None:
        """Remove the inline buttons from a previously sent message.

        Raises:
            ChannelError: If the message can no longer be edited.
        """
        pass
