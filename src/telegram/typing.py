"""Telegram chat action — re-sent every N seconds while a scan is being analyzed."""
import asyncio
import logging

from telegram import Bot
from telegram.constants import ChatAction

from src.constants import TELEGRAM_ACTION_INTERVAL

logger = logging.getLogger(__name__)


async def _keep_acting(bot: Bot, chat_id: str, action: ChatAction, stop: asyncio.Event) -> None:
    while not stop.is_set():
        try:
            await bot.send_chat_action(chat_id=int(chat_id), action=action)
        except Exception as exc:
            logger.debug("Chat action failed: %s", exc)
        try:
            await asyncio.wait_for(stop.wait(), timeout=TELEGRAM_ACTION_INTERVAL)
        except asyncio.TimeoutError:
            pass


class ChatActionIndicator:

    def __init__(self, bot: Bot, chat_id: str, action: ChatAction = ChatAction.UPLOAD_PHOTO) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._action = action
        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        if self.active:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(
            _keep_acting(self._bot, self._chat_id, self._action, self._stop_event)
        )

    async def stop(self) -> None:
        match (self._stop_event, self._task):
            case (None, None):
                return
            case (event, task):
                if event is not None:
                    event.set()
                if task is not None:
                    await task
        self._stop_event = None
        self._task = None
