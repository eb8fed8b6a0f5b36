"""TelegramClient — chat front end: one analysis session per allowed chat."""
import io
import logging
from typing import Optional

from telegram import Bot, Update
from telegram.ext import Application, CommandHandler, ContextTypes
from telegram.ext import MessageHandler as TGMessageHandler
from telegram.ext import filters

from src.config import Config
from src.constants import (
    CMD_EXPORT,
    CMD_HELP,
    CMD_NEW,
    CMD_STATUS,
    EXPORT_FILENAME,
    MSG_ANALYSIS_FAILED,
    MSG_BLOCKED_CHAT,
    MSG_BUSY,
    MSG_HELP,
    MSG_NEW_SESSION,
    MSG_NOT_RESET,
    MSG_NOTHING_TO_EXPORT,
    MSG_SEND_FAIL,
    MSG_STATUS,
)
from src.imaging.source import ImageSource
from src.presenter import Presenter
from src.report import render_markdown, render_text
from src.session import SessionController
from src.session_models import SessionSnapshot, SessionState
from src.telegram.typing import ChatActionIndicator
from src.vision.client import VisionClient

logger = logging.getLogger(__name__)


async def send_text(bot: Bot, chat_id: str, text: str) -> bool:
    try:
        await bot.send_message(chat_id=int(chat_id), text=text)
        return True
    except Exception as exc:
        logger.error(MSG_SEND_FAIL, exc)
        return False


class ChatPresenter(Presenter):
    """Renders a session into one chat: an action while analyzing, then the outcome."""

    def __init__(self, bot: Bot, chat_id: str) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._indicator = ChatActionIndicator(bot, chat_id)

    async def render(self, snapshot: SessionSnapshot) -> None:
        match snapshot.state:
            case SessionState.ANALYZING:
                await self._indicator.start()
            case SessionState.RESULT:
                await self._indicator.stop()
                await send_text(self._bot, self._chat_id, render_text(snapshot.result, snapshot.scan_number))
            case SessionState.FAILED:
                await self._indicator.stop()
                await send_text(self._bot, self._chat_id, snapshot.error_detail or MSG_ANALYSIS_FAILED)
            case _:
                await self._indicator.stop()


class TelegramClient:

    def __init__(self, config: Config, vision_client: VisionClient) -> None:
        self._token, self._allowed_chat_id = config.require_telegram()
        self._config = config
        self._vision_client = vision_client
        self._sessions: dict[str, SessionController] = {}
        self._app: Optional[Application] = None

    def run(self) -> None:
        self._app = Application.builder().token(self._token).build()
        self._app.add_handler(
            TGMessageHandler(filters.PHOTO | filters.Document.IMAGE, self._on_image)
        )
        self._app.add_handler(CommandHandler(CMD_NEW, self._on_new))
        self._app.add_handler(CommandHandler(CMD_EXPORT, self._on_export))
        self._app.add_handler(CommandHandler(CMD_STATUS, self._on_status))
        self._app.add_handler(CommandHandler([CMD_HELP, "start"], self._on_help))
        self._app.run_polling()

    # ── helpers (also used in tests) ─────────────────────────────────────────

    def _is_allowed(self, update: Update) -> bool:
        if update.effective_chat is None:
            return False
        return str(update.effective_chat.id).strip() == self._allowed_chat_id.strip()

    def _sender(self, update: Update) -> Optional[str]:
        match self._is_allowed(update):
            case False:
                chat_id = update.effective_chat.id if update.effective_chat else "?"
                logger.warning(MSG_BLOCKED_CHAT, chat_id)
                return None
            case True:
                return str(update.effective_chat.id)

    def session_for(self, sender: str, bot: Bot) -> SessionController:
        match self._sessions.get(sender):
            case None:
                controller = SessionController(
                    self._vision_client,
                    ImageSource.from_config(self._config),
                    analysis_timeout=self._config.analysis_timeout,
                    presenters=[ChatPresenter(bot, sender)],
                )
                self._sessions[sender] = controller
                return controller
            case controller:
                return controller

    @staticmethod
    async def _download(update: Update) -> Optional[bytes]:
        msg = update.message
        if msg is None:
            return None
        match (msg.photo, msg.document):
            case ([*_, largest], _):
                tg_file = await largest.get_file()
            case (_, document) if document is not None:
                tg_file = await document.get_file()
            case _:
                return None
        return bytes(await tg_file.download_as_bytearray())

    # ── handlers ──────────────────────────────────────────────────────────────

    async def _on_image(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        sender = self._sender(update)
        if sender is None:
            return
        controller = self.session_for(sender, context.bot)
        match controller.state:
            case SessionState.ANALYZING:
                await send_text(context.bot, sender, MSG_BUSY)
                return
            case SessionState.RESULT | SessionState.FAILED:
                await controller.reset()
            case _:
                pass

        try:
            image_bytes = await self._download(update)
        except Exception:
            logger.exception("Image download failed")
            await send_text(context.bot, sender, MSG_ANALYSIS_FAILED)
            return
        match image_bytes:
            case None:
                return
            case data:
                await controller.image_selected(data)

    async def _on_new(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        sender = self._sender(update)
        if sender is None:
            return
        controller = self.session_for(sender, context.bot)
        match controller.state:
            case SessionState.ANALYZING:
                await send_text(context.bot, sender, MSG_BUSY)
            case _:
                reply = MSG_NEW_SESSION if await controller.reset() else MSG_NOT_RESET
                await send_text(context.bot, sender, reply)

    async def _on_export(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        sender = self._sender(update)
        if sender is None:
            return
        snapshot = self.session_for(sender, context.bot).snapshot()
        match (snapshot.state, snapshot.result):
            case (SessionState.RESULT, result) if result is not None:
                report = render_markdown(result, snapshot.scan_number)
                try:
                    await context.bot.send_document(
                        chat_id=int(sender),
                        document=io.BytesIO(report.encode("utf-8")),
                        filename=EXPORT_FILENAME % snapshot.scan_number,
                    )
                except Exception as exc:
                    logger.error(MSG_SEND_FAIL, exc)
            case _:
                await send_text(context.bot, sender, MSG_NOTHING_TO_EXPORT)

    async def _on_status(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        sender = self._sender(update)
        if sender is None:
            return
        snapshot = self.session_for(sender, context.bot).snapshot()
        await send_text(
            context.bot,
            sender,
            MSG_STATUS % (snapshot.session_id, snapshot.state.value, snapshot.scan_number),
        )

    async def _on_help(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        sender = self._sender(update)
        if sender is None:
            return
        await send_text(context.bot, sender, MSG_HELP)
