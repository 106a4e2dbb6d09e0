"""
Smart Calendar — Telegram Bot.

Telegram is the chat window of the organizer: free text goes to the
assistant, slash commands cover the manual actions (day view, task list,
event forms, backups).

Single user: messages from anyone outside ALLOWED_USER_IDS are silently ignored.
"""

from __future__ import annotations

import asyncio
import io
import logging
from datetime import date, datetime
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from pydantic import ValidationError
from telegram import Update
from telegram.constants import ChatAction
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from smartcal.config import settings
from smartcal.core.agenda import build_share_text, format_day
from smartcal.core.backup import BackupError, backup_filename, dumps_backup, import_backup
from smartcal.core.conversation import greeting
from smartcal.core.date_resolver import resolve_date
from smartcal.core.forms import parse_form_args

if TYPE_CHECKING:
    from smartcal.core.action_service import ActionService
    from smartcal.data.models import CalendarEvent, Todo

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that drops updates from anyone outside ALLOWED_USER_IDS.

    Strangers get no reply at all; the organizer belongs to one person.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _today() -> date:
    """Today in the configured timezone."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()


def _service(context: ContextTypes.DEFAULT_TYPE) -> ActionService:
    return context.bot_data["service"]


def _format_validation_error(exc: ValidationError) -> str:
    """First human message from a pydantic error, without the field path noise."""
    first = exc.errors()[0]
    return str(first.get("msg", "Date invalide.")).removeprefix("Value error, ")


def _resolve_event(service: ActionService, ref: str) -> CalendarEvent | None:
    """Find an event by the short reference shown in day views ("#1a2b3c")."""
    ref = ref.lstrip("#").lower()
    if len(ref) < 3:
        return None
    matches = [ev for ev in service.state.store.events if ev.id.lower().startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def _todo_at(service: ActionService, arg: str) -> Todo | None:
    """Todo by its 1-based position in the /tasks list."""
    if not arg.isdigit():
        return None
    todos = service.state.store.todos
    index = int(arg) - 1
    return todos[index] if 0 <= index < len(todos) else None


def _format_todos(todos: list[Todo]) -> str:
    if not todos:
        return "Lista de task-uri e goală. ✨"
    lines = ["📝 Task-uri:"]
    for i, todo in enumerate(todos, start=1):
        mark = "✅" if todo.completed else "⬜"
        pin = " 📌" if todo.is_pinned else ""
        lines.append(f"{i}. {mark} {todo.text}{pin}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Command handlers: profile & settings
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome, or ask for a name on first use."""
    state = _service(context).state
    if not state.user_name:
        await update.message.reply_text(
            "Bine ai venit! 👋\n"
            "Smart Calendar te ajută să te organizezi eficient.\n"
            "Cum te numești? Trimite /name <numele tău>."
        )
        return
    await update.message.reply_text(
        greeting(state.user_name, state.assistant_name, state.assistant_avatar)
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "Scrie-mi liber, de exemplu \"pune ședință luni la 10\".\n\n"
        "Comenzi:\n"
        "/today — programul de azi\n"
        "/day <dată> — programul unei zile (ex: /day mâine)\n"
        "/week — următoarele 7 zile\n"
        "/addevent [AAAA-LL-ZZ] [HH:MM[-HH:MM]] [#tip] titlu\n"
        "/edit <#ref> [HH:MM[-HH:MM]] titlu nou\n"
        "/delevent <#ref>\n"
        "/tasks — lista de task-uri\n"
        "/done <nr>, /pin <nr>, /color <nr> <culoare>, /deltask <nr>\n"
        "/name <nume>, /logout, /theme <temă>, /accent <culoare>\n"
        "/assistant <nume> [avatar]\n"
        "/export — backup JSON; trimite fișierul înapoi ca să-l restaurezi"
    )


@authorized_only
async def cmd_name(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /name <name> — set the display name."""
    state = _service(context).state
    try:
        name = state.set_user_name(" ".join(context.args))
    except ValueError as exc:
        await update.message.reply_text(str(exc))
        return
    await update.message.reply_text(
        greeting(name, state.assistant_name, state.assistant_avatar)
    )


@authorized_only
async def cmd_logout(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /logout — forget the display name."""
    _service(context).state.logout()
    await update.message.reply_text("La revedere! 👋 Trimite /name ca să revii.")


@authorized_only
async def cmd_theme(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /theme <modern|neon|pastel>."""
    try:
        theme = _service(context).state.set_theme(" ".join(context.args))
    except ValueError as exc:
        await update.message.reply_text(str(exc))
        return
    await update.message.reply_text(f"Tema este acum {theme}. 🎨")


@authorized_only
async def cmd_accent(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /accent <color>."""
    try:
        color = _service(context).state.set_accent_color(" ".join(context.args))
    except ValueError as exc:
        await update.message.reply_text(str(exc))
        return
    await update.message.reply_text(f"Culoarea de accent este acum {color}.")


@authorized_only
async def cmd_assistant(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /assistant <name> [avatar] — rename the assistant."""
    state = _service(context).state
    args = list(context.args)
    avatar = args.pop() if len(args) > 1 and not args[-1].isalnum() else None
    try:
        state.set_assistant_identity(" ".join(args), avatar)
    except ValueError as exc:
        await update.message.reply_text(str(exc))
        return
    await update.message.reply_text(
        f"Identitate actualizată! Acum sunt {state.assistant_name} {state.assistant_avatar}. "
        "Cu ce te pot ajuta?"
    )


# ---------------------------------------------------------------------------
# Command handlers: calendar
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_today(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /today — today's events sorted by time."""
    events = _service(context).state.store.events
    await update.message.reply_text(format_day(events, _today(), with_refs=True))


@authorized_only
async def cmd_day(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /day <date> — ISO date or any phrase the assistant understands."""
    phrase = " ".join(context.args).strip()
    day: date | None = None
    try:
        day = date.fromisoformat(phrase)
    except ValueError:
        day = resolve_date(phrase, _today(), settings.ROLLOVER_ON_SAME_DAY)
    if day is None:
        await update.message.reply_text("Nu înțeleg data. Exemplu: /day 2024-05-06 sau /day vineri")
        return
    events = _service(context).state.store.events
    await update.message.reply_text(format_day(events, day, with_refs=True))


@authorized_only
async def cmd_week(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /week — the shareable 7-day schedule."""
    events = _service(context).state.store.events
    await update.message.reply_text(build_share_text(events, _today()))


@authorized_only
async def cmd_addevent(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /addevent — manual event form."""
    try:
        form = parse_form_args(list(context.args), _today())
    except ValidationError as exc:
        await update.message.reply_text(f"⚠️ {_format_validation_error(exc)}")
        return
    response = _service(context).add_event(form)
    await update.message.reply_text(response.message)


@authorized_only
async def cmd_edit(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /edit <#ref> [HH:MM[-HH:MM]] new title."""
    service = _service(context)
    args = list(context.args)
    event = _resolve_event(service, args[0]) if args else None
    if event is None:
        await update.message.reply_text("Nu găsesc evenimentul. Folosește referința din /today sau /day.")
        return
    try:
        form = parse_form_args(args[1:], date.fromisoformat(event.date))
    except ValidationError as exc:
        await update.message.reply_text(f"⚠️ {_format_validation_error(exc)}")
        return
    response = service.update_event(event.id, form)
    await update.message.reply_text(response.message)


@authorized_only
async def cmd_delevent(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delevent <#ref>."""
    service = _service(context)
    event = _resolve_event(service, context.args[0]) if context.args else None
    if event is None:
        await update.message.reply_text("Nu găsesc evenimentul. Folosește referința din /today sau /day.")
        return
    response = service.delete_event(event.id)
    await update.message.reply_text(response.message)


# ---------------------------------------------------------------------------
# Command handlers: tasks
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_tasks(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /tasks — pinned first, then the rest."""
    await update.message.reply_text(_format_todos(_service(context).state.store.todos))


async def _with_todo(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    action: Callable[[ActionService, Todo], Any],
) -> None:
    service = _service(context)
    todo = _todo_at(service, context.args[0]) if context.args else None
    if todo is None:
        await update.message.reply_text("Nu găsesc task-ul. Folosește numărul din /tasks.")
        return
    response = action(service, todo)
    await update.message.reply_text(response.message)


@authorized_only
async def cmd_done(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /done <nr> — toggle completion."""
    await _with_todo(update, context, lambda s, t: s.toggle_todo(t.id))


@authorized_only
async def cmd_pin(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /pin <nr> — toggle pinned."""
    await _with_todo(update, context, lambda s, t: s.toggle_pin(t.id))


@authorized_only
async def cmd_color(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /color <nr> <color>."""
    if len(context.args) < 2:
        await update.message.reply_text("Folosește: /color <nr> <culoare>, ex: /color 2 rosu")
        return
    color = context.args[1]
    await _with_todo(update, context, lambda s, t: s.set_todo_color(t.id, color))


@authorized_only
async def cmd_deltask(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /deltask <nr>."""
    await _with_todo(update, context, lambda s, t: s.delete_todo(t.id))


# ---------------------------------------------------------------------------
# Backups
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_export(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /export — send the backup as a JSON document."""
    state = _service(context).state
    now = datetime.now(ZoneInfo(settings.TIMEZONE))
    payload = io.BytesIO(dumps_backup(state, now).encode("utf-8"))
    await update.message.reply_document(document=payload, filename=backup_filename(now))


@authorized_only
async def handle_document(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle an uploaded .json file — restore it as a backup."""
    state = _service(context).state
    try:
        tg_file = await context.bot.get_file(update.message.document.file_id)
        raw = bytes(await tg_file.download_as_bytearray())
        import_backup(state, raw)
    except BackupError as exc:
        await update.message.reply_text(str(exc))
        return
    except Exception as exc:
        logger.error("Backup upload failed: %s", exc)
        await update.message.reply_text("Nu am putut citi fișierul. Încearcă din nou.")
        return
    await update.message.reply_text("Datele au fost restaurate cu succes! 💾")


# ---------------------------------------------------------------------------
# Message handlers
# ---------------------------------------------------------------------------


@authorized_only
async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle plain text messages — the assistant conversation."""
    await context.bot.send_chat_action(chat_id=update.effective_chat.id, action=ChatAction.TYPING)
    await asyncio.sleep(settings.REPLY_DELAY_SECONDS)
    try:
        response = _service(context).handle_message(update.message.text)
    except Exception as exc:
        logger.error("Assistant error: %s", exc)
        await update.message.reply_text("Scuze, ceva n-a mers. Mai încearcă o dată.")
        return
    await update.message.reply_text(response.message)


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_service() -> ActionService:
    """Load the persisted state and wire the action service from settings."""
    from smartcal.core.action_service import ActionService, DeleteFallback
    from smartcal.core.app_state import AppState
    from smartcal.data.db import KeyValueDB

    state = AppState.load(KeyValueDB())
    return ActionService(
        state,
        delete_fallback=DeleteFallback(settings.DELETE_FALLBACK),
        rollover_on_same_day=settings.ROLLOVER_ON_SAME_DAY,
        today=_today,
    )


def build_app(service: ActionService | None = None) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        service: Action service to use. Defaults to one backed by the SQLite
                 key-value store at DATABASE_PATH.
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if service is None:
        service = build_service()
    app.bot_data["service"] = service

    # Commands
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("name", cmd_name))
    app.add_handler(CommandHandler("logout", cmd_logout))
    app.add_handler(CommandHandler("theme", cmd_theme))
    app.add_handler(CommandHandler("accent", cmd_accent))
    app.add_handler(CommandHandler("assistant", cmd_assistant))
    app.add_handler(CommandHandler("today", cmd_today))
    app.add_handler(CommandHandler("day", cmd_day))
    app.add_handler(CommandHandler("week", cmd_week))
    app.add_handler(CommandHandler("addevent", cmd_addevent))
    app.add_handler(CommandHandler("edit", cmd_edit))
    app.add_handler(CommandHandler("delevent", cmd_delevent))
    app.add_handler(CommandHandler("tasks", cmd_tasks))
    app.add_handler(CommandHandler("done", cmd_done))
    app.add_handler(CommandHandler("pin", cmd_pin))
    app.add_handler(CommandHandler("color", cmd_color))
    app.add_handler(CommandHandler("deltask", cmd_deltask))
    app.add_handler(CommandHandler("export", cmd_export))

    # Backup restore (uploaded .json)
    app.add_handler(MessageHandler(filters.Document.FileExtension("json"), handle_document))

    # Text messages (non-command)
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text))

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def main() -> None:
    """Entry point: build the app and start polling."""
    logger.info("Starting Smart Calendar bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    main()
