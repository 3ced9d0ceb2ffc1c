"""Telegram handlers for daily vocabulary practice."""
import functools
import html
import logging
from typing import Awaitable, Callable, List, Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.ext import CallbackContext

from linguamentor.errors import InvalidArgument, LinguaMentorError, StaleAnswer
from linguamentor.models.vocabulary_models import AnswerRequest, DailyWordsRequest
from linguamentor.monitoring import request_duration
from linguamentor.services.user_service import UserService
from linguamentor.services.vocabulary_service import VocabularyService

# Get logger for this module
logger = logging.getLogger(__name__)

# Keys of the objects shared through Application.bot_data
VOCABULARY_SERVICE = "vocabulary_service"
USER_SERVICE = "user_service"
DEFAULT_LANGUAGE = "default_language"

# Keys of the per-user practice state in CallbackContext.user_data
DAILY_WORDS = "daily_words"
DAILY_INDEX = "daily_index"
DAILY_CORRECT = "daily_correct"
LANGUAGE = "language"

# Button texts
MENU = "🏠 Menu"
DAILY_PRACTICE = "💡 Daily Words"
CHOOSE_TOPIC = "🏷️ Practice a Topic"
VIEW_STATISTICS = "📊 View Statistics"
KNOW_IT = "✅ I know it"
DONT_KNOW_IT = "❌ Not yet"

ANSWER_PREFIX = "answer"
TOPIC_PREFIX = "topic"


def msg_back_to(text: str) -> str: return f"🔙 {text}"


KB_BACK_TO_MENU = [[InlineKeyboardButton(msg_back_to(MENU), callback_data="back_to_menu")]]

Handler = Callable[[Update, CallbackContext], Awaitable[None]]


def vocabulary_service(context: CallbackContext) -> VocabularyService:
    return context.bot_data[VOCABULARY_SERVICE]


def user_service(context: CallbackContext) -> UserService:
    return context.bot_data[USER_SERVICE]


def current_language(context: CallbackContext) -> str:
    return context.user_data.get(LANGUAGE) or context.bot_data[DEFAULT_LANGUAGE]


def main_menu_markup() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(DAILY_PRACTICE, callback_data="daily")],
        [InlineKeyboardButton(CHOOSE_TOPIC, callback_data="topics")],
        [InlineKeyboardButton(VIEW_STATISTICS, callback_data="statistics")],
    ])


async def log_received(update: Update, context_type: str) -> None:
    """Log an incoming update."""
    txt = ""
    if update.callback_query:
        txt = f" {update.callback_query.data}"
    elif update.message:
        txt = f" {update.message.text}"
    user = update.effective_user
    logger.info(f"Received @{context_type:8} from user {user.username} ({user.id}){txt}")


async def send_popup_message(update: Update, text: str) -> None:
    """Show an alert on top of the chat, or a plain reply outside callbacks."""
    if update.callback_query:
        await update.callback_query.answer(text=text, show_alert=True)
    else:
        await update.message.reply_text(f"⚠️ {text}")


async def reply(update: Update, text: str, reply_markup: Optional[InlineKeyboardMarkup] = None) -> None:
    """Edit the message behind a callback, or answer a command."""
    if update.callback_query:
        await update.callback_query.edit_message_text(
            text, reply_markup=reply_markup, parse_mode=ParseMode.HTML
        )
    else:
        await update.message.reply_text(text, reply_markup=reply_markup, parse_mode=ParseMode.HTML)


def bot_handler(name: str) -> Callable[[Handler], Handler]:
    """Log, time and authorize a handler and report domain errors to the user.

    Callback queries are acknowledged once: with an alert on failure, so the
    original buttons stay in place for a retry, or silently on success.
    """
    def decorator(func: Handler) -> Handler:
        @functools.wraps(func)
        async def wrapper(update: Update, context: CallbackContext) -> None:
            await log_received(update, name)
            with request_duration.labels(handler=name).time():
                try:
                    user_service(context).ensure_owner(update.effective_user.id)
                    await func(update, context)
                except LinguaMentorError as e:
                    logger.warning(f"{name} failed for user {update.effective_user.id}: {e}")
                    await send_popup_message(update, e.user_message)
                    return
            if update.callback_query:
                await update.callback_query.answer()
        return wrapper
    return decorator


@bot_handler("start")
async def handle_start(update: Update, context: CallbackContext) -> None:
    """Greet the owner and show the main menu."""
    profile = await user_service(context).get_profile(update.effective_user.id)
    name = profile.name if profile and profile.name else update.effective_user.first_name
    message = (
        f"Hello {html.escape(name or '')}! 👋\n\n"
        "I am your personal vocabulary tutor.\n"
        "What would you like to do?"
    )
    if profile and profile.goals:
        message += f"\n\n🎯 Your goal: {html.escape(profile.goals)}"
    await reply(update, message, main_menu_markup())


@bot_handler("daily")
async def handle_daily(update: Update, context: CallbackContext) -> None:
    """Start a daily practice set, optionally for a topic (``/daily travel``)."""
    topic = " ".join(context.args).strip() if context.args else None
    await start_practice(update, context, topic or None)


async def start_practice(update: Update, context: CallbackContext, topic: Optional[str]) -> None:
    request = DailyWordsRequest(
        user_id=str(update.effective_user.id),
        language=current_language(context),
        topic=topic,
    )
    result = await vocabulary_service(context).request_daily_words(request)
    if not result.words:
        what = f"for topic '{html.escape(topic)}'" if topic else "to practice"
        await reply(update, f"No words {what} right now.", InlineKeyboardMarkup(KB_BACK_TO_MENU))
        return

    context.user_data[DAILY_WORDS] = [word.to_dict() for word in result.words]
    context.user_data[DAILY_INDEX] = 0
    context.user_data[DAILY_CORRECT] = 0
    await send_current_word(update, context)


async def send_current_word(update: Update, context: CallbackContext) -> None:
    """Show the current word of the practice set, or the summary when done."""
    words: List[dict] = context.user_data.get(DAILY_WORDS) or []
    index = context.user_data.get(DAILY_INDEX, 0)

    if index >= len(words):
        correct = context.user_data.get(DAILY_CORRECT, 0)
        for key in (DAILY_WORDS, DAILY_INDEX, DAILY_CORRECT):
            context.user_data.pop(key, None)
        await reply(
            update,
            f"🎉 Practice finished! You knew {correct} of {len(words)} words.",
            main_menu_markup(),
        )
        return

    current = words[index]
    entry = vocabulary_service(context).catalogs.get(current_language(context)).get(current["word"])
    level = f" ({entry.level})" if entry else ""
    message = (
        f"Word {index + 1}/{len(words)} · {current['status']}\n\n"
        f"<b>{html.escape(current['word'])}</b>{level}\n\n"
        "Do you know this word?"
    )
    keyboard = [
        [InlineKeyboardButton(KNOW_IT, callback_data=f"{ANSWER_PREFIX}:yes:{current['word']}"),
         InlineKeyboardButton(DONT_KNOW_IT, callback_data=f"{ANSWER_PREFIX}:no:{current['word']}")],
        [InlineKeyboardButton(msg_back_to(MENU), callback_data="back_to_menu")],
    ]
    await reply(update, message, InlineKeyboardMarkup(keyboard))


def parse_answer(data: str) -> tuple[str, bool]:
    """Split ``answer:<yes|no>:<word>`` callback data."""
    parts = data.split(":", 2)
    if len(parts) != 3 or parts[0] != ANSWER_PREFIX or parts[1] not in ("yes", "no") or not parts[2]:
        raise InvalidArgument(f"Malformed answer {data!r}")
    return parts[2], parts[1] == "yes"


async def record_answer(update: Update, context: CallbackContext) -> None:
    """Record an answer to the current word of the practice set and move on.

    Presses that no longer match the current word are rejected before
    anything is stored.
    """
    word, is_correct = parse_answer(update.callback_query.data)
    words: List[dict] = context.user_data.get(DAILY_WORDS) or []
    index = context.user_data.get(DAILY_INDEX, 0)
    if index >= len(words) or words[index]["word"] != word:
        raise StaleAnswer(f"Answer for {word!r} does not match the current practice word")

    request = AnswerRequest(
        user_id=str(update.effective_user.id),
        language=current_language(context),
        word=word,
        is_correct=is_correct,
    )
    await vocabulary_service(context).submit_answer(request)

    context.user_data[DAILY_INDEX] = index + 1
    if is_correct:
        context.user_data[DAILY_CORRECT] = context.user_data.get(DAILY_CORRECT, 0) + 1
    await send_current_word(update, context)


async def show_topics(update: Update, context: CallbackContext) -> None:
    catalog = vocabulary_service(context).catalogs.get(current_language(context))
    keyboard = [
        [InlineKeyboardButton(topic.title(), callback_data=f"{TOPIC_PREFIX}:{topic}")]
        for topic in catalog.topics()
    ]
    keyboard.extend(KB_BACK_TO_MENU)
    await reply(update, "🏷️ Choose a topic:", InlineKeyboardMarkup(keyboard))


async def show_statistics(update: Update, context: CallbackContext) -> None:
    language = current_language(context)
    stats = await vocabulary_service(context).storage.count_by_status(
        str(update.effective_user.id), language
    )
    message = (
        f"📊 Your progress ({language}):\n\n"
        f"Known: {stats.known}\n"
        f"Learning: {stats.learning}\n"
        f"Weak: {stats.weak}"
    )
    await reply(update, message, InlineKeyboardMarkup(KB_BACK_TO_MENU))


@bot_handler("stats")
async def handle_stats(update: Update, context: CallbackContext) -> None:
    """Show progress counts for the current language."""
    await show_statistics(update, context)


@bot_handler("language")
async def handle_language(update: Update, context: CallbackContext) -> None:
    """Switch the practice language (``/language en``)."""
    languages = vocabulary_service(context).catalogs.languages
    if not context.args:
        await reply(
            update,
            f"Current language: {current_language(context)}\nAvailable: {', '.join(languages)}",
        )
        return
    language = context.args[0].strip().lower()
    vocabulary_service(context).catalogs.get(language)
    context.user_data[LANGUAGE] = language
    context.user_data.pop(DAILY_WORDS, None)
    await reply(update, f"Language set to {language}.", main_menu_markup())


@bot_handler("callback")
async def handle_callback(update: Update, context: CallbackContext) -> None:
    """Route inline button presses."""
    data = update.callback_query.data or ""
    if data.startswith(f"{ANSWER_PREFIX}:"):
        await record_answer(update, context)
    elif data.startswith(f"{TOPIC_PREFIX}:"):
        await start_practice(update, context, data.split(":", 1)[1])
    elif data == "daily":
        await start_practice(update, context, None)
    elif data == "topics":
        await show_topics(update, context)
    elif data == "statistics":
        await show_statistics(update, context)
    elif data == "back_to_menu":
        await reply(update, "What would you like to do?", main_menu_markup())
    else:
        logger.warning(f"Unknown callback data: {data}")


async def handle_error(update: object, context: CallbackContext) -> None:
    """Log errors that escaped the handlers."""
    logger.error("Unhandled error while processing an update", exc_info=context.error)
