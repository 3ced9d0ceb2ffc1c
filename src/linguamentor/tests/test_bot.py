"""Tests for Telegram bot handlers."""
from unittest.mock import AsyncMock, Mock

import pytest
from faker import Faker
from telegram import Update, User as TelegramUser

from linguamentor.bot import (
    DAILY_INDEX,
    DAILY_WORDS,
    DEFAULT_LANGUAGE,
    LANGUAGE,
    USER_SERVICE,
    VOCABULARY_SERVICE,
    handle_callback,
    handle_daily,
    handle_language,
    handle_start,
    handle_stats,
    parse_answer,
)
from linguamentor.config import LearningSettings
from linguamentor.errors import InvalidArgument, StaleAnswer, StorageUnavailable
from linguamentor.models.vocabulary_models import AnswerRequest, WordStatus
from linguamentor.services.catalog import CatalogRegistry
from linguamentor.services.user_service import UserService
from linguamentor.services.vocabulary_service import VocabularyService

fake = Faker()

OWNER_ID = 102436862


@pytest.fixture
def telegram_user() -> Mock:
    """Create a mock Telegram user."""
    user = Mock(spec=TelegramUser)
    user.id = OWNER_ID
    user.first_name = fake.first_name()
    user.username = f"test_user_{fake.random_int()}"
    user.is_bot = False
    return user


@pytest.fixture
def update(telegram_user: Mock) -> Mock:
    """Create a mock Update for a command message."""
    update = AsyncMock(spec=Update)
    update.update_id = fake.random_int()
    update.effective_user = telegram_user
    update.message = AsyncMock()
    update.message.text = "/start"
    update.message.reply_text = AsyncMock()
    update.callback_query = None
    return update


@pytest.fixture
def callback_update(update: Mock):
    """Turn the update into an inline button press with the given data."""
    def press(data: str) -> Mock:
        update.callback_query = AsyncMock()
        update.callback_query.data = data
        update.callback_query.answer = AsyncMock()
        update.callback_query.edit_message_text = AsyncMock()
        return update
    return press


@pytest.fixture
def vocabulary_service(catalog, storage, rng, now) -> VocabularyService:
    settings = LearningSettings(languages=["en"], default_language="en")
    return VocabularyService(CatalogRegistry([catalog]), storage, settings, rng=rng, clock=lambda: now)


@pytest.fixture
def context(vocabulary_service, storage) -> Mock:
    """Create a mock CallbackContext carrying the services."""
    context = Mock()
    context.args = []
    context.user_data = {}
    context.bot_data = {
        VOCABULARY_SERVICE: vocabulary_service,
        USER_SERVICE: UserService(storage, [OWNER_ID]),
        DEFAULT_LANGUAGE: "en",
    }
    return context


def sent_text(mock_call) -> str:
    return mock_call.call_args.args[0]


@pytest.mark.asyncio
async def test_start_greets_owner_by_profile_name(update, context, storage) -> None:
    await storage.upsert_user_profile(str(OWNER_ID), name="Merab", goals="Business vocabulary")

    await handle_start(update, context)

    text = sent_text(update.message.reply_text)
    assert "Hello Merab!" in text
    assert "Business vocabulary" in text


@pytest.mark.asyncio
async def test_start_without_profile_uses_telegram_name(update, context, telegram_user) -> None:
    await handle_start(update, context)

    assert f"Hello {telegram_user.first_name}!" in sent_text(update.message.reply_text)


@pytest.mark.asyncio
async def test_stranger_is_turned_away(update, context, telegram_user) -> None:
    telegram_user.id = OWNER_ID + 1

    await handle_start(update, context)

    update.message.reply_text.assert_awaited_once_with("⚠️ Sorry, this assistant is private.")


@pytest.mark.asyncio
async def test_daily_command_starts_practice(update, context) -> None:
    await handle_daily(update, context)

    assert len(context.user_data[DAILY_WORDS]) == 8
    assert context.user_data[DAILY_INDEX] == 0
    assert sent_text(update.message.reply_text).startswith("Word 1/8")


@pytest.mark.asyncio
async def test_daily_command_with_topic(update, context, catalog) -> None:
    context.args = ["travel"]

    await handle_daily(update, context)

    words = [word["word"] for word in context.user_data[DAILY_WORDS]]
    assert len(words) == 4
    assert all(catalog.get(word).has_tag("travel") for word in words)


@pytest.mark.asyncio
async def test_daily_command_with_unknown_topic(update, context) -> None:
    context.args = ["astronomy"]

    await handle_daily(update, context)

    assert DAILY_WORDS not in context.user_data
    assert "No words for topic 'astronomy'" in sent_text(update.message.reply_text)


@pytest.mark.asyncio
async def test_answer_button_records_answer_and_advances(update, context, callback_update, storage) -> None:
    await handle_daily(update, context)
    first = context.user_data[DAILY_WORDS][0]["word"]

    await handle_callback(callback_update(f"answer:yes:{first}"), context)

    stored = await storage.get(str(OWNER_ID), "en", first)
    assert stored.status is WordStatus.LEARNING
    assert context.user_data[DAILY_INDEX] == 1
    assert sent_text(update.callback_query.edit_message_text).startswith("Word 2/8")
    update.callback_query.answer.assert_awaited_once_with()


@pytest.mark.asyncio
async def test_failed_answer_keeps_word_for_retry(update, context, callback_update, mocker) -> None:
    await handle_daily(update, context)
    first = context.user_data[DAILY_WORDS][0]["word"]
    mocker.patch.object(
        context.bot_data[VOCABULARY_SERVICE], "submit_answer",
        AsyncMock(side_effect=StorageUnavailable("down")),
    )

    await handle_callback(callback_update(f"answer:no:{first}"), context)

    assert context.user_data[DAILY_INDEX] == 0
    update.callback_query.edit_message_text.assert_not_awaited()
    update.callback_query.answer.assert_awaited_once_with(
        text=StorageUnavailable.user_message, show_alert=True
    )


@pytest.mark.asyncio
async def test_last_answer_shows_summary(update, context, callback_update) -> None:
    context.user_data[DAILY_WORDS] = [{"word": "hello", "status": "New"}]
    context.user_data[DAILY_INDEX] = 0

    await handle_callback(callback_update("answer:yes:hello"), context)

    assert "You knew 1 of 1 words" in sent_text(update.callback_query.edit_message_text)
    assert DAILY_WORDS not in context.user_data


@pytest.mark.asyncio
async def test_pressing_answer_twice_records_it_once(update, context, callback_update, storage) -> None:
    await handle_daily(update, context)
    first = context.user_data[DAILY_WORDS][0]["word"]

    await handle_callback(callback_update(f"answer:yes:{first}"), context)
    await handle_callback(callback_update(f"answer:yes:{first}"), context)

    stored = await storage.get(str(OWNER_ID), "en", first)
    assert stored.correct_streak == 1
    assert context.user_data[DAILY_INDEX] == 1
    update.callback_query.edit_message_text.assert_not_awaited()
    update.callback_query.answer.assert_awaited_once_with(
        text=StaleAnswer.user_message, show_alert=True
    )


@pytest.mark.asyncio
async def test_answer_for_other_word_is_not_recorded(update, context, callback_update, storage) -> None:
    await handle_daily(update, context)
    second = context.user_data[DAILY_WORDS][1]["word"]

    await handle_callback(callback_update(f"answer:no:{second}"), context)

    assert await storage.get(str(OWNER_ID), "en", second) is None
    assert context.user_data[DAILY_INDEX] == 0


@pytest.mark.asyncio
async def test_answer_after_summary_is_not_recorded(update, context, callback_update, storage) -> None:
    context.user_data[DAILY_WORDS] = [{"word": "hello", "status": "New"}]
    context.user_data[DAILY_INDEX] = 0
    await handle_callback(callback_update("answer:yes:hello"), context)

    await handle_callback(callback_update("answer:yes:hello"), context)

    stored = await storage.get(str(OWNER_ID), "en", "hello")
    assert stored.correct_streak == 1
    assert DAILY_WORDS not in context.user_data
    update.callback_query.answer.assert_awaited_once_with(
        text=StaleAnswer.user_message, show_alert=True
    )

@pytest.mark.asyncio
async def test_malformed_answer_is_reported(update, context, callback_update) -> None:
    await handle_callback(callback_update("answer:maybe:hello"), context)

    update.callback_query.answer.assert_awaited_once_with(
        text=InvalidArgument.user_message, show_alert=True
    )


def test_parse_answer() -> None:
    assert parse_answer("answer:yes:piece of cake") == ("piece of cake", True)
    assert parse_answer("answer:no:hello") == ("hello", False)
    with pytest.raises(InvalidArgument):
        parse_answer("answer:yes:")


@pytest.mark.asyncio
async def test_topic_buttons_start_topic_practice(update, context, callback_update) -> None:
    await handle_callback(callback_update("topics"), context)
    markup = update.callback_query.edit_message_text.call_args.kwargs["reply_markup"]
    topics = [row[0].callback_data for row in markup.inline_keyboard[:-1]]
    assert "topic:travel" in topics

    await handle_callback(callback_update("topic:greetings"), context)

    assert {word["word"] for word in context.user_data[DAILY_WORDS]} == {"hello", "goodbye"}


@pytest.mark.asyncio
async def test_stats_command(update, context, storage) -> None:
    await context.bot_data[VOCABULARY_SERVICE].submit_answer(
        AnswerRequest(user_id=str(OWNER_ID), language="en", word="hello", is_correct=False)
    )

    await handle_stats(update, context)

    text = sent_text(update.message.reply_text)
    assert "Weak: 1" in text
    assert "Known: 0" in text


@pytest.mark.asyncio
async def test_language_command_rejects_unknown_language(update, context) -> None:
    context.args = ["xx"]

    await handle_language(update, context)

    assert LANGUAGE not in context.user_data
    update.message.reply_text.assert_awaited_once_with(f"⚠️ {InvalidArgument.user_message}")


@pytest.mark.asyncio
async def test_language_command_switches_language(update, context) -> None:
    context.args = ["EN"]

    await handle_language(update, context)

    assert context.user_data[LANGUAGE] == "en"
