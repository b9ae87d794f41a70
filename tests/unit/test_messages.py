import time

import pytest
from telegram.constants import ParseMode

from tzbot.constants import CB_CAL_DISABLE, CB_CAL_KEEP
from tzbot.handlers.calendar import calendar_cmd, calendar_button
from tzbot.handlers.messages import on_text
from tzbot.handlers.start import cities_cmd, help_cmd
from tzbot.utils.session_utils import (
    AwaitingAliasCodes,
    AwaitingCalendarTitle,
    AwaitingCityName,
    CalendarSettings,
    RenamingCalendarTitle,
    button_data,
)
from tzbot.utils.storage import get_pending, load_calendar, save_calendar, set_pending

USER = 7


@pytest.mark.asyncio
async def test_time_mention_gets_a_report(make_update, make_context, chat):
    context = make_context()
    await on_text(make_update("call at 18p?"), context)
    assert len(chat.messages) == 1
    text, kwargs = chat.messages[0]
    assert "— Paris" in text and "— Moscow" in text
    assert "<code>18:00</code> — Paris" in text
    assert kwargs["parse_mode"] == ParseMode.HTML
    assert kwargs["link_preview_options"].is_disabled is True


@pytest.mark.asyncio
async def test_plain_chatter_is_ignored(make_update, make_context, chat):
    context = make_context()
    for text in ("hello", "see you in 2024", "25p", "18pm"):
        await on_text(make_update(text), context)
    assert chat.messages == []


@pytest.mark.asyncio
async def test_pending_dialog_takes_the_message(make_update, make_context, make_lookup, chat):
    lookup = make_lookup()
    context = make_context(lookup=lookup)
    set_pending(context.chat_data, USER, AwaitingCityName())
    await on_text(make_update("18p"), context)
    assert lookup.calls == ["18p"]
    assert "<code>18:00</code>" not in chat.texts[-1]


@pytest.mark.asyncio
async def test_other_users_dialog_does_not_capture_message(make_update, make_context, chat):
    context = make_context()
    set_pending(context.chat_data, USER + 1, AwaitingCityName())
    await on_text(make_update("18p"), context)
    assert "<code>18:00</code> — Paris" in chat.texts[-1]


@pytest.mark.asyncio
async def test_expired_dialog_falls_through_to_conversion(make_update, make_context, make_lookup, chat):
    lookup = make_lookup()
    context = make_context(lookup=lookup)
    set_pending(context.chat_data, USER, AwaitingCityName(), ttl=300, now=time.time() - 301)
    await on_text(make_update("18p"), context)
    assert lookup.calls == []
    assert "<code>18:00</code> — Paris" in chat.texts[-1]
    assert get_pending(context.chat_data, USER) is None


# ---------- /calendar ----------

@pytest.mark.asyncio
async def test_calendar_rename_loops_until_keep(make_update, make_context, chat):
    context = make_context()
    await calendar_cmd(make_update(), context)
    assert isinstance(get_pending(context.chat_data, USER), RenamingCalendarTitle)

    await on_text(make_update("Standup"), context)
    assert load_calendar(context.chat_data).title == "Standup"
    assert isinstance(get_pending(context.chat_data, USER), RenamingCalendarTitle)

    await on_text(make_update("Retro"), context)
    assert load_calendar(context.chat_data).title == "Retro"

    update = make_update(callback_data=button_data(CB_CAL_KEEP, USER))
    await calendar_button(update, context)
    assert get_pending(context.chat_data, USER) is None
    assert "Retro" in update.callback_query.edited_text

    # Back to normal: the link uses the new title
    await on_text(make_update("9e"), context)
    assert "text=Retro" in chat.texts[-1]


@pytest.mark.asyncio
async def test_calendar_disable_button(make_update, make_context, chat):
    context = make_context()
    await calendar_cmd(make_update(), context)
    await calendar_button(make_update(callback_data=button_data(CB_CAL_DISABLE, USER)), context)
    assert load_calendar(context.chat_data).enabled is False
    assert get_pending(context.chat_data, USER) is None

    await on_text(make_update("9e"), context)
    assert "action=TEMPLATE" not in chat.texts[-1]


@pytest.mark.asyncio
async def test_calendar_enable_with_first_title(make_update, make_context, chat):
    context = make_context()
    save_calendar(context.chat_data, CalendarSettings(enabled=False, title="Old"))
    await calendar_cmd(make_update(), context)
    assert isinstance(get_pending(context.chat_data, USER), AwaitingCalendarTitle)

    await on_text(make_update("   "), context)
    assert isinstance(get_pending(context.chat_data, USER), AwaitingCalendarTitle)

    await on_text(make_update("Planning"), context)
    assert load_calendar(context.chat_data) == CalendarSettings(enabled=True, title="Planning")
    assert get_pending(context.chat_data, USER) is None



@pytest.mark.asyncio
async def test_stale_calendar_button_keeps_city_dialog(make_update, make_context, chat):
    context = make_context()
    await calendar_cmd(make_update(), context)
    # The user moved on to /addcity before pressing the old button
    set_pending(context.chat_data, USER, AwaitingAliasCodes("London", "Europe/London", ["lon"]))
    update = make_update(callback_data=button_data(CB_CAL_KEEP, USER))
    await calendar_button(update, context)
    assert update.callback_query.edited_text
    assert get_pending(context.chat_data, USER) == AwaitingAliasCodes("London", "Europe/London", ["lon"])


@pytest.mark.asyncio
async def test_calendar_button_pressed_by_another_user_is_refused(make_update, make_context, chat):
    context = make_context()
    await calendar_cmd(make_update(), context)
    update = make_update(user_id=8, callback_data=button_data(CB_CAL_DISABLE, USER))
    await calendar_button(update, context)
    assert update.callback_query.alert
    assert update.callback_query.edited_text is None
    assert load_calendar(context.chat_data).enabled is True
    assert get_pending(context.chat_data, USER) == RenamingCalendarTitle()


@pytest.mark.asyncio
async def test_calendar_rename_save_failure_is_reported(make_update, make_context, chat, monkeypatch):
    context = make_context()
    await calendar_cmd(make_update(), context)
    monkeypatch.setattr("tzbot.handlers.calendar.save_calendar", lambda chat_data, settings: False)
    await on_text(make_update("Retro"), context)
    assert chat.texts[-1].startswith("⚠️ Couldn't save")
    assert load_calendar(context.chat_data).title != "Retro"
    assert get_pending(context.chat_data, USER) is None


# ---------- /help, /cities ----------

@pytest.mark.asyncio
async def test_help_and_cities(make_update, make_context, chat):
    context = make_context()
    await help_cmd(make_update(), context)
    assert "/addcity" in chat.texts[-1]
    await cities_cmd(make_update(), context)
    assert "Buenos Aires" in chat.texts[-1]
    assert "<code>b</code>" in chat.texts[-1]
