import types

import pytest

from tzbot.constants import BD_LOOKUP


class FakeChat:
    def __init__(self, chat_id=100):
        self.id = chat_id
        self.messages = []

    async def send_message(self, text, **kwargs):
        self.messages.append((text, kwargs))

    @property
    def texts(self):
        return [m[0] for m in self.messages]


class FakeQuery:
    def __init__(self, data):
        self.data = data
        self.answered = False
        self.alert = None
        self.markup_cleared = False
        self.edited_text = None

    async def answer(self, text=None, show_alert=False):
        self.answered = True
        if show_alert:
            self.alert = text

    async def edit_message_reply_markup(self, reply_markup=None):
        self.markup_cleared = reply_markup is None

    async def edit_message_text(self, text, reply_markup=None):
        self.edited_text = text


class FakeLookup:
    """Stands in for the geocoding service; records every query."""

    def __init__(self, results=None, error=None):
        self.results = results or {}
        self.error = error
        self.calls = []

    async def __call__(self, name):
        self.calls.append(name)
        if self.error is not None:
            raise self.error
        return list(self.results.get(name.lower(), []))


@pytest.fixture
def chat():
    return FakeChat()


@pytest.fixture
def make_update(chat):
    def _make(text=None, user_id=7, callback_data=None):
        return types.SimpleNamespace(
            message=types.SimpleNamespace(text=text) if text is not None else None,
            edited_message=None,
            callback_query=FakeQuery(callback_data) if callback_data else None,
            effective_chat=chat,
            effective_user=types.SimpleNamespace(id=user_id, first_name="Sam"),
        )
    return _make


@pytest.fixture
def make_context():
    def _make(chat_data=None, lookup=None, args=None):
        bot_data = {}
        if lookup is not None:
            bot_data[BD_LOOKUP] = lookup
        return types.SimpleNamespace(
            chat_data={} if chat_data is None else chat_data,
            bot_data=bot_data,
            args=args or [],
        )
    return _make


@pytest.fixture
def make_lookup():
    return FakeLookup
