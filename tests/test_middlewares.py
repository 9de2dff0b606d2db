"""Middleware tests with stand-in Telegram events."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

from aiogram.types import CallbackQuery, Message

from premium_bot.application.use_cases.register_user import RegisterUserUseCase
from premium_bot.infrastructure.ledger import Ledger
from premium_bot.infrastructure.rate_limiter import SlidingWindowRateLimiter
from premium_bot.presentation.middlewares.command_log import CommandLogMiddleware
from premium_bot.presentation.middlewares.throttling import ThrottlingMiddleware
from premium_bot.presentation.middlewares.user_context import UserContextMiddleware


def _user(user_id: int = 5) -> SimpleNamespace:
    return SimpleNamespace(id=user_id, username=f"user{user_id}", first_name="Test", last_name=None)


def _message(user_id: int = 5, text: str = "/start") -> Mock:
    msg = Mock(spec=Message)
    msg.from_user = _user(user_id)
    msg.text = text
    msg.chat = SimpleNamespace(id=user_id)
    msg.answer = AsyncMock()
    return msg


def _callback(user_id: int = 5) -> Mock:
    cb = Mock(spec=CallbackQuery)
    cb.from_user = _user(user_id)
    cb.answer = AsyncMock()
    return cb


def _limiter(max_requests: int = 1) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(max_requests=max_requests, window_sec=60, clock=Mock(return_value=0.0))


async def test_throttling_passes_then_blocks_message() -> None:
    mw = ThrottlingMiddleware(limiter=_limiter())
    handler = AsyncMock(return_value="ok")
    msg = _message()

    data: dict = {}
    assert await mw(handler, msg, data) == "ok"
    assert data["rate_limit"].allowed is True

    assert await mw(handler, msg, {}) is None
    handler.assert_awaited_once()
    msg.answer.assert_awaited_once()
    text = msg.answer.await_args.args[0]
    assert "wait 60 seconds" in text
    assert "1 requests per 60 seconds" in text


async def test_throttling_alerts_on_callback() -> None:
    mw = ThrottlingMiddleware(limiter=_limiter())
    handler = AsyncMock()
    cb = _callback()

    await mw(handler, cb, {})
    await mw(handler, cb, {})

    handler.assert_awaited_once()
    assert cb.answer.await_args.kwargs["show_alert"] is True


async def test_throttling_exempts_admins() -> None:
    mw = ThrottlingMiddleware(limiter=_limiter(), exempt_ids={5})
    handler = AsyncMock()
    msg = _message(5)

    for _ in range(5):
        await mw(handler, msg, {})

    assert handler.await_count == 5
    msg.answer.assert_not_awaited()


async def test_throttling_counts_users_separately() -> None:
    mw = ThrottlingMiddleware(limiter=_limiter())
    handler = AsyncMock()

    await mw(handler, _message(1), {})
    await mw(handler, _message(2), {})

    assert handler.await_count == 2


async def test_user_context_registers_user(ledger: Ledger) -> None:
    mw = UserContextMiddleware(register=RegisterUserUseCase(ledger=ledger), admin_ids={9})
    handler = AsyncMock()

    data: dict = {}
    await mw(handler, _message(5), data)

    assert data["is_admin"] is False
    assert data["profile"].id == 5
    assert data["profile"].username == "user5"
    assert (await ledger.get_user(5)).first_name == "Test"

    admin_data: dict = {}
    await mw(handler, _message(9), admin_data)
    assert admin_data["is_admin"] is True


async def test_user_context_without_user() -> None:
    register = Mock(spec=RegisterUserUseCase)
    mw = UserContextMiddleware(register=register)
    handler = AsyncMock()
    event = SimpleNamespace(from_user=None)

    data: dict = {}
    await mw(handler, event, data)

    assert data == {"profile": None, "is_admin": False}
    register.execute.assert_not_called()


async def test_user_context_unknown_state_passes_none(ledger: Ledger, tmp_path) -> None:
    (tmp_path / "users.json").write_text("garbage", encoding="utf-8")
    mw = UserContextMiddleware(register=RegisterUserUseCase(ledger=ledger))
    handler = AsyncMock()

    data: dict = {}
    await mw(handler, _message(5), data)

    assert data["profile"] is None
    handler.assert_awaited_once()


async def test_command_log_records_commands_only(ledger: Ledger) -> None:
    mw = CommandLogMiddleware(ledger=ledger)
    handler = AsyncMock()

    await mw(handler, _message(5, "/help"), {})
    await mw(handler, _message(5, "hello"), {})

    logs = await ledger.get_user_logs(5)
    assert [e.command for e in logs] == ["/help"]
    assert logs[0].metadata == {"chat_id": "5"}
    assert handler.await_count == 2
