"""End-to-end: relay command -> controller -> listener -> webhook."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from relaybot.adapters.discord.commands import handle_relay_command
from relaybot.relay.controller import RelayController
from tests.mocks import FakeBot, make_channel, make_guild, make_http_session, make_message


def _ctx(channel_id: int) -> MagicMock:
    ctx = MagicMock()
    ctx.channel.id = channel_id
    ctx.send = AsyncMock()
    return ctx


@pytest.mark.asyncio
async def test_start_relay_then_stop():
    channel_a, channel_b = make_channel(100), make_channel(200)
    bot = FakeBot({100: channel_a, 200: channel_b})
    controller = RelayController(bot, session=make_http_session())
    controller.init()
    webhook = channel_b.create_webhook.return_value
    guild = make_guild({123: "Alice"})

    # Start from anywhere
    ctx = _ctx(100)
    await handle_relay_command(controller, ctx, ("100", "200"), prefix="?")
    ctx.send.assert_awaited_once_with("Started relaying messages from <#100> to <#200>.")

    await bot.dispatch_message(make_message(100, "hello <@123>", guild=guild))
    await controller.flush()
    assert webhook.send.await_args.kwargs["content"] == "hello @Alice"

    # Stop is issued in the target channel
    ctx_b = _ctx(200)
    await handle_relay_command(controller, ctx_b, ("stop",), prefix="?")
    ctx_b.send.assert_awaited_once_with("Stopped relaying messages to <#200>.")

    await bot.dispatch_message(make_message(100, "after stop", guild=guild))
    await controller.flush()
    assert webhook.send.await_count == 1
