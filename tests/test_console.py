import io
import logging

import pytest

from cah.__main__ import build_config, parse_args
from cah.config import ClientConfig
from cah.console import ConsoleUI, handle_command
from cah.models import Control
from cah.session import GameSession

from .helpers import DummyChannel, got_cards_payload, prompt


def console_session():
    out = io.StringIO()
    ui = ConsoleUI(out=out, read_line=lambda _prompt: "Carol")
    session = GameSession(ui, ClientConfig())
    channel = DummyChannel()
    session.start(channel)
    return session, ui, out, channel


def test_console_prompts_for_name_and_prints_cards():
    session, ui, out, channel = console_session()
    assert channel.sent == [{"command": "JOIN", "name": "Carol"}]
    session.client.dispatch(got_cards_payload(4, prompt_card=prompt(pick=1)))
    text = out.getvalue()
    assert "[ ] #4: Response 4" in text
    assert "Prompt: What's that smell? ____ (pick 1)" in text
    assert ui.enabled[Control.SUBMIT] is True


@pytest.mark.parametrize(
    "line, command",
    [("g", {"command": "CARD_REQUEST"}), ("GET", {"command": "CARD_REQUEST"})],
)
def test_get_cards_command(line, command):
    session, ui, _, channel = console_session()
    assert handle_command(session, ui, line) is True
    assert channel.sent[-1] == command


def test_tap_and_submit_commands():
    session, ui, out, channel = console_session()
    session.client.dispatch(got_cards_payload(4, 5))
    handle_command(session, ui, "n")
    handle_command(session, ui, "t")
    assert "[*] #5: Response 5" in out.getvalue()
    handle_command(session, ui, "s")
    assert channel.sent[-1] == {"command": "PLAY_CARDS", "cards": [5]}


def test_help_unknown_and_quit():
    session, ui, out, _ = console_session()
    assert handle_command(session, ui, "h") is True
    assert "Enabled: GET_CARDS" in out.getvalue()
    assert handle_command(session, ui, "x") is True
    assert "Unknown command 'x'" in out.getvalue()
    assert handle_command(session, ui, "") is True
    assert "(no cards in hand)" in out.getvalue()
    assert handle_command(session, ui, "q") is False


def test_cli_arguments_map_to_config():
    args = parse_args(["--name", "Dana", "--legacy-fallthrough", "--hand-size", "10", "--url", "ws://host:1/"])
    assert args.name == "Dana"
    assert args.legacy_fallthrough is True
    assert args.hand_size == 10
    assert args.url == "ws://host:1/"
    config = build_config(args)
    assert config.hand_size == 10
    assert config.legacy_fallthrough is True
    assert config.logging_level == logging.WARNING


@pytest.mark.parametrize("level, expected", [("debug", logging.DEBUG), (" Info ", logging.INFO), ("loud", logging.WARNING)])
def test_log_level_option_sets_logging_level(level, expected):
    config = build_config(parse_args(["--log-level", level]))
    assert config.logging_level == expected
