"""Tests for config parsing, loading and logging."""

import json
from pathlib import Path

import pytest
import structlog

from handlr.core.config import (
    Config,
    configure_logging,
    default_config_path,
    load_config,
    parse_config,
)
from handlr.core.errors import ConfigError, InvalidPattern, NotFound
from handlr.core.handler import PatternHandlerTable

EXAMPLE = r"""
terminal = "kitty"
term_exec_args = "--hold -e"

[[handlers]]
exec = "freetube %u"
regexes = ['(https://)?(www\.)?youtu(be\.com|\.be)/*']

[[handlers]]
exec = "nvim %f"
terminal = true
regexes = ['\.md$', '\.txt$']
"""


class TestParseConfig:
    def test_defaults(self):
        config = parse_config("")
        assert config == Config()
        assert config.terminal == "xterm"
        assert config.term_exec_args == "-e"
        assert len(config.handlers) == 0
        assert config.log is None

    def test_example(self):
        config = parse_config(EXAMPLE)
        assert config.terminal == "kitty"
        assert config.terminal_command() == ["kitty", "--hold", "-e"]
        assert [h.exec for h in config.handlers] == ["freetube %u", "nvim %f"]
        assert config.handlers.resolve("https://youtu.be/x").exec == "freetube %u"
        assert config.handlers.resolve("/notes/todo.md").terminal is True

    def test_declaration_order_is_table_order(self):
        config = parse_config(
            """
            [[handlers]]
            exec = "first"
            regexes = ["x"]

            [[handlers]]
            exec = "second"
            regexes = ["x"]
            """
        )
        assert config.handlers.resolve("x").exec == "first"

    def test_empty_term_exec_args(self):
        config = parse_config('term_exec_args = ""')
        assert config.term_exec_args is None
        assert config.terminal_command() == ["xterm"]

    def test_log_path_expanded(self):
        config = parse_config('log = "~/handlr.log"')
        assert config.log == Path.home() / "handlr.log"

    @pytest.mark.parametrize(
        "text,message",
        [
            ("selector = 'rofi'", "unknown setting 'selector'"),
            ("terminal = 3", "'terminal'"),
            ("terminal = ''", "'terminal'"),
            ("term_exec_args = true", "'term_exec_args'"),
            ("log = 1", "'log'"),
            ("handlers = 'x'", "'handlers'"),
            ("[[handlers]]\nregexes = ['x']", "handler 1"),
            ("terminal = ", ""),
        ],
    )
    def test_errors(self, text, message):
        with pytest.raises(ConfigError, match=message):
            parse_config(text)

    def test_invalid_regex(self):
        with pytest.raises(InvalidPattern):
            parse_config("[[handlers]]\nexec = 'x'\nregexes = ['(']")

    def test_invalid_regex_names_handler(self):
        with pytest.raises(InvalidPattern) as exc:
            parse_config("[[handlers]]\nexec = 'x'\nregexes = ['(']")
        assert str(exc.value).startswith("handler 1: invalid pattern '('")


class TestLoadConfig:
    def test_explicit_path(self, tmp_path):
        path = tmp_path / "handlr.toml"
        path.write_text(EXAMPLE)
        assert load_config(path).terminal == "kitty"

    def test_missing_file_is_default(self, tmp_path):
        assert load_config(tmp_path / "nope.toml") == Config()

    def test_env_override(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.toml"
        path.write_text('terminal = "foot"')
        monkeypatch.setenv("HANDLR_CONFIG", str(path))
        assert load_config().terminal == "foot"

    def test_xdg_config_home(self, tmp_path, monkeypatch):
        monkeypatch.delenv("HANDLR_CONFIG", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        (tmp_path / "handlr").mkdir()
        (tmp_path / "handlr" / "handlr.toml").write_text('terminal = "alacritty"')
        assert default_config_path() == tmp_path / "handlr" / "handlr.toml"
        assert load_config().terminal == "alacritty"

    def test_default_location(self, monkeypatch):
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        assert default_config_path() == Path.home() / ".config" / "handlr" / "handlr.toml"

    def test_invalid_regex_names_file_and_handler(self, tmp_path):
        path = tmp_path / "handlr.toml"
        path.write_text(
            "[[handlers]]\nexec = 'a'\nregexes = ['x']\n"
            "[[handlers]]\nexec = 'b'\nregexes = ['(x']\n"
        )
        with pytest.raises(InvalidPattern) as exc:
            load_config(path)
        assert str(exc.value).startswith(f"{path}: handler 2: invalid pattern '(x'")
        assert exc.value.pattern == "(x"

    def test_error_names_file(self, tmp_path):
        path = tmp_path / "handlr.toml"
        path.write_text("bogus = 1")
        with pytest.raises(ConfigError, match="handlr.toml"):
            load_config(path)


class TestLogging:
    def test_no_log_path_is_silent(self, capsys):
        config = Config(
            handlers=PatternHandlerTable.from_records(
                [{"exec": "mpv %U", "regexes": [r"\.mkv$"]}]
            )
        )
        configure_logging(config)
        config.handlers.resolve("/a.mkv")
        with pytest.raises(NotFound):
            config.handlers.resolve("/a.txt")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_writes_json_lines(self, tmp_path):
        log_path = tmp_path / "logs" / "handlr.log"
        configure_logging(Config(log=log_path))

        structlog.get_logger().info("resolved", candidate="https://youtu.be/x")

        lines = log_path.read_text().splitlines()
        entry = json.loads(lines[-1])
        assert entry["event"] == "resolved"
        assert entry["candidate"] == "https://youtu.be/x"
        assert entry["level"] == "info"
        assert "timestamp" in entry

    def test_resolution_is_logged(self, tmp_path):
        log_path = tmp_path / "handlr.log"
        config = Config(
            log=log_path,
            handlers=PatternHandlerTable.from_records(
                [{"exec": "mpv %U", "regexes": [r"\.mkv$"]}]
            ),
        )
        configure_logging(config)
        config.handlers.resolve("a.mkv")

        events = [json.loads(line)["event"] for line in log_path.read_text().splitlines()]
        assert "resolved" in events
