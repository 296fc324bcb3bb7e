import json

import pytest

import app.main as cli
from app.query_client import QueryClientError, QueryResponse
from conftest import build_settings


@pytest.fixture
def printed(monkeypatch):
    shown = []
    monkeypatch.setattr(cli, "print_view", lambda view, chart_path=None: shown.append((view, chart_path)))
    return shown


def _answer(view_type="table"):
    return json.dumps(
        {
            "success": True,
            "type": view_type,
            "data": [{"month": "2024-01", "users": 3}],
            "columns": ["month", "users"],
        }
    )


def test_ask_once_prints_table(monkeypatch, printed):
    sent = []

    def fake_post(api_url, prompt, view_type, timeout):
        sent.append((api_url, prompt, view_type, timeout))
        return QueryResponse(200, _answer())

    monkeypatch.setattr(cli, "post_query", fake_post)

    view = cli.ask_once(build_settings(), "users by month", "table", "http://api.local")

    assert view.kind == "table"
    assert sent == [("http://api.local", "users by month", "table", 5)]
    assert printed == [(view, None)]


def test_ask_once_renders_chart_file(monkeypatch, printed, tmp_path):
    monkeypatch.setattr(cli, "post_query", lambda *args, **kwargs: QueryResponse(200, _answer("chart")))

    view = cli.ask_once(build_settings(chart_output_dir=str(tmp_path)), "users by month", "chart", "http://api.local")

    assert view.kind == "chart"
    chart_path = printed[0][1]
    assert chart_path.startswith(str(tmp_path.resolve()))
    assert chart_path.endswith(".png")


def test_ask_once_shows_unparsable_output(monkeypatch, printed):
    monkeypatch.setattr(cli, "post_query", lambda *args, **kwargs: QueryResponse(200, "I could not find that table."))

    view = cli.ask_once(build_settings(), "get all users", "table", "http://api.local")

    assert view.kind == "unparsable"
    assert view.raw_output == "I could not find that table."


def test_parse_args_for_ask_and_serve():
    args = cli._parse_args(["ask", "--chart", "users", "by", "month"])
    assert (args.command, args.chart, args.question) == ("ask", True, ["users", "by", "month"])

    args = cli._parse_args(["serve", "--port", "9000"])
    assert (args.command, args.port, args.host, args.reload) == ("serve", 9000, None, False)


def test_result_table_keeps_column_order_and_nulls():
    from app.cli_ui import build_result_table
    from app.result_view import parse_result, select_view

    result = parse_result(json.dumps({"success": True, "data": [{"b": None, "a": 1}], "columns": ["a", "b"]}))
    table = build_result_table(select_view(result, "{}", "table"))

    assert [str(column.header) for column in table.columns] == ["a", "b"]
    assert table.row_count == 1
    assert [str(cell) for cell in table.columns[1].cells] == ["NULL"]


def _scripted_input(monkeypatch, lines):
    remaining = iter(lines)

    def fake_input(prompt=""):
        line = next(remaining)
        if isinstance(line, BaseException):
            raise line
        return line

    monkeypatch.setattr("builtins.input", fake_input)


@pytest.fixture
def asked(monkeypatch):
    calls = []

    def fake_ask_once(settings, prompt, view_type, api_url):
        calls.append((prompt, view_type, api_url))

    monkeypatch.setattr(cli, "print_startup_ui", lambda **kwargs: None)
    monkeypatch.setattr(cli, "ask_once", fake_ask_once)
    return calls


def test_interactive_switches_view_and_quits(asked, monkeypatch, capsys):
    _scripted_input(monkeypatch, ["/chart", "users", "", "/table", "orders", "quit"])

    cli._interactive(build_settings(), "table", "http://api.local")

    assert asked == [("users", "chart", "http://api.local"), ("orders", "table", "http://api.local")]
    out = capsys.readouterr().out
    assert "Switched to chart view." in out
    assert "Switched to table view." in out
    assert out.rstrip().endswith("Bye!")


@pytest.mark.parametrize("exit_word", ["exit", "QUIT", "/exit"])
def test_interactive_exit_words(asked, monkeypatch, capsys, exit_word):
    _scripted_input(monkeypatch, [exit_word])

    cli._interactive(build_settings(), "table", "http://api.local")

    assert asked == []
    assert "Bye!" in capsys.readouterr().out


@pytest.mark.parametrize("signal", [EOFError(), KeyboardInterrupt()])
def test_interactive_leaves_on_eof_and_ctrl_c(asked, monkeypatch, capsys, signal):
    _scripted_input(monkeypatch, ["users", signal])

    cli._interactive(build_settings(), "table", "http://api.local")

    assert asked == [("users", "table", "http://api.local")]
    assert "Exiting." in capsys.readouterr().out


def test_ctrl_c_during_request_leaves_loop(monkeypatch, capsys):
    def interrupted(*args):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "print_startup_ui", lambda **kwargs: None)
    monkeypatch.setattr(cli, "ask_once", interrupted)
    _scripted_input(monkeypatch, ["users"])

    cli._interactive(build_settings(), "table", "http://api.local")

    assert "Exiting." in capsys.readouterr().out


def test_interactive_keeps_going_after_transport_error(monkeypatch, capsys):
    calls = []

    def failing(settings, prompt, view_type, api_url):
        calls.append(prompt)
        raise QueryClientError("Connection refused")

    monkeypatch.setattr(cli, "print_startup_ui", lambda **kwargs: None)
    monkeypatch.setattr(cli, "ask_once", failing)
    _scripted_input(monkeypatch, ["users", "orders", "exit"])

    cli._interactive(build_settings(), "table", "http://api.local")

    assert calls == ["users", "orders"]
    assert capsys.readouterr().out.count("[ERROR] Connection refused") == 2


@pytest.fixture
def cli_env(monkeypatch):
    monkeypatch.setattr(cli, "load_settings", lambda: build_settings())
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)


def test_main_one_shot_prints_transport_error(cli_env, monkeypatch, capsys):
    def failing(settings, prompt, view_type, api_url):
        raise QueryClientError("Connection refused")

    monkeypatch.setattr(cli, "ask_once", failing)

    cli.main(["ask", "users", "by", "month"])

    assert "[ERROR] Connection refused" in capsys.readouterr().out


def test_main_one_shot_passes_view_and_api_url(cli_env, asked):
    cli.main(["ask", "--chart", "--api-url", "http://other.local/", "users", "by", "month"])

    assert asked == [("users by month", "chart", "http://other.local")]


def test_main_without_question_starts_interactive_loop(cli_env, monkeypatch):
    started = []
    monkeypatch.setattr(cli, "_interactive", lambda settings, view_type, api_url: started.append((view_type, api_url)))

    cli.main(["ask"])

    assert started == [("table", "http://127.0.0.1:8000")]


def test_startup_banner_shows_model_and_endpoint(monkeypatch):
    from rich.console import Console

    from app import cli_ui

    console = Console(record=True, width=120)
    monkeypatch.setattr(cli_ui, "_console", console)

    cli_ui.print_startup_ui(model="gpt-4o-mini", api_url="http://api.local", view_type="chart")

    text = console.export_text()
    assert "AI Database Query" in text
    assert "gpt-4o-mini" in text
    assert "http://api.local" in text
    assert "/chart" in text
