import argparse
import logging
from datetime import datetime
from pathlib import Path

from app.chart_renderer import render_chart
from app.cli_ui import date_tag, print_startup_ui, print_view
from app.config import Settings, configure_logging, load_settings
from app.query_client import QueryClientError, post_query
from app.result_view import ViewState, chart_series, parse_result, select_view

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"exit", "quit", "/exit"}
VIEW_COMMANDS = {"/table": "table", "/chart": "chart"}


def _chart_path(output_dir: str) -> str:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return str(Path(output_dir) / f"query_chart_{stamp}.png")


def ask_once(settings: Settings, prompt: str, view_type: str, api_url: str) -> ViewState:
    """Send one question and print whatever the answer turns out to be."""
    response = post_query(api_url, prompt, view_type, timeout=settings.request_timeout)
    result = parse_result(response.text)
    if result is None:
        logger.error("Failed to parse response as JSON (HTTP %s)", response.status_code)

    view = select_view(result, response.text, view_type)
    chart_path = None
    if view.kind == "chart":
        chart_path = render_chart(chart_series(view.result), _chart_path(settings.chart_output_dir))
    print_view(view, chart_path=chart_path)
    return view


def _interactive(settings: Settings, view_type: str, api_url: str) -> None:
    print_startup_ui(model=settings.openai_model, api_url=api_url, view_type=view_type)

    while True:
        try:
            user_input = input(f"{date_tag()}You> ").strip()
        except (EOFError, KeyboardInterrupt) as e:
            print(f"\n[Input Error] :{e}. Exiting.")
            return

        if not user_input:
            continue
        if user_input.lower() in EXIT_COMMANDS:
            print("Bye!")
            return
        if user_input.lower() in VIEW_COMMANDS:
            view_type = VIEW_COMMANDS[user_input.lower()]
            print(f"{date_tag()}AI> Switched to {view_type} view.")
            continue

        print(f"{date_tag()}AI> Loading...")
        try:
            ask_once(settings, user_input, view_type, api_url)
        except QueryClientError as e:
            print(f"[ERROR] {e}")
        except KeyboardInterrupt:
            print("\n[Interrupted] Request cancelled. Exiting.")
            return


def _serve(settings: Settings, host: str, port: int, reload: bool) -> None:
    import uvicorn

    uvicorn.run(
        "app.api:build_default_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="AI Database Query")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the completion API server")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--reload", action="store_true")

    ask = sub.add_parser("ask", help="Ask questions from the terminal")
    ask.add_argument("question", nargs="*", help="Question to ask once; omit for interactive mode")
    ask.add_argument("--chart", action="store_true", help="Request chart data instead of a table")
    ask.add_argument("--api-url", default=None)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None):
    args = _parse_args(argv)
    settings = load_settings()
    configure_logging(settings.log_level)

    if args.command == "serve":
        _serve(settings, args.host or settings.api_host, args.port or settings.api_port, args.reload)
        return

    view_type = "chart" if args.chart else "table"
    api_url = (args.api_url or settings.api_url).rstrip("/")
    question = " ".join(args.question).strip()
    if question:
        try:
            ask_once(settings, question, view_type, api_url)
        except QueryClientError as e:
            print(f"[ERROR] {e}")
        return

    _interactive(settings, view_type, api_url)


if __name__ == "__main__":
    main()
