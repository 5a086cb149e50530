"""CLI entry point for the handshake walkthrough."""

import argparse
import asyncio
import logging

from walkthrough.catalog import STAGE_SEQUENCE, metadata_for, parse_stage
from walkthrough.chat import ChatSession
from walkthrough.config import Config, load_config
from walkthrough.enrichment import EnrichmentOrchestrator
from walkthrough.explainer import BaseExplainer, GeminiExplainer
from walkthrough.models import ChatRole, ChatTurn, PlayerView, Stage
from walkthrough.session import WalkthroughSession

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Commands: n(ext)  p(rev)  r(eset)  space/play  ask <question>  "
    "chat  info  q(uit)"
)


def format_view(view: PlayerView) -> str:
    """Render one frame of the player as plain text."""
    info = view.metadata
    state = view.render
    lines = [
        f"== Step {view.step_number}/{view.total_steps} "
        f"[{'#' * view.step_number}{'.' * (view.total_steps - view.step_number)}] "
        f"{'PLAYING' if view.is_playing else 'PAUSED'}",
        info.title,
        f"  {info.description}",
        f"  keys: {'established' if state.keys_established else 'none'}"
        f"  tunnel: {'ACTIVE' if state.tunnel_active else 'closed'}",
        "  Packet capture:",
    ]
    for entry in view.packet_log:
        lines.append(f"    {entry.offset:>5} {entry.arrow} {entry.label}")
    if view.idle_hint:
        lines.append(f"    {view.idle_hint}")
    lines.append(f"  Analyst: {view.enrichment}")
    return "\n".join(lines)


def format_details(view: PlayerView) -> str:
    info = view.metadata
    lines = [f"Analogy: \"{info.analogy}\"", f"Why it matters: {info.rationale}"]
    lines.extend(f"  > {fact}" for fact in info.facts)
    return "\n".join(lines)


def _print_answer(session: WalkthroughSession, task: "asyncio.Task[bool]") -> None:
    if task.cancelled():
        return
    if not task.result():
        print("(question ignored)")
        return
    reply = session.transcript[-1]
    print(("! " if reply.failed else "") + reply.text)


async def run_player(
    config: Config,
    autoplay: bool = False,
    explainer: BaseExplainer | None = None,
) -> None:
    """Interactive terminal player. Reads commands while the timer runs.

    Questions are answered in the background so navigation keeps working
    while an answer is outstanding.
    """
    session = WalkthroughSession(config, explainer=explainer)
    asks: set[asyncio.Task[bool]] = set()
    session.controller.on_index_change(lambda _i: print(format_view(session.view())))
    session.enrichment.on_text_change(
        lambda text: print(f"  Analyst: {text}") if text != config.messages.pending else None
    )

    print(format_view(session.view()))
    print(HELP_TEXT)
    if autoplay:
        session.toggle_play()

    try:
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            command, _, rest = line.strip().partition(" ")
            command = command.lower()

            if command in ("q", "quit", "exit"):
                break
            elif command in ("n", "next"):
                session.advance()
            elif command in ("p", "prev"):
                session.retreat()
            elif command in ("r", "reset"):
                session.reset()
                print(format_view(session.view()))
            elif command in ("", "play", "pause"):
                session.toggle_play()
                print(f"[{session.view().play_label}]")
            elif command == "info":
                print(format_details(session.view()))
            elif command == "ask":
                task = asyncio.create_task(session.ask(rest))
                asks.add(task)
                task.add_done_callback(asks.discard)
                task.add_done_callback(lambda t: _print_answer(session, t))
            elif command == "chat":
                for turn in session.transcript:
                    marker = "you" if turn.role == ChatRole.ASKER else "analyst"
                    print(f"[{marker}{' (failed)' if turn.failed else ''}] {turn.text}")
            else:
                print(HELP_TEXT)
    finally:
        pending = list(asks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        await session.close()


async def _explain_once(config: Config, stage: Stage) -> str:
    orchestrator = EnrichmentOrchestrator(GeminiExplainer(config), config.messages)
    result = await orchestrator.fetch(stage)
    return result.text


async def _ask_once(config: Config, question: str, stage: Stage) -> ChatTurn | None:
    chat = ChatSession(
        GeminiExplainer(config),
        stage_title=lambda: metadata_for(stage).title,
        messages=config.messages,
    )
    if not await chat.submit(question):
        return None
    return chat.transcript[-1]


def main() -> None:
    parser = argparse.ArgumentParser(description="TLS 1.3 Handshake Walkthrough")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    # play command
    play_parser = sub.add_parser("play", help="Interactive stage player")
    play_parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    play_parser.add_argument(
        "--autoplay", action="store_true",
        help="Start auto-advancing immediately",
    )
    play_parser.add_argument(
        "--interval", type=float, default=None,
        help="Seconds between stages when auto-advancing (overrides config)",
    )

    # stages command
    stages_parser = sub.add_parser("stages", help="List the handshake stages")
    stages_parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    # explain command
    explain_parser = sub.add_parser("explain", help="Fetch a deep dive for one stage")
    explain_parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    explain_parser.add_argument("stage", help="Stage name or 1-based number, e.g. client_hello or 2")

    # ask command
    ask_parser = sub.add_parser("ask", help="Ask the analyst a question")
    ask_parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    ask_parser.add_argument("question", help="Natural language question")
    ask_parser.add_argument(
        "--stage", default="IDLE",
        help="Stage used as context for the question (default: IDLE)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()

    try:
        if args.command == "play":
            if args.interval is not None:
                config.playback.interval_seconds = args.interval
            asyncio.run(run_player(config, autoplay=args.autoplay))

        elif args.command == "stages":
            for i, stage in enumerate(STAGE_SEQUENCE):
                info = metadata_for(stage)
                print(f"  {i + 1}. {stage.value:<16} {info.title}")
                if info.label:
                    print(f"     packet: {info.label} ({info.direction.value})")

        elif args.command == "explain":
            print(asyncio.run(_explain_once(config, parse_stage(args.stage))))

        elif args.command == "ask":
            reply = asyncio.run(_ask_once(config, args.question, parse_stage(args.stage)))
            if reply is None:
                print("Question is empty.")
            else:
                print(reply.text)

        else:
            parser.print_help()
    except ValueError as e:
        print(f"Error: {e}")
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
