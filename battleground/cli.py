"""
Battleground CLI - Command-line interface for the engine.

Usage:
    battleground scenarios                 List built-in scenarios
    battleground board --scenario KEY      Print a fresh game as text
    battleground serve                     Run the HTTP API under uvicorn
"""

import argparse
import logging
import os
import sys

from .engine_core.state import GameState, Player, Square


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Battleground - Tactical Grid Battle Engine",
        prog="battleground",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Scenarios command
    subparsers.add_parser("scenarios", help="List built-in scenarios")

    # Board command
    board_parser = subparsers.add_parser("board", help="Print a fresh game as text")
    board_parser.add_argument("--scenario", default="battle", help="Scenario key")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument(
        "--log-level",
        default=os.getenv("BATTLEGROUND_LOG_LEVEL", "INFO"),
        help="Logging level (default: $BATTLEGROUND_LOG_LEVEL or INFO)",
    )

    args = parser.parse_args(argv)

    if args.command == "scenarios":
        cmd_scenarios(args)
    elif args.command == "board":
        cmd_board(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_scenarios(args):
    """List built-in scenarios."""
    from .scenarios import DEFAULT_SCENARIO, list_scenarios

    for scenario in list_scenarios():
        marker = " (default)" if scenario.key == DEFAULT_SCENARIO else ""
        print(f"{scenario.key}{marker}: {scenario.name}")
        print(f"  {scenario.description}")
        army = ", ".join(f"{e.unit_type.value} {e.level}" for e in scenario.army)
        print(f"  Army: {army}")


def cmd_board(args):
    """Print the board and reserves of a freshly started scenario."""
    from .engine_core.errors import UnknownScenarioError
    from .engine_core.reducer import start_game
    from .engine_core.state import create_initial_state, sequential_ids

    try:
        state = start_game(create_initial_state(), args.scenario, sequential_ids())
    except UnknownScenarioError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(render_board(state))


def _cell(square: Square) -> str:
    if square.is_empty:
        return "."
    return " ".join(
        f"P{int(u.owner)}{u.unit_type.value[0].upper()}{u.level}" for u in square.units
    )


def render_board(state: GameState) -> str:
    """Text rendering: player two's home row on top, one cell per square."""
    width = max(
        [len(_cell(sq)) for sq in state.board.all_squares()] + [len("P1I1")]
    )
    lines = [
        f"Scenario: {state.scenario_key}  Turn {state.turn_number}  "
        f"Player {int(state.current_player)} to act  "
        f"AP {state.action_points}/{state.max_action_points}",
        "",
    ]
    for row in reversed(range(state.board.rows)):
        cells = [_cell(sq).ljust(width) for sq in state.board.squares[row]]
        lines.append(f"{row} | " + " | ".join(cells))
    lines.append("    " + "   ".join(str(c).ljust(width) for c in range(state.board.cols)))
    lines.append("")
    for player in Player:
        reserve = ", ".join(
            f"{u.unit_type.value} {u.level} [{u.id}]" for u in state.get_reserve(player)
        )
        lines.append(f"Player {int(player)} reserve: {reserve or '-'}")
    return "\n".join(lines)


def cmd_serve(args):
    """Run the FastAPI app under uvicorn."""
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn")
        sys.exit(1)

    from .api.app import create_app

    uvicorn.run(
        create_app(),
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
