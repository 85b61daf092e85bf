#!/usr/bin/env python3
"""
run.py - Main entry point for Connect Four against a retrieval-assisted AI
"""

import argparse
import dataclasses
import sys

from connect4_rag.config import load_settings
from connect4_rag.debug import debug, DebugLevel
from connect4_rag.errors import Connect4Error

# --- Utility Functions ---

def configure_debug(args, settings):
    """Configure debug level from --debug, --debug_level or the settings."""
    if args.debug:
        debug.configure(level=DebugLevel.DEBUG)
    else:
        debug.set_from_string(args.debug_level or settings.debug_level)
    if args.log_file:
        debug.configure(log_file=args.log_file)

def build_settings(args):
    """Load settings from the environment and apply command-line overrides."""
    settings = load_settings(args.env_file)
    overrides = {}
    for field in ('data_dir', 'embed_system', 'embed_model', 'llm_system', 'llm_model',
                  'llm_base_url', 'search_k', 'settle_delay_s'):
        value = getattr(args, field, None)
        if value is not None:
            overrides[field] = value
    if args.approximate:
        overrides['search_exact'] = False
    return dataclasses.replace(settings, **overrides)

def open_index(settings):
    """Create the record store and an empty vector index over it."""
    from connect4_rag.ai.backends import create_embedder
    from connect4_rag.data.index import VectorIndex
    from connect4_rag.data.store import FileRecordStore

    store = FileRecordStore(settings.data_dir)
    index = VectorIndex(create_embedder(settings), store, exact=settings.search_exact)
    return store, index

# --- Game Command Handler ---

def handle_game_play(args, settings):
    """Handle the 'game play' command."""
    from connect4_rag.game.controller import GameController
    from connect4_rag.interfaces.cli import SimpleCLI

    controller = GameController.from_settings(settings)
    cli = SimpleCLI(controller)
    try:
        cli.play_game()
    except (KeyboardInterrupt, EOFError):
        print("\nQuitting game.")

# --- AI Command Handlers ---

def handle_ai_train(args, settings):
    """Handle the 'ai train' command: re-embed every training record."""
    store, index = open_index(settings)
    print(f"Embedding training records from {store.records_dir}")
    count = index.reindex(full=True)
    print(f"Embedded {count} record(s)")

def handle_ai_records(args, settings):
    """Handle the 'ai records' command."""
    store, _ = open_index(settings)
    records = store.all_records()
    if not records:
        print("No training records found")
        return

    print(f"Found {len(records)} training records:")
    print("\nID                                   | Markers | Feedback        | Moves")
    print("-" * 80)
    for record in records:
        moves = ",".join(str(move) for move in record.moves)
        print(f"{record.id:36s} | {record.markers:7d} | {record.feedback.value:15s} | {moves}")
    if args.verbose:
        for record in records:
            print(f"\n{record.id}\n{record.board}")

    print("\nSummary:")
    for label, count in store.summary().items():
        print(f"  {label}: {count}")
    pending = store.pending_changes()
    if pending:
        print(f"\n{len(pending)} record(s) waiting to be embedded; run: python run.py ai train")

def handle_ai_clear_changelog(args, settings):
    """Handle the 'ai clear-changelog' command."""
    store, _ = open_index(settings)
    pending = store.pending_changes()
    store.clear_changelog()
    print(f"Cleared {len(pending)} pending change(s)")

def handle_ai_command(args, settings):
    """Handle the 'ai' component commands."""
    if args.command == 'train':
        handle_ai_train(args, settings)
    elif args.command == 'records':
        handle_ai_records(args, settings)
    elif args.command == 'clear-changelog':
        handle_ai_clear_changelog(args, settings)

# --- Main Entry Point ---

def add_common_arguments(parser):
    parser.add_argument('--debug',
        action='store_true',
        help='Enable debug mode (equivalent to --debug_level debug)')
    parser.add_argument('--debug_level',
        choices=['none', 'error', 'warning', 'info', 'debug', 'trace'],
        default=None,
        help='Set debug level: none (silent), error, warning, info, debug, trace (most verbose)')
    parser.add_argument('--log_file',
        type=str,
        help='Also write log output to this file')
    parser.add_argument('--env_file',
        type=str,
        help='Path to a .env file with C4_* settings (default: ./.env)')

    settings_group = parser.add_argument_group('Settings overrides')
    settings_group.add_argument('--data_dir', type=str, help='Directory holding the training records')
    settings_group.add_argument('--embed_system', choices=['local', 'openai', 'ollama'],
        help='Embedding backend')
    settings_group.add_argument('--embed_model', type=str, help='Embedding model name')
    settings_group.add_argument('--llm_system', choices=['openai', 'ollama'],
        help='Completion backend')
    settings_group.add_argument('--llm_model', type=str, help='Chat model name')
    settings_group.add_argument('--llm_base_url', type=str, help='Base URL of an OpenAI-compatible API')
    settings_group.add_argument('--search_k', type=int, help='Number of similar boards to retrieve')
    settings_group.add_argument('--approximate', action='store_true',
        help='Use approximate (bucketed) similarity search instead of the exact scan')
    settings_group.add_argument('--settle_delay_s', type=float,
        help='Seconds to wait after re-embedding before searching')

def main():
    """Main entry point for Connect Four against the AI."""
    parser = argparse.ArgumentParser(
        description='Connect Four against a retrieval-assisted language model',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
    Examples:

    GAME COMPONENT:
    ---------------
    # Play against the AI with a local Ollama model
    python run.py game play

    # Play against an OpenAI model (reads C4_LLM_API_KEY or OPENAI_API_KEY)
    python run.py game play --llm_system openai --llm_model gpt-4o-mini

    # Play with debug information shown
    python run.py game play --debug_level info

    AI COMPONENT - TRAINING DATA:
    -----------------------------
    # Re-embed every training record
    python run.py ai train

    # List training records
    python run.py ai records

    # Forget records waiting to be embedded
    python run.py ai clear-changelog
    """
    )

    subparsers = parser.add_subparsers(dest='component', help='Component to run')

    game_parser = subparsers.add_parser('game',
        help='Play Connect Four',
        description='Play Connect Four against the AI in the terminal')
    game_parser.add_argument('command',
        choices=['play'],
        help='Game command: play (interactive game)')
    add_common_arguments(game_parser)

    ai_parser = subparsers.add_parser('ai',
        help='Manage training data',
        description='Embed, list and maintain the training records')
    ai_parser.add_argument('command',
        choices=['train', 'records', 'clear-changelog'],
        help="""AI commands:
        train: Re-embed every training record
        records: List training records
        clear-changelog: Forget records waiting to be embedded""")
    ai_parser.add_argument('--verbose',
        action='store_true',
        help='Print the board of every record (used with records command)')
    add_common_arguments(ai_parser)

    args = parser.parse_args()
    if args.component is None:
        parser.print_help()
        return

    settings = build_settings(args)
    configure_debug(args, settings)

    try:
        if args.component == 'game':
            handle_game_play(args, settings)
        elif args.component == 'ai':
            handle_ai_command(args, settings)
    except (Connect4Error, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
