"""
cli.py - Terminal interface for playing against the AI

A minimal text loop over the GameController: the human enters a column
number (1-7), 'n' for a new game or 'q' to quit. The AI moves automatically
whenever it is its turn.
"""

from typing import Callable, Optional

from connect4_rag.debug import debug
from connect4_rag.game.controller import BoardStateSnapshot, GameController
from connect4_rag.utils import COLS


class SimpleCLI:
    """Simple command-line interface for a game against the AI."""

    def __init__(self, controller: GameController,
                 input_fn: Callable[[str], str] = input,
                 output_fn: Callable[[str], None] = print):
        self.controller = controller
        self._input = input_fn
        self._print = output_fn

    def show(self, state: BoardStateSnapshot) -> None:
        """Print the board and any messages of a snapshot."""
        self._print(state.render())
        if state.game_message:
            self._print(state.game_message)
        if state.ai_message:
            self._print(f"AI: {state.ai_message}")
        if state.debug_message:
            debug.info(state.debug_message, "cli")

    def get_human_move(self) -> Optional[str]:
        """
        Read one command from the player.

        Returns:
            'q', 'n', a column number as a string, or None for invalid input
        """
        user_input = self._input(f"Your move (columns 1-{COLS}, n/q): ").strip().lower()
        if user_input in ('q', 'n'):
            return user_input
        if user_input.isdigit():
            return user_input
        self._print("Invalid input. Please enter a column number or a command.")
        return None

    def play_game(self) -> None:
        """Play games until the player quits."""
        self._print(f"Starting a new Connect Four game! You are {self.controller.human_player}, "
                    f"the AI is {self.controller.ai_player}.")
        state = self.controller.new_game()
        self.show(state)

        while True:
            if state.turn == self.controller.ai_player:
                self._print("AI is thinking...")
                state = self.controller.ai_turn()
                self.show(state)
                if state.turn == self.controller.ai_player and not state.game_over:
                    # The AI move was aborted; hand control back so the
                    # player can retry or quit.
                    command = self._input("AI move failed. Press Enter to retry, 'q' to quit: ").strip().lower()
                    if command == 'q':
                        self._print("Quitting game.")
                        return
                continue

            command = self.get_human_move()
            if command is None:
                continue
            if command == 'q':
                self._print("Quitting game.")
                return
            if command == 'n':
                state = self.controller.new_game()
                self.show(state)
                continue

            if state.game_over:
                self._print("Game over! Enter 'n' for a new game or 'q' to quit.")
                continue

            state = self.controller.human_turn(int(command))
            self.show(state)
