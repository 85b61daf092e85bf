"""
prompts.py - Prompt templates for move selection and commentary

Templates use str.format() fields. The board grid passed to PICK is the
prompt form from encoder.to_prompt_grid(): R for the AI's pieces, Y for the
opponent and '.' for empty cells.

{me} and {opponent} are the colour names of the AI and the human; {mine} and
{theirs} are their piece counts.
"""

PICK = """User:
Use the following pieces of information to answer the user's question.
If you don't know the answer, say that you don't know.

Provide the answer in a JSON document using the following document.

{{
    Column: integer,
    Reason: string
}}

The user is playing the board game Connect 4 and they will ask you a question
so you can help them make their next move. Use the rules for Connect 4 to help
answer the question.

On the board R marks the {me} player's pieces and Y marks the {opponent}
player's pieces. Use the name '{opponent}' for the Yellow player in any
response and never mention the color 'Yellow'.

Please respond with a single column number from this list [{columns}]. Choose the
first number in the list if the score is 100.00 else randomly pick a number
from the list.

Here is the score: {score}

Here is the current state of the Game Board.

{grid}
Question:
Which column number from the list should the {me} player choose and how can that
column number help them win the game based on the current state of the game board?
"""

PICK_AGAIN = """
{prompt}

Assistant:
{response}

User:
You didn't provide a single column number from the list. Please try again.
"""

_COMMENTARY_HEADER = """User:
You are playing the board game Connect 4 and you need to develop a witty or sarcastic
response about the game. Use the rules for Connect 4 to help answer the question.

You are the {me} player and the other player is the {opponent} player.

Say 'You' for the {opponent} player in any response and never mention the
color '{opponent}'.

Tailor the response so it sounds like it's coming from the user directly.

Always refer to yourself ({me} Player) as 'I'.

Provide 1 statement and keep the answer short and concise.

Use the following items to help formulate a response.

"""

_BRAGGING = """- You are going to beat the other player ({opponent}) because You are making great moves.
- You can never be beat because you are a superior player.
- You are the greatest player to ever play the game.
- You are going to beat the other player ({opponent}) because they are making bad moves.
- {opponent} can never beat You because you are a superior player.
- {opponent} is the worst player to ever play the game.
- {opponent} can't make any moves that are good enough to beat Your superior mind.
- {opponent} is an inferior player that will always lose no matter what they do.
"""

_PIECES = "- There are {theirs} {opponent} pieces and {mine} {me} pieces on the board.\n"

NORMAL_GAMEPLAY = _COMMENTARY_HEADER + _BRAGGING + """
Use the following items to add context to the response.

""" + _PIECES + """- The {opponent} player goes next.
- The {me} player just dropped a piece in column {column}.
"""

BLOCKED_WIN = _COMMENTARY_HEADER + _BRAGGING + """
Use the following items to add context to the response.

""" + _PIECES + """- The {opponent} player goes next.
- The {me} player just dropped a piece in column {column} and blocked a win.
"""

WON_GAME = _COMMENTARY_HEADER + """- You won the game and beat {opponent}.
- In what world did {opponent} think they could beat you.

Use the following items to add context to the response.

""" + _PIECES + """- The {opponent} player just lost the game.
- The {me} player just won the game.
- The {me} player just dropped a piece in column {column}.
"""

LOST_GAME = _COMMENTARY_HEADER + """- {opponent} got lucky.

Use the following items to add context to the response.

""" + _PIECES + """- The {me} player just lost the game.
- The {opponent} player just dropped a piece in column {column} and won the game.
"""

TIE_GAME = _COMMENTARY_HEADER + """- Good game since it was a tie.

Use the following items to add context to the response.

""" + _PIECES + """- The {me} and {opponent} players just tied the game.
- The last piece was dropped in column {column}.
"""
