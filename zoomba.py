#!/usr/bin/env python3
"""
  @  Z O O M B A  @
  A tiny terminal arcade game about bouncing on things.

  A Zoomba sweeps along the floor, entering from one edge and leaving by the
  other. Land on it to squash it and get launched upward. Every bounce
  before you touch the floor again is worth one point more than the last,
  and launches you a little higher. Reach the ceiling to win.

  Controls:
    left  / a / h     move left
    right / d / l     move right
    up / w / k / SPC  jump (only from the floor)
    q / ESC           quit

  Stats are logged to zoomba_stats.csv beside this script.
"""

from __future__ import annotations

import argparse
import curses
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import IO, ClassVar, Protocol

import numpy as np
from numpy.typing import NDArray

# ── Glyphs ──────────────────────────────────────────────────────────────
EMPTY = " "
PLAYER_GLYPH = "@"
ENEMY_GLYPH = "Z"

# ── Tuning ──────────────────────────────────────────────────────────────
# These set the feel of the jump arc. Changing any of them changes how many
# ticks a jump lasts, so the tests pin them.
ENEMY_CADENCE = 4          # enemy moves once every N ticks
GRAVITY = 1                # vertical speed lost per airborne tick
TERMINAL_SPEED = -30       # gravity stops pulling below this
MOMENTUM_THRESHOLD = 40    # |momentum| above this moves the player one row
JUMP_SPEED = 20            # launch speed from the floor
COMBO_BONUS = 5            # extra launch speed per combo level

# ── Session ─────────────────────────────────────────────────────────────
FRAMES_PER_SECOND = 30
PLAYER_SPAWN: tuple[int, int] = (15, 10)
END_SCREEN_SECONDS = 5.0
STATS_INTERVAL = 30        # ticks between periodic stats rows

LOG_PATH = Path(__file__).resolve().parent / "zoomba_stats.csv"


class RandomSource(Protocol):
    """Anything with a uniform ``random()`` in [0, 1), e.g. ``random.Random``."""

    def random(self) -> float: ...


def coin_flip(rng: RandomSource) -> bool:
    """Uniform boolean draw."""
    return rng.random() < 0.5


# ═══════════════════════════════════════════════════════════════════════
#  Intents
# ═══════════════════════════════════════════════════════════════════════

class Intent(Enum):
    """What the player asked for this tick."""

    NONE = "none"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    QUIT = "quit"


KEY_BINDINGS: dict[int, Intent] = {
    curses.KEY_LEFT: Intent.LEFT,
    ord("a"): Intent.LEFT,
    ord("h"): Intent.LEFT,
    curses.KEY_RIGHT: Intent.RIGHT,
    ord("d"): Intent.RIGHT,
    ord("l"): Intent.RIGHT,
    curses.KEY_UP: Intent.UP,
    ord("w"): Intent.UP,
    ord("k"): Intent.UP,
    ord(" "): Intent.UP,
    ord("q"): Intent.QUIT,
    ord("Q"): Intent.QUIT,
    27: Intent.QUIT,  # ESC
}


def key_to_intent(key: int) -> Intent:
    return KEY_BINDINGS.get(key, Intent.NONE)


def read_intent(stdscr: curses.window) -> Intent:
    """Drain every pending key and reduce them to one intent.

    Quit wins over anything else; otherwise the last bound key pressed this
    frame is used. Leaves no auto-repeat backlog for the next frame.
    """
    intent = Intent.NONE
    while True:
        try:
            key = stdscr.getch()
        except curses.error:
            key = -1
        if key == -1:
            return intent
        mapped = key_to_intent(key)
        if mapped is Intent.QUIT:
            return mapped
        if mapped is not Intent.NONE:
            intent = mapped


# ═══════════════════════════════════════════════════════════════════════
#  Grid
# ═══════════════════════════════════════════════════════════════════════

class Grid:
    """Fixed-size character buffer shared by everything on screen.

    Coordinates are (x, y) with y growing downward. Reads are bounds-aware;
    writes are not, so callers check ``is_out_of_bounds`` first.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width: int = width
        self.height: int = height
        self.cells: NDArray[np.str_] = np.full((height, width), EMPTY, dtype="<U1")

    def is_out_of_bounds(self, x: int, y: int) -> bool:
        return x < 0 or x >= self.width or y < 0 or y >= self.height

    def is_collision(self, x: int, y: int, glyph: str) -> bool:
        if self.is_out_of_bounds(x, y):
            return False
        return bool(self.cells[y, x] == glyph)

    def set_tile(self, x: int, y: int, glyph: str = EMPTY) -> None:
        self.cells[y, x] = glyph

    def tiles(self) -> list[str]:
        """Snapshot of the rows, top to bottom."""
        return ["".join(row) for row in self.cells.tolist()]


# ═══════════════════════════════════════════════════════════════════════
#  The Zoomba
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class Zoomba:
    """The enemy: a two-cell critter that crosses the floor once and leaves.

    It is drawn at ``x`` and at ``x - speed``, so it looks two cells wide
    while only tracking one coordinate. It enters one column outside the
    grid and dies one column past the far side, which lets both cells slide
    fully in and fully out.
    """

    x: int = 0
    y: int = 0
    speed: int = 0
    alive: bool = False
    _frames: int = field(default=0, repr=False)

    def spawn(self, grid: Grid, rng: RandomSource) -> None:
        if coin_flip(rng):
            self.x = -1
            self.speed = 1
        else:
            self.x = grid.width
            self.speed = -1
        self.y = grid.height - 1
        self.alive = True
        self._frames = 0

    def update(self, grid: Grid) -> None:
        if not self.alive:
            return

        self._frames += 1
        if self._frames < ENEMY_CADENCE:
            return
        self._frames = 0

        self._erase(grid)
        self.x += self.speed
        if self.x == -2 or self.x == grid.width + 1:
            self.alive = False
            return

        for cx in (self.x, self.x - self.speed):
            if not grid.is_out_of_bounds(cx, self.y):
                grid.set_tile(cx, self.y, ENEMY_GLYPH)

    def squash(self, grid: Grid) -> None:
        self.alive = False
        self._erase(grid)

    def _erase(self, grid: Grid) -> None:
        for cx in (self.x, self.x - self.speed):
            if not grid.is_out_of_bounds(cx, self.y):
                grid.set_tile(cx, self.y)


# ═══════════════════════════════════════════════════════════════════════
#  The player
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class Player:
    """
    The bouncing hero.

    Vertical motion is quantised through a momentum accumulator: every tick
    the vertical speed is added to ``momentum``, and only when it exceeds
    ``MOMENTUM_THRESHOLD`` does the player move one row. Fast speeds cross
    the threshold every tick or two, slow speeds near the apex take many
    ticks, which gives an eased arc using only integers.

    Positive ``speed_y`` is rising, negative is falling.
    """

    x: int = PLAYER_SPAWN[0]
    y: int = PLAYER_SPAWN[1]
    speed_x: int = 0
    speed_y: int = 0
    momentum: int = 0
    bounces: int = 0
    points: int = 0
    victory: bool = False

    def is_grounded(self, grid: Grid) -> bool:
        return grid.is_out_of_bounds(self.x, self.y + 1)

    def collide(self, grid: Grid) -> bool:
        """Bounce off a Zoomba directly below. True if a bounce happened."""
        if self.speed_y > 0:
            return False
        if not grid.is_collision(self.x, self.y + 1, ENEMY_GLYPH):
            return False
        self.bounces += 1
        self.points += self.bounces
        self.momentum = 0
        self.speed_y = JUMP_SPEED + COMBO_BONUS * self.bounces
        return True

    def update(self, grid: Grid, intent: Intent) -> None:
        grounded = self.is_grounded(grid)

        if intent is Intent.LEFT:
            self.speed_x = -1
        elif intent is Intent.RIGHT:
            self.speed_x = 1
        elif intent is Intent.UP and grounded:
            self.speed_y = JUMP_SPEED
        else:
            self.speed_x = 0

        # Always in bounds: Game clamps the spawn and every move below is checked
        grid.set_tile(self.x, self.y)

        if not grounded and self.speed_y > TERMINAL_SPEED:
            self.speed_y -= GRAVITY

        self.momentum += self.speed_y
        if abs(self.momentum) > MOMENTUM_THRESHOLD:
            self._step_vertical(grid)
            self.momentum = 0

        if not grid.is_out_of_bounds(self.x + self.speed_x, self.y):
            self.x += self.speed_x

        if self.is_grounded(grid):
            self.bounces = 0

        grid.set_tile(self.x, self.y, PLAYER_GLYPH)

    def _step_vertical(self, grid: Grid) -> None:
        if self.speed_y > 0:
            if grid.is_out_of_bounds(self.x, self.y - 1):
                # Hit the ceiling. Nothing to tidy up, the session is over.
                self.victory = True
            else:
                self.y -= 1
        elif grid.is_out_of_bounds(self.x, self.y + 1):
            self.speed_y = 0
        else:
            self.y += 1


# ═══════════════════════════════════════════════════════════════════════
#  The game
# ═══════════════════════════════════════════════════════════════════════

class Game:
    """
    One session: a grid, a player, a Zoomba, and the rules between them.

    Every tick runs in a fixed order: resolve a bounce (which may squash the
    Zoomba), move the player, then move the Zoomba or spawn a new one.
    """

    def __init__(
        self, width: int, height: int, rng: RandomSource | None = None
    ) -> None:
        self.grid = Grid(width, height)
        self.rng: RandomSource = rng if rng is not None else random.Random()
        spawn_x = max(0, min(PLAYER_SPAWN[0], width - 1))
        spawn_y = max(0, min(PLAYER_SPAWN[1], height - 1))
        self.player = Player(x=spawn_x, y=spawn_y)
        self.zoomba = Zoomba()
        self.tick: int = 0

    @property
    def points(self) -> int:
        return self.player.points

    @property
    def bounces(self) -> int:
        return self.player.bounces

    @property
    def victory(self) -> bool:
        return self.player.victory

    def tiles(self) -> list[str]:
        return self.grid.tiles()

    def update(self, intent: Intent = Intent.NONE) -> str:
        """Advance one tick. Returns event string (empty if none)."""
        if self.victory:
            return ""

        self.tick += 1
        event = ""

        if self.player.collide(self.grid):
            self.zoomba.squash(self.grid)
            event = "bounce"

        self.player.update(self.grid, intent)

        if not self.zoomba.alive:
            self.zoomba.spawn(self.grid, self.rng)
            event = event or "spawn"
        else:
            self.zoomba.update(self.grid)

        if self.victory:
            event = "victory"
        return event


# ═══════════════════════════════════════════════════════════════════════
#  Stats logger
# ═══════════════════════════════════════════════════════════════════════

class StatsLogger:
    """Writes per-tick telemetry to CSV for post-hoc tuning."""

    HEADER: ClassVar[str] = (
        "tick,time_s,points,bounces,player_x,player_y,speed_y,"
        "enemy_x,enemy_alive,event\n"
    )

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._fh: IO[str] | None = None
        self._t0: float = time.monotonic()

    def open(self) -> None:
        if self._path is None:
            return
        try:
            self._fh = open(self._path, "w")
            self._fh.write(self.HEADER)
            self._fh.flush()
        except OSError:
            self._fh = None

    def log(self, game: Game, event: str = "") -> None:
        if self._fh is None:
            return
        t = time.monotonic() - self._t0
        p, z = game.player, game.zoomba
        try:
            self._fh.write(
                f"{game.tick},{t:.1f},{p.points},{p.bounces},{p.x},{p.y},"
                f"{p.speed_y},{z.x},{int(z.alive)},{event}\n"
            )
            if event or game.tick % STATS_INTERVAL == 0:
                self._fh.flush()
        except OSError:
            self.close()

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            except OSError:
                pass
            self._fh = None


# ═══════════════════════════════════════════════════════════════════════
#  Rendering
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class ColorMap:
    """Curses attributes per glyph. Falls back to plain text without colour."""

    _attrs: dict[str, int] = field(default_factory=dict)

    def setup(self) -> None:
        if not curses.has_colors():
            return
        curses.start_color()
        curses.use_default_colors()
        curses.init_pair(1, curses.COLOR_YELLOW, -1)
        curses.init_pair(2, curses.COLOR_MAGENTA, -1)
        self._attrs[PLAYER_GLYPH] = curses.color_pair(1) | curses.A_BOLD
        self._attrs[ENEMY_GLYPH] = curses.color_pair(2) | curses.A_BOLD

    def attr(self, glyph: str) -> int:
        return self._attrs.get(glyph, curses.A_NORMAL)


def render(stdscr: curses.window, game: Game, cmap: ColorMap) -> None:
    """Draw the play field and the status bar beneath it."""
    max_y, max_x = stdscr.getmaxyx()
    _addstr = stdscr.addstr

    for row, line in enumerate(game.tiles()):
        if row >= max_y - 1:
            break
        line = line[:max_x]
        try:
            _addstr(row, 0, line)
        except curses.error:
            pass
        # Only the few occupied cells need a colour
        for col, ch in enumerate(line):
            if ch == EMPTY:
                continue
            try:
                _addstr(row, col, ch, cmap.attr(ch))
            except curses.error:
                pass

    combo = f"  combo x{game.bounces}" if game.bounces > 1 else ""
    left = f"  points {game.points:,}{combo}"
    right = "arrows/wasd move  up/spc jump  q quit  "
    width = max_x - 1
    if len(left) + 2 + len(right) <= width:
        status = left + " " * (width - len(left) - len(right)) + right
    else:
        # Narrow terminal: the score outlives the key help and the indent
        status = left if len(left) <= width else left.lstrip()
    try:
        _addstr(max_y - 1, 0, status[:width], curses.A_DIM)
    except curses.error:
        pass


def draw_end_screen(stdscr: curses.window, game: Game) -> None:
    max_y, max_x = stdscr.getmaxyx()
    row, col = max_y // 2, max_x // 4
    lines = [f"You earned {game.points} points!"]
    if game.victory:
        lines.append("You reached the top. You win!")
    for i, text in enumerate(lines):
        try:
            stdscr.addstr(row + i, col, text[: max(0, max_x - col - 1)], curses.A_BOLD)
        except curses.error:
            pass


class FrameLimiter:
    """Holds a loop to a fixed rate by sleeping off what's left of each frame."""

    def __init__(self, fps: float) -> None:
        self.period: float = 1.0 / fps
        self._next: float = time.monotonic()

    def limit(self) -> None:
        self._next += self.period
        remaining = self._next - time.monotonic()
        if remaining > 0:
            time.sleep(remaining)
        else:
            # Fell behind; don't try to catch up with a burst of frames
            self._next = time.monotonic()


# ═══════════════════════════════════════════════════════════════════════
#  Main loop
# ═══════════════════════════════════════════════════════════════════════

def main(
    stdscr: curses.window,
    fps: float = FRAMES_PER_SECOND,
    seed: int | None = None,
    log_path: Path | None = LOG_PATH,
) -> Game:
    curses.curs_set(0)
    stdscr.nodelay(True)
    stdscr.timeout(0)

    cmap = ColorMap()
    cmap.setup()

    max_y, max_x = stdscr.getmaxyx()
    game = Game(max_x, max(1, max_y - 1), rng=random.Random(seed))

    logger = StatsLogger(log_path)
    logger.open()

    frame = FrameLimiter(fps)

    try:
        while not game.victory:
            frame.limit()

            intent = read_intent(stdscr)
            if intent is Intent.QUIT:
                break

            event = game.update(intent)

            if event or game.tick % STATS_INTERVAL == 0:
                logger.log(game, event)

            stdscr.erase()
            render(stdscr, game, cmap)
            stdscr.refresh()

        draw_end_screen(stdscr, game)
        stdscr.refresh()
        time.sleep(END_SCREEN_SECONDS)
    finally:
        logger.close()

    return game


def run(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Bounce on the Zoomba, reach the top")
    parser.add_argument("--fps", type=float, default=FRAMES_PER_SECOND,
                        help=f"Simulation rate (default: {FRAMES_PER_SECOND})")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the Zoomba's entry side")
    parser.add_argument("--log", type=Path, default=LOG_PATH,
                        help=f"Stats CSV path (default: {LOG_PATH.name} beside this script)")
    parser.add_argument("--no-log", action="store_true",
                        help="Don't write the stats CSV")
    args = parser.parse_args(argv)
    if args.fps <= 0:
        parser.error("--fps must be positive")

    log_path = None if args.no_log else args.log
    try:
        game = curses.wrapper(main, args.fps, args.seed, log_path)
    except KeyboardInterrupt:
        return

    outcome = "reached the top" if game.victory else "quit"
    print(f"You earned {game.points} points! ({outcome} after {game.tick:,} ticks)")


if __name__ == "__main__":
    run()
