"""
Headless autopilot for Isekai Chronicles.

Logs in, leaves town and hunts the nearest reachable monster, fighting each
encounter to the end. Potions are used below half hp. Prints an ASCII window of the
map every few seconds of game time.

By default runs offline with the built-in fallback narrative:

    uv run python examples/autoplay/run.py --seed 7 --seconds 120

To let a language model write the story and the monsters:

    uv run python examples/autoplay/run.py --llm

Environment variables expected when `--llm` is used:
- `LLM_PROVIDER` (e.g., `openai`, `anthropic` or `ollama`)
- `LLM_MODEL` (e.g., `gpt-4o-mini`)
- Provider-specific API key (e.g., `OPENAI_API_KEY`)
"""

from __future__ import annotations

import argparse
import asyncio
import math
import random
from typing import List, Optional, Tuple

from isekai import (
    CombatState,
    Config,
    GamePhase,
    Game,
    JsonSaveStore,
    Locale,
    Modal,
    NarrativeGenerator,
)
from isekai.environment import TOWN_ENTRANCE, TileKind, grid_shortest_path, render_ascii_window
from isekai.logging_utils import log_info, log_world

FRAME_DT = 1 / 30
MAP_EVERY_SECONDS = 10.0
VIEW_RADIUS = 6


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Isekai Chronicles autopilot.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for terrain, spawns and combat.")
    parser.add_argument("--seconds", type=float, default=120.0, help="Game time to simulate.")
    parser.add_argument("--locale", choices=[locale.value for locale in Locale], default=None)
    parser.add_argument("--name", default="Hero", help="Login id and hero name.")
    parser.add_argument("--secret", default="autopilot", help="Save secret.")
    parser.add_argument("--save", action="store_true", help="Save to SAVE_DIR when time runs out.")
    parser.add_argument("--llm", action="store_true", help="Require a configured LLM provider.")
    return parser.parse_args()


def steer(position: Tuple[float, float], path: List[Tuple[int, int]]) -> Tuple[float, float]:
    """Vector toward the centre of the next tile on ``path``."""

    if len(path) < 2:
        target = path[-1]
    else:
        target = path[1]
    dx = target[0] + 0.5 - position[0]
    dy = target[1] + 0.5 - position[1]
    if math.hypot(dx, dy) < 0.05:
        return 0.0, 0.0
    return dx, dy


class Autopilot:
    def __init__(self, game: Game) -> None:
        self.game = game
        self.target_id: Optional[str] = None

    def _path_to(self, goal: Tuple[int, int]) -> Optional[List[Tuple[int, int]]]:
        context = self.game.context
        avoid = [] if context.in_town else [TOWN_ENTRANCE]
        return grid_shortest_path(
            context.active_grid, context.player.position.tile(), goal, avoid=avoid
        )

    def _pick_target(self) -> Optional[List[Tuple[int, int]]]:
        context = self.game.context
        here = context.player.position
        ranked = sorted(
            (e for e in context.entities if not e.is_boss or context.player.level >= 10),
            key=lambda e: here.distance_to(e.position),
        )
        for entity in ranked[:8]:
            path = self._path_to(entity.position.tile())
            if path:
                self.target_id = entity.id
                return path
        self.target_id = None
        return None

    def next_vector(self) -> Tuple[float, float]:
        context = self.game.context
        pos = (context.player.position.x, context.player.position.y)
        if context.in_town:
            exits = context.town.find(TileKind.TOWN_EXIT)
            path = self._path_to(exits[0]) if exits else None
        else:
            path = None
            if context.entity_by_id(self.target_id) is not None:
                path = self._path_to(context.entity_by_id(self.target_id).position.tile())
            if not path:
                path = self._pick_target()
        return steer(pos, path) if path else (0.0, 0.0)

    async def fight_turn(self) -> None:
        game = self.game
        player = game.context.player
        if game.combat.state != CombatState.PLAYER_TURN or game.combat.busy:
            return
        if player.hp < player.max_hp / 2 and player.potions > 0:
            game.heal()
        elif player.hp < player.max_hp / 5 and not game.context.enemy.is_boss:
            game.flee()
        else:
            game.attack()


def print_view(game: Game) -> None:
    context = game.context
    center = context.player.position.tile()
    markers = {center: "@"}
    if not context.in_town:
        for entity in context.entities:
            markers.setdefault(entity.position.tile(), "B" if entity.is_boss else "m")
    print(render_ascii_window(context.active_grid, center, radius=VIEW_RADIUS, markers=markers))
    player = context.player
    log_info(
        f"Lv {player.level}  HP {player.hp}/{player.max_hp}  ATK {player.attack}  "
        f"EXP {player.exp}/{player.max_exp}  G {player.gold}  potions {player.potions}"
    )


async def main() -> None:
    args = parse_args()
    generator = NarrativeGenerator.from_config() if args.llm else NarrativeGenerator()
    if args.llm:
        Config.validate()
        generator.require_enabled()

    game = Game(
        generator=generator,
        store=JsonSaveStore(Config.SAVE_DIR),
        rng=random.Random(args.seed),
        locale=args.locale,
    )
    await game.initialize()
    print(game.context.text.title)
    print(Config.display())

    await game.login(args.name, args.secret)
    if game.context.phase == GamePhase.INTRO:
        print(f"\n{game.context.story_text}\n")
        game.start_adventure()

    pilot = Autopilot(game)
    elapsed = 0.0
    next_map = 0.0
    seen_logs: set[str] = set()
    while elapsed < args.seconds and game.context.phase not in (
        GamePhase.ENDING,
        GamePhase.GAME_OVER,
    ):
        context = game.context
        if context.modal != Modal.NONE:
            game.close_modal()

        if context.phase == GamePhase.MAP:
            if context.nearby_entity_id is not None:
                await game.interact()
            await game.tick(pilot.next_vector(), FRAME_DT)
        else:
            await pilot.fight_turn()
            await game.tick((), FRAME_DT)

        for entry in game.context.logs:
            if entry.id not in seen_logs:
                seen_logs.add(entry.id)
                print(f"  [{entry.kind.value}] {entry.text}")

        elapsed += FRAME_DT
        if elapsed >= next_map:
            print_view(game)
            next_map += MAP_EVERY_SECONDS

    if game.context.story_text and game.context.phase in (GamePhase.ENDING, GamePhase.GAME_OVER):
        print(f"\n{game.context.story_text}\n")
    else:
        log_world(f"Stopped after {elapsed:.1f}s of game time")
        if args.save:
            await game.save_and_logout()

    await game.close()


if __name__ == "__main__":
    asyncio.run(main())
