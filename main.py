#!/usr/bin/env python3

import argparse
import sys

from wuxia.core.config_loader import CombatConfigLoader, ConfigError
from wuxia.game.encounter_loader import EncounterLoader, EncounterLoadError
from wuxia.game.managers import CombatManager, LogManager


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Run a turn-based combat encounter on the action-value timeline",
    )
    parser.add_argument(
        "--encounter",
        default="assets/encounters/bandit_ambush.yaml",
        help="Encounter YAML file",
    )
    parser.add_argument("--config", default=None, help="Combat config YAML file")
    parser.add_argument(
        "--predict",
        type=int,
        default=None,
        help="Number of upcoming turns to forecast (defaults to the config value)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for AI strategy selection")
    parser.add_argument(
        "--auto-human",
        action="store_true",
        help="End human-controlled turns automatically instead of prompting",
    )
    parser.add_argument("--max-turns", type=int, default=200, help="Stop after this many turns")
    parser.add_argument("--save-log", metavar="DIR", default=None, help="Write the combat log to DIR")
    parser.add_argument("--debug", action="store_true", help="Show debug log messages")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    config_loader = CombatConfigLoader(args.config)
    try:
        config_loader.load_config()
        encounter = EncounterLoader.load_from_file(args.encounter)
    except (ConfigError, EncounterLoadError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    context = encounter.create_context(config_loader.get_config(), seed=args.seed)
    log_manager = LogManager(context.event_manager)
    if args.debug:
        log_manager.toggle_debug()
    for warning in config_loader.warnings:
        log_manager.warning(warning)

    manager = CombatManager(context)
    manager.start_combat()
    context.event_manager.process_events()

    names = {entity.entity_id: entity.name for entity in context.roster}
    predicted = manager.get_prediction(args.predict)
    print(f"== {encounter.name} ==")
    print("Turn order: " + " -> ".join(names.get(entity_id, entity_id) for entity_id in predicted))

    try:
        while not manager.is_combat_over() and manager.state.turn_count < args.max_turns:
            manager.run_until_blocked(max_turns=args.max_turns - manager.state.turn_count)
            if not manager.awaiting_human:
                break
            actor = manager.current_actor
            if not args.auto_human:
                answer = input(f"{actor.name}'s turn - press Enter to end it (q to quit): ")
                if answer.strip().lower() == "q":
                    break
            manager.signal_turn_complete(actor)
    except KeyboardInterrupt:
        print("\n\nCombat interrupted by user")

    context.event_manager.process_events()
    for line in log_manager.get_formatted_messages():
        print(line)

    if manager.is_combat_over():
        winner = manager.state.winning_faction or "Nobody"
        print(f"\nCombat over after {manager.state.turn_count} turns: {winner} wins")

    if args.save_log:
        log_manager.save_log_to_file(args.save_log)
    return 0


if __name__ == "__main__":
    sys.exit(main())
