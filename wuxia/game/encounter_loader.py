"""Loading encounters from YAML files.

An encounter file lists the entities taking part (identity, faction, control,
speed, starting action value, action points, health, position), optional
sight-blocking obstacles, and a library of named strategies that AI entities
reference. Conditions and actions are written as mappings with a ``type``
key; composite conditions nest further conditions under ``conditions``.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from ..core.config_loader import CombatConfig
from ..core.data import (
    Comparison,
    ControlType,
    DistanceReference,
    Faction,
    LogicOperator,
    MoveTarget,
    TargetSelection,
    Vector2,
)
from ..core.engine.combat_context import CombatContext
from ..core.entities.combat_entity import CombatEntity
from ..core.entities.roster import Roster, RosterError
from ..core.events.event_manager import EventManager
from .ai.actions import Action, MeleeAttackAction, MoveAction, RangedAttackAction, WaitAction
from .ai.conditions import (
    CompositeCondition,
    Condition,
    DistanceCondition,
    HealthCondition,
    ResourceCondition,
)
from .ai.strategy import Strategy, StrategyDefinitionError, StrategySet
from .entities.battlefield import Battlefield, Obstacle
from .entities.health import Health


class EncounterLoadError(ValueError):
    """Raised when an encounter file is missing or malformed."""


COMPARISON_ALIASES = {
    ">": Comparison.GREATER_THAN,
    "<": Comparison.LESS_THAN,
    "==": Comparison.EQUAL,
    "=": Comparison.EQUAL,
    ">=": Comparison.GREATER_OR_EQUAL,
    "<=": Comparison.LESS_OR_EQUAL,
    "within": Comparison.LESS_OR_EQUAL,
    "beyond": Comparison.GREATER_THAN,
}

NUMERIC_ACTION_SETTINGS = frozenset({
    "resource_cost",
    "damage",
    "wind_up",
    "recovery",
    "attack_range",
    "min_range",
    "max_range",
    "max_distance",
    "stopping_distance",
    "stop_below",
    "duration",
    "resource_recovery",
})


@dataclass
class Encounter:
    """A parsed encounter ready to be turned into a combat context."""

    name: str
    description: str = ""
    roster: Roster = field(default_factory=Roster)
    battlefield: Battlefield = field(default_factory=Battlefield)
    strategies: dict[str, Strategy] = field(default_factory=dict)

    def create_context(
        self,
        config: Optional[CombatConfig] = None,
        seed: Optional[int] = None,
        event_manager: Optional[EventManager] = None,
    ) -> CombatContext:
        return CombatContext.create(
            self.roster,
            config=config,
            battlefield=self.battlefield,
            seed=seed,
            event_manager=event_manager,
        )


def _parse_enum(enum_cls, raw: Any, what: str):
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls[str(raw).strip().upper()]
    except KeyError:
        options = ", ".join(member.name.lower() for member in enum_cls)
        raise EncounterLoadError(f"Unknown {what} '{raw}' (expected one of: {options})") from None


def _parse_comparison(raw: Any) -> Comparison:
    if isinstance(raw, str) and raw.strip().lower() in COMPARISON_ALIASES:
        return COMPARISON_ALIASES[raw.strip().lower()]
    return _parse_enum(Comparison, raw, "comparison")


def _parse_number(raw: Any, what: str) -> float:
    # YAML booleans are ints to Python
    if isinstance(raw, bool):
        raise EncounterLoadError(f"Invalid number for {what}: {raw!r}")
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise EncounterLoadError(f"Invalid number for {what}: {raw!r}") from e


def _parse_flag(raw: Any, what: str) -> bool:
    if not isinstance(raw, bool):
        raise EncounterLoadError(f"Invalid value for {what}: expected true/false, got {raw!r}")
    return raw


def _parse_position(raw: Any, what: str) -> Vector2:
    try:
        return Vector2.from_list(list(raw))
    except (TypeError, ValueError) as e:
        raise EncounterLoadError(f"Invalid position for {what}: {raw!r}") from e


class EncounterLoader:
    """Handles loading encounters from YAML files."""

    @staticmethod
    def load_from_file(file_path: str) -> Encounter:
        """Load an encounter from a YAML file.

        Relative paths are tried from the working directory first, then from
        the project root.

        Raises:
            EncounterLoadError: If the file is missing, unparsable or malformed
        """
        path = Path(file_path)
        if not path.is_absolute() and not path.exists():
            path = Path(__file__).parent.parent.parent / file_path

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise EncounterLoadError(f"Encounter file not found: {file_path}") from e
        except yaml.YAMLError as e:
            raise EncounterLoadError(f"Failed to parse YAML encounter {path.name}: {e}") from e

        if not isinstance(data, dict):
            raise EncounterLoadError(f"Encounter file {path.name} must contain a mapping")
        return EncounterLoader.parse(data, default_name=os.path.splitext(path.name)[0])

    @staticmethod
    def parse(data: dict[str, Any], default_name: str = "Unnamed Encounter") -> Encounter:
        """Build an encounter from already-loaded YAML data."""
        encounter = Encounter(
            name=data.get("name", default_name),
            description=data.get("description", ""),
        )

        for obstacle_data in data.get("obstacles") or []:
            encounter.battlefield.obstacles.append(Obstacle(
                center=_parse_position(obstacle_data.get("center"), "obstacle"),
                radius=_parse_number(obstacle_data.get("radius", 0.5), "obstacle radius"),
            ))

        for strategy_name, strategy_data in (data.get("strategies") or {}).items():
            encounter.strategies[strategy_name] = EncounterLoader._parse_strategy(strategy_name, strategy_data)

        entities = data.get("entities")
        if not entities:
            raise EncounterLoadError(f"Encounter '{encounter.name}' has no entities")

        for entity_data in entities:
            entity = EncounterLoader._parse_entity(entity_data, encounter.strategies)
            try:
                encounter.roster.add(entity)
            except RosterError as e:
                raise EncounterLoadError(str(e)) from e
            if "position" in entity_data:
                encounter.battlefield.place(
                    entity.entity_id, _parse_position(entity_data["position"], entity.entity_id)
                )

        return encounter

    @staticmethod
    def _parse_entity(data: dict[str, Any], library: dict[str, Strategy]) -> CombatEntity:
        if "id" not in data:
            raise EncounterLoadError(f"Entity without an 'id': {data!r}")
        entity_id = str(data["id"])

        try:
            max_resource = float(data.get("max_resource", 60.0))
            entity = CombatEntity(
                entity_id=entity_id,
                name=data.get("name", entity_id),
                speed=float(data.get("speed", 0.0)),
                faction=_parse_enum(Faction, data.get("faction", "neutral"), "faction"),
                control=_parse_enum(ControlType, data.get("control", "ai"), "control type"),
                action_value=float(data.get("action_value", 0.0)),
                max_resource=max_resource,
                current_resource=float(data.get("current_resource", max_resource)),
            )
            if "max_health" in data:
                entity.health = Health(float(data["max_health"]), data.get("health"))
        except (TypeError, ValueError) as e:
            if isinstance(e, EncounterLoadError):
                raise
            raise EncounterLoadError(f"Invalid values for entity '{entity_id}': {e}") from e

        strategy_refs = data.get("strategies") or []
        if strategy_refs:
            strategies = StrategySet()
            for ref in strategy_refs:
                if isinstance(ref, str):
                    if ref not in library:
                        raise EncounterLoadError(f"Entity '{entity_id}' references unknown strategy '{ref}'")
                    strategies.add(library[ref])
                else:
                    ref = dict(ref)
                    strategies.add(EncounterLoader._parse_strategy(ref.pop("name", ""), ref))
            entity.strategies = strategies
        return entity

    @staticmethod
    def _parse_strategy(name: str, data: dict[str, Any]) -> Strategy:
        try:
            return Strategy(
                name=name,
                priority=_parse_number(data.get("priority", 1.0), f"priority of strategy '{name}'"),
                conditions=[EncounterLoader.parse_condition(c) for c in data.get("conditions") or []],
                actions=[EncounterLoader.parse_action(a) for a in data.get("actions") or []],
            )
        except StrategyDefinitionError as e:
            raise EncounterLoadError(str(e)) from e

    @staticmethod
    def parse_condition(data: dict[str, Any]) -> Condition:
        """Build a condition from a mapping with a ``type`` key."""
        if not isinstance(data, dict):
            raise EncounterLoadError(f"Condition must be a mapping, got {data!r}")
        try:
            return EncounterLoader._build_condition(data)
        except (TypeError, ValueError) as e:
            if isinstance(e, EncounterLoadError):
                raise
            raise EncounterLoadError(f"Invalid condition {data!r}: {e}") from e

    @staticmethod
    def _build_condition(data: dict[str, Any]) -> Condition:
        kind = str(data.get("type", "")).lower()
        invert = _parse_flag(data.get("invert", False), f"invert of {kind} condition")

        if kind == "resource":
            return ResourceCondition(
                comparison=_parse_comparison(data.get("comparison", ">=")),
                threshold=_parse_number(data.get("threshold", 50.0), "resource threshold"),
                invert=invert,
            )
        if kind == "health":
            return HealthCondition(
                comparison=_parse_comparison(data.get("comparison", "<")),
                ratio=_parse_number(data.get("ratio", 0.5), "health ratio"),
                invert=invert,
            )
        if kind == "distance":
            target_position = data.get("target_position")
            return DistanceCondition(
                reference=_parse_enum(DistanceReference, data.get("reference", "nearest_hostile"), "distance reference"),
                comparison=_parse_comparison(data.get("comparison", "<=")),
                distance=_parse_number(data.get("distance", 5.0), "distance"),
                target_entity_id=data.get("target_entity"),
                target_position=_parse_position(target_position, "distance condition") if target_position is not None else None,
                invert=invert,
            )
        if kind == "composite":
            return CompositeCondition(
                operator=_parse_enum(LogicOperator, data.get("operator", "and"), "logic operator"),
                children=[EncounterLoader.parse_condition(child) for child in data.get("conditions") or []],
                invert=invert,
            )
        raise EncounterLoadError(f"Unknown condition type '{kind}'")

    @staticmethod
    def parse_action(data: dict[str, Any]) -> Action:
        """Build an action from a mapping with a ``type`` key.

        Numeric settings are checked here so a bad value fails the load
        instead of the turn that first runs the action.
        """
        kind = str(data.get("type", "")).lower()
        builder = _ACTION_BUILDERS.get(kind)
        if builder is None:
            raise EncounterLoadError(f"Unknown action type '{kind}'")

        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key in ("type", "conditions"):
                continue
            if key in NUMERIC_ACTION_SETTINGS:
                value = _parse_number(value, f"'{key}' of {kind} action")
            elif key == "name":
                value = str(value)
            kwargs[key] = value
        kwargs["conditions"] = [EncounterLoader.parse_condition(c) for c in data.get("conditions") or []]
        try:
            return builder(kwargs)
        except TypeError as e:
            raise EncounterLoadError(f"Invalid settings for {kind} action: {e}") from e


def _build_attack(cls: type, kwargs: dict[str, Any]) -> Action:
    if "target_selection" in kwargs:
        kwargs["target_selection"] = _parse_enum(TargetSelection, kwargs["target_selection"], "target selection")
    return cls(**kwargs)


def _build_move(kwargs: dict[str, Any]) -> Action:
    if "move_target" in kwargs:
        kwargs["move_target"] = _parse_enum(MoveTarget, kwargs["move_target"], "move target")
    if kwargs.get("target_position") is not None:
        kwargs["target_position"] = _parse_position(kwargs["target_position"], "move action")
    return MoveAction(**kwargs)


_ACTION_BUILDERS: dict[str, Callable[[dict[str, Any]], Action]] = {
    "melee_attack": lambda kwargs: _build_attack(MeleeAttackAction, kwargs),
    "ranged_attack": lambda kwargs: _build_attack(RangedAttackAction, kwargs),
    "move": _build_move,
    "wait": lambda kwargs: WaitAction(**kwargs),
}
