from __future__ import annotations

import enum
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pedident.services.charting_session import ChartSession
from pedident.services.dental_notation import (
    CatalogError,
    ChartingMode,
    Dentition,
    ToothState,
    ToothSurface,
    parse_surface,
    parse_tooth_state,
)

logger = logging.getLogger("pedident.charting")


class ChartingCommand(str, enum.Enum):
    record = "record"
    select_surface = "select_surface"
    confirm_surfaces = "confirm_surfaces"
    advance = "advance"
    retreat = "retreat"
    jump_to = "jump_to"
    skip_to_permanent = "skip_to_permanent"
    toggle_granularity = "toggle_granularity"
    finish = "finish"
    set_tooth_state = "set_tooth_state"
    # Composite commands only reachable through key bindings.
    next = "next"
    skip_or_finish = "skip_or_finish"


@dataclass(frozen=True)
class KeyBinding:
    command: ChartingCommand
    state: ToothState | None = None
    surface: ToothSurface | None = None


DEFAULT_KEY_BINDINGS: dict[str, KeyBinding] = {
    "3": KeyBinding(ChartingCommand.record, state=ToothState.sound),
    "4": KeyBinding(ChartingCommand.record, state=ToothState.missing),
    "5": KeyBinding(ChartingCommand.record, state=ToothState.carious),
    "-": KeyBinding(ChartingCommand.record, state=ToothState.prosthesis),
    "6": KeyBinding(ChartingCommand.retreat),
    "7": KeyBinding(ChartingCommand.next),
    "1": KeyBinding(ChartingCommand.skip_or_finish),
    "/": KeyBinding(ChartingCommand.toggle_granularity),
    "8": KeyBinding(ChartingCommand.select_surface, surface=ToothSurface.mesial),
    "9": KeyBinding(ChartingCommand.select_surface, surface=ToothSurface.distal),
    "0": KeyBinding(ChartingCommand.select_surface, surface=ToothSurface.buccal),
    ".": KeyBinding(ChartingCommand.select_surface, surface=ToothSurface.lingual),
    "+": KeyBinding(ChartingCommand.select_surface, surface=ToothSurface.occlusal),
}


def parse_command(value: ChartingCommand | str) -> ChartingCommand:
    try:
        return ChartingCommand(value)
    except ValueError as exc:
        raise CatalogError(f"Unknown charting command: {value!r}") from exc


def parse_key_bindings(raw: Mapping[str, Any]) -> dict[str, KeyBinding]:
    if not isinstance(raw, Mapping):
        raise CatalogError("Key bindings must be an object keyed by key")
    bindings: dict[str, KeyBinding] = {}
    for key, entry in raw.items():
        if isinstance(entry, str):
            entry = {"command": entry}
        elif not isinstance(entry, Mapping):
            raise CatalogError(f"Key {key!r} must map to a command name or an object")
        command = parse_command(entry.get("command"))
        state = entry.get("state")
        surface = entry.get("surface")
        binding = KeyBinding(
            command,
            state=parse_tooth_state(state) if state is not None else None,
            surface=parse_surface(surface) if surface is not None else None,
        )
        if command == ChartingCommand.record and binding.state is None:
            raise CatalogError(f"Key {key!r} records a tooth but names no state")
        if command == ChartingCommand.select_surface and binding.surface is None:
            raise CatalogError(f"Key {key!r} selects a surface but names none")
        bindings[str(key)] = binding
    return bindings


def load_key_bindings(path: str | Path | None) -> dict[str, KeyBinding]:
    if not path:
        return dict(DEFAULT_KEY_BINDINGS)
    with Path(path).open("r", encoding="utf-8") as handle:
        raw = json.load(handle)
    bindings = parse_key_bindings(raw)
    logger.info("Loaded %s key bindings from %s.", len(bindings), path)
    return bindings


def apply_command(session: ChartSession, command: ChartingCommand | str, **args: Any) -> Any:
    command = parse_command(command)
    if command == ChartingCommand.record:
        return session.record_whole_tooth(_require_arg(args, "state", command))
    if command == ChartingCommand.select_surface:
        return session.record_surface_selection(
            _require_arg(args, "surface", command), args.get("tooth")
        )
    if command == ChartingCommand.confirm_surfaces:
        return session.confirm_surfaces()
    if command == ChartingCommand.advance:
        return session.advance()
    if command == ChartingCommand.retreat:
        return session.retreat()
    if command == ChartingCommand.jump_to:
        return session.jump_to(_require_arg(args, "tooth", command))
    if command == ChartingCommand.skip_to_permanent:
        return session.skip_to_permanent()
    if command == ChartingCommand.toggle_granularity:
        return session.toggle_granularity()
    if command == ChartingCommand.finish:
        return session.finish()
    if command == ChartingCommand.set_tooth_state:
        return session.set_tooth_state(
            _require_arg(args, "tooth", command),
            _require_arg(args, "state", command),
            args.get("surfaces"),
        )
    if command == ChartingCommand.next:
        return _next(session)
    if command == ChartingCommand.skip_or_finish:
        if session.dentition == Dentition.deciduous:
            return session.skip_to_permanent()
        return session.finish()
    raise CatalogError(f"Unhandled charting command: {command.value!r}")


def _require_arg(args: Mapping[str, Any], name: str, command: ChartingCommand) -> Any:
    value = args.get(name)
    if value is None:
        raise ValueError(f"Command {command.value!r} requires {name!r}")
    return value


def _next(session: ChartSession) -> Any:
    if session.mode != ChartingMode.per_surface:
        return session.advance()
    if session.selected_surfaces:
        result = session.confirm_surfaces()
    else:
        result = session.advance()
    session.toggle_granularity()
    return result


def dispatch_key(
    session: ChartSession,
    key: str,
    bindings: Mapping[str, KeyBinding] | None = None,
) -> KeyBinding | None:
    binding = (bindings if bindings is not None else DEFAULT_KEY_BINDINGS).get(key)
    if binding is None:
        return None
    args: dict[str, Any] = {}
    if binding.state is not None:
        args["state"] = binding.state
    if binding.surface is not None:
        args["surface"] = binding.surface
    apply_command(session, binding.command, **args)
    return binding
