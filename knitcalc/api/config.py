"""
Step configuration parsing.

A step configuration is a plain mapping (usually read from YAML or JSON)
describing one shaping step:

    current_stitches: 50
    construction: flat
    shaping_type: sequential_phases
    phases:
      - type: decrease
        config: {amount: 1, position: both_ends, frequency: 2, times: 5}

The parsers here turn such mappings into typed values. Anything malformed
(unknown kinds, missing keys, values the dataclasses reject) raises
InvalidConfigurationError naming the offending entry.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from knitcalc.markers.array import (
    MarkerArray,
    MarkerPlacement,
    create_initial_array,
    place_markers,
)
from knitcalc.markers.sequences import (
    MarkerSequence,
    SequencePhase,
    SequencePhaseType,
    StartCondition,
)
from knitcalc.markers.timing import TimingMode, TimingParams
from knitcalc.schemas.action import ActionType, Position, ShapingAction, TargetType
from knitcalc.schemas.construction import Construction
from knitcalc.schemas.phase import (
    BindOffPhase,
    DecreasePhase,
    GraduatedBindOffPhase,
    IncreasePhase,
    Phase,
    PhasePosition,
    PhaseType,
    SetupPhase,
)


class InvalidConfigurationError(ValueError):
    """Raised when a step configuration cannot be turned into typed values."""


def load_config(path: str | Path) -> dict[str, Any]:
    """
    Read a step configuration file (YAML, or JSON as a YAML subset).

    Raises:
        FileNotFoundError: If *path* does not exist.
        InvalidConfigurationError: If the file is not valid YAML or does not
            contain a mapping.
    """
    path = Path(path)
    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise InvalidConfigurationError(f"Invalid YAML in {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidConfigurationError(
            f"{path.name} must contain a mapping, got {type(data).__name__}"
        )
    return data


# ── Field helpers ──────────────────────────────────────────────────────────────


def _require(data: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in data or data[key] is None:
        raise InvalidConfigurationError(f"{where}: missing required key {key!r}")
    return data[key]


def _int(value: Any, key: str, where: str) -> int:
    if isinstance(value, bool):
        raise InvalidConfigurationError(f"{where}: {key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidConfigurationError(
            f"{where}: {key} must be an integer, got {value!r}"
        ) from None


def _enum(enum_type: type, value: Any, key: str, where: str) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise InvalidConfigurationError(
            f"{where}: unknown {key} {value!r} (expected one of: {allowed})"
        ) from None


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidConfigurationError(
            f"{where} must be a mapping, got {type(value).__name__}"
        )
    return value


def sequence_from(data: Mapping[str, Any], key: str, where: str) -> list[Any]:
    """``data[key]`` as a list; missing or null is empty, anything but a list is an error."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise InvalidConfigurationError(
            f"{where}: {key} must be a list, got {type(value).__name__}"
        )
    return list(value)


def _build(factory: Any, where: str, **kwargs: Any) -> Any:
    try:
        return factory(**kwargs)
    except ValueError as exc:
        raise InvalidConfigurationError(f"{where}: {exc}") from exc


def construction_from(data: Mapping[str, Any]) -> Construction:
    return _enum(Construction, data.get("construction", "flat"), "construction", "step")


def current_stitches_from(data: Mapping[str, Any]) -> int:
    stitches = _int(_require(data, "current_stitches", "step"), "current_stitches", "step")
    if stitches < 0:
        raise InvalidConfigurationError(f"step: current_stitches must be >= 0, got {stitches}")
    return stitches


# ── Phases ─────────────────────────────────────────────────────────────────────


def phase_from_dict(data: Mapping[str, Any]) -> Phase:
    """
    Parse one phase. Accepts ``{type, config: {...}}`` or the fields inline
    next to ``type``. ``frequency`` values below 1 are raised to 1.
    """
    where = "phase"
    data = _mapping(data, where)
    phase_type = _enum(PhaseType, _require(data, "type", where), "phase type", where)
    fields = data.get("config", data)
    if not isinstance(fields, Mapping):
        raise InvalidConfigurationError(f"{where}: config must be a mapping")
    where = f"{phase_type.value} phase"

    def number(key: str) -> int:
        return _int(_require(fields, key, where), key, where)

    match phase_type:
        case PhaseType.SETUP:
            return _build(SetupPhase, where, rows=number("rows"))
        case PhaseType.BIND_OFF:
            return _build(
                BindOffPhase,
                where,
                amount=number("amount"),
                frequency=max(1, number("frequency")),
                position=_enum(
                    PhasePosition, fields.get("position", "beginning"), "position", where
                ),
            )
        case PhaseType.DECREASE | PhaseType.INCREASE:
            factory = DecreasePhase if phase_type == PhaseType.DECREASE else IncreasePhase
            return _build(
                factory,
                where,
                amount=number("amount"),
                position=_enum(PhasePosition, _require(fields, "position", where), "position", where),
                frequency=max(1, number("frequency")),
                times=number("times"),
            )


def phase_to_dict(phase: Phase) -> dict[str, Any]:
    """Inverse of phase_from_dict, in the nested ``{type, config}`` form."""
    match phase:
        case SetupPhase():
            config: dict[str, Any] = {"rows": phase.rows}
        case BindOffPhase():
            config = {
                "amount": phase.amount,
                "frequency": phase.frequency,
                "position": phase.position.value,
            }
        case DecreasePhase() | IncreasePhase():
            config = {
                "amount": phase.amount,
                "position": phase.position.value,
                "frequency": phase.frequency,
                "times": phase.times,
            }
    return {"type": phase.phase_type.value, "config": config}


def bind_off_phase_from_dict(data: Mapping[str, Any]) -> GraduatedBindOffPhase:
    where = "bind-off phase"
    data = _mapping(data, where)
    amount = data.get("amount", data.get("stitches"))
    if amount is None:
        raise InvalidConfigurationError(f"{where}: missing required key 'amount'")
    return _build(
        GraduatedBindOffPhase,
        where,
        amount=_int(amount, "amount", where),
        times=_int(data.get("times", 1), "times", where),
        method=str(data.get("method", "standard")),
    )


# ── Marker actions ─────────────────────────────────────────────────────────────


def action_from_dict(data: Mapping[str, Any]) -> ShapingAction:
    """
    Parse one shaping action. ``distance: at`` is accepted as 0; a single
    target may be given as a string.
    """
    where = "action"
    data = _mapping(data, where)
    target_type = _enum(TargetType, _require(data, "target_type", where), "target_type", where)
    if isinstance(data.get("targets"), str):
        targets = [data["targets"]]
    else:
        targets = sequence_from(data, "targets", where)
    distance = data.get("distance", 0)
    if distance in ("at", None):
        distance = 0
    stitch_count = data.get("stitch_count")
    return _build(
        ShapingAction,
        where,
        target_type=target_type,
        targets=tuple(str(t) for t in targets),
        position=_enum(Position, data.get("position", "before"), "position", where),
        action_type=_enum(
            ActionType, data.get("action_type", "continue"), "action_type", where
        ),
        technique=str(data.get("technique", "")),
        distance=_int(distance, "distance", where),
        stitch_count=None if stitch_count is None else _int(stitch_count, "stitch_count", where),
    )


def marker_sequence_from_dict(data: Mapping[str, Any]) -> MarkerSequence:
    """
    Parse one marker sequence::

        name: Raglan increases
        start: {type: after_rows, value: 4}   # or immediate / after_sequence
        actions: [...]
        phases:
          - {type: initial}
          - {type: repeat, times: 8, rows: 2}
          - {type: finish, rows: 3}
    """
    where = "marker sequence"
    data = _mapping(data, where)
    name = str(_require(data, "name", where))
    where = f'marker sequence "{name}"'

    phases = []
    for entry in sequence_from(data, "phases", where):
        entry = _mapping(entry, f"{where} phase")
        phases.append(
            _build(
                SequencePhase,
                where,
                phase_type=_enum(
                    SequencePhaseType, _require(entry, "type", where), "phase type", where
                ),
                times=_int(entry.get("times", 1), "times", where),
                rows=_int(entry.get("rows", 1), "rows", where),
            )
        )

    start = _mapping(data.get("start") or {}, f"{where} start")
    condition = _enum(StartCondition, start.get("type", "immediate"), "start", where)
    value = start.get("value")
    if condition == StartCondition.AFTER_ROWS and value is not None:
        value = _int(value, "start value", where)
    elif condition == StartCondition.AFTER_SEQUENCE and value is not None:
        value = str(value)

    return _build(
        MarkerSequence,
        where,
        name=name,
        actions=tuple(action_from_dict(a) for a in sequence_from(data, "actions", where)),
        phases=tuple(phases),
        start=condition,
        start_value=value,
    )


def marker_array_from_dict(data: Mapping[str, Any], construction: Construction) -> MarkerArray:
    """
    The step's marker array: an explicit ``marker_array`` list, or
    ``markers`` placed by position into ``current_stitches``.
    """
    where = "marker layout"
    try:
        if "marker_array" in data:
            array = MarkerArray(tuple(sequence_from(data, "marker_array", where)))
            if array.construction != construction:
                raise InvalidConfigurationError(
                    f"{where}: marker_array is {array.construction.value} "
                    f"but construction is {construction.value}"
                )
            return array
        total = current_stitches_from(data)
        placements = []
        for entry in sequence_from(data, "markers", where):
            entry = _mapping(entry, f"{where} entry")
            placements.append(
                MarkerPlacement(
                    str(_require(entry, "name", where)),
                    _int(_require(entry, "position", where), "position", where),
                )
            )
        if not placements:
            return create_initial_array(total, construction)
        return place_markers(total, placements, construction)
    except InvalidConfigurationError:
        raise
    except ValueError as exc:
        raise InvalidConfigurationError(f"{where}: {exc}") from exc


def timing_from_dict(data: Mapping[str, Any]) -> tuple[TimingMode, TimingParams]:
    where = "timing"
    data = _mapping(data, where)
    mode = _enum(TimingMode, data.get("mode", "fixed"), "timing mode", where)
    target = data.get("target_stitches")
    params = _build(
        TimingParams,
        where,
        frequency=max(1, _int(data.get("frequency", 1), "frequency", where)),
        times=_int(data.get("times", 1), "times", where),
        target_stitches=None if target is None else _int(target, "target_stitches", where),
    )
    if mode == TimingMode.TARGET and params.target_stitches is None:
        raise InvalidConfigurationError(f"{where}: target mode requires 'target_stitches'")
    return mode, params


def completed_phases_from(data: Mapping[str, Any]) -> list[int]:
    """``times`` of each phase already worked with the step's action set."""
    where = "completed phases"
    completed = [_int(t, "times", where) for t in sequence_from(data, "completed_phases", where)]
    if any(t < 0 for t in completed):
        raise InvalidConfigurationError(f"{where}: times must be >= 0, got {completed}")
    return completed
