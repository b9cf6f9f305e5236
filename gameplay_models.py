# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core gameplay data models for the runtime gameplay pipeline.
# - Defines the controlled entity, scrolling obstacles, lifecycle states and the
#   immutable render snapshot handed to the presentation layer.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - No Qt usage. These are plain dataclasses.
# - Entity and Obstacle are mutable and owned by GameSimulation only.
#   Everything that leaves the simulation is a frozen view.
#
########################
# Interfaces:
# Public enums:
# - SessionState: IDLE, RUNNING, FAILED, COMPLETED
#
# Public dataclasses:
# - Entity(x: float, y: float, width: float, height: float, velocity: float = 0.0, gravity_enabled: bool = True)
# - Obstacle(x: float, lane: Lane, width: float, gap_top: float, gap_height: float, index: int,
#            syllable: str, song_name: str, passed: bool = False)
# - EntityView(x, y, width, height, velocity, gravity_enabled)
# - ObstacleView(x, width, gap_top, gap_bottom, lane_name, color, syllable, passed)
# - GameSnapshot(entity: EntityView, obstacles: tuple[ObstacleView, ...], score: int, state: SessionState,
#                speed: float, song_name: str, playfield_width: float, playfield_height: float)
# - TickResult(state: SessionState, note_triggers: tuple[str, ...], stop_audio: bool)
#
# Inputs/Outputs:
# - These types are exchanged between GameSimulation, SessionDriver, the gameplay controller
#   and overlay rendering.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from lanes import Lane


class SessionState(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    FAILED = "FAILED"
    COMPLETED = "COMPLETED"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.FAILED, SessionState.COMPLETED)


@dataclass
class Entity:
    x: float
    y: float
    width: float
    height: float
    velocity: float = 0.0
    gravity_enabled: bool = True


@dataclass
class Obstacle:
    x: float
    lane: Lane
    width: float
    gap_top: float
    gap_height: float
    index: int
    syllable: str
    song_name: str
    passed: bool = False

    @property
    def gap_bottom(self) -> float:
        return float(self.gap_top) + float(self.gap_height)


@dataclass(frozen=True)
class EntityView:
    x: float
    y: float
    width: float
    height: float
    velocity: float
    gravity_enabled: bool


@dataclass(frozen=True)
class ObstacleView:
    x: float
    width: float
    gap_top: float
    gap_bottom: float
    lane_name: str
    color: str
    syllable: str
    passed: bool


@dataclass(frozen=True)
class GameSnapshot:
    entity: EntityView
    obstacles: Tuple[ObstacleView, ...]
    score: int
    state: SessionState
    speed: float
    song_name: str
    playfield_width: float
    playfield_height: float


@dataclass(frozen=True)
class TickResult:
    state: SessionState
    note_triggers: Tuple[str, ...] = ()
    stop_audio: bool = False

    @property
    def keep_running(self) -> bool:
        return self.state == SessionState.RUNNING
