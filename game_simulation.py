# -*- coding: utf-8 -*-
########################
# game_simulation.py
########################
# Purpose:
# - Frame-stepped gameplay state machine.
# - Maps pitch to entity position, spawns melody obstacles, scrolls them, fires note
#   triggers, detects collisions and passes, integrates gravity, and tracks score.
#
# Design notes:
# - No Qt usage. Pure and deterministic: one step() per display frame.
# - Single writer: only step() and reset() mutate session state. External inputs
#   (pitch, start, reset, keyboard nudges) are stored as pending intents and applied
#   at the start of the next step. Pitch is last-write-wins and persists across
#   steps until replaced.
# - Lifecycle: IDLE --start--> RUNNING --collision/boundary--> FAILED
#                              RUNNING --sequence exhausted--> COMPLETED
#              FAILED|COMPLETED --reset--> IDLE
# - Step order while RUNNING:
#   1) pitch to lane mapping (first pitch after gravity was enabled suspends gravity)
#   2) obstacle spawn (or COMPLETED when the sequencer is exhausted)
#   3) obstacle advance and eviction
#   4) note triggers: threshold - speed < x <= threshold, same speed as the advance
#   5) collision (FAILED freezes everything, later phases are skipped)
#   6) pass and score (re-enables gravity with zero velocity)
#   7) gravity integration, clamped to the safe ground line
#   8) floor and ceiling boundary check
# - Terminal transitions stop scrolling, disable gravity, request an audio stop and
#   advance the sequencer song cursor for the next session.
#
########################
# Interfaces:
# Public classes:
# - class GameSimulation
#   - __init__(config: GameConfig, sequencer: MelodySequencer, *, lanes: Sequence[Lane] = LANES)
#   - state -> SessionState, score -> int, speed -> float, obstacle_cursor -> int
#   - entity -> Entity, obstacles -> list[Obstacle]   (read only by convention)
#   - submit_pitch(pitch_hz: Optional[float]) -> None
#   - request_start() -> None
#   - request_reset() -> None
#   - request_nudge(direction: int) -> None
#   - step() -> TickResult
#   - reset() -> None
#   - snapshot() -> GameSnapshot
#
# Inputs:
# - Pitch observations (Hz) from PitchTracker via SessionDriver.
# - ObstacleDescriptor values from MelodySequencer.
#
# Outputs:
# - TickResult with note trigger lane names for NotePlayer.
# - GameSnapshot for rendering.
#
########################

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from config import GameConfig
from gameplay_models import (
    Entity,
    EntityView,
    GameSnapshot,
    Obstacle,
    ObstacleView,
    SessionState,
    TickResult,
)
from lanes import LANES, Lane, nearest_lane
from melody_sequencer import MelodySequencer, ObstacleDescriptor


logger = logging.getLogger(__name__)


class GameSimulation:
    def __init__(
        self,
        config: GameConfig,
        sequencer: MelodySequencer,
        *,
        lanes: Sequence[Lane] = LANES,
    ) -> None:
        self._config = config
        self._sequencer = sequencer
        self._lanes = tuple(lanes)

        self._pending_pitch_hz: Optional[float] = None
        self._pending_start = False
        self._pending_reset = False
        self._pending_nudges: List[int] = []

        self._state = SessionState.IDLE
        self._entity = self._new_entity()
        self._obstacles: List[Obstacle] = []
        self._score = 0
        self._obstacle_cursor = 0
        self._speed = float(config.initial_speed)
        self._song_name = ""

    # -----------------
    # Read access
    # -----------------

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def score(self) -> int:
        return self._score

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def obstacle_cursor(self) -> int:
        return self._obstacle_cursor

    @property
    def entity(self) -> Entity:
        return self._entity

    @property
    def obstacles(self) -> List[Obstacle]:
        return self._obstacles

    @property
    def song_name(self) -> str:
        return self._song_name

    def note_trigger_x(self) -> float:
        return float(self._config.playfield_width) * float(self._config.note_trigger_fraction)

    def ground_line_y(self) -> float:
        """Lowest y the entity may be placed at by pitch or keyboard."""
        return float(self._config.playfield_height) - float(self._config.ground_height) - float(self._entity.height)

    def safe_ground_y(self) -> float:
        """Lowest y gravity may pull the entity to."""
        return self.ground_line_y() - float(self._config.safe_ground_margin)

    # -----------------
    # Intents (applied at the start of the next step)
    # -----------------

    def submit_pitch(self, pitch_hz: Optional[float]) -> None:
        self._pending_pitch_hz = None if pitch_hz is None else float(pitch_hz)

    def request_start(self) -> None:
        self._pending_start = True

    def request_reset(self) -> None:
        self._pending_reset = True

    def request_nudge(self, direction: int) -> None:
        if direction:
            self._pending_nudges.append(-1 if direction < 0 else 1)

    # -----------------
    # Lifecycle
    # -----------------

    def reset(self) -> None:
        self._entity = self._new_entity()
        self._obstacles = []
        self._score = 0
        self._obstacle_cursor = 0
        self._speed = float(self._config.initial_speed)
        self._song_name = ""
        self._pending_start = False
        self._pending_reset = False
        self._pending_nudges.clear()
        self._set_state(SessionState.IDLE)

    def step(self) -> TickResult:
        self._apply_lifecycle_intents()
        if self._state != SessionState.RUNNING:
            self._pending_nudges.clear()
            return TickResult(state=self._state)

        self._apply_nudges()
        self._apply_pitch()

        if not self._spawn_if_due():
            return TickResult(state=self._state, stop_audio=True)

        self._advance_obstacles()
        note_triggers = self._collect_note_triggers()

        if self._detect_collision():
            self._fail("collision")
            return TickResult(state=self._state, note_triggers=tuple(note_triggers), stop_audio=True)

        self._score_passes()
        self._apply_gravity()

        if self._is_out_of_bounds():
            self._fail("boundary")
            return TickResult(state=self._state, note_triggers=tuple(note_triggers), stop_audio=True)

        return TickResult(state=self._state, note_triggers=tuple(note_triggers))

    def snapshot(self) -> GameSnapshot:
        entity = self._entity
        return GameSnapshot(
            entity=EntityView(
                x=float(entity.x),
                y=float(entity.y),
                width=float(entity.width),
                height=float(entity.height),
                velocity=float(entity.velocity),
                gravity_enabled=bool(entity.gravity_enabled),
            ),
            obstacles=tuple(
                ObstacleView(
                    x=float(obstacle.x),
                    width=float(obstacle.width),
                    gap_top=float(obstacle.gap_top),
                    gap_bottom=float(obstacle.gap_bottom),
                    lane_name=obstacle.lane.name,
                    color=obstacle.lane.color,
                    syllable=obstacle.syllable,
                    passed=bool(obstacle.passed),
                )
                for obstacle in self._obstacles
            ),
            score=int(self._score),
            state=self._state,
            speed=float(self._speed),
            song_name=self._song_name,
            playfield_width=float(self._config.playfield_width),
            playfield_height=float(self._config.playfield_height),
        )

    # -----------------
    # Step phases
    # -----------------

    def _apply_lifecycle_intents(self) -> None:
        if self._pending_reset:
            self._pending_reset = False
            if self._state.is_terminal:
                self.reset()
        if self._pending_start:
            self._pending_start = False
            if self._state == SessionState.IDLE:
                self._set_state(SessionState.RUNNING)

    def _apply_nudges(self) -> None:
        entity = self._entity
        step_size = float(self._config.nudge_step)
        for direction in self._pending_nudges:
            if direction < 0:
                entity.y = max(0.0, entity.y - step_size)
            else:
                entity.y = min(self.ground_line_y(), entity.y + step_size)
        self._pending_nudges.clear()

    def _apply_pitch(self) -> None:
        if self._pending_pitch_hz is None:
            return
        entity = self._entity
        lane = nearest_lane(self._pending_pitch_hz, self._lanes)
        target_y = float(lane.line_y) - float(entity.height) / 2.0
        entity.y = max(0.0, min(self.ground_line_y(), target_y))
        if entity.gravity_enabled:
            entity.velocity = 0.0
            entity.gravity_enabled = False

    def _spawn_if_due(self) -> bool:
        """Spawn the next obstacle when spacing allows. False means the session completed."""
        width = float(self._config.playfield_width)
        last_obstacle = self._obstacles[-1] if self._obstacles else None
        if last_obstacle is not None and not last_obstacle.x < width - float(self._config.obstacle_spacing):
            return True

        descriptor = self._sequencer.get_next(self._obstacle_cursor)
        if not isinstance(descriptor, ObstacleDescriptor):
            self._complete()
            return False

        self._speed = float(self._config.initial_speed) * float(descriptor.speed_multiplier)
        self._song_name = descriptor.song_name
        gap_height = float(self._config.gap_height)
        self._obstacles.append(
            Obstacle(
                x=width,
                lane=descriptor.lane,
                width=float(self._config.obstacle_width),
                gap_top=descriptor.lane.gap_top(gap_height),
                gap_height=gap_height,
                index=descriptor.index,
                syllable=descriptor.syllable,
                song_name=descriptor.song_name,
            )
        )
        self._obstacle_cursor += 1
        return True

    def _advance_obstacles(self) -> None:
        kept: List[Obstacle] = []
        for obstacle in self._obstacles:
            obstacle.x -= self._speed
            if obstacle.x > -obstacle.width:
                kept.append(obstacle)
        self._obstacles = kept

    def _collect_note_triggers(self) -> List[str]:
        threshold = self.note_trigger_x()
        triggers: List[str] = []
        for obstacle in self._obstacles:
            if threshold - self._speed < obstacle.x <= threshold:
                triggers.append(obstacle.lane.name)
        return triggers

    def _detect_collision(self) -> bool:
        entity = self._entity
        for obstacle in self._obstacles:
            overlaps_horizontally = entity.x + entity.width > obstacle.x and entity.x < obstacle.x + obstacle.width
            if not overlaps_horizontally:
                continue
            outside_gap = entity.y < obstacle.gap_top or entity.y + entity.height > obstacle.gap_bottom
            if outside_gap:
                return True
        return False

    def _score_passes(self) -> None:
        entity = self._entity
        for obstacle in self._obstacles:
            if obstacle.passed:
                continue
            if obstacle.x + obstacle.width < entity.x:
                obstacle.passed = True
                self._score += 1
                entity.gravity_enabled = True
                entity.velocity = 0.0

    def _apply_gravity(self) -> None:
        entity = self._entity
        if not entity.gravity_enabled:
            return
        entity.velocity += float(self._config.gravity)
        safe_ground = self.safe_ground_y()
        entity.y = min(safe_ground, entity.y + entity.velocity)
        if entity.y >= safe_ground:
            entity.velocity = 0.0
            entity.y = safe_ground

    def _is_out_of_bounds(self) -> bool:
        entity = self._entity
        return entity.y < 0.0 or entity.y + entity.height > float(self._config.playfield_height)

    # -----------------
    # Transitions
    # -----------------

    def _fail(self, reason: str) -> None:
        logger.info("Session failed (%s) at score %d", reason, self._score)
        self._enter_terminal(SessionState.FAILED)

    def _complete(self) -> None:
        logger.info("Session completed with score %d", self._score)
        self._enter_terminal(SessionState.COMPLETED)

    def _enter_terminal(self, state: SessionState) -> None:
        self._speed = 0.0
        self._entity.velocity = 0.0
        self._entity.gravity_enabled = False
        self._sequencer.advance_song_cursor()
        self._set_state(state)

    def _set_state(self, state: SessionState) -> None:
        if state != self._state:
            logger.info("Session state %s -> %s", self._state.value, state.value)
        self._state = state

    def _new_entity(self) -> Entity:
        return Entity(
            x=float(self._config.entity_x),
            y=float(self._config.entity_start_y),
            width=float(self._config.entity_width),
            height=float(self._config.entity_height),
        )


def _run_unit_tests() -> None:
    from lanes import lane_by_name

    config = GameConfig()
    simulation = GameSimulation(config, MelodySequencer())

    assert simulation.step().state == SessionState.IDLE

    simulation.request_start()
    first = simulation.step()
    assert first.state == SessionState.RUNNING
    assert len(simulation.obstacles) == 1
    assert simulation.obstacles[0].lane.name == "Do3"

    do3 = lane_by_name("Do3")
    simulation.submit_pitch(do3.frequency_hz)
    for _ in range(600):
        simulation.step()
    assert simulation.state == SessionState.RUNNING
    assert simulation.score == 1

    simulation.submit_pitch(lane_by_name("Do4").frequency_hz)
    while simulation.state == SessionState.RUNNING:
        simulation.step()
    assert simulation.state == SessionState.FAILED
    frozen_y = simulation.entity.y
    simulation.step()
    assert simulation.entity.y == frozen_y

    simulation.request_reset()
    assert simulation.step().state == SessionState.IDLE
    assert simulation.score == 0 and simulation.obstacles == []


if __name__ == "__main__":
    _run_unit_tests()
    print("game_simulation.py: ok")
