# -*- coding: utf-8 -*-
########################
# overlay_renderer.py
########################
# Purpose:
# - Gameplay overlay Qt widget.
# - Paints the latest GameSnapshot: lane guides, obstacles with syllables, the
#   entity, the live pitch indicator, the score HUD and the status overlays.
#
########################
# Key Logic:
# - The widget never reads game state directly. The controller pushes a frozen
#   GameSnapshot and the latest PitchObservation after every tick.
# - Playfield coordinates are letterboxed into the widget with a uniform scale.
# - Obstacles are a top and a bottom block around the gap in the lane colour.
#   The syllable is drawn just above the gap.
# - The entity tilts with its fall velocity while gravity is enabled.
# - Overlay text comes from presentation.status_overlay_lines.
#
########################
# Interfaces:
# Public dataclasses:
# - OverlayConfig(background_color: str, ground_color: str, entity_color: str, lane_line_alpha: int, ...)
#
# Public classes:
# - class GameplayOverlayWidget(PyQt6.QtWidgets.QWidget)
#   - set_snapshot(snapshot: Optional[GameSnapshot]) -> None
#   - set_observation(observation: PitchObservation) -> None
#   - set_listening(is_listening: bool) -> None
#   - set_story_song_names(names: Sequence[str]) -> None
#
# Inputs:
# - GameSnapshot and PitchObservation from GameplayController.
#
# Outputs:
# - Painted overlay visuals on the widget surface.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import math
from pathlib import Path
from typing import List, Optional, Sequence

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QFont, QPainter, QPen, QPixmap
from PyQt6.QtWidgets import QWidget

from gameplay_models import GameSnapshot, SessionState
from lanes import LANES
from pitch_tracker import NO_PITCH, PitchObservation
import paths
import presentation


@dataclass(frozen=True)
class OverlayConfig:
    background_color: str = "#87CEEB"
    ground_color: str = "#6B4F2A"
    entity_color: str = "#F7DC6F"
    text_color: str = "#1B1B1B"
    lane_line_alpha: int = 150
    syllable_font_size: int = 16
    hud_font_size: int = 18
    overlay_font_size: int = 28
    entity_image_name: str = "entity.png"


class GameplayOverlayWidget(QWidget):
    def __init__(
        self,
        *,
        config: Optional[OverlayConfig] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._config = config or OverlayConfig()
        self._snapshot: Optional[GameSnapshot] = None
        self._observation: PitchObservation = NO_PITCH
        self._is_listening = False
        self._story_song_names: List[str] = []
        self._entity_pixmap = self._load_entity_pixmap(paths.images_dir() / self._config.entity_image_name)

        self.setMinimumSize(600, 300)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

    def set_snapshot(self, snapshot: Optional[GameSnapshot]) -> None:
        self._snapshot = snapshot
        self.update()

    def set_observation(self, observation: PitchObservation) -> None:
        self._observation = observation
        self.update()

    def set_listening(self, is_listening: bool) -> None:
        self._is_listening = bool(is_listening)
        self.update()

    def set_story_song_names(self, names: Sequence[str]) -> None:
        self._story_song_names = [str(name) for name in names]

    @staticmethod
    def _load_entity_pixmap(image_path: Path) -> Optional[QPixmap]:
        if not image_path.exists():
            return None
        pixmap = QPixmap(str(image_path))
        if pixmap.isNull():
            return None
        return pixmap

    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.fillRect(self.rect(), QBrush(QColor(12, 12, 16)))

        snapshot = self._snapshot
        if snapshot is not None:
            scale, offset_x, offset_y = presentation.playfield_scale(
                float(self.width()),
                float(self.height()),
                snapshot.playfield_width,
                snapshot.playfield_height,
            )
            painter.save()
            painter.translate(offset_x, offset_y)
            painter.scale(scale, scale)
            self._paint_playfield(painter, snapshot)
            painter.restore()

        self._paint_status_overlay(painter)
        painter.end()

    def _paint_playfield(self, painter: QPainter, snapshot: GameSnapshot) -> None:
        config = self._config
        width = float(snapshot.playfield_width)
        height = float(snapshot.playfield_height)

        painter.fillRect(QRectF(0.0, 0.0, width, height), QBrush(QColor(config.background_color)))
        painter.fillRect(QRectF(0.0, height - 2.0, width, 2.0), QBrush(QColor(config.ground_color)))

        self._paint_lane_guides(painter, width)
        self._paint_obstacles(painter, snapshot)
        self._paint_entity(painter, snapshot)
        self._paint_pitch_indicator(painter, width)
        self._paint_hud(painter, snapshot)

    def _paint_lane_guides(self, painter: QPainter, width: float) -> None:
        painter.save()
        painter.setFont(QFont("Arial", 12))
        for lane in LANES:
            color = QColor(lane.color)
            color.setAlpha(int(self._config.lane_line_alpha))
            painter.setPen(QPen(color, 2.0, Qt.PenStyle.DashLine))
            painter.drawLine(QPointF(0.0, lane.line_y), QPointF(width, lane.line_y))
            painter.setPen(QPen(QColor(lane.color)))
            painter.drawText(QPointF(6.0, lane.line_y - 4.0), lane.name)
        painter.restore()

    def _paint_obstacles(self, painter: QPainter, snapshot: GameSnapshot) -> None:
        config = self._config
        height = float(snapshot.playfield_height)

        painter.save()
        painter.setFont(QFont("Arial", int(config.syllable_font_size), weight=QFont.Weight.Bold))
        for obstacle in snapshot.obstacles:
            color = QColor(obstacle.color)
            painter.setPen(QPen(color.darker(140), 2.0))
            painter.setBrush(QBrush(color))
            painter.drawRect(QRectF(obstacle.x, 0.0, obstacle.width, obstacle.gap_top))
            painter.drawRect(QRectF(obstacle.x, obstacle.gap_bottom, obstacle.width, height - obstacle.gap_bottom))

            if obstacle.syllable:
                painter.setPen(QPen(QColor(config.text_color)))
                text_rect = QRectF(obstacle.x - 40.0, obstacle.gap_top - 26.0, obstacle.width + 80.0, 24.0)
                painter.drawText(text_rect, int(Qt.AlignmentFlag.AlignCenter), obstacle.syllable)
        painter.restore()

    def _paint_entity(self, painter: QPainter, snapshot: GameSnapshot) -> None:
        entity = snapshot.entity
        tilt = presentation.entity_tilt_radians(entity.velocity, entity.gravity_enabled)

        painter.save()
        painter.translate(entity.x + entity.width / 2.0, entity.y + entity.height / 2.0)
        painter.rotate(math.degrees(tilt))
        target = QRectF(-entity.width / 2.0, -entity.height / 2.0, entity.width, entity.height)
        if self._entity_pixmap is not None:
            painter.drawPixmap(target.toRect(), self._entity_pixmap)
        else:
            painter.setPen(QPen(QColor(40, 40, 40), 2.0))
            painter.setBrush(QBrush(QColor(self._config.entity_color)))
            painter.drawEllipse(target)
        painter.restore()

    def _paint_pitch_indicator(self, painter: QPainter, width: float) -> None:
        indicator = presentation.pitch_indicator(self._observation.pitch_hz)
        if indicator is None:
            return

        painter.save()
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(QColor(indicator.color)))
        painter.drawEllipse(QPointF(width - 30.0, indicator.y), 10.0, 10.0)
        painter.setPen(QPen(QColor(self._config.text_color)))
        painter.setFont(QFont("Arial", 11))
        painter.drawText(QPointF(width - 110.0, indicator.y + 4.0), indicator.label)
        painter.restore()

    def _paint_hud(self, painter: QPainter, snapshot: GameSnapshot) -> None:
        painter.save()
        painter.setPen(QPen(QColor(self._config.text_color)))
        painter.setFont(QFont("Arial", int(self._config.hud_font_size), weight=QFont.Weight.Bold))
        painter.drawText(QPointF(12.0, 30.0), presentation.score_hud_text(snapshot))
        painter.restore()

    def _paint_status_overlay(self, painter: QPainter) -> None:
        lines = presentation.status_overlay_lines(self._snapshot, self._is_listening, self._story_song_names)
        if not lines:
            return

        painter.save()
        painter.fillRect(self.rect(), QBrush(QColor(0, 0, 0, 140)))
        is_game_over = self._snapshot is not None and self._snapshot.state == SessionState.FAILED
        title_color = QColor(255, 90, 90) if is_game_over else QColor(250, 250, 250)

        font_size = int(self._config.overlay_font_size)
        line_height = font_size * 1.6
        top = float(self.height()) / 2.0 - (len(lines) * line_height) / 2.0
        for line_index, line in enumerate(lines):
            is_title = line_index == 0
            painter.setPen(QPen(title_color if is_title else QColor(235, 235, 235)))
            painter.setFont(QFont("Arial", font_size if is_title else int(font_size * 0.6), weight=QFont.Weight.Bold))
            painter.drawText(
                QRectF(0.0, top + line_index * line_height, float(self.width()), line_height),
                int(Qt.AlignmentFlag.AlignCenter),
                line,
            )
        painter.restore()
