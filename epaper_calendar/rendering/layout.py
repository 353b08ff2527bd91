"""Fixed 400x300 layout for the three-colour e-paper panel.

Regions, top to bottom and left to right::

    +--------+-------------------------------+
    |  day   | icon  temperature             |
    |  box   |-------------------------------|
    +--------+ 15 JUN 2025—holiday    (bar) |
    |  MON   | 09:00 event name        (row) |
    |  YY    | ...                           |
    +--------+-------------------------------+
    | Last update: ...              (footer) |
    +----------------------------------------+
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import Optional

from PIL import Image, ImageDraw

from ..calendar.models import DateEntry, WeatherSnapshot
from .fonts import Font, FontSet
from .text import truncate_text
from .weather_icons import DEFAULT_GLYPH, glyph_for

logger = logging.getLogger(__name__)

Color = tuple[int, int, int]

WIDTH = 400
HEIGHT = 300
BORDER = 10

RED: Color = (255, 0, 0)
BLACK: Color = (0, 0, 0)
GRAY: Color = (137, 136, 136)
WHITE: Color = (255, 255, 255)

MONTH_ABBR = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")

MAX_VISIBLE_CHARS = 32
WINDOW_DAYS = 9

# Date block
DATE_BOX_LEFT = 2 * BORDER
DATE_BOX_TOP = BORDER
DATE_BOX_WIDTH = 90
DATE_BOX_HEIGHT = 120
DOT_SPACING = 4
LEFT_COLUMN_WIDTH = DATE_BOX_WIDTH + 4 * BORDER

# Weather
WEATHER_LEFT = LEFT_COLUMN_WIDTH + 2 * BORDER
WEATHER_TOP = BORDER
ICON_SIZE = 45
TEMPERATURE_LEFT = WEATHER_LEFT + ICON_SIZE + BORDER

# Agenda
STATUS_HEIGHT = 40
AGENDA_TOP = STATUS_HEIGHT + 2 * BORDER
AGENDA_LEFT = LEFT_COLUMN_WIDTH + BORDER
AGENDA_RIGHT = WIDTH - BORDER
AGENDA_FONT_SIZE = 16
HEADER_HEIGHT = 24
EVENT_HEIGHT = AGENDA_FONT_SIZE + 5
TEXT_INSET = BORDER
TIME_COLUMN_WIDTH = 40

# Footer
FOOTER_TOP = HEIGHT - 25
FOOTER_FONT_SIZE = 12


@dataclass(frozen=True)
class RenderSnapshot:
    """Everything one render needs, copied out of the store."""

    now: datetime.datetime  # aware, in the display zone
    entries: list[DateEntry] = field(default_factory=list)
    weather: Optional[WeatherSnapshot] = None

    @property
    def today(self) -> datetime.date:
        return self.now.date()

    @property
    def today_entry(self) -> Optional[DateEntry]:
        for entry in self.entries:
            if entry.date == self.today:
                return entry
        return None

    @property
    def is_today_holiday(self) -> bool:
        """Weekend or a labelled holiday."""
        if self.today.weekday() >= 5:
            return True
        entry = self.today_entry
        return entry is not None and entry.is_holiday

    @property
    def is_today_event_day(self) -> bool:
        entry = self.today_entry
        return entry is not None and bool(entry.events)


def format_header(entry: DateEntry) -> str:
    """``15 JUN 2025`` plus the holiday label, truncated."""
    day = entry.date
    text = f"{day.day} {MONTH_ABBR[day.month - 1]} {day.year}"
    if entry.holiday:
        text = f"{text}—{entry.holiday}"
    return truncate_text(text, MAX_VISIBLE_CHARS)


def format_temperature(weather: WeatherSnapshot) -> str:
    return f"{weather.attributes.temperature:.1f}{weather.attributes.temperature_unit}"


def format_footer(now: datetime.datetime) -> str:
    return f"Last update: {now.replace(microsecond=0).strftime('%Y-%m-%d %H:%M:%S')}"


class PageLayout:
    """Draws a RenderSnapshot onto an RGB canvas."""

    def __init__(self, fonts: FontSet) -> None:
        self.fonts = fonts

    def compose(self, snapshot: RenderSnapshot) -> Image.Image:
        """Draw every region and return the canvas."""
        canvas = Image.new("RGB", (WIDTH, HEIGHT), WHITE)
        draw = ImageDraw.Draw(canvas)

        self._draw_date_block(draw, snapshot)
        self._draw_weather(draw, snapshot.weather)
        rows = self._draw_agenda(draw, snapshot.entries)
        self._draw_footer(draw, snapshot.now)

        logger.debug("Composed page for %s with %d agenda rows", snapshot.today, rows)
        return canvas

    @staticmethod
    def _draw_centered(
        draw: ImageDraw.ImageDraw,
        text: str,
        font: Font,
        center: tuple[float, float],
        fill: Color,
    ) -> None:
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        x = center[0] - (right - left) / 2 - left
        y = center[1] - (bottom - top) / 2 - top
        draw.text((x, y), text, font=font, fill=fill)

    def _draw_date_block(self, draw: ImageDraw.ImageDraw, snapshot: RenderSnapshot) -> None:
        today = snapshot.today
        color = RED if snapshot.is_today_holiday else BLACK
        x0, y0 = DATE_BOX_LEFT, DATE_BOX_TOP
        x1, y1 = x0 + DATE_BOX_WIDTH - 1, y0 + DATE_BOX_HEIGHT - 1
        draw.rectangle((x0, y0, x1, y1), fill=color)

        if snapshot.is_today_event_day:
            # small white crosses on a fixed grid
            for x in range(x0 + DOT_SPACING // 2, x1, DOT_SPACING):
                for y in range(y0 + DOT_SPACING // 2, y1, DOT_SPACING):
                    draw.point([(x, y), (x - 1, y), (x + 1, y), (x, y - 1), (x, y + 1)], fill=WHITE)

        center_x = x0 + DATE_BOX_WIDTH / 2
        self._draw_centered(
            draw,
            str(today.day),
            self.fonts.get("display", 64),
            (center_x, y0 + DATE_BOX_HEIGHT / 2),
            WHITE,
        )
        self._draw_centered(
            draw,
            MONTH_ABBR[today.month - 1],
            self.fonts.get("display", 36),
            (center_x, y1 + 28),
            BLACK,
        )
        self._draw_centered(
            draw,
            f"{today.year % 100:02d}",
            self.fonts.get("display", 48),
            (center_x, y1 + 82),
            BLACK,
        )

    def _draw_weather(self, draw: ImageDraw.ImageDraw, weather: Optional[WeatherSnapshot]) -> None:
        glyph = glyph_for(weather.state if weather is not None else None)
        if self.fonts.has_icons and glyph is not DEFAULT_GLYPH:
            draw.text(
                (WEATHER_LEFT, WEATHER_TOP),
                glyph.icon,
                font=self.fonts.get("icons", ICON_SIZE),
                fill=BLACK,
            )
        else:
            draw.text((WEATHER_LEFT, WEATHER_TOP + 10), glyph.label, font=self.fonts.get("bold", 20), fill=BLACK)

        if weather is None:
            return
        draw.text(
            (TEMPERATURE_LEFT, WEATHER_TOP + 7),
            format_temperature(weather),
            font=self.fonts.get("semibold", 30),
            fill=BLACK,
        )

    def _draw_agenda(self, draw: ImageDraw.ImageDraw, entries: list[DateEntry]) -> int:
        """Draw header bars and event rows until the footer strip is reached.

        Returns:
            Number of rows drawn
        """
        header_font = self.fonts.get("bold", AGENDA_FONT_SIZE)
        event_font = self.fonts.get("regular", AGENDA_FONT_SIZE)
        y = AGENDA_TOP
        rows = 0

        for entry in entries:
            if y + HEADER_HEIGHT > FOOTER_TOP:
                return rows
            bar_color = RED if entry.is_holiday else BLACK
            draw.rectangle((AGENDA_LEFT, y, AGENDA_RIGHT, y + HEADER_HEIGHT - 1), fill=bar_color)
            draw.text(
                (AGENDA_LEFT + TEXT_INSET, y + 3),
                format_header(entry),
                font=header_font,
                fill=WHITE,
            )
            y += HEADER_HEIGHT
            rows += 1

            text_color = RED if entry.is_holiday else BLACK
            for _event_id, event in entry.sorted_events():
                if y + EVENT_HEIGHT > FOOTER_TOP:
                    return rows
                draw.rectangle((AGENDA_LEFT, y, AGENDA_RIGHT, y + EVENT_HEIGHT - 1), fill=GRAY)
                draw.text(
                    (AGENDA_LEFT + TEXT_INSET, y + 2),
                    event.start.strftime("%H:%M"),
                    font=event_font,
                    fill=text_color,
                )
                draw.text(
                    (AGENDA_LEFT + TEXT_INSET + TIME_COLUMN_WIDTH + TEXT_INSET, y + 2),
                    truncate_text(event.name, MAX_VISIBLE_CHARS),
                    font=event_font,
                    fill=text_color,
                )
                y += EVENT_HEIGHT
                rows += 1

        return rows

    def _draw_footer(self, draw: ImageDraw.ImageDraw, now: datetime.datetime) -> None:
        draw.rectangle((0, FOOTER_TOP, WIDTH - 1, HEIGHT - 1), fill=GRAY)
        draw.text(
            (BORDER, FOOTER_TOP + 6),
            format_footer(now),
            font=self.fonts.get("regular", FOOTER_FONT_SIZE),
            fill=BLACK,
        )
