"""Weather condition glyphs from the Material Design Icons font."""

from __future__ import annotations

from typing import NamedTuple, Optional

from ..calendar.models import WeatherCondition


class WeatherGlyph(NamedTuple):
    icon: str  # codepoint in materialdesignicons-webfont.ttf
    label: str  # short text used when the icon font is not available


DEFAULT_GLYPH = WeatherGlyph("?", "?")

WEATHER_GLYPHS: dict[WeatherCondition, WeatherGlyph] = {
    WeatherCondition.CLEAR_NIGHT: WeatherGlyph("\U000f0594", "NGT"),
    WeatherCondition.CLOUDY: WeatherGlyph("\U000f0590", "CLD"),
    WeatherCondition.FOG: WeatherGlyph("\U000f0591", "FOG"),
    WeatherCondition.HAIL: WeatherGlyph("\U000f0592", "HAIL"),
    WeatherCondition.LIGHTNING: WeatherGlyph("\U000f0593", "TSTM"),
    WeatherCondition.LIGHTNING_RAINY: WeatherGlyph("\U000f067e", "TSRA"),
    WeatherCondition.PARTLYCLOUDY: WeatherGlyph("\U000f0595", "PCLD"),
    WeatherCondition.POURING: WeatherGlyph("\U000f0596", "POUR"),
    WeatherCondition.RAINY: WeatherGlyph("\U000f0597", "RAIN"),
    WeatherCondition.SNOWY: WeatherGlyph("\U000f0598", "SNOW"),
    WeatherCondition.SNOWY_RAINY: WeatherGlyph("\U000f067f", "SLT"),
    WeatherCondition.SUNNY: WeatherGlyph("\U000f0599", "SUN"),
    WeatherCondition.WINDY: WeatherGlyph("\U000f059d", "WIND"),
    WeatherCondition.WINDY_VARIANT: WeatherGlyph("\U000f059e", "WIND"),
}


def glyph_for(condition: Optional[WeatherCondition]) -> WeatherGlyph:
    """Glyph for ``condition``; ``exceptional`` and unknown use the default."""
    if condition is None:
        return DEFAULT_GLYPH
    return WEATHER_GLYPHS.get(condition, DEFAULT_GLYPH)
