"""aiohttp web surface for epaper_calendar."""
