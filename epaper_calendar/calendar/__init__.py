"""Feed models, parsers and fetchers for epaper_calendar."""
