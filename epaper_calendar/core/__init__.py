"""Core infrastructure for epaper_calendar: config, errors, time, HTTP and locking."""
