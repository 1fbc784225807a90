"""Hourly production output tracking for worker groups on factory shifts."""
