"""Worksheet domain: shift schedules, output targets and time conversion."""
