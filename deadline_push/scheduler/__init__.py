"""Scheduler module for the hourly reminder dispatch.

Schedule overview:
  - every hour at :00 - Deliver reminders due this hour
"""
