"""
autoplan: daily workout routine planner for the Hevy tracker.

Reads recent workouts, picks today's split and exercises, and keeps one
managed routine on the account up to date.
"""

__version__ = "0.1.0"
