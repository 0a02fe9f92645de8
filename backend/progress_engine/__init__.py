"""Learner Progress Engine: progress tracking, daily streaks and achievements."""
