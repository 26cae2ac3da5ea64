"""Gamification read model: achievements, reward ladder, sleep goal, baseline."""
