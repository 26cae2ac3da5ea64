"""QuestFit backend: Polar Accesslink sync, gamification and instructor dashboard."""
