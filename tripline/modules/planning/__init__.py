"""modules/planning: corridor, scoring and the day-by-day greedy planner."""
