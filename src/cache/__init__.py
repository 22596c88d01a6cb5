"""Time-boxed snapshot cache."""
