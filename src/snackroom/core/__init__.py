"""Session orchestration core."""
