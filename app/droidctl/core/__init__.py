"""Device debloat orchestration engine."""
