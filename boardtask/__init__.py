"""Boardtask: project task-graph consistency tooling."""
