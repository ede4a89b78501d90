"""HTTP API for the Campus Crew service."""
