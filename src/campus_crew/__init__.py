"""Campus Crew: a campus gig marketplace service."""

__version__ = "0.1.0"
