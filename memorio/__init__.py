"""
memorio - adaptive mastery tracking.

Bayesian Knowledge Tracing for per-skill mastery belief, an SM-2
scheduler for review timing, and difficulty recommendation on top of
both, persisted per (user, skill type, concept).
"""

__version__ = "1.0.0"
