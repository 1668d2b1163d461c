"""
Bayesian Knowledge Tracing (BKT) estimator.

Two-state hidden Markov model (known / unknown) updated once per
observed attempt:

    Correct:   P(L|obs) = P(L)(1-S) / [P(L)(1-S) + (1-P(L))G]
    Incorrect: P(L|obs) = P(L)S / [P(L)S + (1-P(L))(1-G)]
    Then:      P(L_new) = P(L|obs) + (1 - P(L|obs)) * T

Where L = known, S = slip, G = guess, T = learn rate.
"""

from __future__ import annotations

from .errors import ValidationError

MASTERY_THRESHOLD = 0.95
PRACTICE_THRESHOLD = 0.7


def validate_probability(name: str, value: float) -> float:
    """Reject probabilities outside [0, 1]."""
    if not 0.0 <= value <= 1.0:
        raise ValidationError(f"{name} must be between 0 and 1, got {value}")
    return value


def bkt_update(
    p_known: float,
    p_slip: float,
    p_guess: float,
    p_learn: float,
    was_correct: bool,
) -> float:
    """
    Apply one BKT step: evidence (Bayes' rule), then learning transition.

    Args:
        p_known: Prior belief that the skill is known
        p_slip: P(incorrect | known)
        p_guess: P(correct | unknown)
        p_learn: P(unknown -> known) per attempt
        was_correct: Observed outcome

    Returns:
        Updated P(known), clamped to [0, 1]
    """
    validate_probability("p_known", p_known)
    validate_probability("p_slip", p_slip)
    validate_probability("p_guess", p_guess)
    validate_probability("p_learn", p_learn)

    if was_correct:
        likelihood_known = 1.0 - p_slip
        likelihood_unknown = p_guess
    else:
        likelihood_known = p_slip
        likelihood_unknown = 1.0 - p_guess

    evidence = p_known * likelihood_known + (1.0 - p_known) * likelihood_unknown

    if evidence == 0:
        # Outcome impossible under both states: nothing to learn from it
        posterior = p_known
    else:
        posterior = (p_known * likelihood_known) / evidence

    p_new = posterior + (1.0 - posterior) * p_learn
    return max(0.0, min(1.0, p_new))


def is_mastered(p_known: float) -> bool:
    """A skill is mastered once P(known) reaches the mastery threshold."""
    return p_known >= MASTERY_THRESHOLD


def needs_practice(p_known: float) -> bool:
    """Skills below the practice threshold are surfaced for extra practice."""
    return p_known < PRACTICE_THRESHOLD


__all__ = [
    "MASTERY_THRESHOLD",
    "PRACTICE_THRESHOLD",
    "bkt_update",
    "is_mastered",
    "needs_practice",
    "validate_probability",
]
