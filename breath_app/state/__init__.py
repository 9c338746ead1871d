"""
Breathing state machine and exercise runtime.

Walks the phase sequence INHALE -> EXHALE per cycle, ending each round in an
exhale or inhale hold, with a transitional breath and an optional pause
between rounds.
"""
