"""Circuitry — per-class AI tutors composed from teacher settings and class content."""
