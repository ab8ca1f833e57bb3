"""
Deterministic pricing core.

Pure Python math. No AI, no network.
Given a JobSpec and a Tariff, produce a reproducible price range.
"""
