"""Synthetic Benchmark Suite for the Lord's paradox simulation.

Purpose: Monte-Carlo runs with known population targets, used as
regression tests for the sampler and estimator battery.

Benchmark Scenarios:
    - scenario1: no mediator-outcome confounding (mod1=0, mod2=mod4=5, mod5=10 kg)
    - scenario2: physical activity confounds baseline and follow-up (mod3=5 kg)
"""
