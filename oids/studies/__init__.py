"""
Studies: runnable experiments.

Each study builds a world, lets it run, and reports what happened.

Study progression:
1. Foraging - minions hunting resources, beacons as fallback
"""
