"""
Worlds for agents to live in.

- flock: Identity-keyed agent registries and spawn recipes
- world: Flocks, beacons and the tick loop
"""
