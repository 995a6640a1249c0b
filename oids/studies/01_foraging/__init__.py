"""
Study 01: Foraging

Minions, resources, one beacon.

Questions to explore:
- How often do minions hold on to a target?
- Which actuators fire, and how often?
- What happens when resources run out?
"""
