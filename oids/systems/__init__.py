"""
Per-tick systems that read the world and write back to it.

- ai: Targeting and actuator decisions for minions
"""
