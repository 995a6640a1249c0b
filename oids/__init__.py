"""
oids: procedurally built creatures with charge-driven reflexes.

Bodies are trees of rigid segments grown from simple shapes. Each segment
holds a charge that builds and discharges; a reflex controller reads the
world and decides which parts fire.
"""

__version__ = "0.1.0"
