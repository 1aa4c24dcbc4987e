# normalizer.py
"""
Conversions from the sensor's raw encodings to physical units.

HQ measurement nodes carry the angle as a Q14 fixed-point quarter turn
(``angle_z_q14``, 16384 == 90 degrees) and the distance as Q2 millimeters
(``dist_mm_q2``). Nothing here wraps or clamps: a malformed encoding simply
produces an out-of-range value that the decimator drops.
"""
from .nodes import MeasurementNode

Q14_QUARTER_TURN = 16384.0
Q2_SCALE = 4.0


def q14_to_degrees(angle_z_q14):
    return angle_z_q14 * 90.0 / Q14_QUARTER_TURN


def q2_to_mm(dist_mm_q2):
    return dist_mm_q2 / Q2_SCALE


def from_hq(angle_z_q14, dist_mm_q2, quality) -> MeasurementNode:
    return MeasurementNode(
        angle_deg=q14_to_degrees(angle_z_q14),
        distance_mm=q2_to_mm(dist_mm_q2),
        quality=int(quality),
    )


def from_degrees(angle_deg, distance_mm, quality) -> MeasurementNode:
    """For sources that already decode to degrees / millimeters."""
    return MeasurementNode(
        angle_deg=float(angle_deg),
        distance_mm=float(distance_mm),
        quality=int(quality),
    )
