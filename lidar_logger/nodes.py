# nodes.py
from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class MeasurementNode:
    """One sensor reading in physical units. distance_mm == 0 means no return."""
    angle_deg: float
    distance_mm: float
    quality: int


@dataclass(frozen=True)
class AcceptedPoint:
    angle_deg: float
    distance_mm: float
    quality: int


@dataclass(frozen=True)
class AcceptedRecord:
    """A point that survived decimation, stamped for the sinks."""
    timestamp: int
    angle_deg: float
    distance_mm: float
    quality: int
    scan_number: int

    @classmethod
    def stamp(cls, point: AcceptedPoint, timestamp: int, scan_number: int) -> "AcceptedRecord":
        return cls(
            timestamp=timestamp,
            angle_deg=point.angle_deg,
            distance_mm=point.distance_mm,
            quality=point.quality,
            scan_number=scan_number,
        )

    def as_row(self) -> List[str]:
        # repr keeps every digit so a reader gets the same floats back
        return [
            str(self.timestamp),
            repr(float(self.angle_deg)),
            repr(float(self.distance_mm)),
            str(int(self.quality)),
            str(self.scan_number),
        ]

    @classmethod
    def from_row(cls, row: Sequence[str]) -> "AcceptedRecord":
        if len(row) < 5:
            raise ValueError(f"expected 5 fields, got {len(row)}: {row!r}")
        return cls(
            timestamp=int(row[0]),
            angle_deg=float(row[1]),
            distance_mm=float(row[2]),
            quality=int(row[3]),
            scan_number=int(row[4]),
        )
