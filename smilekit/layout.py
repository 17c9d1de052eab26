"""
2D position data for an external renderer.

`get_position_data` places every group of a molecule on a plane: rings as
regular polygons, other groups radially around the group they hang from,
nudged aside when their boxes would overlap. Text size is supplied by a
``measure`` callable, so no drawing or font handling happens here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable

from smilekit.types import AtomGroup, Molecule, Ring

Measure = Callable[[AtomGroup], tuple[float, float]]

_MAX_NUDGES = 64


@dataclass(frozen=True)
class LayoutOptions:
    """Geometry settings.

    Attributes:
        bond_length: Distance between bonded group centres, before text widths.
        atom_padding: Extra clearance around each box for collision tests.
        molecule_padding: Margin around the whole molecule.
        show_implicit: Place implicit groups too.
        char_width: Width per character for the default measure.
        line_height: Box height for the default measure.
    """

    bond_length: float = 40.0
    atom_padding: float = 4.0
    molecule_padding: float = 10.0
    show_implicit: bool = False
    char_width: float = 8.0
    line_height: float = 14.0


@dataclass(slots=True)
class AtomBox:
    """Centre and size of one group's label."""

    x: float
    y: float
    w: float
    h: float

    def overlaps(self, other: AtomBox, padding: float) -> bool:
        return (
            abs(self.x - other.x) * 2 < self.w + other.w + 4 * padding
            and abs(self.y - other.y) * 2 < self.h + other.h + 4 * padding
        )


@dataclass(slots=True)
class RingBounds:
    min_x: float
    max_x: float
    min_y: float
    max_y: float


@dataclass
class PositionData:
    """Layout record of one molecule.

    Attributes:
        groups: Group identity to label box.
        rings: Ring identity to bounding box.
        angles: Group identity to the (start, end, exclusive) angular sector
            its substituents were spread over.
        dim: Overall (width, height), padding included.
    """

    groups: dict[int, AtomBox] = field(default_factory=dict)
    rings: dict[int, RingBounds] = field(default_factory=dict)
    angles: dict[int, tuple[float, float, bool]] = field(default_factory=dict)
    dim: tuple[float, float] = (0.0, 0.0)


def text_measure(options: LayoutOptions) -> Measure:
    """Fixed-width estimate of a group's label size."""
    def measure(group: AtomGroup) -> tuple[float, float]:
        return len(group.fancy_string()) * options.char_width, options.line_height

    return measure


def _polar(length: float, angle: float) -> tuple[float, float]:
    return length * math.cos(angle), length * math.sin(angle)


def _place_ring(
    ring: Ring,
    entry: int,
    from_angle: float,
    boxes: dict[int, AtomBox],
    placed: set[int],
    bond_length: float,
) -> RingBounds:
    """Lay a ring out as a regular polygon through the entry group."""
    size = len(ring.members)
    radius = bond_length / (2 * math.sin(math.pi / size))
    origin = boxes[entry]
    dx, dy = _polar(radius, from_angle)
    cx, cy = origin.x + dx, origin.y + dy
    start = ring.members.index(entry)
    phase = from_angle + math.pi
    for k in range(size):
        gid = ring.members[(start + k) % size]
        if gid in placed and gid != entry:
            continue
        px, py = _polar(radius, phase + 2 * math.pi * k / size)
        boxes[gid].x, boxes[gid].y = cx + px, cy + py
        placed.add(gid)
    xs = [boxes[m].x for m in ring.members]
    ys = [boxes[m].y for m in ring.members]
    return RingBounds(min(xs), max(xs), min(ys), max(ys))


def get_position_data(
    mol: Molecule,
    options: LayoutOptions | None = None,
    measure: Measure | None = None,
) -> PositionData:
    """Compute positions for every (visible) group of a molecule.

    Args:
        mol: Molecule to lay out.
        options: Geometry settings; defaults to `LayoutOptions()`.
        measure: Returns (width, height) of a group's label.

    Returns:
        Position data with all coordinates non-negative.
    """
    options = options or LayoutOptions()
    measure = measure or text_measure(options)
    visible = [
        gid for gid, g in mol.groups.items() if options.show_implicit or not g.is_implicit
    ]
    data = PositionData()
    if not visible:
        return data

    boxes = data.groups
    for gid in visible:
        w, h = measure(mol.groups[gid])
        boxes[gid] = AtomBox(math.nan, math.nan, w, h)

    ring_of: dict[int, Ring] = {}
    for ring in mol.rings:
        if len(ring.members) < 3:
            continue
        for member in ring.members:
            ring_of.setdefault(member, ring)

    placed: set[int] = set()
    done: set[int] = set()

    for root in visible:
        if root in placed:
            continue
        # Each further component starts to the right of everything placed so far
        right = max((b.x + b.w for b in boxes.values() if b.x == b.x), default=0.0)
        boxes[root].x, boxes[root].y = right + options.bond_length, 0.0
        placed.add(root)
        stack: list[tuple[int, float, bool]] = [(root, 0.0, True)]

        while stack:
            gid, from_angle, is_root = stack.pop()
            if gid in done:
                continue
            done.add(gid)
            box = boxes[gid]

            ring = ring_of.get(gid)
            if ring is not None and ring.id not in data.rings:
                data.rings[ring.id] = _place_ring(
                    ring, gid, from_angle, boxes, placed, options.bond_length,
                )

            targets = [
                b.dest for b in mol.all_bonds(gid)
                if b.dest in boxes and b.dest not in placed
            ]
            if ring is not None and ring.id in data.rings:
                bounds = data.rings[ring.id]
                cx = (bounds.min_x + bounds.max_x) / 2
                cy = (bounds.min_y + bounds.max_y) / 2
                centre = math.atan2(box.y - cy, box.x - cx)
                sector = (centre - math.pi / 3, centre + math.pi / 3, False)
            elif is_root:
                sector = (0.0, 2 * math.pi, True)
            else:
                sector = (from_angle - math.pi / 3, from_angle + math.pi / 3, False)
            data.angles[gid] = sector

            start, end, exclusive = sector
            count = len(targets)
            if exclusive:
                step = (end - start) / max(count, 1)
                angles = [start + step * i for i in range(count)]
            elif count == 1:
                step = (end - start) / 2
                angles = [(start + end) / 2]
            else:
                step = (end - start) / max(count - 1, 1)
                angles = [start + step * i for i in range(count)]

            for dest, angle in zip(targets, angles):
                target = boxes[dest]
                length = options.bond_length + (box.w + target.w) / 2
                num, denom = 1, 1
                for _ in range(_MAX_NUDGES):
                    dx, dy = _polar(length, angle)
                    target.x, target.y = box.x + dx, box.y + dy
                    clash = any(
                        other is not target and other.x == other.x
                        and target.overlaps(other, options.atom_padding)
                        for other in boxes.values()
                    )
                    if not clash:
                        break
                    angle += step * num / denom
                    if num >= denom:
                        denom += 1
                        num = 1
                    else:
                        num += 1
                placed.add(dest)
                stack.append((dest, angle % (2 * math.pi), False))

            # Ring members placed by the polygon still need their substituents
            if ring is not None:
                for member in ring.members:
                    if member in boxes and member not in done:
                        stack.append((member, from_angle, False))

    _normalise(data, options.molecule_padding)
    return data


def _normalise(data: PositionData, padding: float) -> None:
    """Shift everything so the padded bounding box starts at (0, 0)."""
    boxes = data.groups.values()
    min_x = min(b.x - b.w / 2 for b in boxes)
    max_x = max(b.x + b.w / 2 for b in boxes)
    min_y = min(b.y - b.h / 2 for b in boxes)
    max_y = max(b.y + b.h / 2 for b in boxes)
    for bounds in data.rings.values():
        min_x, max_x = min(min_x, bounds.min_x), max(max_x, bounds.max_x)
        min_y, max_y = min(min_y, bounds.min_y), max(max_y, bounds.max_y)
    min_x -= padding
    min_y -= padding
    max_x += padding
    max_y += padding

    for box in boxes:
        box.x -= min_x
        box.y -= min_y
    for bounds in data.rings.values():
        bounds.min_x -= min_x
        bounds.max_x -= min_x
        bounds.min_y -= min_y
        bounds.max_y -= min_y
    data.dim = (max_x - min_x, max_y - min_y)
