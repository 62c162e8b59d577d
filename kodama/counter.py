"""Multi-level section numbering."""

from __future__ import annotations

import dataclasses as dc


@dc.dataclass(slots=True)
class Counter:
    """Mutable numbering such as ``1.2.`` for nested numbered sections.

    Examples
    --------
    >>> counter = Counter()
    >>> counter.step()
    >>> child = counter.left_shift()
    >>> child.step()
    >>> child.display()
    '1.1.'
    """

    numbers: list[int] = dc.field(default_factory=lambda: [0])

    def step(self) -> None:
        """Advance the deepest level by one."""
        self.numbers[-1] += 1

    def left_shift(self) -> Counter:
        """Return a copy that numbers one level deeper, starting from zero."""
        return Counter([*self.numbers, 0])

    def copy(self) -> Counter:
        """Return an independent copy at the same level."""
        return Counter(list(self.numbers))

    def display(self) -> str:
        """Render the dot-joined numbering with a trailing dot."""
        return "".join(f"{number}." for number in self.numbers)


__all__ = ["Counter"]
