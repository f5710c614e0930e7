"""Table inventory lookups for dinecheck."""

from collections.abc import Iterable

from dinecheck.models import Table


class TableInventory:
    """Index over the venue's tables, built once per detection run."""

    def __init__(self, tables: Iterable[Table]):
        self._tables: dict[int, Table] = {table.id: table for table in tables}
        # Smallest first, ties by id, so fitting lookups are deterministic
        self._by_capacity: list[Table] = sorted(
            self._tables.values(), key=lambda t: (t.capacity, t.id)
        )

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, table_id: object) -> bool:
        return table_id in self._tables

    def capacity_of(self, table_id: int) -> int | None:
        table = self._tables.get(table_id)
        return table.capacity if table is not None else None

    def max_capacity(self) -> int:
        """Largest single-table capacity, 0 for an empty inventory."""
        return self._by_capacity[-1].capacity if self._by_capacity else 0

    def total_capacity(self) -> int:
        return sum(t.capacity for t in self._by_capacity)

    def tables(self) -> list[Table]:
        """All tables, smallest capacity first."""
        return list(self._by_capacity)

    def smallest_fitting(self, guest_count: int, exclude: int | None = None) -> Table | None:
        """Return the lowest-capacity table seating guest_count, skipping `exclude`."""
        for table in self._by_capacity:
            if table.capacity >= guest_count and table.id != exclude:
                return table
        return None
