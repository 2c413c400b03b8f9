"""
Per-epoch loss record returned by `Sequential.train`.

Entries are only written when ``history=True`` is passed. The capacity is
fixed to the number of epochs requested, so a history never grows past the
run that produced it.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Union

from ...domain._errors import ConfigurationError

Number = Union[int, float]


@dataclass
class History:
    """
    Metric values keyed by name, one entry per recorded epoch.

    Fields
    ------
    history : dict[str, list[float]]
        Metric name to per-epoch values in epoch order.
    epoch : list[int]
        Zero-based index of each recorded epoch.
    capacity : Optional[int]
        Maximum number of epochs that can be recorded (None for unbounded).
    """

    history: Dict[str, List[float]] = field(default_factory=dict)
    epoch: List[int] = field(default_factory=list)
    capacity: Optional[int] = None

    def append_epoch(self, epoch_idx: int, logs: Mapping[str, Number]) -> None:
        """
        Record the metrics of one finished epoch.

        Raises
        ------
        ConfigurationError
            If the history is already at capacity.
        """
        if self.capacity is not None and len(self.epoch) >= self.capacity:
            raise ConfigurationError(
                f"History is full ({self.capacity} epochs)",
                argument="epoch_idx",
                value=epoch_idx,
            )
        self.epoch.append(int(epoch_idx))
        for k, v in logs.items():
            self.history.setdefault(k, []).append(float(v))

    def last(self) -> Dict[str, float]:
        """Return metrics from the most recent epoch."""
        return {k: float(vs[-1]) for k, vs in self.history.items() if vs}

    @property
    def loss(self) -> List[float]:
        """Per-epoch loss values (empty if none were recorded)."""
        return list(self.history.get("loss", []))

    def __len__(self) -> int:
        return len(self.epoch)
