# common/interfaces.py
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import typing as t

import numpy as np

from .gate_matrix import GateMatrix


@dataclass
class DeviceAllocation:
    """Handle to one accelerator-resident buffer."""
    address: int
    nbytes: int
    label: str = ""
    released: bool = field(default=False, compare=False)


class AcceleratorBackend(ABC):
    name: str = "abstract"

    @abstractmethod
    def allocate(self, nbytes: int, label: str = "") -> DeviceAllocation:
        """Allocate an uninitialized device buffer of ``nbytes`` bytes."""
        pass

    @abstractmethod
    def upload(self, allocation: DeviceAllocation, host: np.ndarray) -> None:
        """Copy a host array into a device buffer and wait for completion."""
        pass

    @abstractmethod
    def launch(self, source: DeviceAllocation, dest: DeviceAllocation,
               gate: GateMatrix, target_bit: int, num_amplitudes: int,
               group_size: int, dtype: np.dtype) -> None:
        """Dispatch one unit of work per index and return once all have completed."""
        pass

    @abstractmethod
    def download(self, allocation: DeviceAllocation, host: np.ndarray) -> None:
        """Copy a device buffer into a host array and wait for completion."""
        pass

    @abstractmethod
    def release(self, allocation: DeviceAllocation) -> None:
        """Free a device buffer."""
        pass

    @abstractmethod
    def describe(self) -> t.Dict[str, t.Any]:
        """Return backend and device details for logging."""
        pass
