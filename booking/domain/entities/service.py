from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Service:
    id: str
    name: str
    category: str
    description: str
    duration_minutes: int
    price: float
    color: str = "#00F5FF"
    requirements: tuple[str, ...] = ()
    is_active: bool = True

    def __post_init__(self) -> None:
        if self.duration_minutes <= 0:
            raise ValueError(f"Service {self.id} duration must be positive")
        if self.price < 0:
            raise ValueError(f"Service {self.id} price must not be negative")
