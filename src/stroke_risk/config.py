from dataclasses import dataclass, field
from typing import Any, Dict
import yaml


@dataclass
class Config:
    """Configuration object loaded from YAML."""
    data: Dict[str, Any] = field(default_factory=dict)
    preprocessing: Dict[str, Any] = field(default_factory=dict)
    model: Dict[str, Any] = field(default_factory=dict)
    validation: Dict[str, Any] = field(default_factory=dict)
    output: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        with open(path, "r") as f:
            cfg = yaml.safe_load(f) or {}
        return cls(**cfg)

    @property
    def random_state(self) -> int:
        return int(self.validation.get("random_state", 123))

    @property
    def target_col(self) -> str:
        return self.data.get("target_col", "stroke")

    @property
    def id_col(self) -> str:
        return self.data.get("id_col", "id")
