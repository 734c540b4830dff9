from dataclasses import dataclass

from .helpers import validate_identifier


@dataclass
class StoreConfig:
    table_name: str = "entities"
    max_batch_size: int = 500

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        validate_identifier(self.table_name, "table_name")
        if self.max_batch_size <= 0:
            raise ValueError("max_batch_size must be > 0")
