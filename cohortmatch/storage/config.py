from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class StorageConfig:
    """
    Selects the profile store and interaction log backing the API.

    ``backend`` is ``"memory"`` (process-local, lost on restart) or
    ``"table"`` (CSV tables under ``data_dir``).
    """

    backend: str = os.getenv("COHORTMATCH_STORE", "memory")
    data_dir: Path = Path(
        os.getenv(
            "COHORTMATCH_DATA_DIR",
            str(Path(__file__).resolve().parent.parent / "data"),
        )
    )


DEFAULT_STORAGE_CONFIG = StorageConfig()
