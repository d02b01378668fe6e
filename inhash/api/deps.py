import os
from functools import lru_cache
from pathlib import Path

from inhash.context import AppContext
from inhash.rules.loader import load_rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("INHASH_DATA_DIR", "./data"))
        self.rules_path = Path(os.environ.get("INHASH_RULES_PATH", self.base_dir / "rules.yaml"))


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Context ---
@lru_cache
def get_context() -> AppContext:
    settings = get_settings()
    rules = load_rules(settings.rules_path)
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    db_path = settings.data_dir / rules.storage.db_filename
    return AppContext.create(rules, db_path=str(db_path))
