from pathlib import Path

import pytest
from argon2 import PasswordHasher

from inhash.adapters.dev_auth import DevAuthBackend
from inhash.adapters.dev_lms import DevLmsBackend
from inhash.context import AppContext
from inhash.rules.loader import load_rules
from inhash.rules.models import RetryRules, Rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEMO_EMAIL = "student@inha.edu"
DEMO_PASSWORD = "pw123456"
DEMO_STUDENT_ID = "12345678"
DEMO_LMS_PASSWORD = "password"


@pytest.fixture
def rules() -> Rules:
    """The real rules file from the project root."""
    rules_path = PROJECT_ROOT / "rules.yaml"
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules not found at {rules_path}")
    return load_rules(rules_path)


@pytest.fixture
def fast_rules(rules: Rules) -> Rules:
    """Project rules with zero backoff so retry paths run instantly."""
    retry = RetryRules(
        max_attempts=rules.retry.max_attempts, backoff_base_seconds=0, backoff_max_seconds=0
    )
    return rules.model_copy(update={"retry": retry})


@pytest.fixture
def test_data_dir(tmp_path: Path) -> str:
    return str(tmp_path)


@pytest.fixture
def auth_backend() -> DevAuthBackend:
    # Cheapest argon2 parameters; hashing strength is irrelevant here
    backend = DevAuthBackend(hasher=PasswordHasher(time_cost=1, memory_cost=8, parallelism=1))
    backend.add_account(DEMO_EMAIL, DEMO_PASSWORD, user_id="user-1")
    return backend


@pytest.fixture
def lms_backend() -> DevLmsBackend:
    return DevLmsBackend.with_sample_data()


@pytest.fixture
def test_ctx(
    test_data_dir: str,
    fast_rules: Rules,
    auth_backend: DevAuthBackend,
    lms_backend: DevLmsBackend,
) -> AppContext:
    """
    Creates a full AppContext backed by a temporary SQLite DB and dev backends.
    """
    db_path = str(Path(test_data_dir) / fast_rules.storage.db_filename)
    return AppContext.create(
        fast_rules, db_path=db_path, auth_backend=auth_backend, lms_backend=lms_backend
    )
