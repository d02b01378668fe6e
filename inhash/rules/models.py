from pydantic import BaseModel, Field


class ValidationRules(BaseModel):
    password_min_length: int = Field(default=6, ge=1)
    student_id_max_length: int = Field(default=12, ge=1)

class RetryRules(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    backoff_base_seconds: float = Field(default=0.5, ge=0)
    backoff_max_seconds: float = Field(default=8.0, ge=0)

class TimeoutRules(BaseModel):
    auth_seconds: float = Field(default=10.0, gt=0)
    lms_authenticate_seconds: float = Field(default=15.0, gt=0)
    lms_fetch_seconds: float = Field(default=20.0, gt=0)

class CollectionRules(BaseModel):
    # Share of the progress bar spent on the course list
    course_list_weight: int = Field(default=10, ge=0, le=100)

class BackendRules(BaseModel):
    auth_base_url: str | None = None
    lms_base_url: str | None = None

class StorageRules(BaseModel):
    db_filename: str = "inhash.db"

class Rules(BaseModel):
    validation: ValidationRules = Field(default_factory=ValidationRules)
    retry: RetryRules = Field(default_factory=RetryRules)
    timeouts: TimeoutRules = Field(default_factory=TimeoutRules)
    collection: CollectionRules = Field(default_factory=CollectionRules)
    backends: BackendRules = Field(default_factory=BackendRules)
    storage: StorageRules = Field(default_factory=StorageRules)
