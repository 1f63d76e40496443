from .evaluation_repository import (  # noqa: F401
    EvaluationRepository,
    InMemoryEvaluationRepository,
    PostgresEvaluationRepository,
)
