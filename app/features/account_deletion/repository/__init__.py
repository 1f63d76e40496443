from .user_repository import (  # noqa: F401
    InMemoryUserRepository,
    SupabaseUserRepository,
    UserRepository,
    UserStoreError,
    merge_metadata,
)
