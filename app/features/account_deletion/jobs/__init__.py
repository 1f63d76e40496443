from .finalize_job import (  # noqa: F401
    AccountDeletionSweepJob,
    run_account_deletion_sweep_once,
    start_account_deletion_scheduler,
)
