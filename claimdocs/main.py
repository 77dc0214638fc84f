from claimdocs.config.settings import Settings
from claimdocs.database.connection import close_pool, get_connection, init_pool
from claimdocs.database.migrate import apply_migrations
from claimdocs.database.repositories.job_repository import JobRepository
from claimdocs.logging.logger import Log
from claimdocs.processor.processor import build_processor
from claimdocs.worker.job_runner import JobRunner
from claimdocs.worker.worker import Worker


def main() -> None:
    """Extraction worker: connect, migrate, then drain the job queue until interrupted."""
    settings = Settings()
    Log.configure(settings.log_level)
    Log.info(
        "Starting extraction worker",
        env=settings.app_env,
        ocr_provider=settings.ocr_provider,
        storage=settings.storage_backend,
    )
    init_pool(settings)

    try:
        if settings.db_auto_migrate:
            with get_connection() as conn:
                apply_migrations(conn)

        job_repo = JobRepository(settings.max_job_attempts)
        worker = Worker(
            job_repo,
            JobRunner(build_processor(settings), job_repo, settings),
            settings,
        )
        worker.run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
