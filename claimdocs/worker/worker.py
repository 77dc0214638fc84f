import threading
import time
from concurrent.futures import ThreadPoolExecutor

from claimdocs.config.settings import Settings
from claimdocs.database.connection import get_connection
from claimdocs.database.models import JobRecord
from claimdocs.database.repositories.job_repository import JobRepository
from claimdocs.logging.logger import Log
from claimdocs.worker.job_runner import JobRunner


class Worker:
    """Poll loop: wait for a free slot -> claim -> dispatch to the pool."""

    def __init__(
        self,
        job_repo: JobRepository,
        job_runner: JobRunner,
        settings: Settings,
    ) -> None:
        self._job_repo = job_repo
        self._job_runner = job_runner
        self._settings = settings
        self._concurrency = max(1, settings.extraction_concurrency)
        self._slots = threading.BoundedSemaphore(self._concurrency)

    def run(self, max_jobs: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_jobs is set, stop after dispatching that many jobs (for testing).
        Running jobs are always waited for before returning.
        """
        Log.info("Worker started, polling for jobs", slots=self._concurrency)
        jobs_started = 0
        with ThreadPoolExecutor(
            max_workers=self._concurrency, thread_name_prefix="extraction"
        ) as pool:
            try:
                while max_jobs is None or jobs_started < max_jobs:
                    self._slots.acquire()
                    job = self._try_claim_job()
                    if job is None:
                        self._slots.release()
                        Log.debug("No jobs available, sleeping")
                        time.sleep(self._settings.job_poll_interval_seconds)
                        continue
                    pool.submit(self._run_job, job)
                    jobs_started += 1
            except KeyboardInterrupt:
                Log.info("Worker shutting down gracefully, waiting for running jobs")
        Log.info("Worker stopped", jobs_dispatched=jobs_started)

    def _run_job(self, job: JobRecord) -> None:
        try:
            self._job_runner.run(job)
        finally:
            self._slots.release()

    def _try_claim_job(self) -> JobRecord | None:
        """Attempt to claim the next pending job. Gracefully handle DB errors."""
        try:
            with get_connection() as conn:
                return self._job_repo.claim_next_job(conn)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
