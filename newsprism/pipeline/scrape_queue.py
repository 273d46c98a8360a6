import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy import or_

from newsprism.extensions import db
from newsprism.integrations.scraper import build_scraper
from newsprism.models.scrape_job import JobStatus, ScrapeJob
from newsprism.services.article_store import upsert_article
from newsprism.services.relevance import RelevanceFilter
from newsprism.utils.dates import utcnow
from newsprism.utils.throttle import pause

logger = logging.getLogger(__name__)

NOT_RELEVANT_MESSAGE = 'Article content not relevant to Iran'
STALE_MESSAGE = 'Stale processing timeout'


def recover_stale_jobs(max_attempts=3, stale_minutes=30):
    """
    Jobs left in `processing` by a killed worker go back to `pending`, or to
    `failed` once their attempts are used up. Returns (requeued, failed).
    """
    cutoff = utcnow() - timedelta(minutes=stale_minutes)
    stale = ScrapeJob.query.filter(
        ScrapeJob.status == JobStatus.PROCESSING,
        or_(ScrapeJob.last_processed_at.is_(None), ScrapeJob.last_processed_at < cutoff),
    ).all()

    requeued = failed = 0
    for job in stale:
        if job.attempts >= max_attempts:
            job.status = JobStatus.FAILED
            job.error_log = STALE_MESSAGE
            failed += 1
        else:
            job.status = JobStatus.PENDING
            job.error_log = STALE_MESSAGE
            requeued += 1
    if stale:
        db.session.commit()
        logger.warning(f"[Scrape] Recovered stale jobs: {requeued} requeued, {failed} failed")
    return requeued, failed


def next_pending_jobs(limit):
    return ScrapeJob.query.filter_by(status=JobStatus.PENDING).order_by(
        ScrapeJob.created_at.asc(), ScrapeJob.id.asc()
    ).limit(limit).all()


def _claim(job):
    job.status = JobStatus.PROCESSING
    job.attempts = (job.attempts or 0) + 1
    job.last_processed_at = utcnow()
    db.session.commit()


def process_job(job, scraper, relevance, max_attempts=3):
    """
    Drive one job from pending to its next state. Returns the resulting status.
    Errors are recorded on the job and never raised.
    """
    _claim(job)
    website = job.website
    try:
        result = scraper.scrape(job.url)
        fields = result.to_article_fields()

        if not relevance.content_is_relevant(
            fields['title'], fields['description'], fields['content'], website.category
        ):
            job.status = JobStatus.NOT_RELEVANT
            job.error_log = NOT_RELEVANT_MESSAGE
            db.session.commit()
            logger.info(f"[Scrape] Job {job.id} not relevant: {job.url}")
            return job.status

        fields.update(source=website.name, category=website.category, website_id=website.id)
        article, created = upsert_article(job.url, fields)

        job.status = JobStatus.COMPLETED
        job.error_log = None
        db.session.commit()
        logger.info(
            f"[Scrape] Job {job.id} completed: article {article.id} "
            f"{'created' if created else 'updated'}"
        )
        return job.status

    except Exception as e:
        db.session.rollback()
        job = db.session.get(ScrapeJob, job.id)
        job.status = JobStatus.FAILED if job.attempts >= max_attempts else JobStatus.PENDING
        job.error_log = str(e)[:2000]
        db.session.commit()
        logger.error(f"[Scrape] Job {job.id} attempt {job.attempts} failed ({job.status}): {e}")
        return job.status


def run(scraper=None, batch_size=None):
    """Process the oldest pending scrape jobs sequentially."""
    config = current_app.config
    scraper = scraper or build_scraper(config)
    relevance = RelevanceFilter.from_config(config)
    max_attempts = config.get('SCRAPE_MAX_ATTEMPTS', 3)
    delay = config.get('SCRAPE_CALL_DELAY_SECONDS', 0.5)

    requeued, stale_failed = recover_stale_jobs(
        max_attempts=max_attempts,
        stale_minutes=config.get('SCRAPE_STALE_MINUTES', 30),
    )

    jobs = next_pending_jobs(batch_size or config.get('SCRAPE_BATCH_SIZE', 3))
    logger.info(f"[Scrape] Starting batch of {len(jobs)} jobs")

    counts = {status: 0 for status in JobStatus.ALL}
    for i, job in enumerate(jobs):
        status = process_job(job, scraper, relevance, max_attempts=max_attempts)
        counts[status] = counts.get(status, 0) + 1
        if i < len(jobs) - 1:
            pause(delay)

    summary = {
        'processed': len(jobs),
        'completed': counts[JobStatus.COMPLETED],
        'not_relevant': counts[JobStatus.NOT_RELEVANT],
        'retrying': counts[JobStatus.PENDING],
        'failed': counts[JobStatus.FAILED],
        'stale_requeued': requeued,
        'stale_failed': stale_failed,
    }
    logger.info(f"[Scrape] Complete: {summary}")
    return summary
