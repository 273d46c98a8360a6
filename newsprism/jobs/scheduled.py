import logging

from newsprism import feature_flags

logger = logging.getLogger(__name__)


def _stage_job(app, stage):
    with app.app_context():
        logger.info(f"[Job] Starting {stage}")
        from newsprism.pipeline.runner import run_stage
        result = run_stage(stage)
        logger.info(f"[Job] {stage}: {result}")


def _discover_job(app):
    _stage_job(app, 'discover')


def _scrape_job(app):
    _stage_job(app, 'scrape')


def _embed_job(app):
    _stage_job(app, 'embed')


def _analyze_job(app):
    _stage_job(app, 'analyze')


def _rss_job(app):
    if not feature_flags.is_enabled('rss_ingestion'):
        logger.info("[Job] RSS ingestion disabled, skipping")
        return
    _stage_job(app, 'rss')


def _upsert_job(scheduler, **kwargs):
    scheduler.add_job(replace_existing=True, coalesce=True, max_instances=1, **kwargs)


# job id -> (function, cron fields, misfire grace seconds)
JOBS = {
    'discover_urls': (_discover_job, {'minute': 0}, 1800),
    'scrape_queue': (_scrape_job, {'minute': '*'}, 50),
    'generate_embeddings': (_embed_job, {'minute': '*/5'}, 240),
    'comparative_analysis': (_analyze_job, {'minute': '15,45'}, 900),
    'rss_ingestion': (_rss_job, {'minute': 30}, 1800),
}


def register_jobs(scheduler, app):
    """Register all scheduled jobs."""
    for job_id, (func, cron, grace) in JOBS.items():
        _upsert_job(
            scheduler,
            id=job_id,
            func=func,
            trigger='cron',
            args=[app],
            misfire_grace_time=grace,
            **cron,
        )
    logger.info(f"All scheduled jobs registered: {', '.join(JOBS)}")
