import logging

from newsprism.errors import ConfigurationError
from newsprism.extensions import db

logger = logging.getLogger(__name__)


def _discover(**kwargs):
    from newsprism.pipeline import discover
    return discover.run(**kwargs)


def _scrape(**kwargs):
    from newsprism.pipeline import scrape_queue
    return scrape_queue.run(**kwargs)


def _embed(**kwargs):
    from newsprism.pipeline import embed
    return embed.run(**kwargs)


def _analyze(**kwargs):
    from newsprism.pipeline import analyze
    return analyze.run(**kwargs)


def _rss(**kwargs):
    from newsprism.pipeline import ingest_rss
    return ingest_rss.run(**kwargs)


STAGES = {
    'discover': _discover,
    'scrape': _scrape,
    'embed': _embed,
    'analyze': _analyze,
    'rss': _rss,
}


def run_stage(name, **kwargs):
    """
    Run one stage inside the current app context and return its summary.
    A missing credential aborts the stage before any work; any other
    escaped exception is logged and reported in the summary.
    """
    if name not in STAGES:
        raise KeyError(f"Unknown stage: {name}")

    logger.info(f"--- Stage {name}: starting ---")
    try:
        result = STAGES[name](**kwargs)
    except ConfigurationError as e:
        logger.error(f"--- Stage {name}: configuration error: {e} ---")
        return {'error': str(e)}
    except Exception as e:
        logger.error(f"--- Stage {name} failed: {e} ---", exc_info=True)
        db.session.rollback()
        return {'error': str(e)}

    logger.info(f"--- Stage {name} result: {result} ---")
    return result
