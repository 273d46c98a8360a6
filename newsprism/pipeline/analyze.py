import logging
from datetime import timedelta

from flask import current_app

from newsprism.extensions import db
from newsprism.integrations.llm_gateway import LLMGateway
from newsprism.models.article import Article
from newsprism.models.chunk import ArticleChunk
from newsprism.services.analysis_service import ComparativeAnalyzer
from newsprism.services.clustering_service import ChunkVector, ClusteringService
from newsprism.utils.dates import utcnow

logger = logging.getLogger(__name__)


def recent_chunks(hours_back):
    """
    Embedded chunks of articles stored within `hours_back`, ordered by
    article age then chunk index so clustering input order is stable.
    """
    cutoff = utcnow() - timedelta(hours=hours_back)
    rows = db.session.query(ArticleChunk, Article).join(
        Article, ArticleChunk.article_id == Article.id
    ).filter(
        Article.created_at >= cutoff,
        ArticleChunk.embedding_generated.is_(True),
        ArticleChunk.embedding_blob.isnot(None),
    ).order_by(
        Article.created_at.asc(), Article.id.asc(), ArticleChunk.chunk_index.asc()
    ).all()

    return [
        ChunkVector(
            article_id=chunk.article_id,
            chunk_index=chunk.chunk_index,
            vector=chunk.vector,
            text=chunk.chunk_text,
            article=article,
        )
        for chunk, article in rows
    ]


def run(hours_back=None, threshold=None, analyzer=None):
    """Cluster recent articles and store one comparative analysis per new cluster."""
    config = current_app.config
    if hours_back is None:
        hours_back = config.get('ANALYSIS_HOURS_BACK', 12)
    clustering = ClusteringService.from_config(config, threshold=threshold)
    analyzer = analyzer or ComparativeAnalyzer(LLMGateway(config), config)

    chunks = recent_chunks(hours_back)
    article_count = len({c.article_id for c in chunks})
    logger.info(f"[Analyze] {len(chunks)} chunks from {article_count} articles in last {hours_back}h")
    if not chunks:
        return {'articles': 0, 'clusters': 0, 'created': 0, 'skipped': 0, 'fallbacks': 0, 'errors': 0}

    clusters = clustering.cluster(chunks)

    created = skipped = fallbacks = errors = 0
    for cluster in clusters:
        try:
            analysis = analyzer.analyze(cluster)
        except Exception as e:
            db.session.rollback()
            errors += 1
            logger.error(f"[Analyze] Cluster {cluster.topic_id} failed: {e}", exc_info=True)
            continue
        if analysis is None:
            skipped += 1
            continue
        created += 1
        if analysis.is_fallback:
            fallbacks += 1

    summary = {
        'articles': article_count,
        'clusters': len(clusters),
        'created': created,
        'skipped': skipped,
        'fallbacks': fallbacks,
        'errors': errors,
    }
    logger.info(f"[Analyze] Complete: {summary}")
    return summary
