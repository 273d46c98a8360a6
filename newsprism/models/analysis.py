from newsprism.extensions import db
from newsprism.utils.dates import utcnow, isoformat_or_none


class ComparativeAnalysis(db.Model):
    """Cross-source synthesis of one topic cluster.

    article_ids is stored sorted; two analyses never cover the same id set.
    """
    __tablename__ = 'comparative_analyses'

    id = db.Column(db.Integer, primary_key=True)
    topic_id = db.Column(db.String(64), nullable=False)
    topic_summary = db.Column(db.String(512), nullable=False)
    aggregate_summary = db.Column(db.Text, nullable=False)
    source_perspectives = db.Column(db.JSON, nullable=False, default=list)
    article_ids = db.Column(db.JSON, nullable=False)
    total_articles = db.Column(db.Integer, nullable=False, index=True)
    similarity_threshold = db.Column(db.Float, nullable=False)
    is_fallback = db.Column(db.Boolean, nullable=False, default=False)
    analysis_timestamp = db.Column(db.DateTime(timezone=True), default=utcnow)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'topic_id': self.topic_id,
            'topic_summary': self.topic_summary,
            'aggregate_summary': self.aggregate_summary,
            'source_perspectives': self.source_perspectives or [],
            'article_ids': self.article_ids or [],
            'total_articles': self.total_articles,
            'similarity_threshold': self.similarity_threshold,
            'is_fallback': self.is_fallback,
            'analysis_timestamp': isoformat_or_none(self.analysis_timestamp),
            'created_at': isoformat_or_none(self.created_at),
        }
