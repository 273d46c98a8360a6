from newsprism.extensions import db
from newsprism.utils.dates import utcnow
from newsprism.utils.serialization import bytes_to_embedding


class ArticleChunk(db.Model):
    __tablename__ = 'article_chunks'

    id = db.Column(db.Integer, primary_key=True)
    article_id = db.Column(db.Integer, db.ForeignKey('articles.id', ondelete='CASCADE'), nullable=False)
    chunk_index = db.Column(db.Integer, nullable=False)
    chunk_text = db.Column(db.Text, nullable=False)
    word_count = db.Column(db.Integer, nullable=False)
    embedding_blob = db.Column(db.LargeBinary)
    embedding_model = db.Column(db.String(64))
    embedding_dim = db.Column(db.Integer)
    embedding_generated = db.Column(db.Boolean, nullable=False, default=False)
    embedding_generated_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    article = db.relationship('Article', back_populates='chunks')

    __table_args__ = (
        db.UniqueConstraint('article_id', 'chunk_index', name='uq_article_chunk_index'),
    )

    @property
    def vector(self):
        if not self.embedding_blob:
            return None
        return bytes_to_embedding(self.embedding_blob, self.embedding_dim)
