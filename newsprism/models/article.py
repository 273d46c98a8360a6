from newsprism.extensions import db
from newsprism.utils.dates import utcnow, isoformat_or_none


class Article(db.Model):
    __tablename__ = 'articles'

    id = db.Column(db.Integer, primary_key=True)
    link = db.Column(db.String(2048), nullable=False, unique=True)
    title = db.Column(db.String(1024), nullable=False, default='Untitled')
    description = db.Column(db.Text)
    content = db.Column(db.Text)
    source = db.Column(db.String(256), nullable=False)
    category = db.Column(db.String(64))
    author = db.Column(db.String(256))
    pub_date = db.Column(db.DateTime(timezone=True))
    tags = db.Column(db.JSON, default=list)
    image_url = db.Column(db.String(2048))
    website_id = db.Column(db.Integer, db.ForeignKey('websites.id'), nullable=True, index=True)
    word_count = db.Column(db.Integer)
    embedding_generated = db.Column(db.Boolean, nullable=False, default=False)
    embedding_generated_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=utcnow)

    website = db.relationship('Website')
    chunks = db.relationship(
        'ArticleChunk', back_populates='article',
        cascade='all, delete-orphan', order_by='ArticleChunk.chunk_index',
    )

    __table_args__ = (
        db.Index('ix_articles_pub_date', 'pub_date'),
        db.Index('ix_articles_embedding_generated', 'embedding_generated'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'link': self.link,
            'description': self.description,
            'source': self.source,
            'category': self.category,
            'author': self.author,
            'pub_date': isoformat_or_none(self.pub_date),
            'tags': self.tags or [],
            'image_url': self.image_url,
            'word_count': self.word_count,
            'embedding_generated': self.embedding_generated,
        }
