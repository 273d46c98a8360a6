from newsprism.extensions import db
from sqlalchemy import func


class RssFeed(db.Model):
    __tablename__ = 'rss_feeds'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(256), nullable=False)
    url = db.Column(db.String(2048), nullable=False, unique=True)
    category = db.Column(db.String(64), default='General')
    description = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())
