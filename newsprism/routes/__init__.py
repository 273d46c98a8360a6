def register_blueprints(app):
    from newsprism.routes.health import health_bp
    from newsprism.routes.articles import articles_bp
    from newsprism.routes.analyses import analyses_bp
    from newsprism.routes.admin import admin_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(articles_bp, url_prefix='/api/articles')
    app.register_blueprint(analyses_bp, url_prefix='/api/analyses')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
