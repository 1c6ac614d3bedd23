def register_blueprints(app):
    from giddylist.routes.ai import ai_bp
    from giddylist.routes.collections import collections_bp
    from giddylist.routes.guides import guides_bp
    from giddylist.routes.media import media_bp
    from giddylist.routes.notifications import notifications_bp
    from giddylist.routes.products import products_bp
    from giddylist.routes.profiles import profiles_bp
    from giddylist.routes.registry import registry_bp
    from giddylist.routes.scrape import scrape_bp
    from giddylist.routes.trending import trending_bp
    from giddylist.routes.wishlist import wishlist_bp

    for blueprint in (scrape_bp, products_bp, guides_bp, trending_bp, registry_bp,
                      profiles_bp, wishlist_bp, collections_bp, notifications_bp,
                      ai_bp, media_bp):
        app.register_blueprint(blueprint)
