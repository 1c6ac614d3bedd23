import click

from giddylist import create_app, db
from giddylist.models import (Collection, CreatorProfile, GiftClaim, GiftGuide, Kid, Product,
                              Registry, TrendingGift, WishlistItem)
from giddylist.services.trending_service import TrendingService

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        'db': db,
        'CreatorProfile': CreatorProfile,
        'Kid': Kid,
        'WishlistItem': WishlistItem,
        'Registry': Registry,
        'GiftClaim': GiftClaim,
        'Collection': Collection,
        'Product': Product,
        'GiftGuide': GiftGuide,
        'TrendingGift': TrendingGift,
    }


@app.cli.command('init-db')
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo('Database tables created')


@app.cli.command('seed-trending')
@click.option('--age-range', default=None, help='Only seed one age range, e.g. 3-5')
def seed_trending(age_range):
    """Insert the curated trending gifts that are not stored yet."""
    inserted, _ = TrendingService.from_config(app.config).seed_curated(age_range)
    click.echo(f'Seeded {len(inserted)} trending gifts')
