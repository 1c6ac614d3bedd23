"""Guide commission arithmetic.

Higher tiers earn a larger share of affiliate commissions. An unknown tier
is treated as ``standard``.
"""
import os
from urllib.parse import urlencode

GUIDE_TIERS = ('standard', 'curator', 'influencer', 'celebrity')

TIER_SPLITS = {
    'standard': {'guide': 50, 'platform': 50},
    'curator': {'guide': 60, 'platform': 40},
    'influencer': {'guide': 70, 'platform': 30},
    'celebrity': {'guide': 75, 'platform': 25},
}

TIER_INFO = {
    'standard': {
        'name': 'Giddy Guide',
        'description': 'Starting tier for all new guides',
        'badge': '',
    },
    'curator': {
        'name': 'Curator',
        'description': 'Recognized for quality curation',
        'badge': 'Curator',
    },
    'influencer': {
        'name': 'Influencer',
        'description': 'Top-performing guide with significant reach',
        'badge': 'Influencer',
    },
    'celebrity': {
        'name': 'Celebrity Guide',
        'description': 'Elite partner with premium benefits',
        'badge': 'Celebrity',
    },
}

MINIMUM_PAYOUT = 25.00

# Industry averages used for the monthly estimate
CLICK_THROUGH_RATE = 0.02
CONVERSION_RATE = 0.03
AVERAGE_ORDER_VALUE = 50
AVERAGE_COMMISSION = 0.04


def get_tier_split(tier):
    return TIER_SPLITS.get(tier, TIER_SPLITS['standard'])


def get_tier_info(tier):
    return TIER_INFO.get(tier, TIER_INFO['standard'])


def calculate_guide_split(tier, total_commission):
    split = get_tier_split(tier)
    guide_share = round(total_commission * split['guide'] / 100, 2)
    # The platform takes the remainder so the shares always add up
    platform_share = round(total_commission - guide_share, 2)
    return {
        'guide_share': guide_share,
        'platform_share': platform_share,
        'guide_percentage': split['guide'],
        'platform_percentage': split['platform'],
    }


def can_request_payout(available_balance):
    return available_balance >= MINIMUM_PAYOUT


def format_earnings(amount):
    sign = '-' if amount < 0 else ''
    return f"{sign}${abs(amount):,.2f}"


def estimate_monthly_earnings(monthly_views, tier='standard'):
    clicks = monthly_views * CLICK_THROUGH_RATE
    conversions = clicks * CONVERSION_RATE
    total_commission = conversions * AVERAGE_ORDER_VALUE * AVERAGE_COMMISSION
    return round(calculate_guide_split(tier, total_commission)['guide_share'], 2)


def generate_tracking_url(original_url, guide_id, source_type, source_id, base_url=None):
    base_url = base_url or os.environ.get('SITE_URL') or 'https://thegiddylist.com'
    params = urlencode({
        'url': original_url,
        'guide': guide_id,
        'source': source_type,
        'sid': source_id,
    })
    return f"{base_url}/api/track/click?{params}"
