from datetime import date, datetime, timedelta, timezone

# Python weekday(): Monday is 0
TOPIC_SCHEDULE = {
    0: {'type': 'category', 'params': ['toys']},
    1: {'type': 'occasion', 'params': ['birthday']},
    2: {'type': 'age', 'params': ['6-8', '9-12']},
    3: {'type': 'category', 'params': ['books']},
    4: {'type': 'seasonal', 'params': ['current']},
    5: {'type': 'age', 'params': ['13-18']},
    6: {'type': 'age', 'params': ['0-2', '3-5']},
}

DAY_NAMES = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')

TOPIC_TYPES = ('age', 'category', 'occasion', 'seasonal')

AGE_RANGE_NAMES = {
    '0-2': 'Baby & Toddler (0-2)',
    '3-5': 'Preschool (3-5)',
    '6-8': 'Early Elementary (6-8)',
    '9-12': 'Tweens (9-12)',
    '13-18': 'Teens (13-18)',
}

CATEGORY_NAMES = {
    'toys': 'Toys & Games',
    'clothing': 'Clothing & Accessories',
    'books': 'Books & Reading',
    'gear': 'Baby Gear & Equipment',
    'room-decor': 'Room Decor',
    'outdoor': 'Outdoor & Active Play',
    'arts-crafts': 'Arts & Crafts',
    'electronics': 'Electronics & Tech',
    'sports': 'Sports & Fitness',
    'other': 'Other',
}

OCCASION_TEMPLATES = {
    'birthday': 'Birthday Gift Guide',
    'christmas': 'Christmas Gift Guide',
    'hanukkah': 'Hanukkah Gift Guide',
    'back-to-school': 'Back to School Gift Guide',
    'easter': 'Easter Gift Guide',
    'valentines': "Valentine's Day Gift Guide",
    'mothers-day': "Mother's Day Gift Guide",
    'fathers-day': "Father's Day Gift Guide",
    'graduation': 'Graduation Gift Guide',
}

SEASON_OCCASIONS = {
    'winter-holidays': ['christmas', 'hanukkah'],
    'spring': ['easter', 'spring-outdoor'],
    'summer-prep': ['graduation', 'summer-prep'],
    'summer': ['outdoor', 'travel'],
    'back-to-school': ['back-to-school'],
    'fall': ['fall-indoor', 'halloween'],
}


def _today(today=None):
    return today or datetime.now(timezone.utc).date()


def get_current_season(today=None):
    """Season name for the month of ``today`` (defaults to the current UTC date)."""
    month = _today(today).month
    if month >= 11 or month == 1:
        return 'winter-holidays'
    if month in (2, 3):
        return 'spring'
    if month in (4, 5):
        return 'summer-prep'
    if month in (6, 7):
        return 'summer'
    if month in (8, 9):
        return 'back-to-school'
    return 'fall'


def get_seasonal_params(today=None):
    return list(SEASON_OCCASIONS.get(get_current_season(today), ['general']))


def _resolve(topic, day):
    if topic['type'] == 'seasonal' and topic['params'][0] == 'current':
        return {'type': 'seasonal', 'params': get_seasonal_params(day)}
    return {'type': topic['type'], 'params': list(topic['params'])}


def get_todays_topic(today=None):
    day = _today(today)
    return _resolve(TOPIC_SCHEDULE[day.weekday()], day)


def generate_guide_topic(topic_type, params, today=None):
    """Build title, slug and guide metadata for a topic.

    Slugs carry a ``YYYYMMDD`` stamp so the same topic can run again on
    another day.
    """
    stamp = _today(today).strftime('%Y%m%d')
    first = params[0] if params else ''

    if topic_type == 'age':
        name = AGE_RANGE_NAMES.get(first, first)
        return {
            'title': f'Best Gifts for {name}',
            'slug': f"gifts-for-{first.replace('-', '-to-', 1)}-year-olds-{stamp}",
            'occasion': None,
            'age_range': first,
            'category': None,
        }

    if topic_type == 'category':
        name = CATEGORY_NAMES.get(first, first)
        return {
            'title': f'Best {name} for Kids',
            'slug': f'best-{first}-for-kids-{stamp}',
            'occasion': None,
            'age_range': None,
            'category': first,
        }

    if topic_type == 'occasion':
        return {
            'title': OCCASION_TEMPLATES.get(first, f'{first} Gift Guide'),
            'slug': f'{first}-gift-guide-{stamp}',
            'occasion': first,
            'age_range': None,
            'category': None,
        }

    if topic_type == 'seasonal':
        title = OCCASION_TEMPLATES.get(first, f"{first.replace('-', ' ', 1)} Gift Guide")
        return {
            'title': title,
            'slug': f'{first}-gift-guide-{stamp}',
            'occasion': first,
            'age_range': None,
            'category': None,
        }

    return {
        'title': 'Gift Guide',
        'slug': f'gift-guide-{stamp}',
        'occasion': None,
        'age_range': None,
        'category': None,
    }


def get_upcoming_topics(today=None, days=7):
    start = _today(today)
    upcoming = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        topic = _resolve(TOPIC_SCHEDULE[day.weekday()], day)
        topic['day_name'] = DAY_NAMES[day.weekday()]
        topic['date'] = day.isoformat()
        upcoming.append(topic)
    return upcoming


def should_generate_guide(existing_guides, new_slug, min_days_between=7, now=None):
    """False when a guide sharing the slug's first three words is recent.

    ``existing_guides`` holds dicts with ``slug`` and ``created_at``
    (a datetime or an ISO string).
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=min_days_between)
    prefix = '-'.join(new_slug.split('-')[:3])

    for guide in existing_guides:
        created_at = guide.get('created_at')
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace('Z', '+00:00'))
        if isinstance(created_at, date) and not isinstance(created_at, datetime):
            created_at = datetime(created_at.year, created_at.month, created_at.day)
        if created_at is None:
            continue
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        if prefix in guide.get('slug', '') and created_at > cutoff:
            return False
    return True
