import json
import logging
import re
from datetime import date
from typing import Dict, List, Optional

import openai
from openai import OpenAI

SUGGESTION_CONTEXTS = ('wishlist', 'registry', 'browse')

SYSTEM_PROMPT = """You are a helpful gift recommendation assistant for The Giddy List, a platform that helps parents create wishlists and gift guides for their kids.

You provide thoughtful, age-appropriate gift suggestions based on the child's age, interests, and preferences.

Always return suggestions in valid JSON format as an array of objects with these fields:
- title: Product name (be specific but not brand-specific)
- description: Brief 1-2 sentence description of why this is a good gift
- estimated_price: Price range like "$20-30" or "$50+"
- category: One of: toys, books, clothing, gear, outdoor, arts-crafts, electronics, sports, room-decor, other
- search_query: A good search term to find this product online

Never suggest anything inappropriate, dangerous, or unsuitable for the age group.
Avoid items that contain common allergens if allergies are mentioned."""


def _suggestion(title, description, estimated_price, category, search_query):
    return {
        'title': title,
        'description': description,
        'estimated_price': estimated_price,
        'category': category,
        'search_query': search_query,
    }


AGE_SUGGESTIONS = [
    (2, [
        _suggestion('Wooden Stacking Blocks', 'Develops motor skills and spatial awareness through play',
                    '$20-30', 'toys', 'wooden stacking blocks toddler'),
        _suggestion('Board Books Set', 'Durable books perfect for little hands and early reading',
                    '$15-25', 'books', 'board books toddler set'),
        _suggestion('Musical Instrument Set', 'Encourages creativity and rhythm through simple instruments',
                    '$25-40', 'toys', 'toddler musical instruments set'),
    ]),
    (5, [
        _suggestion('LEGO Duplo Set', 'Large building blocks perfect for developing creativity and fine motor skills',
                    '$30-50', 'toys', 'lego duplo building set'),
        _suggestion('Art Supply Kit', 'Everything they need to create their masterpieces',
                    '$20-35', 'arts-crafts', 'kids art supplies kit preschool'),
        _suggestion('Outdoor Play Tent', 'Perfect for imaginative play indoors or outdoors',
                    '$30-50', 'outdoor', 'kids play tent outdoor'),
    ]),
    (8, [
        _suggestion('LEGO Classic Set', 'Endless building possibilities for creative minds',
                    '$30-60', 'toys', 'lego classic creative brick set'),
        _suggestion('Chapter Book Series', 'Age-appropriate adventure stories to encourage reading',
                    '$20-40', 'books', 'kids chapter books series age 6-8'),
        _suggestion('Science Experiment Kit', 'Hands-on learning with safe, fun experiments',
                    '$25-45', 'toys', 'kids science experiment kit'),
    ]),
    (12, [
        _suggestion('STEM Building Kit', 'Challenging building projects that teach engineering concepts',
                    '$40-70', 'toys', 'stem building kit kids 9-12'),
        _suggestion('Art Sketch Set', 'Professional-quality supplies for budding artists',
                    '$30-50', 'arts-crafts', 'kids sketch art set professional'),
        _suggestion('Sports Equipment', 'Quality gear for their favorite sport',
                    '$30-60', 'sports', 'kids sports equipment set'),
    ]),
    (None, [
        _suggestion('Tech Gadget', 'Age-appropriate technology for learning and entertainment',
                    '$50-100', 'electronics', 'teen tech gadget educational'),
        _suggestion('Room Decor Set', 'Let them personalize their space',
                    '$25-50', 'room-decor', 'teen room decor set'),
        _suggestion('Hobby Kit', 'Everything they need to pursue their interests',
                    '$30-60', 'other', 'teen hobby starter kit'),
    ]),
]

# Interest keywords -> a suggestion built around that interest
INTEREST_KEYWORDS = {
    'sports': ['sports', 'soccer', 'football', 'basketball', 'baseball', 'running'],
    'technology': ['tech', 'gaming', 'video games', 'coding', 'robots', 'computers'],
    'art': ['art', 'drawing', 'painting', 'crafts', 'creative'],
    'music': ['music', 'singing', 'guitar', 'piano', 'dancing'],
    'reading': ['books', 'reading', 'stories'],
    'outdoor': ['outdoor', 'nature', 'camping', 'hiking', 'bugs'],
    'science': ['science', 'space', 'dinosaurs', 'experiments', 'stem'],
    'building': ['lego', 'building', 'blocks', 'construction'],
}

INTEREST_SUGGESTIONS = {
    'sports': _suggestion('Backyard Sports Set', 'Gets them moving with the sports they already love',
                          '$25-45', 'sports', 'kids backyard sports set'),
    'technology': _suggestion('Beginner Coding Robot', 'Teaches logic and sequencing through play',
                              '$40-80', 'electronics', 'coding robot for kids'),
    'art': _suggestion('Deluxe Drawing Kit', 'Quality pencils, markers and pads for a growing artist',
                       '$20-40', 'arts-crafts', 'kids deluxe drawing kit'),
    'music': _suggestion('Kids Keyboard', 'A first keyboard with lights and learning songs',
                         '$30-60', 'toys', 'kids electronic keyboard'),
    'reading': _suggestion('Book Subscription Box', 'New age-matched books delivered every month',
                           '$20-30', 'books', 'kids book subscription box'),
    'outdoor': _suggestion('Explorer Kit', 'Binoculars, compass and bug catcher for backyard adventures',
                           '$20-35', 'outdoor', 'kids explorer kit binoculars'),
    'science': _suggestion('Space Science Kit', 'Hands-on experiments about planets and stars',
                           '$25-45', 'toys', 'kids space science kit'),
    'building': _suggestion('Creative Building Bricks', 'Open-ended building set for big ideas',
                            '$30-60', 'toys', 'creative building bricks set kids'),
}


def age_in_years(birthdate, today=None):
    if not birthdate:
        return None
    today = today or date.today()
    years = today.year - birthdate.year
    if (today.month, today.day) < (birthdate.month, birthdate.day):
        years -= 1
    return max(years, 0)


class SuggestionService:
    def __init__(self, client=None, model='gpt-4o-mini'):
        self.client = client
        self.model = model
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config):
        client = None
        if config.get('USE_OPENAI') and config.get('OPENAI_API_KEY'):
            client = OpenAI(api_key=config['OPENAI_API_KEY'])
        return cls(client=client, model=config.get('OPENAI_MODEL', 'gpt-4o-mini'))

    def suggest(self, kid=None, context='wishlist', existing_items=None, age=None,
                interests=None, limit=5) -> List[Dict]:
        """Gift ideas for a kid, most relevant first."""
        existing_items = [i for i in (existing_items or []) if isinstance(i, str)]
        interests = list(interests or [])
        dislikes, allergies = [], []

        if kid is not None:
            age = age_in_years(kid.birthdate) if kid.birthdate else age
            if kid.preferences is not None:
                interests = kid.preferences.interests or interests
                dislikes = kid.preferences.dislikes or []
                allergies = kid.preferences.allergies or []
            existing_items += [item.title for item in kid.wishlist_items if item.title]

        suggestions = None
        if self.client is not None:
            try:
                suggestions = self._suggest_with_openai(
                    age, interests, dislikes, allergies, existing_items, context, limit
                )
            except openai.OpenAIError as e:
                self.logger.error(f"OpenAI suggestions failed: {str(e)}")

        if not suggestions:
            suggestions = self._suggest_with_rules(age, interests)

        return self._exclude(suggestions, existing_items, dislikes)[:limit]

    def _suggest_with_openai(self, age, interests, dislikes, allergies, existing_items,
                             context, limit) -> Optional[List[Dict]]:
        prompt = build_prompt(age, interests, dislikes, allergies, existing_items, context, limit)
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt}
            ],
            temperature=0.8,
            max_tokens=1500,
        )
        content = response.choices[0].message.content or '[]'

        match = re.search(r'\[[\s\S]*\]', content)
        if not match:
            return None
        try:
            parsed = json.loads(match.group(0))
        except ValueError:
            self.logger.error("Failed to parse AI suggestions")
            return None
        return [s for s in parsed if isinstance(s, dict) and s.get('title')]

    def _suggest_with_rules(self, age, interests) -> List[Dict]:
        suggestions = []
        text = ' '.join(interests).lower()
        for interest, keywords in INTEREST_KEYWORDS.items():
            if any(re.search(r'\b' + re.escape(k) + r'\b', text) for k in keywords):
                suggestions.append(dict(INTEREST_SUGGESTIONS[interest]))

        for max_age, bucket in AGE_SUGGESTIONS:
            if max_age is None or age is None or age <= max_age:
                suggestions.extend(dict(s) for s in bucket)
                break
        return suggestions

    @staticmethod
    def _exclude(suggestions, existing_items, dislikes):
        existing = {title.strip().lower() for title in existing_items}
        dislikes = [d.lower() for d in dislikes if d]
        kept = []
        for suggestion in suggestions:
            title = suggestion.get('title', '').strip().lower()
            if title in existing:
                continue
            haystack = f"{title} {suggestion.get('description', '')}".lower()
            if any(dislike in haystack for dislike in dislikes):
                continue
            kept.append(suggestion)
        return kept


def build_prompt(age, interests, dislikes, allergies, existing_items, context, limit):
    prompt = f'Please suggest {limit} gift ideas'
    if age:
        prompt += f' for a {age} year old child'
    if interests:
        prompt += f". They're interested in: {', '.join(interests)}"
    if dislikes:
        prompt += f". Please avoid anything related to: {', '.join(dislikes)}"
    if allergies:
        prompt += f". Important - they have these allergies/sensitivities: {', '.join(allergies)}"
    if existing_items:
        prompt += (f'. They already have these items on their list, so suggest different things: '
                   f"{', '.join(existing_items[:10])}")

    if context == 'wishlist':
        prompt += '. These are for a personal wishlist - suggest a mix of fun and practical items.'
    elif context == 'registry':
        prompt += ('. These are for a gift registry event - focus on gifts that family and '
                   'friends would want to give.')
    elif context == 'browse':
        prompt += '. These are popular gift ideas - focus on trending and highly-rated items.'

    return prompt + ' Return the suggestions as a JSON array.'
