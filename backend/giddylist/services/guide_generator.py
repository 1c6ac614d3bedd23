import json
import logging
import re
import time

import openai
from openai import OpenAI
from sqlalchemy.exc import SQLAlchemyError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from giddylist import db
from giddylist.errors import NotFound
from giddylist.models import GiftGuide, GiftGuideProduct, GuideGenerationLog, Product
from giddylist.models.base import utcnow
from giddylist.services.topics import AGE_RANGE_NAMES, CATEGORY_NAMES, generate_guide_topic
from giddylist.utils import slugify

MAX_GUIDE_PRODUCTS = 10

SYSTEM_PROMPT = """You are a gift guide writer for The Giddy List, a trusted platform for parents seeking quality gift recommendations for their children.

Your writing style is warm and parent-friendly, SEO-aware with natural keyword usage, and concise.

You MUST return valid JSON with this exact structure:
{
  "title": "Catchy, SEO-friendly title (50-60 chars ideal)",
  "metaDescription": "Meta description with keywords (150-160 chars)",
  "introContent": "2-3 paragraph introduction explaining who this guide is for and why these products were selected.",
  "productDescriptions": [
    {
      "productId": "ID of the product",
      "description": "2-3 sentences about why this product is great for the age group.",
      "highlightReason": "One short reason it stands out (e.g. 'Best value', 'Editor's pick')"
    }
  ],
  "keywords": ["5-10", "SEO", "keywords"],
  "suggestedSlug": "url-friendly-slug-no-timestamp"
}

Never recommend anything unsafe or inappropriate for the target age group."""


class GuideGenerationError(Exception):
    pass


def to_base36(number):
    digits = '0123456789abcdefghijklmnopqrstuvwxyz'
    if number == 0:
        return '0'
    out = []
    while number:
        number, remainder = divmod(number, 36)
        out.append(digits[remainder])
    return ''.join(reversed(out))


def build_user_prompt(topic_type, topic_params, products):
    lines = ['Generate a gift guide with the following context:', '']

    if topic_type == 'age':
        ages = ' and '.join(AGE_RANGE_NAMES.get(p, p) for p in topic_params)
        lines += [f'Target Age Group: {ages}',
                  'Focus on age-appropriate gifts that support development and bring joy.']
    elif topic_type == 'category':
        categories = ' and '.join(CATEGORY_NAMES.get(p, p) for p in topic_params)
        lines += [f'Category Focus: {categories}',
                  'Highlight the best options in this category across different price points.']
    elif topic_type == 'occasion':
        lines += [f"Occasion: {', '.join(topic_params)}",
                  'Create a guide perfect for gift-givers shopping for this occasion.']
    elif topic_type == 'seasonal':
        lines += [f"Season/Theme: {', '.join(topic_params)}",
                  'Focus on timely, relevant gift ideas for this season.']

    lines += ['', 'Products to feature (include all in your descriptions):', '']
    for index, product in enumerate(products, start=1):
        lines.append(f'{index}. ID: {product.id}')
        lines.append(f'   Title: {product.title}')
        lines.append(f"   Price: {f'${product.price}' if product.price else 'Price varies'}")
        lines.append(f"   Category: {product.category or 'General'}")
        lines.append(f"   Age Range: {product.age_range or 'All ages'}")
        if product.description:
            lines.append(f'   Description: {product.description[:200]}...')
        lines.append('')

    lines.append(f'Generate the gift guide content as valid JSON. Include all {len(products)} '
                 f'products in productDescriptions with their exact product IDs.')
    return '\n'.join(lines)


def fallback_content(topic_type, topic_params, products):
    """Template guide content used when the model is unavailable or unparseable."""
    topic = generate_guide_topic(topic_type, topic_params)
    return {
        'title': topic['title'],
        'metaDescription': (f"Discover the best gift ideas {' and '.join(topic_params)}. "
                            f"Hand-picked recommendations from The Giddy List."),
        'introContent': ("Finding the perfect gift can be challenging, but we're here to help. "
                         "This guide features our top picks based on quality, value, and "
                         "age-appropriateness.\n\nEach item has been carefully selected to bring "
                         "joy and create lasting memories."),
        'productDescriptions': [
            {
                'productId': product.id,
                'description': product.description or
                f'{product.title} is a wonderful choice for any gift list.',
                'highlightReason': 'Featured pick',
            }
            for product in products
        ],
        'keywords': [topic_type, *topic_params, 'gift guide', 'kids gifts', 'best gifts'],
        'suggestedSlug': re.sub(r'-\d{8}$', '', topic['slug']),
    }


def parse_content(text):
    """Pull the first JSON object out of a model reply, or None."""
    match = re.search(r'\{[\s\S]*\}', text or '')
    if not match:
        return None
    try:
        content = json.loads(match.group(0))
    except ValueError:
        return None
    return content if isinstance(content, dict) else None


class GuideGenerator:
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

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type((openai.APIConnectionError, openai.RateLimitError)),
        reraise=True
    )
    def _complete(self, user_prompt):
        return self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt}
            ],
            temperature=0.7,
            max_tokens=2500,
        )

    def generate_content(self, topic_type, topic_params, products):
        """Return ``(content, tokens_used)`` for the guide."""
        if self.client is None:
            self.logger.info("OpenAI not configured, using template guide content")
            return fallback_content(topic_type, topic_params, products), 0

        completion = self._complete(build_user_prompt(topic_type, topic_params, products))
        text = completion.choices[0].message.content if completion.choices else ''
        tokens = completion.usage.total_tokens if completion.usage else 0

        content = parse_content(text)
        if content is None:
            self.logger.error(f"Failed to parse AI response: {text[:200] if text else text!r}")
            content = fallback_content(topic_type, topic_params, products)
        return content, tokens

    def select_products(self, topic_type, topic_params, product_ids=None):
        query = Product.query.filter_by(is_active=True)
        if product_ids:
            products = query.filter(Product.id.in_(product_ids)).all()
            if not products:
                raise GuideGenerationError('Failed to fetch specified products')
            return products[:MAX_GUIDE_PRODUCTS]

        if topic_type == 'age' and topic_params:
            query = query.filter(Product.age_range.in_(topic_params))
        elif topic_type == 'category' and topic_params:
            query = query.filter(Product.category.in_(topic_params))

        products = query.order_by(Product.created_at.desc()).limit(MAX_GUIDE_PRODUCTS).all()
        if not products:
            raise GuideGenerationError('No products available for this topic')
        return products

    def create_guide(self, topic_type, topic_params, product_ids=None):
        """Generate a draft guide.

        Returns ``(guide, error, log_id)``; exactly one of ``guide`` and
        ``error`` is set.
        """
        log = GuideGenerationLog(
            topic_type=topic_type,
            topic_params={'params': list(topic_params)},
            status='started',
        )
        db.session.add(log)
        db.session.commit()
        log_id = log.id

        try:
            products = self.select_products(topic_type, topic_params, product_ids)
            topic = generate_guide_topic(topic_type, topic_params)
            content, tokens = self.generate_content(topic_type, topic_params, products)

            slug = slugify(content.get('suggestedSlug') or '', max_length=120) or topic['slug']
            if GiftGuide.query.filter_by(slug=slug).first():
                slug = f'{slug}-{to_base36(int(time.time() * 1000))}'

            keywords = content.get('keywords')
            guide = GiftGuide(
                slug=slug,
                title=content.get('title') or topic['title'],
                meta_description=content.get('metaDescription'),
                intro_content=content.get('introContent'),
                occasion=topic['occasion'],
                age_range=topic['age_range'],
                category=topic['category'],
                keywords=keywords if isinstance(keywords, list) else [],
                status='draft',
                cover_image_url=products[0].image_url,
            )
            db.session.add(guide)
            db.session.flush()

            descriptions = {
                d.get('productId'): d for d in content.get('productDescriptions') or []
                if isinstance(d, dict)
            }
            for index, product in enumerate(products):
                description = descriptions.get(product.id, {})
                db.session.add(GiftGuideProduct(
                    guide_id=guide.id,
                    product_id=product.id,
                    display_order=index,
                    ai_description=description.get('description'),
                    highlight_reason=description.get('highlightReason'),
                ))

            log.guide_id = guide.id
            log.status = 'completed'
            log.tokens_used = tokens
            db.session.commit()
            self.logger.info(f"Generated guide {guide.slug} ({tokens} tokens)")
            return guide, None, log_id

        except (GuideGenerationError, openai.OpenAIError, SQLAlchemyError) as e:
            db.session.rollback()
            self.logger.error(f"Guide generation error: {str(e)}")
            log = db.session.get(GuideGenerationLog, log_id)
            log.status = 'failed'
            log.error_message = str(e)
            db.session.commit()
            return None, str(e), log_id

    @staticmethod
    def publish_guide(guide):
        guide.status = 'published'
        guide.published_at = utcnow()
        db.session.commit()
        return guide


def get_guide_by_slug(slug):
    guide = GiftGuide.query.filter_by(slug=slug).first()
    if not guide:
        raise NotFound('Guide not found')
    return guide
