from giddylist.models.activity import AffiliateClick, Notification
from giddylist.models.collection import Collection, CollectionItem
from giddylist.models.guide import GiftGuide, GiftGuideProduct, GuideGenerationLog
from giddylist.models.kid import Kid, KidPreferences, KidSizes
from giddylist.models.product import Product, TrendingGift
from giddylist.models.profile import CreatorProfile, Follow
from giddylist.models.registry import GiftClaim, Registry, RegistryItem
from giddylist.models.wishlist import WishlistItem

__all__ = [
    'AffiliateClick', 'Collection', 'CollectionItem', 'CreatorProfile', 'Follow',
    'GiftClaim', 'GiftGuide', 'GiftGuideProduct', 'GuideGenerationLog', 'Kid',
    'KidPreferences', 'KidSizes', 'Notification', 'Product', 'Registry',
    'RegistryItem', 'TrendingGift', 'WishlistItem',
]
