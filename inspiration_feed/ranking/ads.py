"""
Sponsored-slot interleaving.

After every `interval`-th post (6, 12, 18, …) one AdSlot is inserted, chosen
uniformly at random from a fixed house inventory. Interleaving only touches
the display sequence: the canonical post list, its counts and the search /
saved filters never see an ad. A fresh ad is drawn on every call, so slots
are not pinned to a post position across renders.
"""
import random
from typing import Optional, Sequence

from inspiration_feed.ranking.types import AdSlot, FeedEntry, ScoredPost, SponsoredAd

DEFAULT_AD_INTERVAL = 6

HOUSE_ADS: tuple[SponsoredAd, ...] = (
    SponsoredAd(
        id="ad-1",
        brand="StyleCo",
        title="Summer Collection",
        description="Discover the latest trends for this season",
        image_url="https://images.unsplash.com/photo-1441984904996-e0b6ba687e04?w=400&h=500&fit=crop",
        cta_text="Shop Now",
    ),
    SponsoredAd(
        id="ad-2",
        brand="FashionHub",
        title="New Arrivals",
        description="Fresh styles just dropped",
        image_url="https://images.unsplash.com/photo-1490481651871-ab68de25d43d?w=400&h=500&fit=crop",
        cta_text="Explore",
    ),
    SponsoredAd(
        id="ad-3",
        brand="EcoWear",
        title="Sustainable Fashion",
        description="Eco-friendly clothing that looks great",
        image_url="https://images.unsplash.com/photo-1523381210434-271e8be1f52b?w=400&h=500&fit=crop",
        cta_text="Learn More",
    ),
    SponsoredAd(
        id="ad-4",
        brand="SoleStyle",
        title="Premium Sneakers",
        description="Step up your shoe game",
        image_url="https://images.unsplash.com/photo-1542291026-7eec264c27ff?w=400&h=500&fit=crop",
        cta_text="View Collection",
    ),
    SponsoredAd(
        id="ad-5",
        brand="AccentStyle",
        title="Accessories Sale",
        description="Up to 50% off on selected items",
        image_url="https://images.unsplash.com/photo-1611923134239-b9be5816e23c?w=400&h=500&fit=crop",
        cta_text="Shop Sale",
    ),
    SponsoredAd(
        id="ad-6",
        brand="UrbanEdge",
        title="Streetwear Essentials",
        description="Urban fashion for everyday wear",
        image_url="https://images.unsplash.com/photo-1556906781-9a412961c28c?w=400&h=500&fit=crop",
        cta_text="Get Started",
    ),
)


class AdInterleaver:
    def __init__(
        self,
        inventory: Sequence[SponsoredAd] = HOUSE_ADS,
        interval: int = DEFAULT_AD_INTERVAL,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not inventory:
            raise ValueError("ad inventory must not be empty")
        if interval < 1:
            raise ValueError("ad interval must be positive")
        self.inventory = tuple(inventory)
        self.interval = interval
        self._rng = rng or random.Random()

    def pick(self) -> SponsoredAd:
        return self._rng.choice(self.inventory)

    def interleave(self, posts: list[ScoredPost]) -> list[FeedEntry]:
        entries: list[FeedEntry] = []
        for position, post in enumerate(posts, start=1):
            entries.append(post)
            if position % self.interval == 0:
                entries.append(AdSlot(ad=self.pick()))
        return entries
