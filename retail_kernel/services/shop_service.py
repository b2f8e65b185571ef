"""ShopService -- shop lookup by slug."""

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from retail_kernel.domain.dtos import ShopInfo
from retail_kernel.exceptions import ShopNotFoundError
from retail_kernel.models.shop import Shop
from retail_kernel.services.base import BaseService


class ShopService(BaseService):

    def _get_by_slug(self, slug: str) -> Shop:
        shop = self.session.execute(
            select(Shop).where(Shop.slug == slug).options(selectinload(Shop.stocks))
        ).scalar_one_or_none()
        if shop is None:
            raise ShopNotFoundError(slug)
        return shop

    def get_by_slug(self, slug: str) -> ShopInfo:
        """
        Resolve a shop and its default stock location.

        Raises:
            ShopNotFoundError
        """
        return ShopInfo.from_model(self._get_by_slug(slug))
