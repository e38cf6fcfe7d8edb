# apps/core/services/pricing_tier_service.py
"""
Pricing Tier Service

Dated price adjustments attached to a variation. Tiers are only created
on active variations; listing, activation and lookups by date or by
modifier range are provided for the catalogue screens.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from shared.common.validators import Err, validate_date, validate_id, validate_number, collect, PRICE_MAX
from apps.core.models import PricingTier, Variation
from .validation import validate_pricing_tier_data

logger = logging.getLogger(__name__)


class PricingTierService:
    """
    Service for pricing tiers.

    Handles:
    - Tier CRUD and status toggle
    - Active tiers, optionally those valid on a given day
    - Tiers whose modifier falls within a range
    """

    def get_tier(self, tier_id: int) -> PricingTier:
        from . import NotFoundError

        tier = PricingTier.objects.select_related('variation').filter(id=tier_id).first()
        if tier is None:
            raise NotFoundError('Pricing tier', tier_id)
        return tier

    def create_tier(self, data: Mapping) -> PricingTier:
        cleaned = self._validated(validate_pricing_tier_data(data))
        variation = self._active_variation(cleaned.pop('variation_id'))

        tier = PricingTier.objects.create(variation=variation, **cleaned)
        logger.info(f"Created pricing tier {tier.id} for variation {variation.id}")
        return tier

    def update_tier(self, tier_id: int, data: Mapping) -> PricingTier:
        from . import ValidationFailedError

        cleaned = self._validated(validate_pricing_tier_data(data, partial=True))
        tier = self.get_tier(tier_id)

        if 'variation_id' in cleaned:
            variation_id = cleaned.pop('variation_id')
            if variation_id != tier.variation_id:
                tier.variation = self._active_variation(variation_id)
        for field, value in cleaned.items():
            setattr(tier, field, value)

        if tier.valid_to < tier.valid_from:
            raise ValidationFailedError(["valid_to cannot be before valid_from"])
        tier.save()

        logger.info(f"Updated pricing tier {tier_id}")
        return tier

    def delete_tier(self, tier_id: int) -> Dict[str, Any]:
        tier = self.get_tier(tier_id)
        tier.delete()
        logger.info(f"Deleted pricing tier {tier_id}")
        return {'deleted_pricing_tier_id': tier_id}

    def toggle_tier_status(self, tier_id: int) -> PricingTier:
        tier = self.get_tier(tier_id)
        if tier.is_active:
            tier.deactivate()
        else:
            tier.activate()
        logger.info(f"Pricing tier {tier_id} is_active={tier.is_active}")
        return tier

    def active_tiers(self, params: Mapping) -> List[PricingTier]:
        """Active tiers by ascending modifier; ``on_date`` keeps those valid that day."""
        from . import ValidationFailedError

        result = collect({
            'variation_id': validate_id(params.get('variation_id'), 'variation_id'),
            'on_date': validate_date(params.get('on_date'), 'on_date'),
        })
        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)

        queryset = self._scoped(result.value['variation_id'])
        on_date: Optional[date] = result.value['on_date']
        if on_date is not None:
            queryset = queryset.filter(valid_from__lte=on_date, valid_to__gte=on_date)
        return list(queryset.order_by('price_modifier', 'id'))

    def tiers_in_range(self, params: Mapping) -> List[PricingTier]:
        """Active tiers whose modifier lies between ``min_modifier`` and ``max_modifier``."""
        from . import ValidationFailedError

        result = collect({
            'min_modifier': validate_number(
                params.get('min_modifier'), 'min_modifier', required=True,
                min_value=-PRICE_MAX, max_value=PRICE_MAX,
            ),
            'max_modifier': validate_number(
                params.get('max_modifier'), 'max_modifier', required=True,
                min_value=-PRICE_MAX, max_value=PRICE_MAX,
            ),
            'variation_id': validate_id(params.get('variation_id'), 'variation_id'),
        })
        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)

        low, high = result.value['min_modifier'], result.value['max_modifier']
        if low >= high:
            raise ValidationFailedError(["min_modifier must be less than max_modifier"])

        queryset = self._scoped(result.value['variation_id']).filter(
            price_modifier__gte=low, price_modifier__lte=high
        )
        return list(queryset.order_by('price_modifier', 'id'))

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @staticmethod
    def _scoped(variation_id: Optional[int]):
        queryset = PricingTier.objects.filter(is_active=True).select_related('variation')
        if variation_id:
            queryset = queryset.filter(variation_id=variation_id)
        return queryset

    @staticmethod
    def _active_variation(variation_id: int) -> Variation:
        from . import EntityReferenceError

        variation = Variation.objects.filter(id=variation_id, is_active=True).first()
        if variation is None:
            raise EntityReferenceError("Variation not found or inactive", field='variation_id')
        return variation

    @staticmethod
    def _validated(result) -> Dict[str, Any]:
        from . import ValidationFailedError

        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)
        return result.value
