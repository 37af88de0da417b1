# distribution_hub/services/__init__.py
"""
Business logic services for Distribution Hub.
"""
from distribution_hub.services.addresses import AddressService
from distribution_hub.services.customers import CustomerService
from distribution_hub.services.facade import DistributionFacade
from distribution_hub.services.listing import ListingService
from distribution_hub.services.products import ProductService

__all__ = [
    "AddressService",
    "CustomerService",
    "DistributionFacade",
    "ListingService",
    "ProductService",
]
