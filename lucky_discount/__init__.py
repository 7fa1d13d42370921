"""
Lucky Discount - login-time lucky number discounts for the NOIR925 storefront.

A signed-in customer's login instant yields a lucky number (minute + second).
Active rules configured by administrators are matched against it, and a
match can be claimed as a 24-hour discount code that is emailed out.
"""

from lucky_discount.core.config import LuckyConfig, get_config, set_config

__all__ = [
    'LuckyConfig',
    'get_config',
    'set_config',
]

__version__ = '1.0.0'
