from .devices import DeviceBrand, DeviceType, DeviceSeries, DeviceModel
from .catalog import Brand, Category, Product, ProductVariant
from .refurbished import RefurbishedProduct, RefurbishedProductImage
from .content import Banner
from .repairs import RepairStatus, Appointment
from .trade_ins import (
    PhoneCondition,
    TradeInPrice,
    PhoneTradeIn,
    TradeInAuditLog,
    PricingParameter,
    StoragePriceAdjustment,
    ColorPriceAdjustment,
    AccessoryPriceAdjustment,
)

__all__ = [
    'DeviceBrand', 'DeviceType', 'DeviceSeries', 'DeviceModel',
    'Brand', 'Category', 'Product', 'ProductVariant',
    'RefurbishedProduct', 'RefurbishedProductImage',
    'Banner',
    'RepairStatus', 'Appointment',
    'PhoneCondition', 'TradeInPrice', 'PhoneTradeIn', 'TradeInAuditLog',
    'PricingParameter', 'StoragePriceAdjustment', 'ColorPriceAdjustment', 'AccessoryPriceAdjustment',
]
