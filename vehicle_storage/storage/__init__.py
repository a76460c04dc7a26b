"""
Storage Lifecycle Module

Object-storage lifecycle and garbage collection for vehicle photos and
store logos:
- Gateway over the S3-compatible bucket
- Adaptive JPEG compression of uploads
- Usage accounting and daily snapshots
- Tenant inactivity classification
- Garbage collection with an audit trail
- Threshold alerts
"""

from .gateway import ObjectStoreGateway, StoredObject, Available, Unavailable, StoreResult
from .compression import CompressionPipeline, CompressedImage
from .uploads import ImageUploadService, UploadedImage, public_image_url
from .usage import UsageAccountant, UsageStats, GrowthPoint
from .inactivity import InactivityClassifier, ZombieReport, ZombieTier, TIERS
from .cleanup import GarbageCollector, CleanupResult, CleanupTarget, OBSOLETE
from .alerts import AlertEvaluator, Alert
from .lifecycle import LifecyclePolicyManager, RetentionPolicy
from .insights import StorageInsights, TenantConsumption, FileQuality

__all__ = [
    # Gateway
    'ObjectStoreGateway',
    'StoredObject',
    'Available',
    'Unavailable',
    'StoreResult',

    # Uploads
    'CompressionPipeline',
    'CompressedImage',
    'ImageUploadService',
    'UploadedImage',
    'public_image_url',

    # Usage accounting
    'UsageAccountant',
    'UsageStats',
    'GrowthPoint',

    # Inactivity and cleanup
    'InactivityClassifier',
    'ZombieReport',
    'ZombieTier',
    'TIERS',
    'GarbageCollector',
    'CleanupResult',
    'CleanupTarget',
    'OBSOLETE',

    # Alerts
    'AlertEvaluator',
    'Alert',

    # Lifecycle and insights
    'LifecyclePolicyManager',
    'RetentionPolicy',
    'StorageInsights',
    'TenantConsumption',
    'FileQuality',
]
